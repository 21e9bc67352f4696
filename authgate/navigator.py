from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Protocol

from authgate.models import Page

logger = logging.getLogger("authgate.navigator")

# Privacy is left only through back(), to whichever page opened it.
_TRANSITIONS: Dict[Page, FrozenSet[Page]] = {
    Page.splash: frozenset({Page.login, Page.register}),
    Page.login: frozenset({Page.register, Page.privacy}),
    Page.register: frozenset({Page.login, Page.privacy}),
    Page.privacy: frozenset(),
}

_PAGE_FIELDS: Dict[Page, tuple[str, ...]] = {
    Page.login: ("email", "password"),
    Page.register: ("username", "password"),
}


class InvalidTransition(RuntimeError):
    pass


@dataclass(frozen=True)
class PageView:
    page: Page
    fields: Dict[str, str]
    message: Optional[str] = None
    exited: bool = False


class ScreenPresenter(Protocol):
    def show_page(self, view: PageView) -> None: ...

    def enter_application(self) -> None: ...


@dataclass
class InMemoryPresenter:
    """Keeps rendered views instead of drawing them."""

    views: List[PageView] = field(default_factory=list)
    entered_application: bool = False

    @property
    def current(self) -> Optional[PageView]:
        return self.views[-1] if self.views else None

    def show_page(self, view: PageView) -> None:
        self.views.append(view)

    def enter_application(self) -> None:
        self.entered_application = True


class PageNavigator:
    """State machine over the auth pages.

    Entering login or register clears that page's inputs and the current
    message. Entering privacy and coming back leaves both untouched.
    ``exit_auth_flow`` hands control to the application; nothing may
    happen after it.
    """

    def __init__(self, presenter: ScreenPresenter):
        self._presenter = presenter
        self._page = Page.splash
        self._return_to: Optional[Page] = None
        self._fields: Dict[Page, Dict[str, str]] = {p: dict.fromkeys(names, "") for p, names in _PAGE_FIELDS.items()}
        self._message: Optional[str] = None
        self._exited = False

    @property
    def page(self) -> Page:
        return self._page

    @property
    def exited(self) -> bool:
        return self._exited

    @property
    def message(self) -> Optional[str]:
        return self._message

    def fields(self, page: Optional[Page] = None) -> Dict[str, str]:
        return dict(self._fields.get(page or self._page, {}))

    def view(self) -> PageView:
        return PageView(page=self._page, fields=self.fields(), message=self._message, exited=self._exited)

    def show_login(self) -> None:
        self._enter(Page.login)

    def show_register(self) -> None:
        self._enter(Page.register)

    def show_privacy(self) -> None:
        self._enter(Page.privacy)

    def back(self) -> None:
        self._ensure_active()
        if self._page is not Page.privacy or self._return_to is None:
            raise InvalidTransition(f"back() is only valid from {Page.privacy.value}")
        self._page, self._return_to = self._return_to, None
        self._present()

    def update_fields(self, **values: str) -> None:
        self._ensure_active()
        allowed = _PAGE_FIELDS.get(self._page)
        if allowed is None:
            raise InvalidTransition(f"Page {self._page.value} has no input fields")
        unknown = set(values) - set(allowed)
        if unknown:
            raise ValueError(f"Unknown fields for {self._page.value}: {', '.join(sorted(unknown))}")
        self._fields[self._page].update(values)
        self._present()

    def show_message(self, text: Optional[str]) -> None:
        self._ensure_active()
        self._message = text
        self._present()

    def exit_auth_flow(self) -> None:
        self._ensure_active()
        self._exited = True
        self._message = None
        for page, names in _PAGE_FIELDS.items():
            self._fields[page] = dict.fromkeys(names, "")
        logger.info("Leaving auth flow from %s", self._page.value)
        self._presenter.enter_application()

    def _enter(self, target: Page) -> None:
        self._ensure_active()
        if target not in _TRANSITIONS[self._page]:
            raise InvalidTransition(f"{self._page.value} -> {target.value} is not allowed")
        if target is Page.privacy:
            self._return_to = self._page
        else:
            self._fields[target] = dict.fromkeys(_PAGE_FIELDS[target], "")
            self._message = None
        logger.debug("Page %s -> %s", self._page.value, target.value)
        self._page = target
        self._present()

    def _ensure_active(self) -> None:
        if self._exited:
            raise InvalidTransition("Auth flow already exited")

    def _present(self) -> None:
        self._presenter.show_page(self.view())
