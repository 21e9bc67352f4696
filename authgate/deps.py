from __future__ import annotations

import webbrowser
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request

from authgate.auth import RedirectStateGenerator
from authgate.bootstrap import BootstrapPolicy
from authgate.browser_session import LoopbackBrowserSession
from authgate.deep_links import DeepLinkProbe
from authgate.flow import AuthFlowController
from authgate.handshake import ExternalLoginHandshake
from authgate.navigator import InMemoryPresenter, PageNavigator
from authgate.settings import Settings, get_settings
from authgate.storage import FileKeyValueStorage, KeyValueStorage
from authgate.user_store import CredentialStore


@dataclass
class AuthSession:
    """Everything one running auth flow needs, wired together."""

    settings: Settings
    store: CredentialStore
    states: RedirectStateGenerator
    browser: LoopbackBrowserSession
    presenter: InMemoryPresenter
    navigator: PageNavigator
    controller: AuthFlowController
    bootstrap: BootstrapPolicy
    deep_links: DeepLinkProbe


def build_auth_session(
    settings: Settings,
    *,
    storage: Optional[KeyValueStorage] = None,
    launcher: Callable[[str], bool] = webbrowser.open,
) -> AuthSession:
    store = CredentialStore(storage or FileKeyValueStorage(settings.storage_path), key=settings.users_storage_key)
    states = RedirectStateGenerator()
    browser = LoopbackBrowserSession(launcher=launcher)
    presenter = InMemoryPresenter()
    navigator = PageNavigator(presenter)
    controller = AuthFlowController(
        store=store,
        navigator=navigator,
        handshake=ExternalLoginHandshake(browser, states),
        provider_url=settings.provider_url,
        callback_scheme=settings.callback_scheme,
    )
    return AuthSession(
        settings=settings,
        store=store,
        states=states,
        browser=browser,
        presenter=presenter,
        navigator=navigator,
        controller=controller,
        bootstrap=BootstrapPolicy(store=store, navigator=navigator, production_mode=settings.production_mode),
        deep_links=DeepLinkProbe.for_schemes(settings.deep_link_scheme_list, launcher=launcher),
    )


def get_settings_dep() -> Settings:
    """FastAPI dependency for settings.

    Delegates to authgate.settings.get_settings (canonical constructor).
    """
    return get_settings()


def get_auth_session(request: Request) -> AuthSession:
    # Built once in the app lifespan; one auth flow per process.
    return request.app.state.auth_session
