from __future__ import annotations

import logging
from enum import Enum

from authgate.navigator import PageNavigator
from authgate.storage import StorageUnavailable
from authgate.user_store import CredentialStore

logger = logging.getLogger("authgate.bootstrap")


class BootstrapDecision(str, Enum):
    login = "login"
    register = "register"
    enter_application = "enter_application"


class BootstrapPolicy:
    """Pick the first page on cold start. Runs once per process.

    Outside production mode the login page is always shown. In production
    mode any local registration counts as a returning user and skips the
    auth flow; an empty (or unreadable) registry lands on register.
    """

    def __init__(self, *, store: CredentialStore, navigator: PageNavigator, production_mode: bool):
        self._store = store
        self._navigator = navigator
        self._production_mode = production_mode
        self._decision: BootstrapDecision | None = None

    @property
    def decision(self) -> BootstrapDecision | None:
        return self._decision

    async def run(self) -> BootstrapDecision:
        if self._decision is not None:
            raise RuntimeError("Bootstrap already ran")
        self._decision = await self._decide()
        logger.info("Bootstrap decision: %s (production_mode=%s)", self._decision.value, self._production_mode)

        if self._decision is BootstrapDecision.login:
            self._navigator.show_login()
        elif self._decision is BootstrapDecision.register:
            self._navigator.show_register()
        else:
            self._navigator.exit_auth_flow()
        return self._decision

    async def _decide(self) -> BootstrapDecision:
        if not self._production_mode:
            return BootstrapDecision.login
        try:
            records = await self._store.list()
        except StorageUnavailable as e:
            logger.warning("Credential store unavailable at startup, treating as empty: %s", e)
            records = []
        return BootstrapDecision.enter_application if records else BootstrapDecision.register
