from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List

from authgate.handshake import ExternalLoginHandshake
from authgate.models import (
    AuthFailure,
    FailureReason,
    LoginResult,
    LoginSuccess,
    Registered,
    RegisterResult,
    UserRecord,
)
from authgate.navigator import InvalidTransition, PageNavigator
from authgate.storage import StorageUnavailable, StorageWriteError
from authgate.user_store import CredentialStore

logger = logging.getLogger("authgate.flow")

MIN_PASSWORD_LENGTH = 6


class AuthFlowController:
    """Local login/registration and provider login.

    Every success leaves the auth flow through the navigator; every failure is
    shown on the current page and returned to the caller. Attempts are never
    retried. A call made while another attempt is in flight is rejected with
    ``FailureReason.busy`` and leaves the page alone.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        navigator: PageNavigator,
        handshake: ExternalLoginHandshake,
        provider_url: str,
        callback_scheme: str,
    ):
        self._store = store
        self._navigator = navigator
        self._handshake = handshake
        self._provider_url = provider_url
        self._callback_scheme = callback_scheme
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def login(self, email: str, password: str) -> LoginResult:
        return await self._attempt("login", lambda: self._login(email, password))

    async def register(self, username: str, password: str) -> RegisterResult:
        return await self._attempt("register", lambda: self._register(username, password))

    async def login_with_provider(self) -> LoginResult:
        return await self._attempt("provider login", self._login_with_provider)

    async def _attempt(self, action: str, run: Callable[[], Awaitable[Any]]) -> Any:
        if self._navigator.exited:
            raise InvalidTransition(f"Cannot {action}: auth flow already exited")
        if self._busy:
            logger.info("Rejected %s: another attempt is in flight", action)
            return AuthFailure.of(FailureReason.busy)

        self._busy = True
        try:
            result = await run()
        finally:
            self._busy = False

        if isinstance(result, AuthFailure):
            logger.info("%s failed: %s", action.capitalize(), result.reason.value)
            self._navigator.show_message(result.message)
        else:
            logger.info("%s succeeded", action.capitalize())
            self._navigator.exit_auth_flow()
        return result

    async def _records(self) -> List[UserRecord]:
        try:
            return await self._store.list()
        except StorageUnavailable as e:
            logger.warning("Credential store unavailable, treating as empty: %s", e)
            return []

    async def _login(self, email: str, password: str) -> LoginResult:
        if not email or not password:
            return AuthFailure.of(FailureReason.missing_fields)

        matches = [r for r in await self._records() if r.email == email and r.password == password]
        if len(matches) != 1:
            return AuthFailure.of(FailureReason.invalid_credentials)

        user = matches[0]
        return LoginSuccess(method="local", email=user.email, username=user.username)

    async def _register(self, username: str, password: str) -> RegisterResult:
        if not username or not password:
            return AuthFailure.of(FailureReason.missing_fields)
        if len(password) < MIN_PASSWORD_LENGTH:
            return AuthFailure.of(FailureReason.password_too_short)

        if any(r.username == username for r in await self._records()):
            return AuthFailure.of(FailureReason.username_taken)

        record = UserRecord.for_registration(username=username, password=password)
        try:
            await self._store.append(record)
        except StorageWriteError as e:
            logger.warning("Registration could not be stored: %s", e)
            return AuthFailure.of(FailureReason.storage_error, detail=str(e))

        return Registered(email=record.email)

    async def _login_with_provider(self) -> LoginResult:
        outcome = await self._handshake.begin(self._provider_url, self._callback_scheme)
        if isinstance(outcome, AuthFailure):
            return outcome
        return LoginSuccess(method="provider", token=outcome.token)
