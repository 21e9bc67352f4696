from __future__ import annotations

import asyncio
import logging
import webbrowser
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

logger = logging.getLogger("authgate.browser")


class BrowserResultType(str, Enum):
    success = "success"
    cancel = "cancel"
    dismiss = "dismiss"
    error = "error"


@dataclass(frozen=True)
class BrowserResult:
    # Plain str so unknown result types from a browser backend pass through.
    type: str
    url: Optional[str] = None
    error: Optional[str] = None


class BrowserUnavailableError(RuntimeError):
    pass


class BrowserSession(Protocol):
    async def open_auth_session(self, url: str, callback_url: str) -> BrowserResult: ...


class LoopbackBrowserSession:
    """Open the system browser and wait for the host to report the outcome.

    The host (for example the ``/auth/callback`` route) calls ``deliver`` with
    the redirect URL, or ``cancel``/``dismiss`` when the user backs out. There
    is no timeout. Opening a new session while one is pending resolves the
    older one as dismissed.
    """

    def __init__(self, launcher: Callable[[str], bool] = webbrowser.open):
        self._launcher = launcher
        self._pending: Optional[asyncio.Future[BrowserResult]] = None
        self._callback_url: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def callback_url(self) -> Optional[str]:
        return self._callback_url if self.pending else None

    async def open_auth_session(self, url: str, callback_url: str) -> BrowserResult:
        if self.pending:
            logger.info("Superseding pending browser session")
            self._resolve(BrowserResult(type=BrowserResultType.dismiss.value))

        try:
            opened = self._launcher(url)
        except webbrowser.Error as e:
            raise BrowserUnavailableError(str(e)) from e
        if not opened:
            raise BrowserUnavailableError("No browser could be launched")

        fut: asyncio.Future[BrowserResult] = asyncio.get_running_loop().create_future()
        self._pending = fut
        self._callback_url = callback_url
        try:
            return await fut
        finally:
            if self._pending is fut:
                self._pending = None
                self._callback_url = None

    def deliver(self, url: str) -> bool:
        return self._resolve(BrowserResult(type=BrowserResultType.success.value, url=url))

    def cancel(self) -> bool:
        return self._resolve(BrowserResult(type=BrowserResultType.cancel.value))

    def dismiss(self) -> bool:
        return self._resolve(BrowserResult(type=BrowserResultType.dismiss.value))

    def _resolve(self, result: BrowserResult) -> bool:
        fut = self._pending
        if fut is None or fut.done():
            return False
        fut.set_result(result)
        return True
