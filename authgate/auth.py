from __future__ import annotations

import base64
import hmac
import secrets
import threading
from typing import Callable, Optional


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def new_state_token(nbytes: int = 32) -> str:
    """Return a URL-safe, printable anti-forgery token."""
    return _b64url_encode(secrets.token_bytes(nbytes))


class RedirectStateGenerator:
    """Holds the single outstanding anti-forgery token for external login.

    Issuing a token supersedes the previous one. A token is compared at most
    once: ``verify`` retires it whether or not it matched.
    """

    def __init__(self, token_factory: Optional[Callable[[], str]] = None):
        self._lock = threading.Lock()
        self._factory = token_factory or new_state_token
        self._outstanding: Optional[str] = None

    @property
    def outstanding(self) -> bool:
        with self._lock:
            return self._outstanding is not None

    def issue(self) -> str:
        token = self._factory()
        with self._lock:
            self._outstanding = token
        return token

    def verify(self, candidate: Optional[str]) -> bool:
        with self._lock:
            expected, self._outstanding = self._outstanding, None
        if expected is None or not candidate:
            return False
        return hmac.compare_digest(expected.encode("utf-8"), candidate.encode("utf-8"))

    def discard(self, token: Optional[str] = None) -> None:
        """Retire the outstanding token; with ``token``, only if it is still the outstanding one."""
        with self._lock:
            if token is None or self._outstanding == token:
                self._outstanding = None
