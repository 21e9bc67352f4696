from __future__ import annotations

import inspect
import logging
import webbrowser
from typing import Any, Callable, Dict, Iterable, Optional
from urllib.parse import urlsplit

logger = logging.getLogger("authgate.deep_links")

Opener = Callable[[str], Any]


def _scheme_of(url: str) -> str:
    return urlsplit((url or "").strip()).scheme.lower()


class DeepLinkProbe:
    """Check whether a custom-scheme URL (e.g. ``myapp://chat``) can be opened, and open it.

    A URL can be opened when an opener is registered for its scheme. Openers
    may be plain callables or coroutine functions; returning ``False`` or
    raising counts as a failed open.
    """

    def __init__(self, openers: Optional[Dict[str, Opener]] = None):
        self._openers: Dict[str, Opener] = {k.lower(): v for k, v in (openers or {}).items()}

    @classmethod
    def for_schemes(cls, schemes: Iterable[str], launcher: Opener = webbrowser.open) -> "DeepLinkProbe":
        return cls({s: launcher for s in schemes if s})

    @property
    def schemes(self) -> list[str]:
        return sorted(self._openers)

    def register(self, scheme: str, opener: Opener) -> None:
        self._openers[scheme.lower()] = opener

    def can_open(self, url: str) -> bool:
        scheme = _scheme_of(url)
        return bool(scheme) and scheme in self._openers

    async def open(self, url: str) -> bool:
        opener = self._openers.get(_scheme_of(url))
        if opener is None:
            logger.info("No opener registered for %r", url)
            return False
        try:
            result = opener(url)
            if inspect.isawaitable(result):
                result = await result
        except (OSError, RuntimeError, webbrowser.Error):
            logger.warning("Opening %r failed", url, exc_info=True)
            return False
        return result is not False
