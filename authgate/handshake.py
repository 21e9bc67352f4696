from __future__ import annotations

import logging
from typing import Dict
from urllib.parse import parse_qsl, unquote, urlencode, urlsplit, urlunsplit

from authgate.auth import RedirectStateGenerator
from authgate.browser_session import BrowserResult, BrowserResultType, BrowserSession, BrowserUnavailableError
from authgate.models import AuthFailure, FailureReason, HandshakeResult, HandshakeSuccess

logger = logging.getLogger("authgate.handshake")

CALLBACK_PATH = "auth/callback"


def callback_url_for(scheme: str) -> str:
    return f"{scheme}://{CALLBACK_PATH}"


def annotate_provider_url(provider_url: str, *, state: str, redirect_uri: str) -> str:
    """Add ``state`` and ``redirect_uri`` to the provider URL's query string."""
    parts = urlsplit(provider_url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in ("state", "redirect_uri")]
    query += [("state", state), ("redirect_uri", redirect_uri)]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def parse_callback_query(url: str) -> Dict[str, str]:
    """Parse the query string of a redirect callback URL.

    Pairs are split on ``&`` and each pair on its first ``=``. Values are
    percent-decoded; a key without ``=`` maps to ``""``. Pairs with an empty
    key or undecodable escapes are skipped. Later duplicates win.
    """
    _, sep, query = url.partition("?")
    if not sep:
        return {}
    query = query.split("#", 1)[0]

    params: Dict[str, str] = {}
    for pair in query.split("&"):
        if not pair:
            continue
        key, has_value, raw_value = pair.partition("=")
        if not key:
            continue
        try:
            params[key] = unquote(raw_value, errors="strict") if has_value else ""
        except UnicodeDecodeError:
            logger.debug("Skipping undecodable callback parameter %r", key)
    return params


class ExternalLoginHandshake:
    """Browser redirect login against an external identity provider.

    The callback's ``state`` must equal the token issued for this attempt;
    anything else is a security violation regardless of what else the
    callback carries. A present ``token`` is accepted as proof of login.
    """

    def __init__(self, browser: BrowserSession, states: RedirectStateGenerator):
        self._browser = browser
        self._states = states

    async def begin(self, provider_url: str, callback_scheme: str) -> HandshakeResult:
        expected_state = self._states.issue()
        redirect_uri = callback_url_for(callback_scheme)
        auth_url = annotate_provider_url(provider_url, state=expected_state, redirect_uri=redirect_uri)
        logger.info("Opening provider session (redirect_uri=%s, state=%s...)", redirect_uri, expected_state[:6])

        try:
            result = await self._browser.open_auth_session(auth_url, redirect_uri)
        except BrowserUnavailableError as e:
            self._states.discard(expected_state)
            logger.warning("Browser session could not be opened: %s", e)
            return AuthFailure.of(FailureReason.browser_unavailable, detail=str(e))

        return self._complete(result, expected_state)

    def _complete(self, result: BrowserResult, expected_state: str) -> HandshakeResult:
        if result.type != BrowserResultType.success.value:
            self._states.discard(expected_state)
            return self._non_success(result)

        if not result.url:
            self._states.discard(expected_state)
            return AuthFailure.of(FailureReason.unexpected_result, detail="success without callback URL")

        params = parse_callback_query(result.url)
        if not self._states.verify(params.get("state")):
            logger.warning("State mismatch on provider callback; possible forged callback")
            return AuthFailure.of(FailureReason.security_violation)

        token = params.get("token")
        if not token:
            return AuthFailure.of(FailureReason.missing_token)

        logger.info("Provider login completed")
        return HandshakeSuccess(token=token)

    @staticmethod
    def _non_success(result: BrowserResult) -> AuthFailure:
        if result.type == BrowserResultType.cancel.value:
            return AuthFailure.of(FailureReason.user_cancelled)
        if result.type == BrowserResultType.dismiss.value:
            return AuthFailure.of(FailureReason.user_dismissed)
        if result.type == BrowserResultType.error.value:
            return AuthFailure.of(FailureReason.browser_unavailable, detail=result.error)
        return AuthFailure.of(FailureReason.unexpected_result, detail=f"result type {result.type!r}")
