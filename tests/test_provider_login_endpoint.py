from __future__ import annotations

import asyncio
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from authgate.deps import build_auth_session
from authgate.main import app
from authgate.settings import Settings
from authgate.storage import InMemoryKeyValueStorage


def _session(launched: list[str]):
    settings = Settings(AUTH_PROVIDER_URL="https://idp.example.com/authorize", AUTH_CALLBACK_SCHEME="myapp")
    session = build_auth_session(
        settings,
        storage=InMemoryKeyValueStorage(),
        launcher=lambda url: launched.append(url) or True,
    )
    session.navigator.show_login()
    return session


async def _wait_for_browser(session) -> None:
    for _ in range(100):
        if session.browser.pending:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("browser session never opened")


@pytest.mark.asyncio
async def test_provider_login_completes_through_loopback_callback():
    launched: list[str] = []
    session = _session(launched)
    app.state.auth_session = session

    # ASGITransport does not run the lifespan; the session is wired by hand.
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        login = asyncio.create_task(client.post("/auth/provider"))
        await _wait_for_browser(session)

        state = parse_qs(urlsplit(launched[0]).query)["state"][0]
        r = await client.get("/auth/callback", params={"state": state, "token": "opaque-token"})
        assert r.json() == {"delivered": True}

        resp = await login

    assert resp.status_code == 200, resp.text
    assert resp.json()["method"] == "provider"
    assert resp.json()["token"] == "opaque-token"
    assert session.presenter.entered_application


@pytest.mark.asyncio
async def test_forged_callback_is_rejected_with_403():
    launched: list[str] = []
    session = _session(launched)
    app.state.auth_session = session

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        login = asyncio.create_task(client.post("/auth/provider"))
        await _wait_for_browser(session)

        await client.get("/auth/callback", params={"state": "forged", "token": "opaque-token"})
        resp = await login

    assert resp.status_code == 403
    assert resp.json()["detail"]["reason"] == "security_violation"
    assert not session.presenter.entered_application
    assert session.navigator.page.value == "login"


@pytest.mark.asyncio
async def test_cancelled_provider_login():
    session = _session([])
    app.state.auth_session = session

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        login = asyncio.create_task(client.post("/auth/provider"))
        await _wait_for_browser(session)
        assert (await client.post("/auth/provider/cancel")).json() == {"delivered": True}
        resp = await login

    assert resp.status_code == 400
    assert resp.json()["detail"]["reason"] == "user_cancelled"
