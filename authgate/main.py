from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from authgate.deps import AuthSession, build_auth_session, get_auth_session
from authgate.logging_config import configure_logging
from authgate.routers.auth import router as auth_router
from authgate.routers.navigation import router as navigation_router
from authgate.settings import get_settings

configure_logging()

logger = logging.getLogger("authgate")

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.getLogger().setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    session = build_auth_session(settings)
    decision = await session.bootstrap.run()
    logger.info("Auth session ready (first page decision=%s)", decision.value)
    app.state.auth_session = session
    yield


app = FastAPI(title="Auth Gate", version=APP_VERSION, lifespan=lifespan)
app.include_router(auth_router)
app.include_router(navigation_router)


@app.get("/healthz")
def healthz(session: AuthSession = Depends(get_auth_session)):
    return JSONResponse(
        {
            "ok": True,
            "service": "authgate",
            "version": APP_VERSION,
            "page": session.navigator.page.value,
            "exited": session.navigator.exited,
        }
    )


@app.get("/configz")
def configz(session: AuthSession = Depends(get_auth_session)):
    # Never return stored credentials; only where they live.
    s = session.settings
    return JSONResponse(
        {
            "production_mode": s.production_mode,
            "storage_path": s.storage_path,
            "users_storage_key": s.users_storage_key,
            "provider_url": s.provider_url,
            "callback_scheme": s.callback_scheme,
            "deep_link_schemes": session.deep_links.schemes,
            "registered_users": len(session.store.snapshot()),
            "bootstrap_decision": session.bootstrap.decision.value if session.bootstrap.decision else None,
        }
    )
