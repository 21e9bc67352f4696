from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from authgate.deps import AuthSession, get_auth_session
from authgate.models import AuthFailure, FailureReason, LoginSuccess
from authgate.navigator import InvalidTransition

router = APIRouter(prefix="/auth", tags=["auth"])

_FAILURE_STATUS: dict[FailureReason, int] = {
    FailureReason.missing_fields: 400,
    FailureReason.password_too_short: 400,
    FailureReason.username_taken: 409,
    FailureReason.invalid_credentials: 401,
    FailureReason.storage_error: 503,
    FailureReason.browser_unavailable: 503,
    FailureReason.user_cancelled: 400,
    FailureReason.user_dismissed: 400,
    FailureReason.security_violation: 403,
    FailureReason.missing_token: 502,
    FailureReason.unexpected_result: 502,
    FailureReason.busy: 409,
}


class LoginRequest(BaseModel):
    email: str = Field(default="")
    password: str = Field(default="")


class RegisterRequest(BaseModel):
    username: str = Field(default="")
    password: str = Field(default="")


class AuthResponse(BaseModel):
    ok: bool = True
    method: str
    email: Optional[str] = None
    username: Optional[str] = None
    token: Optional[str] = None


class CallbackResponse(BaseModel):
    delivered: bool


def _failure_exception(failure: AuthFailure) -> HTTPException:
    return HTTPException(
        status_code=_FAILURE_STATUS[failure.reason],
        detail={"reason": failure.reason.value, "message": failure.message},
    )


def _login_response(result: LoginSuccess | AuthFailure) -> AuthResponse:
    if isinstance(result, AuthFailure):
        raise _failure_exception(result)
    return AuthResponse(method=result.method, email=result.email, username=result.username, token=result.token)


def _flow_closed(e: InvalidTransition) -> HTTPException:
    return HTTPException(status_code=409, detail={"reason": "invalid_transition", "message": str(e)})


@router.post("/login", response_model=AuthResponse)
async def login_endpoint(
    payload: LoginRequest = Body(...),
    session: AuthSession = Depends(get_auth_session),
) -> AuthResponse:
    try:
        result = await session.controller.login(payload.email, payload.password)
    except InvalidTransition as e:
        raise _flow_closed(e)
    return _login_response(result)


@router.post("/register", response_model=AuthResponse)
async def register_endpoint(
    payload: RegisterRequest = Body(...),
    session: AuthSession = Depends(get_auth_session),
) -> AuthResponse:
    try:
        result = await session.controller.register(payload.username, payload.password)
    except InvalidTransition as e:
        raise _flow_closed(e)
    if isinstance(result, AuthFailure):
        raise _failure_exception(result)
    return AuthResponse(method="register", email=result.email, username=payload.username)


@router.post("/provider", response_model=AuthResponse)
async def provider_login_endpoint(session: AuthSession = Depends(get_auth_session)) -> AuthResponse:
    """Run the external login handshake.

    The request stays open until the browser session ends: the provider
    redirects to ``/auth/callback``, or the client calls cancel/dismiss.
    """
    try:
        result = await session.controller.login_with_provider()
    except InvalidTransition as e:
        raise _flow_closed(e)
    return _login_response(result)


@router.get("/callback", response_model=CallbackResponse)
async def callback_endpoint(request: Request, session: AuthSession = Depends(get_auth_session)) -> CallbackResponse:
    """Loopback redirect target: hand the callback to the waiting browser session."""
    callback_url = session.browser.callback_url
    if callback_url is None:
        raise HTTPException(status_code=409, detail="No external login in progress")
    query = request.url.query
    delivered = session.browser.deliver(f"{callback_url}?{query}" if query else callback_url)
    return CallbackResponse(delivered=delivered)


@router.post("/provider/cancel", response_model=CallbackResponse)
async def cancel_endpoint(session: AuthSession = Depends(get_auth_session)) -> CallbackResponse:
    return CallbackResponse(delivered=session.browser.cancel())


@router.post("/provider/dismiss", response_model=CallbackResponse)
async def dismiss_endpoint(session: AuthSession = Depends(get_auth_session)) -> CallbackResponse:
    return CallbackResponse(delivered=session.browser.dismiss())
