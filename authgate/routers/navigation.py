from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from authgate.deps import AuthSession, get_auth_session
from authgate.navigator import InvalidTransition, PageNavigator, PageView

router = APIRouter(tags=["navigation"])

NavAction = Literal["login", "register", "privacy", "back"]


class PageViewResponse(BaseModel):
    page: str
    inputs: dict[str, str]
    message: Optional[str] = None
    exited: bool = False

    @classmethod
    def from_view(cls, view: PageView) -> "PageViewResponse":
        return cls(page=view.page.value, inputs=view.fields, message=view.message, exited=view.exited)


class FieldsUpdate(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None


class OpenLinkRequest(BaseModel):
    url: str = Field(..., min_length=1)


class LinkResponse(BaseModel):
    url: str
    ok: bool


def _apply(navigator: PageNavigator, action: NavAction) -> None:
    if action == "login":
        navigator.show_login()
    elif action == "register":
        navigator.show_register()
    elif action == "privacy":
        navigator.show_privacy()
    else:
        navigator.back()


@router.get("/nav", response_model=PageViewResponse)
def current_page(session: AuthSession = Depends(get_auth_session)) -> PageViewResponse:
    return PageViewResponse.from_view(session.navigator.view())


@router.post("/nav/{action}", response_model=PageViewResponse)
def navigate(action: NavAction, session: AuthSession = Depends(get_auth_session)) -> PageViewResponse:
    try:
        _apply(session.navigator, action)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return PageViewResponse.from_view(session.navigator.view())


@router.patch("/nav/fields", response_model=PageViewResponse)
def update_fields(
    payload: FieldsUpdate = Body(...),
    session: AuthSession = Depends(get_auth_session),
) -> PageViewResponse:
    try:
        session.navigator.update_fields(**payload.model_dump(exclude_none=True))
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PageViewResponse.from_view(session.navigator.view())


@router.get("/links/can_open", response_model=LinkResponse)
def can_open_link(url: str = Query(..., min_length=1), session: AuthSession = Depends(get_auth_session)) -> LinkResponse:
    return LinkResponse(url=url, ok=session.deep_links.can_open(url))


@router.post("/links/open", response_model=LinkResponse)
async def open_link(payload: OpenLinkRequest = Body(...), session: AuthSession = Depends(get_auth_session)) -> LinkResponse:
    return LinkResponse(url=payload.url, ok=await session.deep_links.open(payload.url))
