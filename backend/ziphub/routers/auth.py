from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response

from .. import config
from ..deps import current_account, get_store, session_token
from ..models import Account, LoginRequest, RegisterRequest, public_account
from ..services import identity
from ..storage import CollectionStore

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(config.SESSION_COOKIE, token, httponly=True, samesite="lax")


@router.post("/register")
def register(payload: RegisterRequest, response: Response, store: CollectionStore = Depends(get_store)) -> dict:
    account, token = identity.register(store, payload)
    _set_session_cookie(response, token)
    return {"ok": True, "user": public_account(account), "token": token}


@router.post("/login")
def login(payload: LoginRequest, response: Response, store: CollectionStore = Depends(get_store)) -> dict:
    account, token = identity.login(store, payload.username, payload.password)
    _set_session_cookie(response, token)
    return {"ok": True, "user": public_account(account), "token": token}


@router.get("/me")
def me(account: Account = Depends(current_account)) -> dict:
    return {"ok": True, "user": public_account(account)}


@router.post("/logout")
def logout(
    response: Response,
    token: Optional[str] = Depends(session_token),
    store: CollectionStore = Depends(get_store),
) -> dict:
    identity.logout(store, token)
    response.delete_cookie(config.SESSION_COOKIE)
    return {"ok": True}
