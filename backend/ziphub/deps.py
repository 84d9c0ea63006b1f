from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from . import config
from .errors import Forbidden
from .models import Account
from .services import identity
from .services.content import SeedingPolicy
from .storage import CollectionStore


def get_store(request: Request) -> CollectionStore:
    return request.app.state.store


def get_seeding(request: Request) -> SeedingPolicy:
    return request.app.state.seeding


def session_token(request: Request) -> Optional[str]:
    token = request.cookies.get(config.SESSION_COOKIE)
    if token:
        return token
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def current_account(
    token: Optional[str] = Depends(session_token),
    store: CollectionStore = Depends(get_store),
) -> Account:
    return identity.resolve_session(store, token)


def require_admin(account: Account = Depends(current_account)) -> Account:
    if not account.is_admin:
        raise Forbidden("Admin only")
    return account
