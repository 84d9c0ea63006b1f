from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import current_account, get_store
from ..models import Account, ProfileUpdate, public_account
from ..services import identity, social
from ..storage import CollectionStore

router = APIRouter(prefix="/api/dev", tags=["developers"])


@router.post("/profile")
def update_profile(
    payload: ProfileUpdate,
    account: Account = Depends(current_account),
    store: CollectionStore = Depends(get_store),
) -> dict:
    updated, profile = identity.update_developer_profile(store, account.id, payload)
    return {"ok": True, "profile": profile.model_dump(mode="json"), "user": public_account(updated)}


@router.get("/list")
def list_developers(store: CollectionStore = Depends(get_store)) -> dict:
    return {"ok": True, "devs": [d.model_dump(mode="json") for d in social.list_developers(store)]}


@router.get("/{developer_id}")
def developer_detail(developer_id: str, store: CollectionStore = Depends(get_store)) -> dict:
    detail = social.get_developer(store, developer_id)
    verification = detail["verification"]
    return {
        "ok": True,
        "dev": detail["profile"].model_dump(mode="json"),
        "followers": detail["follower_count"],
        "verification": verification.model_dump(mode="json") if verification else None,
    }
