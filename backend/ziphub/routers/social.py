from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import current_account, get_store
from ..models import Account
from ..services import social
from ..storage import CollectionStore

router = APIRouter(prefix="/api/follow", tags=["social"])


@router.post("/{developer_id}")
def follow(
    developer_id: str,
    account: Account = Depends(current_account),
    store: CollectionStore = Depends(get_store),
) -> dict:
    outcome = social.follow(store, account.id, developer_id)
    payload = {"ok": True, "followers": outcome.follower_count, "verified": outcome.verified_now}
    if outcome.message:
        payload["message"] = outcome.message
    return payload
