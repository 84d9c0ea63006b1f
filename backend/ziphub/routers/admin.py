from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_store, require_admin
from ..errors import MissingFields
from ..models import DeveloperAction, FileAction, VerifiedAccountCreate, public_account
from ..services import content, moderation, social
from ..storage import CollectionStore

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _developer_id(payload: DeveloperAction) -> str:
    if not payload.developer_id:
        raise MissingFields("Missing devId")
    return payload.developer_id


@router.get("/stats")
def stats(store: CollectionStore = Depends(get_store)) -> dict:
    return {"ok": True, "totals": moderation.stats(store)}


@router.get("/reports")
def reports(store: CollectionStore = Depends(get_store)) -> dict:
    return {"ok": True, "reports": [r.model_dump(mode="json") for r in content.list_reports(store)]}


@router.post("/delete-file")
def delete_file(payload: FileAction, store: CollectionStore = Depends(get_store)) -> dict:
    removed = content.delete_file(store, payload.file_id)
    return {"ok": True, "removed": removed}


@router.post("/approve-dev")
def approve_developer(payload: DeveloperAction, store: CollectionStore = Depends(get_store)) -> dict:
    account = moderation.approve_developer(store, _developer_id(payload))
    return {"ok": True, "user": public_account(account)}


@router.post("/verify")
def verify_developer(payload: DeveloperAction, store: CollectionStore = Depends(get_store)) -> dict:
    record = social.admin_verify(store, _developer_id(payload))
    return {"ok": True, "verification": record.model_dump(mode="json")}


@router.post("/create-verified")
def create_verified(payload: VerifiedAccountCreate, store: CollectionStore = Depends(get_store)) -> dict:
    account = moderation.create_verified_account(store, payload)
    return {"ok": True, "user": public_account(account)}


@router.post("/sweep")
def sweep(store: CollectionStore = Depends(get_store)) -> dict:
    return {"ok": True, "removed": content.sweep_orphans(store)}
