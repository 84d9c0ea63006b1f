from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import current_account, get_seeding, get_store
from ..models import Account, CommentCreate, FileAction, FileUpload, ReportCreate
from ..services import content
from ..services.content import SeedingPolicy
from ..storage import CollectionStore

router = APIRouter(prefix="/api", tags=["files"])


@router.post("/files/upload")
def upload(
    payload: FileUpload,
    account: Account = Depends(current_account),
    store: CollectionStore = Depends(get_store),
    seeding: SeedingPolicy = Depends(get_seeding),
) -> dict:
    record = content.create_file(store, account, payload, seeding=seeding)
    return {"ok": True, "file": record.model_dump(mode="json")}


@router.get("/files/list")
def list_files(store: CollectionStore = Depends(get_store)) -> dict:
    return {"ok": True, "files": content.list_files(store)}


@router.post("/files/like")
def like(
    payload: FileAction,
    account: Account = Depends(current_account),
    store: CollectionStore = Depends(get_store),
) -> dict:
    if not content.like(store, account.id, payload.file_id):
        return {"ok": True, "message": "Already liked"}
    return {"ok": True}


@router.post("/files/comment")
def comment(
    payload: CommentCreate,
    account: Account = Depends(current_account),
    store: CollectionStore = Depends(get_store),
) -> dict:
    record = content.comment(store, account.id, payload.file_id, payload.text)
    return {"ok": True, "comment": record.model_dump(mode="json")}


@router.post("/report")
def report(
    payload: ReportCreate,
    account: Account = Depends(current_account),
    store: CollectionStore = Depends(get_store),
) -> dict:
    record = content.report(store, account.id, payload.file_id, payload.reason)
    return {"ok": True, "report": record.model_dump(mode="json")}
