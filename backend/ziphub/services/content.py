from __future__ import annotations

import logging
import random
from collections import Counter
from typing import Any, Callable, Dict, List, Optional

from .. import config
from ..errors import EmptyComment, InvalidInput, MissingFields, NoSuchFile, NotApprovedDeveloper
from ..models import Account, Comment, FileRecord, FileUpload, Like, Report, public_account
from ..storage import CollectionStore
from ..timeutils import now_utc, parse_iso_to_utc

_logger = logging.getLogger(__name__)

DEPENDENT_COLLECTIONS = ("likes", "comments", "reports")

SeedingPolicy = Callable[[Account], int]


def no_seeding(owner: Account) -> int:
    return 0


class CreatorSeedingPolicy:
    def __init__(
        self,
        username: str,
        low: int = config.SEED_LIKES_MIN,
        high: int = config.SEED_LIKES_MAX,
        rng: Optional[random.Random] = None,
    ):
        self.username = username.lower()
        self.low = low
        self.high = high
        self._rng = rng or random.Random()

    def __call__(self, owner: Account) -> int:
        if owner.username.lower() != self.username:
            return 0
        return self._rng.randint(self.low, self.high)


def _file_exists(store: CollectionStore, file_id: Optional[str]) -> bool:
    return bool(file_id) and any(raw["id"] == file_id for raw in store.get("files"))


def create_file(
    store: CollectionStore,
    owner: Account,
    payload: FileUpload,
    seeding: SeedingPolicy = no_seeding,
) -> FileRecord:
    if not owner.can_publish:
        raise NotApprovedDeveloper()
    title = payload.title.strip()
    description = payload.description.strip()
    if not title or not description:
        raise InvalidInput("Title & description required")

    record = FileRecord(
        owner_id=owner.id,
        title=title[: config.TITLE_MAX_LENGTH],
        description=description[: config.DESCRIPTION_MAX_LENGTH],
        resource_url=payload.resource_url or "",
    )

    def _append(records: List[Dict[str, Any]]):
        records.append(record.model_dump(mode="json"))
        return records, record

    store.mutate("files", _append)

    seed_count = seeding(owner)
    if seed_count > 0:
        seeds = [
            Like(user_id=f"{config.SEED_USER_PREFIX}{idx}", file_id=record.id).model_dump(mode="json")
            for idx in range(seed_count)
        ]

        def _seed(records: List[Dict[str, Any]]):
            records.extend(seeds)
            return records, len(seeds)

        store.mutate("likes", _seed)
        _logger.debug("Seeded %d likes", seed_count, extra={"file_id": record.id})
    return record


def list_files(store: CollectionStore) -> List[Dict[str, Any]]:
    files = [FileRecord.model_validate(raw) for raw in store.get("files")]
    like_counts = Counter(raw["file_id"] for raw in store.get("likes"))
    comment_counts = Counter(raw["file_id"] for raw in store.get("comments"))
    owners = {raw["id"]: Account.model_validate(raw) for raw in store.get("accounts")}

    listing = []
    for record in files:
        owner = owners.get(record.owner_id)
        payload = record.model_dump(mode="json")
        payload["likes"] = like_counts.get(record.id, 0)
        payload["comments"] = comment_counts.get(record.id, 0)
        payload["owner"] = public_account(owner) if owner is not None else None
        listing.append(payload)
    return listing


def _withdraw_if_orphaned(store: CollectionStore, collection: str, file_id: str, keep: Callable[[Dict[str, Any]], bool]) -> None:
    # A delete may have purged dependents between our existence check and our insert.
    if _file_exists(store, file_id):
        return

    def _drop(records: List[Dict[str, Any]]):
        return [raw for raw in records if keep(raw)], None

    store.mutate(collection, _drop)
    raise NoSuchFile()


def like(store: CollectionStore, user_id: str, file_id: Optional[str]) -> bool:
    if not _file_exists(store, file_id):
        raise NoSuchFile()
    entry = Like(user_id=user_id, file_id=file_id)

    def _insert(records: List[Dict[str, Any]]):
        if any(raw["file_id"] == file_id and raw["user_id"] == user_id for raw in records):
            return records, False
        records.append(entry.model_dump(mode="json"))
        return records, True

    created = store.mutate("likes", _insert)
    if created:
        _withdraw_if_orphaned(
            store,
            "likes",
            file_id,
            lambda raw: not (raw["file_id"] == file_id and raw["user_id"] == user_id),
        )
    return created


def comment(store: CollectionStore, user_id: str, file_id: Optional[str], text: Optional[str]) -> Comment:
    if not text or not text.strip():
        raise EmptyComment()
    if not _file_exists(store, file_id):
        raise NoSuchFile()
    entry = Comment(file_id=file_id, user_id=user_id, text=text[: config.COMMENT_MAX_LENGTH])

    def _append(records: List[Dict[str, Any]]):
        records.append(entry.model_dump(mode="json"))
        return records, entry

    store.mutate("comments", _append)
    _withdraw_if_orphaned(store, "comments", file_id, lambda raw: raw["id"] != entry.id)
    return entry


def report(store: CollectionStore, reporter_id: str, file_id: Optional[str], reason: Optional[str]) -> Report:
    if not file_id or not reason:
        raise MissingFields()
    entry = Report(file_id=file_id, reason=reason[: config.REPORT_REASON_MAX_LENGTH], reporter_id=reporter_id)

    def _append(records: List[Dict[str, Any]]):
        records.append(entry.model_dump(mode="json"))
        return records, entry

    return store.mutate("reports", _append)


def list_reports(store: CollectionStore) -> List[Report]:
    return [Report.model_validate(raw) for raw in store.get("reports")]


def _purge_dependents(store: CollectionStore, keep: Callable[[Dict[str, Any]], bool]) -> Dict[str, int]:
    removed: Dict[str, int] = {}
    for collection in DEPENDENT_COLLECTIONS:

        def _filter(records: List[Dict[str, Any]]):
            remaining = [raw for raw in records if keep(raw)]
            return remaining, len(records) - len(remaining)

        removed[collection] = store.mutate(collection, _filter)
    return removed


def delete_file(store: CollectionStore, file_id: Optional[str]) -> Dict[str, int]:
    if not file_id:
        raise MissingFields("Missing fileId")

    def _remove(records: List[Dict[str, Any]]):
        remaining = [raw for raw in records if raw["id"] != file_id]
        if len(remaining) == len(records):
            raise NoSuchFile()
        return remaining, None

    store.mutate("files", _remove)
    removed = _purge_dependents(store, lambda raw: raw["file_id"] != file_id)
    _logger.info(
        "Deleted file with %d likes, %d comments, %d reports",
        removed["likes"],
        removed["comments"],
        removed["reports"],
        extra={"file_id": file_id},
    )
    return removed


def sweep_orphans(store: CollectionStore) -> Dict[str, int]:
    cutoff = now_utc()
    live = {raw["id"] for raw in store.get("files")}

    def _keep(raw: Dict[str, Any]) -> bool:
        # Records written after the file snapshot may belong to files created since.
        return raw["file_id"] in live or parse_iso_to_utc(raw["at"]) >= cutoff

    removed = _purge_dependents(store, _keep)
    if any(removed.values()):
        _logger.info("Swept orphaned records: %s", removed)
    return removed
