from __future__ import annotations

import logging
from typing import Any, Dict, List, NamedTuple, Optional

from .. import config
from ..errors import NoSuchDeveloper
from ..models import DeveloperProfile, FollowEdge, FollowGraph, GrantSource, VerificationRecord
from ..storage import CollectionStore

_logger = logging.getLogger(__name__)


class FollowOutcome(NamedTuple):
    created: bool
    follower_count: int
    verified_now: bool = False
    message: Optional[str] = None


def get_profile(store: CollectionStore, developer_id: str) -> Optional[DeveloperProfile]:
    for raw in store.get("developers"):
        if raw["id"] == developer_id:
            return DeveloperProfile.model_validate(raw)
    return None


def list_developers(store: CollectionStore) -> List[DeveloperProfile]:
    return [DeveloperProfile.model_validate(raw) for raw in store.get("developers")]


def follower_count(store: CollectionStore, developer_id: str) -> int:
    return FollowGraph.model_validate(store.get("follows")).follower_count(developer_id)


def get_verification(store: CollectionStore, developer_id: str) -> Optional[VerificationRecord]:
    raw = store.get("verifications").get(developer_id)
    return VerificationRecord.model_validate(raw) if raw is not None else None


def get_developer(store: CollectionStore, developer_id: str) -> Dict[str, Any]:
    profile = get_profile(store, developer_id)
    if profile is None:
        raise NoSuchDeveloper()
    verification = get_verification(store, developer_id)
    return {
        "profile": profile,
        "follower_count": follower_count(store, developer_id),
        "verification": verification,
    }


def _mark_profile_verified(store: CollectionStore, developer_id: str) -> None:
    def _update(records: List[Dict[str, Any]]):
        for raw in records:
            if raw["id"] == developer_id:
                raw["verified"] = True
        return records, None

    store.mutate("developers", _update)


def _grant_auto_verification(store: CollectionStore, developer_id: str) -> bool:
    def _grant(ledger: Dict[str, Any]):
        if developer_id in ledger:
            return ledger, False
        ledger[developer_id] = VerificationRecord(granted_by=GrantSource.auto).model_dump(mode="json")
        return ledger, True

    return store.mutate("verifications", _grant)


def follow(store: CollectionStore, follower_id: str, followed_id: str) -> FollowOutcome:
    if follower_id == followed_id:
        return FollowOutcome(False, follower_count(store, followed_id), message="Cannot follow yourself")
    if get_profile(store, followed_id) is None:
        raise NoSuchDeveloper()

    def _insert(raw_graph: Dict[str, Any]):
        graph = FollowGraph.model_validate(raw_graph)
        if graph.has_edge(follower_id, followed_id):
            return raw_graph, (False, graph.follower_count(followed_id))
        graph.edges.append(FollowEdge(follower_id=follower_id, followed_id=followed_id))
        return graph.model_dump(mode="json"), (True, graph.follower_count(followed_id))

    created, count = store.mutate("follows", _insert)
    if not created:
        return FollowOutcome(False, count, message="Already following")

    verified_now = False
    if count >= config.VERIFICATION_THRESHOLD and _grant_auto_verification(store, followed_id):
        _mark_profile_verified(store, followed_id)
        verified_now = True
        _logger.info("Auto-verified developer at %d followers", count, extra={"account_id": followed_id})
    return FollowOutcome(True, count, verified_now)


def admin_verify(store: CollectionStore, developer_id: str) -> VerificationRecord:
    if get_profile(store, developer_id) is None:
        raise NoSuchDeveloper()
    record = VerificationRecord(granted_by=GrantSource.admin)

    def _grant(ledger: Dict[str, Any]):
        ledger[developer_id] = record.model_dump(mode="json")
        return ledger, record

    store.mutate("verifications", _grant)
    _mark_profile_verified(store, developer_id)
    return record


def grant_boost(store: CollectionStore, developer_id: str, amount: int) -> int:
    increment = max(0, int(amount))

    def _add(raw_graph: Dict[str, Any]):
        boosts = raw_graph.setdefault("boosts", {})
        boosts[developer_id] = boosts.get(developer_id, 0) + increment
        return raw_graph, boosts[developer_id]

    return store.mutate("follows", _add)
