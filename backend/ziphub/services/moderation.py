from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..errors import InvalidInput, NoSuchDeveloper
from ..models import Account, DeveloperProfile, GrantSource, Role, VerificationRecord, VerifiedAccountCreate
from ..storage import CollectionStore
from . import identity, social

_logger = logging.getLogger(__name__)


def stats(store: CollectionStore) -> Dict[str, int]:
    counts = store.counts()
    return {
        "users": counts["accounts"],
        "developers": counts["developers"],
        "files": counts["files"],
        "reports": counts["reports"],
        "likes": counts["likes"],
        "comments": counts["comments"],
    }


def approve_developer(store: CollectionStore, developer_id: str) -> Account:
    def _approve_account(records: List[Dict[str, Any]]):
        for idx, raw in enumerate(records):
            if raw["id"] != developer_id:
                continue
            account = Account.model_validate(raw)
            if not account.is_developer:
                break
            account = account.model_copy(update={"approved": True})
            records[idx] = account.model_dump(mode="json")
            return records, account
        raise NoSuchDeveloper()

    def _approve_profile(records: List[Dict[str, Any]]):
        for raw in records:
            if raw["id"] == developer_id:
                raw["approved"] = True
                return records, True
        return records, False

    account = store.mutate("accounts", _approve_account)
    if not store.mutate("developers", _approve_profile):
        identity.create_profile(store, DeveloperProfile(id=account.id, username=account.username, approved=True))
    _logger.info("Approved developer %s", account.username, extra={"account_id": account.id})
    return account


def create_verified_account(store: CollectionStore, payload: VerifiedAccountCreate) -> Account:
    username = payload.username.strip()
    if not username or not payload.password:
        raise InvalidInput("Missing fields")

    account = identity.create_account(
        store,
        Account(
            username=username,
            password_hash=identity.hash_password(payload.password),
            role=Role.developer,
            is_developer=True,
            approved=True,
            display_name=username,
        ),
    )
    identity.create_profile(store, DeveloperProfile(id=account.id, username=username, approved=True, verified=True))

    def _grant(ledger: Dict[str, Any]):
        ledger[account.id] = VerificationRecord(granted_by=GrantSource.admin).model_dump(mode="json")
        return ledger, None

    store.mutate("verifications", _grant)
    social.grant_boost(store, account.id, payload.followers_boost)
    _logger.info("Created verified developer %s", username, extra={"account_id": account.id})
    return account
