from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import Any, Dict, List, Optional, Tuple

from .. import config
from ..errors import (
    Forbidden,
    InvalidCredentials,
    InvalidInput,
    InvalidSession,
    NoSuchDeveloper,
    PendingApproval,
    Unauthenticated,
    UsernameTaken,
)
from ..models import (
    Account,
    DeveloperProfile,
    GrantSource,
    ProfileUpdate,
    RegisterRequest,
    Role,
    Session,
    VerificationRecord,
)
from ..storage import CollectionStore
from . import social

_logger = logging.getLogger(__name__)

_HASH_ALGORITHM = "pbkdf2_sha256"


def hash_password(secret: str) -> str:
    iterations = config.PASSWORD_HASH_ITERATIONS
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", secret.encode(), bytes.fromhex(salt), iterations).hex()
    return f"{_HASH_ALGORITHM}${iterations}${salt}${digest}"


def password_matches(stored_hash: str, candidate: str) -> bool:
    try:
        algorithm, iterations, salt, expected = stored_hash.split("$")
    except ValueError:
        return False
    if algorithm != _HASH_ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", candidate.encode(), bytes.fromhex(salt), int(iterations)).hex()
    return hmac.compare_digest(expected, digest)


def _find_username(records: List[Dict[str, Any]], username: str) -> Optional[Dict[str, Any]]:
    normalized = username.strip().lower()
    for raw in records:
        if raw.get("username", "").lower() == normalized:
            return raw
    return None


def find_account(store: CollectionStore, username: str) -> Optional[Account]:
    raw = _find_username(store.get("accounts"), username)
    return Account.model_validate(raw) if raw is not None else None


def get_account(store: CollectionStore, account_id: str) -> Optional[Account]:
    for raw in store.get("accounts"):
        if raw["id"] == account_id:
            return Account.model_validate(raw)
    return None


def create_account(store: CollectionStore, account: Account) -> Account:
    def _insert(records: List[Dict[str, Any]]):
        if _find_username(records, account.username) is not None:
            raise UsernameTaken()
        records.append(account.model_dump(mode="json"))
        return records, account

    return store.mutate("accounts", _insert)


def create_profile(store: CollectionStore, profile: DeveloperProfile) -> DeveloperProfile:
    def _insert(records: List[Dict[str, Any]]):
        records = [raw for raw in records if raw["id"] != profile.id]
        records.append(profile.model_dump(mode="json"))
        return records, profile

    return store.mutate("developers", _insert)


def bootstrap_creator(store: CollectionStore) -> Account:
    creator = find_account(store, config.CREATOR_USERNAME)
    if creator is None:
        candidate = Account(
            username=config.CREATOR_USERNAME,
            password_hash=hash_password(config.CREATOR_PASSWORD),
            role=Role.creator,
            is_developer=True,
            approved=True,
            display_name=config.CREATOR_DISPLAY_NAME,
        )

        def _insert(records: List[Dict[str, Any]]):
            existing = _find_username(records, candidate.username)
            if existing is not None:
                return records, (Account.model_validate(existing), False)
            records.append(candidate.model_dump(mode="json"))
            return records, (candidate, True)

        creator, created = store.mutate("accounts", _insert)
        if created:
            _logger.info("Created creator account %s", creator.username, extra={"account_id": creator.id})

    def _ensure_profile(records: List[Dict[str, Any]]):
        for raw in records:
            if raw["id"] == creator.id:
                changed = not (raw.get("approved") and raw.get("verified"))
                raw["approved"] = True
                raw["verified"] = True
                return records, changed
        profile = DeveloperProfile(
            id=creator.id,
            username=creator.username,
            bio=config.CREATOR_BIO,
            approved=True,
            verified=True,
        )
        records.append(profile.model_dump(mode="json"))
        return records, True

    def _ensure_verification(ledger: Dict[str, Any]):
        if creator.id in ledger:
            return ledger, False
        record = VerificationRecord(granted_by=GrantSource.bootstrap, badge=config.CREATOR_BADGE)
        ledger[creator.id] = record.model_dump(mode="json")
        return ledger, True

    def _ensure_boost(graph: Dict[str, Any]):
        boosts = graph.setdefault("boosts", {})
        if boosts.get(creator.id):
            return graph, False
        boosts[creator.id] = config.CREATOR_FOLLOWER_BOOST
        return graph, True

    backfilled = [
        name
        for name, collection, step in (
            ("profile", "developers", _ensure_profile),
            ("verification", "verifications", _ensure_verification),
            ("boost", "follows", _ensure_boost),
        )
        if store.mutate(collection, step)
    ]
    if backfilled:
        _logger.info("Backfilled creator %s: %s", creator.username, ", ".join(backfilled), extra={"account_id": creator.id})
    return creator


def register(store: CollectionStore, payload: RegisterRequest) -> Tuple[Account, str]:
    username = payload.username.strip()
    if not username or not payload.password:
        raise InvalidInput("Missing fields")

    is_developer = payload.role == Role.developer.value
    account = Account(
        username=username,
        password_hash=hash_password(payload.password),
        role=Role.developer if is_developer else Role.user,
        is_developer=is_developer,
        approved=not is_developer,
        display_name=username,
    )
    create_account(store, account)
    if is_developer:
        create_profile(store, DeveloperProfile(id=account.id, username=username, approved=False))

    creator = find_account(store, config.CREATOR_USERNAME)
    if creator is not None:
        try:
            social.follow(store, account.id, creator.id)
        except NoSuchDeveloper:
            _logger.warning("Creator %s has no developer profile; skipping auto-follow", creator.username)

    session = issue_session(store, account.id)
    return account, session.token


def login(store: CollectionStore, username: str, password: str) -> Tuple[Account, str]:
    if not username or not password:
        raise InvalidInput("Missing fields")
    account = find_account(store, username)
    if account is None or not password_matches(account.password_hash, password):
        raise InvalidCredentials()
    if account.is_developer and not account.approved:
        raise PendingApproval()
    session = issue_session(store, account.id)
    return account, session.token


def issue_session(store: CollectionStore, account_id: str) -> Session:
    session = Session(account_id=account_id)

    def _append(records: List[Dict[str, Any]]):
        records.append(session.model_dump(mode="json"))
        return records, session

    return store.mutate("sessions", _append)


def resolve_session(store: CollectionStore, token: Optional[str]) -> Account:
    if not token:
        raise Unauthenticated()
    session = next((Session.model_validate(raw) for raw in store.get("sessions") if raw["token"] == token), None)
    if session is None:
        raise Unauthenticated()
    account = get_account(store, session.account_id)
    if account is None:
        raise InvalidSession()
    return account


def logout(store: CollectionStore, token: Optional[str]) -> bool:
    def _remove(records: List[Dict[str, Any]]):
        remaining = [raw for raw in records if raw["token"] != token]
        return remaining, len(remaining) != len(records)

    return store.mutate("sessions", _remove)


def _apply_account_update(account: Account, payload: ProfileUpdate) -> Account:
    changes: Dict[str, Any] = {}
    if payload.display_name:
        changes["display_name"] = payload.display_name
    if payload.avatar:
        changes["avatar"] = payload.avatar
    return account.model_copy(update=changes)


def _apply_profile_update(profile: DeveloperProfile, payload: ProfileUpdate) -> DeveloperProfile:
    changes: Dict[str, Any] = {}
    if payload.bio is not None:
        changes["bio"] = payload.bio[: config.BIO_MAX_LENGTH]
    if payload.avatar:
        changes["avatar"] = payload.avatar
    return profile.model_copy(update=changes)


def update_developer_profile(
    store: CollectionStore, account_id: str, payload: ProfileUpdate
) -> Tuple[Account, DeveloperProfile]:
    account = get_account(store, account_id)
    if account is None or not account.is_developer:
        raise Forbidden("Not a developer")
    if social.get_profile(store, account_id) is None:
        raise NoSuchDeveloper()

    def _update_account(records: List[Dict[str, Any]]):
        for idx, raw in enumerate(records):
            if raw["id"] == account_id:
                updated = _apply_account_update(Account.model_validate(raw), payload)
                records[idx] = updated.model_dump(mode="json")
                return records, updated
        raise InvalidSession()

    def _update_profile(records: List[Dict[str, Any]]):
        for idx, raw in enumerate(records):
            if raw["id"] == account_id:
                updated = _apply_profile_update(DeveloperProfile.model_validate(raw), payload)
                records[idx] = updated.model_dump(mode="json")
                return records, updated
        raise NoSuchDeveloper()

    updated_account = store.mutate("accounts", _update_account)
    updated_profile = store.mutate("developers", _update_profile)
    return updated_account, updated_profile
