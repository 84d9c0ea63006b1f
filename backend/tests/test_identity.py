"""Registration, login, sessions and the creator bootstrap."""

import threading

import pytest

from ziphub import config
from ziphub.errors import (
    Forbidden,
    InvalidCredentials,
    InvalidInput,
    InvalidSession,
    PendingApproval,
    Unauthenticated,
    UsernameTaken,
)
from ziphub.models import GrantSource, ProfileUpdate, RegisterRequest, Role
from ziphub.services import identity, moderation, social


def _register(store, username="alice", password="pw", role=None):
    return identity.register(store, RegisterRequest(username=username, password=password, role=role))


def test_password_hash_is_salted_and_verifiable():
    first = identity.hash_password("hunter2")
    second = identity.hash_password("hunter2")
    assert first != second
    assert identity.password_matches(first, "hunter2")
    assert not identity.password_matches(first, "hunter3")
    assert not identity.password_matches("garbage", "hunter2")


def test_register_creates_user_and_session(store):
    account, token = _register(store)
    assert account.role == Role.user
    assert account.approved and not account.is_developer
    assert identity.resolve_session(store, token).id == account.id
    assert social.get_profile(store, account.id) is None


def test_register_developer_creates_pending_profile(store):
    account, _ = _register(store, "dev", role="developer")
    profile = social.get_profile(store, account.id)
    assert account.is_developer and not account.approved
    assert profile is not None and not profile.approved and not profile.verified


@pytest.mark.parametrize("username, password", [("", "pw"), ("   ", "pw"), ("bob", "")])
def test_register_rejects_blank_fields(store, username, password):
    with pytest.raises(InvalidInput):
        _register(store, username, password)


def test_username_uniqueness_is_case_insensitive(store):
    _register(store, "Alice")
    with pytest.raises(UsernameTaken):
        _register(store, "aLICE")
    assert len(store.get("accounts")) == 1


def test_register_auto_follows_creator(store, creator):
    account, _ = _register(store)
    assert social.follower_count(store, creator.id) == config.CREATOR_FOLLOWER_BOOST + 1
    edges = store.get("follows")["edges"]
    assert [(e["follower_id"], e["followed_id"]) for e in edges] == [(account.id, creator.id)]


def test_concurrent_registration_of_same_username(store):
    barrier = threading.Barrier(2)
    outcomes = []

    def _attempt() -> None:
        barrier.wait()
        try:
            _register(store, "racer")
            outcomes.append("ok")
        except UsernameTaken:
            outcomes.append("taken")

    threads = [threading.Thread(target=_attempt) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["ok", "taken"]
    assert len(store.get("accounts")) == 1


def test_login_errors_do_not_reveal_usernames(store):
    _register(store, "alice", "right")
    with pytest.raises(InvalidCredentials) as unknown:
        identity.login(store, "nobody", "right")
    with pytest.raises(InvalidCredentials) as mismatch:
        identity.login(store, "alice", "wrong")
    assert unknown.value.to_response() == mismatch.value.to_response()


def test_login_is_case_insensitive_and_sessions_are_additive(store):
    account, first = _register(store, "alice", "pw")
    _, second = identity.login(store, "ALICE", "pw")
    assert first != second
    assert identity.resolve_session(store, first).id == account.id
    assert identity.resolve_session(store, second).id == account.id


def test_unapproved_developer_cannot_login_until_approved(store):
    account, _ = _register(store, "dev", "pw", role="developer")
    with pytest.raises(PendingApproval):
        identity.login(store, "dev", "pw")
    moderation.approve_developer(store, account.id)
    logged_in, _ = identity.login(store, "dev", "pw")
    assert logged_in.approved
    assert social.get_profile(store, account.id).approved


def test_resolve_session_failures(store):
    with pytest.raises(Unauthenticated):
        identity.resolve_session(store, None)
    with pytest.raises(Unauthenticated):
        identity.resolve_session(store, "missing")

    account, token = _register(store)
    store.mutate("accounts", lambda records: ([r for r in records if r["id"] != account.id], None))
    with pytest.raises(InvalidSession):
        identity.resolve_session(store, token)


def test_logout_is_idempotent(store):
    _, token = _register(store)
    assert identity.logout(store, token) is True
    assert identity.logout(store, token) is False
    with pytest.raises(Unauthenticated):
        identity.resolve_session(store, token)


def test_bootstrap_is_idempotent(store):
    first = identity.bootstrap_creator(store)
    second = identity.bootstrap_creator(store)

    assert first.id == second.id
    creators = [r for r in store.get("accounts") if r["username"] == config.CREATOR_USERNAME]
    assert len(creators) == 1
    assert first.role == Role.creator
    assert store.get("follows")["boosts"] == {first.id: config.CREATOR_FOLLOWER_BOOST}
    ledger = store.get("verifications")
    assert list(ledger) == [first.id]
    assert ledger[first.id]["granted_by"] == GrantSource.bootstrap.value
    assert social.get_profile(store, first.id).verified


def test_bootstrap_backfills_missing_boost_and_verification(store):
    creator = identity.bootstrap_creator(store)
    store.mutate("verifications", lambda ledger: ({}, None))
    store.mutate("follows", lambda graph: ({"boosts": {}, "edges": graph["edges"]}, None))

    again = identity.bootstrap_creator(store)

    assert again.id == creator.id
    assert store.get("verifications")[creator.id]["granted_by"] == "bootstrap"
    assert social.follower_count(store, creator.id) == config.CREATOR_FOLLOWER_BOOST
    assert len(store.get("accounts")) == 1


def test_bootstrap_creator_can_login(store, creator):
    account, token = identity.login(store, config.CREATOR_USERNAME, config.CREATOR_PASSWORD)
    assert account.is_admin and account.can_publish
    assert token


def test_update_developer_profile(store, developer):
    long_bio = "b" * (config.BIO_MAX_LENGTH + 50)
    account, profile = identity.update_developer_profile(
        store, developer.id, ProfileUpdate(display_name="Dev One", bio=long_bio, avatar="/a.png")
    )
    assert account.display_name == "Dev One"
    assert account.avatar == "/a.png"
    assert profile.avatar == "/a.png"
    assert len(profile.bio) == config.BIO_MAX_LENGTH
    assert identity.get_account(store, developer.id).display_name == "Dev One"


def test_update_profile_requires_developer(store):
    account, _ = _register(store)
    with pytest.raises(Forbidden):
        identity.update_developer_profile(store, account.id, ProfileUpdate(bio="hi"))
