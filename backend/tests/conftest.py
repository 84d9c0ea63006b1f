"""Shared fixtures: a throwaway store per test and an app wired to it."""

from __future__ import annotations

import os

# Keep password hashing cheap under test; must be set before ziphub is imported.
os.environ.setdefault("ZIPHUB_PASSWORD_ITERATIONS", "1000")

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from ziphub import config
from ziphub.main import create_app
from ziphub.models import Account, FileUpload, RegisterRequest
from ziphub.services import content, identity, moderation
from ziphub.services.content import no_seeding
from ziphub.storage import CollectionStore


@pytest.fixture()
def store(tmp_path) -> CollectionStore:
    return CollectionStore(tmp_path / "data")


@pytest.fixture()
def client(store: CollectionStore) -> Generator[TestClient, None, None]:
    with TestClient(create_app(store=store, seeding=no_seeding)) as test_client:
        yield test_client


@pytest.fixture()
def creator(store: CollectionStore) -> Account:
    return identity.bootstrap_creator(store)


@pytest.fixture()
def developer(store: CollectionStore) -> Account:
    account, _ = identity.register(store, RegisterRequest(username="dev", password="secret", role="developer"))
    return moderation.approve_developer(store, account.id)


@pytest.fixture()
def published(store: CollectionStore, developer: Account):
    return content.create_file(store, developer, FileUpload(title="Tool", description="A useful zip"))


def login_as(client: TestClient, username: str, password: str) -> None:
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.json()


def login_creator(client: TestClient) -> None:
    login_as(client, config.CREATOR_USERNAME, config.CREATOR_PASSWORD)
