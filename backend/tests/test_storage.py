"""Collection store: initialization, recovery and serialized mutation."""

import json
import logging
import threading

import pytest

from ziphub.errors import NoSuchFile
from ziphub.storage import CollectionStore


def test_first_access_initializes_and_persists_default(store: CollectionStore):
    assert store.get("follows") == {"boosts": {}, "edges": []}
    assert store.get("likes") == []
    assert json.loads(store.path_for("follows").read_text()) == {"boosts": {}, "edges": []}


def test_unknown_collection_raises_key_error(store: CollectionStore):
    with pytest.raises(KeyError):
        store.get("nope")
    with pytest.raises(KeyError):
        store.mutate("nope", lambda snapshot: (snapshot, None))


def test_mutate_persists_and_returns_result(store: CollectionStore):
    def _append(records):
        records.append({"id": "a"})
        return records, len(records)

    assert store.mutate("files", _append) == 1
    assert store.mutate("files", _append) == 2
    assert json.loads(store.path_for("files").read_text()) == [{"id": "a"}, {"id": "a"}]


def test_get_returns_caller_owned_snapshot(store: CollectionStore):
    snapshot = store.get("accounts")
    snapshot.append({"id": "x"})
    assert store.get("accounts") == []


def test_failed_mutation_leaves_collection_untouched(store: CollectionStore):
    store.mutate("files", lambda records: (records + [{"id": "keep"}], None))

    def _explode(records):
        records.clear()
        raise NoSuchFile()

    with pytest.raises(NoSuchFile):
        store.mutate("files", _explode)
    assert store.get("files") == [{"id": "keep"}]


def test_malformed_collection_is_reset_and_logged(store: CollectionStore, caplog):
    store.get("comments")
    store.path_for("comments").write_text("{not json")

    with caplog.at_level(logging.ERROR, logger="ziphub.storage"):
        assert store.get("comments") == []

    assert any("comments" in record.getMessage() for record in caplog.records)
    assert json.loads(store.path_for("comments").read_text()) == []


def test_wrong_top_level_type_counts_as_corrupt(store: CollectionStore):
    store.data_dir.mkdir(parents=True, exist_ok=True)
    store.path_for("verifications").write_text("[]")
    assert store.get("verifications") == {}


def test_no_temp_files_left_behind(store: CollectionStore):
    for _ in range(5):
        store.mutate("reports", lambda records: (records + [{"id": "r"}], None))
    leftovers = [p.name for p in store.data_dir.iterdir() if p.suffix == ".tmp"]
    assert leftovers == []


def test_concurrent_mutations_do_not_lose_updates(store: CollectionStore):
    workers = 16
    per_worker = 10
    barrier = threading.Barrier(workers)

    def _work(worker: int) -> None:
        barrier.wait()
        for step in range(per_worker):
            store.mutate("likes", lambda records: (records + [{"user_id": f"{worker}-{step}", "file_id": "f"}], None))

    threads = [threading.Thread(target=_work, args=(n,)) for n in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store.get("likes")) == workers * per_worker


def test_counts_cover_every_collection(store: CollectionStore):
    store.mutate("follows", lambda graph: ({"boosts": {"d": 5}, "edges": [{"follower_id": "a"}]}, None))
    store.mutate("verifications", lambda ledger: ({"d": {}}, None))
    counts = store.counts()
    assert set(counts) == set(store.names())
    assert counts["follows"] == 1
    assert counts["verifications"] == 1
    assert counts["files"] == 0
