"""
Tests for the document stores

Both implementations must merge on write, stamp lastModified/modifiedBy,
list most recent first, and publish the full set to subscribers.
"""

import sqlite3

import pytest

from cashflow_pro.kernel.errors import DocumentNotFound, PersistenceError
from cashflow_pro.kernel.time import TestTimeProvider
from cashflow_pro.persistence.store import (
    DocumentsUpdate,
    InMemoryDocumentStore,
    SQLiteDocumentStore,
)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, memory_store: InMemoryDocumentStore, sqlite_store: SQLiteDocumentStore):
    return memory_store if request.param == "memory" else sqlite_store


def test_save_and_load(store, test_time: TestTimeProvider) -> None:
    store.save("proj_1", {"name": "Tower", "data": {"info": {"name": "Tower"}}}, modified_by="user-1")

    document = store.load("proj_1")

    assert document["name"] == "Tower"
    assert document["modifiedBy"] == "user-1"
    assert document["lastModified"] == test_time.now().isoformat()


def test_save_merges_top_level(store) -> None:
    """Keys missing from the new document are kept; present keys replace"""
    store.save("proj_1", {"name": "Tower", "sharedWith": ["a@example.com"], "data": {"x": 1}})
    store.save("proj_1", {"name": "Tower II", "data": {"y": 2}})

    document = store.load("proj_1")

    assert document["name"] == "Tower II"
    assert document["sharedWith"] == ["a@example.com"]
    assert document["data"] == {"y": 2}


def test_load_returns_copies(store) -> None:
    store.save("proj_1", {"data": {"x": 1}})

    document = store.load("proj_1")
    document["data"]["x"] = 99

    assert store.load("proj_1")["data"] == {"x": 1}


def test_load_missing(store) -> None:
    with pytest.raises(DocumentNotFound):
        store.load("proj_404")


def test_load_all_most_recent_first(store, test_time: TestTimeProvider) -> None:
    store.save("old", {"name": "Old"})
    test_time.advance_seconds(60)
    store.save("new", {"name": "New"})
    test_time.advance_seconds(60)
    store.save("old", {"name": "Old, edited"})

    assert list(store.load_all()) == ["old", "new"]


def test_load_all_limit(test_time: TestTimeProvider) -> None:
    store = InMemoryDocumentStore(test_time, max_documents=2)
    for n in range(3):
        test_time.advance_seconds(1)
        store.save(f"proj_{n}", {"name": str(n)})

    assert list(store.load_all()) == ["proj_2", "proj_1"]


def test_delete(store) -> None:
    store.save("proj_1", {"name": "Tower"})
    store.delete("proj_1")

    assert store.load_all() == {}
    with pytest.raises(DocumentNotFound):
        store.delete("proj_1")


def test_subscribers_receive_full_set(store) -> None:
    updates: list[DocumentsUpdate] = []
    unsubscribe = store.subscribe(updates.append)

    store.save("proj_1", {"name": "Tower"})
    store.save("proj_2", {"name": "Depot"})
    unsubscribe()
    store.delete("proj_1")

    assert len(updates) == 2
    assert updates[-1].ok
    assert set(updates[-1].documents) == {"proj_1", "proj_2"}


def test_unserializable_document(store) -> None:
    with pytest.raises(PersistenceError):
        store.save("proj_1", {"data": object()})


def test_sqlite_persists_across_instances(sqlite_store: SQLiteDocumentStore, temp_db) -> None:
    sqlite_store.save("proj_1", {"name": "Tower"})

    reopened = SQLiteDocumentStore(temp_db)

    assert reopened.load("proj_1")["name"] == "Tower"
    assert reopened.count() == 1


def test_sqlite_unopenable_path(tmp_path) -> None:
    with pytest.raises(PersistenceError):
        SQLiteDocumentStore(tmp_path / "missing" / "cashflow.db")


def test_documents_update_error() -> None:
    update = DocumentsUpdate(error="connection lost")
    assert update.ok is False
    assert update.documents == {}


@pytest.mark.parametrize("body", ["{not json", "[1, 2]"])
def test_sqlite_corrupt_body_is_persistence_error(
    sqlite_store: SQLiteDocumentStore, temp_db, body: str
) -> None:
    sqlite_store.save("proj_1", {"name": "Tower"})
    with sqlite3.connect(temp_db) as conn:
        conn.execute("UPDATE documents SET body_json = ? WHERE id = ?", (body, "proj_1"))

    with pytest.raises(PersistenceError, match="proj_1"):
        sqlite_store.load("proj_1")
    with pytest.raises(PersistenceError):
        sqlite_store.load_all()
    with pytest.raises(PersistenceError):
        sqlite_store.save("proj_1", {"name": "Tower II"})
