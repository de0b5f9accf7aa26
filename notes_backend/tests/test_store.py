import pytest
from sqlalchemy import create_engine

from notes_database.db import make_session_factory
from notes_database.store import KeyValueStore, RevisionConflict, StorageError

def test_get_missing(store):
    assert store.get("nope") is None
    assert store.get_with_revision("nope") == (None, 0)

def test_set_bumps_revision(store):
    assert store.set("session", "alice") == 1
    assert store.set("session", "bob") == 2
    assert store.get_with_revision("session") == ("bob", 2)

def test_compare_and_set(store):
    assert store.compare_and_set("notes:alice", "[]", 0) == 1
    with pytest.raises(RevisionConflict):
        store.compare_and_set("notes:alice", "[1]", 0)
    assert store.compare_and_set("notes:alice", "[2]", 1) == 2
    with pytest.raises(RevisionConflict):
        store.compare_and_set("notes:alice", "[3]", 1)
    assert store.get("notes:alice") == "[2]"

def test_compare_and_set_missing_key(store):
    with pytest.raises(RevisionConflict):
        store.compare_and_set("notes:ghost", "[]", 3)

def test_remove(store):
    store.set("session", "alice")
    store.remove("session")
    store.remove("session")
    assert store.get("session") is None

def test_missing_table_is_storage_error():
    # No tables created on this engine
    bare = KeyValueStore(make_session_factory(create_engine("sqlite://")))
    with pytest.raises(StorageError):
        bare.get("session")
    with pytest.raises(StorageError):
        bare.set("session", "alice")
