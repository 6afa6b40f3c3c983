from unittest.mock import MagicMock

import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from dietcraft.services.stores.mongo import MongoStore


@pytest.fixture
def database():
    return MagicMock()


@pytest.fixture
def collection(database):
    # MagicMock hands back the same child for every db[name] lookup
    return database.__getitem__.return_value


@pytest.fixture
def store(database):
    return MongoStore(database=database)


def test_requires_uri_or_database():
    with pytest.raises(ValueError):
        MongoStore()


def test_insert_uses_string_id(store, collection):
    doc_id = store.insert("clients", {"id": "ignored", "full_name": "Maria"}, doc_id="c1")

    assert doc_id == "c1"
    collection.insert_one.assert_called_once_with({"full_name": "Maria", "_id": "c1"})


def test_get_maps_object_id_to_id(store, collection):
    collection.find_one.return_value = {"_id": "c1", "full_name": "Maria"}

    assert store.get("clients", "c1") == {"id": "c1", "full_name": "Maria"}
    collection.find_one.assert_called_once_with({"_id": "c1"})


def test_get_missing(store, collection):
    collection.find_one.return_value = None
    assert store.get("clients", "c1") is None


def test_increment_if_below_is_one_conditional_upsert(store, collection):
    collection.find_one_and_update.return_value = {"_id": "u1_2026-10-19", "generations_used": 2}

    used = store.increment_if_below(
        "ai_usage",
        "u1_2026-10-19",
        "generations_used",
        3,
        set_fields={"last_updated": "now"},
        insert_fields={"user_id": "u1", "date": "2026-10-19"}
    )

    assert used == 2
    collection.find_one_and_update.assert_called_once_with(
        {"_id": "u1_2026-10-19", "generations_used": {"$lt": 3}},
        {
            "$inc": {"generations_used": 1},
            "$set": {"last_updated": "now"},
            "$setOnInsert": {"user_id": "u1", "date": "2026-10-19"},
        },
        upsert=True,
        return_document=ReturnDocument.AFTER
    )


def test_increment_at_limit_returns_none(store, collection):
    collection.find_one_and_update.side_effect = [DuplicateKeyError("E11000 duplicate key error"), None]

    assert store.increment_if_below("ai_usage", "k", "generations_used", 3) is None

    retry_args, retry_kwargs = collection.find_one_and_update.call_args
    assert retry_args[0] == {"_id": "k", "generations_used": {"$lt": 3}}
    assert "upsert" not in retry_kwargs


def test_concurrent_first_request_is_not_denied(store, collection):
    # Another request inserted the day's record between the match and the upsert
    collection.find_one_and_update.side_effect = [
        DuplicateKeyError("E11000 duplicate key error"),
        {"_id": "k", "generations_used": 2},
    ]

    assert store.increment_if_below("ai_usage", "k", "generations_used", 3) == 2
    assert collection.find_one_and_update.call_count == 2


def test_increment_with_zero_limit_skips_database(store, collection):
    assert store.increment_if_below("ai_usage", "k", "generations_used", 0) is None
    collection.find_one_and_update.assert_not_called()


def test_decrement_only_matches_positive_counter(store, collection):
    collection.find_one_and_update.return_value = None

    assert store.decrement_if_positive("ai_usage", "k", "generations_used") is None
    args, _ = collection.find_one_and_update.call_args
    assert args[0] == {"_id": "k", "generations_used": {"$gt": 0}}
    assert args[1] == {"$inc": {"generations_used": -1}}


def test_find_sorts_with_cursor(store, collection):
    cursor = MagicMock()
    cursor.sort.return_value = [{"_id": "p1", "client_id": "c1"}]
    collection.find.return_value = cursor

    found = store.find("diet_plans", {"client_id": "c1"}, sort_by="created_at")

    assert found == [{"id": "p1", "client_id": "c1"}]
    collection.find.assert_called_once_with({"client_id": "c1"})
    cursor.sort.assert_called_once()


def test_put_merge_uses_set_upsert(store, collection):
    collection.find_one_and_update.return_value = {"_id": "u1", "tagline": "Fresh"}

    assert store.put("branding", "u1", {"tagline": "Fresh"}, merge=True) == {"id": "u1", "tagline": "Fresh"}
    _, kwargs = collection.find_one_and_update.call_args
    assert kwargs["upsert"] is True


def test_delete_reports_deleted_count(store, collection):
    collection.delete_one.return_value.deleted_count = 0
    assert store.delete("clients", "c1") is False


def test_ensure_indexes_handles_errors(store, collection):
    collection.create_index.side_effect = PyMongoError("down")
    assert store.ensure_indexes() is False


def test_ping(store, database):
    assert store.ping() is True
    database.command.assert_called_once_with("ping")
