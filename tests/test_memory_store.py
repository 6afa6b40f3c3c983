import pytest

from dietcraft.services.stores.memory import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


def test_insert_generates_id_and_get_returns_copy(store):
    doc_id = store.insert("clients", {"full_name": "Maria", "allergies": ["nuts"]})

    fetched = store.get("clients", doc_id)
    assert fetched["id"] == doc_id
    assert fetched["full_name"] == "Maria"

    fetched["allergies"].append("gluten")
    assert store.get("clients", doc_id)["allergies"] == ["nuts"]


def test_get_missing_returns_none(store):
    assert store.get("clients", "nope") is None


def test_put_replaces_unless_merge(store):
    store.put("branding", "u1", {"business_name": "Green Plate", "tagline": "Eat well"})

    merged = store.put("branding", "u1", {"tagline": "Eat better"}, merge=True)
    assert merged == {"id": "u1", "business_name": "Green Plate", "tagline": "Eat better"}

    replaced = store.put("branding", "u1", {"tagline": "Fresh"})
    assert replaced == {"id": "u1", "tagline": "Fresh"}


def test_update_missing_returns_none(store):
    assert store.update("clients", "ghost", {"full_name": "x"}) is None


def test_update_ignores_id_field(store):
    doc_id = store.insert("clients", {"full_name": "Maria"})
    updated = store.update("clients", doc_id, {"id": "other", "notes": "likes fish"})
    assert updated["id"] == doc_id
    assert updated["notes"] == "likes fish"


def test_delete(store):
    doc_id = store.insert("clients", {"full_name": "Maria"})
    assert store.delete("clients", doc_id) is True
    assert store.delete("clients", doc_id) is False


def test_find_filters_and_sorts_missing_last(store):
    store.insert("plans", {"owner": "a", "created_at": 1}, doc_id="p1")
    store.insert("plans", {"owner": "a", "created_at": 3}, doc_id="p3")
    store.insert("plans", {"owner": "a"}, doc_id="p0")
    store.insert("plans", {"owner": "b", "created_at": 2}, doc_id="p2")

    newest_first = store.find("plans", {"owner": "a"}, sort_by="created_at")
    assert [doc["id"] for doc in newest_first] == ["p3", "p1", "p0"]

    oldest_first = store.find("plans", {"owner": "a"}, sort_by="created_at", descending=False)
    assert [doc["id"] for doc in oldest_first] == ["p1", "p3", "p0"]


def test_increment_if_below_stops_at_limit(store):
    results = [store.increment_if_below("usage", "k", "count", 2, insert_fields={"user_id": "u"}) for _ in range(3)]

    assert results == [1, 2, None]
    assert store.get("usage", "k") == {"id": "k", "user_id": "u", "count": 2}


def test_increment_with_zero_limit_creates_nothing(store):
    assert store.increment_if_below("usage", "k", "count", 0) is None
    assert store.get("usage", "k") is None


def test_decrement_if_positive(store):
    store.increment_if_below("usage", "k", "count", 5)

    assert store.decrement_if_positive("usage", "k", "count") == 0
    assert store.decrement_if_positive("usage", "k", "count") is None
    assert store.decrement_if_positive("usage", "missing", "count") is None
