"""Unit tests for the in-memory document store"""
import pytest

from src.db.store import Filter, InMemoryDocumentStore
from src.exceptions import DuplicateRecordError, QueryError


@pytest.mark.asyncio
async def test_append_generates_id(store):
    doc_id = await store.append("things", {"name": "stick"})

    doc = await store.get_by_id("things", doc_id)

    assert doc == {"id": doc_id, "name": "stick"}


@pytest.mark.asyncio
async def test_append_with_existing_id_raises(store):
    await store.append("things", {"n": 1}, record_id="fixed")

    with pytest.raises(DuplicateRecordError) as exc_info:
        await store.append("things", {"n": 2}, record_id="fixed")

    assert exc_info.value.record_id == "fixed"
    assert (await store.get_by_id("things", "fixed"))["n"] == 1


@pytest.mark.asyncio
async def test_get_missing_is_none(store):
    assert await store.get_by_id("things", "nope") is None


@pytest.mark.asyncio
async def test_query_filters_sorts_and_limits(store):
    for i, owner in enumerate(["a", "b", "a", "a"]):
        await store.append("things", {"owner": owner, "rank": i})

    rows = await store.query(
        "things", [Filter("owner", "==", "a")], order_by="rank", descending=True, limit=2
    )

    assert [r["rank"] for r in rows] == [3, 2]


@pytest.mark.asyncio
async def test_range_filter_skips_missing_fields(store):
    await store.append("things", {"rank": 5})
    await store.append("things", {})

    rows = await store.query("things", [Filter("rank", ">=", 1)])

    assert len(rows) == 1


@pytest.mark.asyncio
async def test_missing_sort_field_goes_last(store):
    await store.append("things", {"name": "no-rank"})
    await store.append("things", {"rank": 1})

    rows = await store.query("things", order_by="rank", descending=True)

    assert rows[-1]["name"] == "no-rank"


def test_unknown_operator_rejected():
    with pytest.raises(QueryError):
        Filter("rank", "~", 1)


@pytest.mark.asyncio
async def test_increment_creates_document(store):
    await store.update_increment("users", "p", "total_xp", 50)
    await store.update_increment("users", "p", "total_xp", 25)

    assert (await store.get_by_id("users", "p"))["total_xp"] == 75


@pytest.mark.asyncio
async def test_update_set_dotted_paths(store):
    await store.update_set("users", "p", {"streaks.wall_ball.current": 3, "position": "attack"})
    await store.update_set("users", "p", {"streaks.wall_ball.longest": 5})

    doc = await store.get_by_id("users", "p")

    assert doc["streaks"]["wall_ball"] == {"current": 3, "longest": 5}
    assert doc["position"] == "attack"
    rows = await store.query("users", [Filter("streaks.wall_ball.current", "==", 3)])
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_documents_are_copied(store):
    record = {"tags": ["a"]}
    doc_id = await store.append("things", record)
    record["tags"].append("b")

    doc = await store.get_by_id("things", doc_id)
    doc["tags"].append("c")

    assert (await store.get_by_id("things", doc_id))["tags"] == ["a"]


def test_count_of_empty_collection():
    assert InMemoryDocumentStore().count("anything") == 0
