import asyncio
import json

import pytest

from tests.fakes import open_db, seed_basic


def test_save_message_merges_client_id_on_id_conflict(tmp_path):
    async def scenario():
        async with open_db(tmp_path / "zalo.db") as db:
            await seed_basic(db)
            await db.save_message("m1", "client-a", "c1", "me", "hello", {"message": {"msgId": "m1"}}, "2026-01-01T00:00:00+00:00")
            await db.save_message("m1", "client-b", "c1", "me", "ignored", None, "2026-01-01T00:00:05+00:00")

            rows = await db.get_messages("c1")
            stored = await db.find_message("m1", "nope")
            return rows, stored

    rows, stored = asyncio.run(scenario())

    assert len(rows) == 1
    assert rows[0]["content"] == "hello"
    assert json.loads(rows[0]["raw_data"]) == {"message": {"msgId": "m1"}}
    assert stored["client_id"] == "client-b"


def test_find_message_matches_id_or_client_id(tmp_path):
    async def scenario():
        async with open_db(tmp_path / "zalo.db") as db:
            await db.save_message("m1", "client-a", "c1", "me", "hello")
            return (
                await db.find_message("m1", "other"),
                await db.find_message("other", "client-a"),
                await db.find_message("other", "other"),
            )

    by_id, by_client, missing = asyncio.run(scenario())

    assert by_id["id"] == "m1"
    assert by_client["id"] == "m1"
    assert missing is None


def test_touch_conversation_moves_pointer(tmp_path):
    async def scenario():
        async with open_db(tmp_path / "zalo.db") as db:
            await seed_basic(db)
            await db.save_message("m1", "m1", "c1", "me", "latest", timestamp="2026-02-01T10:00:00+00:00")
            await db.touch_conversation("c1", "m1", "2026-02-01T10:00:00+00:00")
            return await db.get_conversation("c1"), await db.list_conversations()

    conversation, listing = asyncio.run(scenario())

    assert conversation["last_message_id"] == "m1"
    assert conversation["last_message_time"] == "2026-02-01T10:00:00+00:00"
    assert listing[0]["id"] == "c1"
    assert listing[0]["last_message"] == "latest"


def test_upsert_conversation_derives_type(tmp_path):
    async def scenario():
        async with open_db(tmp_path / "zalo.db") as db:
            await seed_basic(db)
            return await db.get_conversation("c1"), await db.get_conversation("g-conv")

    direct, group = asyncio.run(scenario())

    assert direct["type"] == "direct"
    assert direct["group_id"] is None
    assert group["type"] == "group"
    assert group["group_id"] == "g1"


def test_messages_come_back_oldest_first(tmp_path):
    async def scenario():
        async with open_db(tmp_path / "zalo.db") as db:
            await db.save_message("late", "late", "c1", "u1", "second", timestamp="2026-03-01T10:00:00+00:00")
            await db.save_message("early", "early", "c1", "u1", "first", timestamp="2026-03-01T09:00:00+00:00")
            return await db.get_messages("c1")

    rows = asyncio.run(scenario())

    assert [r["id"] for r in rows] == ["early", "late"]


def test_writes_fail_when_not_connected(tmp_path):
    from zalo_bridge.database import Database

    with pytest.raises(RuntimeError):
        asyncio.run(Database(str(tmp_path / "zalo.db")).touch_conversation("c1", "m1", "now"))


def test_close_drains_queued_writes(tmp_path):
    path = tmp_path / "zalo.db"

    async def scenario():
        async with open_db(path) as db:
            writes = [
                asyncio.create_task(db.upsert_user(f"u{i}", display_name=f"User {i}"))
                for i in range(5)
            ]
            await asyncio.sleep(0)
            await asyncio.wait_for(db.close(), timeout=2)
            await asyncio.gather(*writes)

        async with open_db(path) as db:
            return await db.get_users([f"u{i}" for i in range(5)])

    users = asyncio.run(scenario())

    assert sorted(users) == [f"u{i}" for i in range(5)]
