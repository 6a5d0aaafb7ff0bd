import asyncio

import pytest

from zalo_bridge.exceptions import ConversationNotFound, UnresolvableThread, ConversationLookupFailed
from zalo_bridge.models.schemas import ThreadType
from zalo_bridge.services.resolver import ConversationResolver
from tests.fakes import open_db


class RowStore:
    def __init__(self, row=None, error=None):
        self.row = row
        self.error = error

    async def get_conversation(self, conversation_id):
        if self.error:
            raise self.error
        return self.row


def resolve(row=None, error=None):
    return asyncio.run(ConversationResolver(RowStore(row, error)).resolve("c1"))


def test_group_id_wins_over_participant():
    target = resolve({"id": "c1", "type": "direct", "participant_id": "u1", "group_id": "g1"})

    assert target.thread_type == ThreadType.GROUP
    assert target.thread_id == "g1"


def test_participant_resolves_to_user_thread():
    target = resolve({"id": "c1", "participant_id": "u1", "group_id": None})

    assert target.thread_type == ThreadType.USER
    assert target.thread_id == "u1"


def test_neither_id_is_unresolvable():
    with pytest.raises(UnresolvableThread) as exc:
        resolve({"id": "c1", "participant_id": None, "group_id": ""})

    assert exc.value.status_code == 400
    assert exc.value.payload()["conversationId"] == "c1"


def test_missing_row():
    with pytest.raises(ConversationNotFound) as exc:
        resolve(None)

    assert exc.value.status_code == 404


def test_store_failure_is_reported_as_lookup_failure():
    with pytest.raises(ConversationLookupFailed) as exc:
        resolve(error=RuntimeError("disk I/O error"))

    assert exc.value.payload()["details"] == "disk I/O error"


def test_resolves_against_real_store(tmp_path):
    async def scenario():
        async with open_db(tmp_path / "zalo.db") as db:
            await db.upsert_conversation("both", participant_id="u9", group_id="g9")
            await db.upsert_conversation("empty")
            resolver = ConversationResolver(db)
            target = await resolver.resolve("both")
            with pytest.raises(UnresolvableThread):
                await resolver.resolve("empty")
            return target

    target = asyncio.run(scenario())

    assert target.thread_type == ThreadType.GROUP
    assert target.thread_id == "g9"
