"""
Test doubles and helpers.

FakeZaloClient stands in for the session sidecar: it keeps state in memory,
records every call and can be told to fail per method.
"""
from __future__ import annotations

import sqlite3
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from zalo_bridge.database import Database
from zalo_bridge.exceptions import ZaloApiError
from zalo_bridge.models.schemas import SessionStatus, SessionInfo, LoginStatus


@dataclass
class CallRecord:
    method: str
    args: tuple
    kwargs: Dict[str, Any] = field(default_factory=dict)


class FakeZaloClient:

    def __init__(self, status: str = "logged_in", user_id: Optional[str] = "me", first_msg_id: int = 1001):
        self.status = SessionStatus(status=LoginStatus(status), userId=user_id, isListening=True)
        self.session: Optional[SessionInfo] = None
        self.next_msg_id = first_msg_id
        self.send_results: List[Any] = []  # queued raw results; default is {"message": {"msgId": n}}
        self._calls: List[CallRecord] = []
        self._should_fail: Dict[str, Exception] = {}

    # --- test controls ---

    def fail(self, method: str, error: Exception) -> None:
        self._should_fail[method] = error

    def calls(self, method: str) -> List[CallRecord]:
        return [c for c in self._calls if c.method == method]

    def _record(self, method: str, *args, **kwargs) -> None:
        self._calls.append(CallRecord(method, args, kwargs))
        if method in self._should_fail:
            raise self._should_fail[method]

    # --- ZaloClient surface ---

    async def login_initiate(self) -> SessionStatus:
        self._record("login_initiate")
        self.status = SessionStatus(status=LoginStatus.LOGGING_IN, qrCode="data:image/png;base64,QR")
        return self.status

    async def login_import_session(self, imei, user_agent, cookies) -> SessionStatus:
        self._record("login_import_session", imei, user_agent, cookies)
        self.status = SessionStatus(status=LoginStatus.LOGGED_IN, userId="me", isListening=True)
        return self.status

    async def login_get_status(self) -> SessionStatus:
        self._record("login_get_status")
        return self.status

    async def login_logout(self) -> None:
        self._record("login_logout")
        self.status = SessionStatus()

    async def session_get_info(self) -> Optional[SessionInfo]:
        self._record("session_get_info")
        return self.session

    async def api_send_message(self, payload, thread_id, thread_type) -> Dict[str, Any]:
        self._record("api_send_message", payload, thread_id, thread_type)
        if self.send_results:
            return self.send_results.pop(0)
        msg_id = self.next_msg_id
        self.next_msg_id += 1
        return {"message": {"msgId": msg_id}}


class BrokenStoreDatabase(Database):
    """Reads work, message writes fail as if the disk went away."""

    async def save_message(self, *args, **kwargs):
        raise sqlite3.OperationalError("database is locked")


@asynccontextmanager
async def open_db(path, cls=Database):
    db = cls(str(path))
    await db.connect()
    try:
        yield db
    finally:
        await db.close()


async def seed_basic(db: Database) -> None:
    """me (sender), a direct chat c1 with u1 and a group chat g-conv."""
    await db.upsert_user("me", display_name="Operator", zalo_name="op", avatar_url="https://s120-ava-talk.zadn.vn/me.jpg")
    await db.upsert_user("u1", display_name="Lan", zalo_name="lan.nguyen")
    await db.upsert_group("g1", name="Team", avatar_url="https://ava-grp-talk.zadn.vn/g1.jpg")
    await db.upsert_conversation("c1", participant_id="u1")
    await db.upsert_conversation("g-conv", group_id="g1")


def thread_error(code: int, message: str = "boom") -> ZaloApiError:
    return ZaloApiError(message, code=code, status_code=400)


async def count_messages(db: Database, conversation_id: str) -> int:
    row = await db._fetch_one(
        "SELECT COUNT(*) AS total FROM zalo_messages WHERE conversation_id = ?",
        (conversation_id,),
    )
    return row["total"] if row else 0
