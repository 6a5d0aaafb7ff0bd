"""
Database Operations.
Conversation pointers, message mirroring and the read-side joins.
"""
import json
import logging
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DatabaseOperationsMixin:
    """Mixin containing business-specific database operations."""

    # --- Conversations ---

    async def get_conversation(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        return await self._fetch_one(
            "SELECT id, type, participant_id, group_id, last_message_id, last_message_time "
            "FROM zalo_conversations WHERE id = ? LIMIT 1",
            (conversation_id,)
        )

    async def upsert_conversation(
        self, conversation_id: str, participant_id: str = None, group_id: str = None,
        last_message_id: str = None, last_message_time: str = None
    ) -> None:
        """Insert or refresh a conversation row (used by the sync side)."""
        conv_type = "group" if group_id else "direct"
        timestamp = utc_now()
        await self._execute_write(
            """
            INSERT INTO zalo_conversations (
                id, type, participant_id, group_id, last_message_id, last_message_time,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                type = excluded.type,
                participant_id = excluded.participant_id,
                group_id = excluded.group_id,
                last_message_id = COALESCE(excluded.last_message_id, last_message_id),
                last_message_time = COALESCE(excluded.last_message_time, last_message_time),
                updated_at = excluded.updated_at
            """,
            (
                conversation_id, conv_type, participant_id, group_id,
                last_message_id, last_message_time, timestamp, timestamp
            )
        )

    async def touch_conversation(self, conversation_id: str, message_id: str, timestamp: str) -> int:
        """Advance the last-message pointer."""
        return await self._execute_write(
            """
            UPDATE zalo_conversations SET
                last_message_id = ?,
                last_message_time = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (message_id, timestamp, timestamp, conversation_id)
        )

    async def list_conversations(self, limit: int = 100) -> List[Dict[str, Any]]:
        return await self._fetch_all(
            """
            SELECT
                c.id,
                c.type,
                c.last_message_time AS timestamp,
                c.last_message_id,
                c.participant_id,
                c.group_id,
                g.name AS group_name,
                g.avatar_url AS group_avatar,
                u.display_name AS user_display_name,
                u.avatar_url AS user_avatar,
                u.zalo_name AS user_zalo_name,
                m.content AS last_message,
                m.sender_id AS last_sender_id
            FROM zalo_conversations c
            LEFT JOIN zalo_groups g ON c.group_id = g.id
            LEFT JOIN zalo_users u ON c.participant_id = u.id
            LEFT JOIN zalo_messages m ON c.last_message_id = m.id
            ORDER BY c.last_message_time DESC
            LIMIT ?
            """,
            (limit,)
        )

    # --- Users & Groups ---

    async def upsert_user(
        self, user_id: str, display_name: str = None, zalo_name: str = None, avatar_url: str = None
    ) -> None:
        await self._execute_write(
            """
            INSERT INTO zalo_users (id, display_name, zalo_name, avatar_url, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                display_name = COALESCE(excluded.display_name, display_name),
                zalo_name = COALESCE(excluded.zalo_name, zalo_name),
                avatar_url = COALESCE(excluded.avatar_url, avatar_url),
                updated_at = excluded.updated_at
            """,
            (user_id, display_name, zalo_name, avatar_url, utc_now())
        )

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        if not user_id:
            return None
        return await self._fetch_one(
            "SELECT id, display_name, avatar_url, zalo_name FROM zalo_users WHERE id = ? LIMIT 1",
            (user_id,)
        )

    async def get_users(self, user_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        if not user_ids:
            return {}
        placeholders = ",".join("?" for _ in user_ids)
        rows = await self._fetch_all(
            f"SELECT id, display_name, avatar_url, zalo_name FROM zalo_users WHERE id IN ({placeholders})",
            tuple(user_ids)
        )
        return {row["id"]: row for row in rows}

    async def upsert_group(self, group_id: str, name: str = None, avatar_url: str = None) -> None:
        await self._execute_write(
            """
            INSERT INTO zalo_groups (id, name, avatar_url, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = COALESCE(excluded.name, name),
                avatar_url = COALESCE(excluded.avatar_url, avatar_url),
                updated_at = excluded.updated_at
            """,
            (group_id, name, avatar_url, utc_now())
        )

    # --- Messages ---

    async def find_message(self, message_id: str, client_id: str) -> Optional[Dict[str, Any]]:
        """Dedup lookup: a message is known by its id OR by its client id."""
        return await self._fetch_one(
            """
            SELECT id, client_id, conversation_id, sender_id, content, sent_at
            FROM zalo_messages
            WHERE id = ? OR client_id = ?
            LIMIT 1
            """,
            (message_id, client_id)
        )

    async def save_message(
        self,
        message_id: str,
        client_id: str,
        conversation_id: str,
        sender_id: Optional[str],
        content: str,
        raw_data: Any = None,
        timestamp: Optional[str] = None,
    ) -> int:
        """Insert a message; a primary-key conflict merges the client id instead of failing."""
        timestamp = timestamp or utc_now()
        return await self._execute_write(
            """
            INSERT INTO zalo_messages (
                id, client_id, conversation_id, content, sender_id, sent_at, received_at,
                is_edited, is_undone, raw_data, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, 0, 0, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                client_id = excluded.client_id,
                updated_at = excluded.updated_at
            """,
            (
                message_id, client_id, conversation_id, content or "", sender_id,
                timestamp, timestamp, json.dumps(raw_data, default=str) if raw_data is not None else None,
                timestamp, timestamp
            )
        )

    async def get_messages(self, conversation_id: str, limit: int = 200) -> List[Dict[str, Any]]:
        return await self._fetch_all(
            """
            SELECT id, sender_id, content, sent_at, is_edited, raw_data
            FROM zalo_messages
            WHERE conversation_id = ?
            ORDER BY sent_at ASC
            LIMIT ?
            """,
            (conversation_id, limit)
        )
