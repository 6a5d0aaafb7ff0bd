"""
View Assembler
Builds the conversation list and message list the chat UI renders.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

from zalo_bridge.services.attachments import (
    extract_attachments,
    needs_attachment_recovery,
    placeholder_for,
)

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"
UNKNOWN_SENDER = "Unknown Sender"
PLACEHOLDER_AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=random"


def placeholder_avatar(name: str, unknown_label: str) -> str:
    """Generated avatar keyed by the name's initial, '?' for the unknown label."""
    initial = "?" if name == unknown_label or not name else name[0].upper()
    return PLACEHOLDER_AVATAR_URL.format(name=quote(initial, safe=""))


def resolve_person(
    user: Optional[Dict[str, Any]], fallback_id: Optional[str], unknown_label: str
) -> Tuple[str, str]:
    """display name -> Zalo name -> raw id -> unknown label, with avatar fallback."""
    user = user or {}
    name = user.get("display_name") or user.get("zalo_name") or fallback_id or unknown_label
    avatar = user.get("avatar_url") or placeholder_avatar(name, unknown_label)
    return name, avatar


class ViewAssembler:

    def __init__(self, db):
        self.db = db

    async def list_conversations(self, limit: int = 100) -> List[Dict[str, Any]]:
        rows = await self.db.list_conversations(limit)
        logger.info(f"[Views] Conversations fetched: {len(rows)}")
        return [self._conversation_view(row) for row in rows]

    @staticmethod
    def _conversation_view(conv: Dict[str, Any]) -> Dict[str, Any]:
        if conv.get("type") == "group":
            name = conv.get("group_name") or f"Group {conv['id']}"
            avatar = conv.get("group_avatar") or placeholder_avatar(name, UNKNOWN_USER)
        else:
            name, avatar = resolve_person(
                {
                    "display_name": conv.get("user_display_name"),
                    "zalo_name": conv.get("user_zalo_name"),
                    "avatar_url": conv.get("user_avatar"),
                },
                conv.get("participant_id"),
                UNKNOWN_USER,
            )

        return {
            "id": conv["id"],
            "name": name,
            "avatar": avatar,
            "lastMessage": conv.get("last_message") or "",
            "timestamp": conv.get("timestamp"),
            # Not tracked here; fixed values until read receipts/presence exist
            "unreadCount": 0,
            "online": True,
        }

    async def list_messages(self, conversation_id: str, limit: int = 200) -> List[Dict[str, Any]]:
        messages = await self.db.get_messages(conversation_id, limit)
        logger.info(f"[Views] Messages fetched for {conversation_id}: {len(messages)}")

        sender_ids = list(dict.fromkeys(m["sender_id"] for m in messages if m.get("sender_id")))
        users = await self.db.get_users(sender_ids)

        return [self._message_view(msg, users.get(msg.get("sender_id"))) for msg in messages]

    @staticmethod
    def _message_view(msg: Dict[str, Any], user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        sender_name, sender_avatar = resolve_person(user, msg.get("sender_id"), UNKNOWN_SENDER)

        content = msg.get("content")
        attachments = []
        if needs_attachment_recovery(content):
            decoded = extract_attachments(msg.get("raw_data"))
            attachments = [att.to_view() for att in decoded]
            if decoded and not content:
                content = placeholder_for(decoded[0])

        return {
            "id": msg["id"],
            "senderId": msg.get("sender_id"),
            "senderName": sender_name,
            "senderAvatar": sender_avatar,
            "content": content,
            "timestamp": msg.get("sent_at"),
            "isEdited": bool(msg.get("is_edited")),
            "attachments": attachments,
        }
