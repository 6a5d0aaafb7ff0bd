"""
Message Dispatcher
Send a message to Zalo and mirror it into the local store.

Flow:
1. Validate input and check the Zalo session is logged in
2. Resolve the conversation to a Zalo thread
3. Dispatch through the Zalo client
4. Derive message id / client id
5. Dedup on (id OR client_id); a hit returns the stored row
6. Insert (merge on id conflict) and advance the conversation pointer

Anything that fails before step 3 succeeds leaves no trace. Once Zalo has
accepted the message, store failures become PersistenceFailed (207) so the
caller never mistakes a delivered message for a failed one.
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from zalo_bridge.database import utc_now
from zalo_bridge.exceptions import (
    ValidationError,
    NotConnected,
    ZaloApiError,
    InvalidRecipient,
    DispatchFailed,
    PersistenceFailed,
)

logger = logging.getLogger(__name__)

# zca-js error code for a thread that does not exist or has blocked us
INVALID_RECIPIENT_CODE = 114
LOCAL_ID_PREFIX = "local-"


def synthesize_message_id() -> str:
    """Local id for sends Zalo did not number; the prefix keeps it out of Zalo's numeric id space."""
    return f"{LOCAL_ID_PREFIX}{int(time.time() * 1000)}-{uuid.uuid4().hex}"


def extract_message_id(result: Any) -> Optional[str]:
    if not isinstance(result, dict):
        return None
    for key in ("message", "data"):
        section = result.get(key)
        if isinstance(section, dict) and section.get("msgId"):
            return str(section["msgId"])
    return None


@dataclass
class SendResult:
    duplicate: bool
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return "Message already processed" if self.duplicate else "Message sent successfully"

    def to_response(self) -> Dict[str, Any]:
        return {"success": True, "message": self.message, "data": self.data}


class MessageDispatcher:

    def __init__(self, db, zalo_client, resolver):
        self.db = db
        self.zalo = zalo_client
        self.resolver = resolver

    async def send(self, conversation_id: Optional[str], content: Optional[str], client_id: Optional[str] = None) -> SendResult:
        # 1. Validation
        if not conversation_id or not content:
            raise ValidationError("conversationId and message are required")

        try:
            status = await self.zalo.login_get_status()
        except ZaloApiError as e:
            logger.error(f"[Dispatch] Zalo status unavailable: {e}")
            raise NotConnected("logged_out")
        if not status.is_logged_in:
            logger.error("[Dispatch] Zalo not logged in")
            raise NotConnected(status.status.value)
        sender_id = status.userId

        # 2. Resolve thread
        target = await self.resolver.resolve(conversation_id)

        # 3. Dispatch
        try:
            zalo_result = await self.zalo.api_send_message(
                {"msg": content}, target.thread_id, target.thread_type
            )
        except ZaloApiError as e:
            logger.error(f"❌ Zalo API Error for thread {target.thread_id}: {e}")
            if e.code == INVALID_RECIPIENT_CODE:
                raise InvalidRecipient(target.thread_id, e.code)
            raise DispatchFailed(target.thread_id, e.message, e.code)
        except Exception as e:
            logger.error(f"❌ Zalo dispatch crashed for thread {target.thread_id}: {e}")
            raise DispatchFailed(target.thread_id, str(e))

        # 4. Identify
        message_id = extract_message_id(zalo_result) or synthesize_message_id()
        client_msg_id = client_id or message_id

        # 5-6. Persist; from here on the message is already on Zalo
        try:
            return await self._persist(
                conversation_id, content, sender_id, message_id, client_msg_id,
                target.thread_id, zalo_result
            )
        except Exception as e:
            logger.error(f"💾 Database Error after dispatch (message {message_id}): {e}")
            raise PersistenceFailed(message_id, client_msg_id, target.thread_id, str(e))

    async def _persist(
        self, conversation_id: str, content: str, sender_id: Optional[str],
        message_id: str, client_msg_id: str, thread_id: str, zalo_result: Any
    ) -> SendResult:
        existing = await self.db.find_message(message_id, client_msg_id)
        if existing:
            logger.info(f"♻️ Message already processed: {existing['id']} (client {client_msg_id})")
            return SendResult(duplicate=True, data={
                "id": existing["id"],
                "conversationId": existing["conversation_id"],
                "content": existing["content"],
                "sent_at": existing["sent_at"],
            })

        sender = await self.db.get_user(sender_id) or {}
        timestamp = utc_now()

        await self.db.save_message(
            message_id=message_id,
            client_id=client_msg_id,
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            raw_data=zalo_result,
            timestamp=timestamp,
        )
        await self.db.touch_conversation(conversation_id, message_id, timestamp)

        logger.info(f"✅ Message {message_id} sent and saved for conversation {conversation_id}")
        return SendResult(duplicate=False, data={
            "messageId": message_id,
            "id": message_id,
            "conversationId": conversation_id,
            "content": content,
            "sent_at": timestamp,
            "sender_id": sender_id,
            "client_id": client_msg_id,
            "thread_id": thread_id,
            "sender": {
                "id": sender.get("id"),
                "display_name": sender.get("display_name"),
                "avatar_url": sender.get("avatar_url"),
                "zalo_name": sender.get("zalo_name"),
            },
        })
