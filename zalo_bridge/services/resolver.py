"""Conversation Resolver: internal conversation id -> Zalo thread."""
import logging

from zalo_bridge.exceptions import ConversationNotFound, UnresolvableThread, ConversationLookupFailed
from zalo_bridge.models.schemas import ThreadTarget, ThreadType

logger = logging.getLogger(__name__)


class ConversationResolver:

    def __init__(self, db):
        self.db = db

    async def resolve(self, conversation_id: str) -> ThreadTarget:
        """
        Group id wins over participant id, whatever the row's type says.

        Raises:
            ConversationNotFound: no row for the id
            UnresolvableThread: row has neither id
            ConversationLookupFailed: the store could not be queried
        """
        try:
            conversation = await self.db.get_conversation(conversation_id)
        except Exception as e:
            logger.error(f"❌ Conversation lookup failed for {conversation_id}: {e}")
            raise ConversationLookupFailed(str(e))

        if not conversation:
            logger.error(f"Conversation not found: {conversation_id}")
            raise ConversationNotFound(conversation_id)

        group_id = conversation.get("group_id")
        participant_id = conversation.get("participant_id")

        if group_id:
            return ThreadTarget(thread_id=str(group_id), thread_type=ThreadType.GROUP)
        if participant_id:
            return ThreadTarget(thread_id=str(participant_id), thread_type=ThreadType.USER)

        logger.error(f"Cannot determine Zalo thread for conversation {conversation_id}")
        raise UnresolvableThread(conversation_id, {
            "participant_id": participant_id,
            "group_id": group_id,
        })
