"""
Error taxonomy for the bridge.

Every error knows its HTTP status and the JSON body it renders to, so the
API layer can hand any of them to a single exception handler.
"""
from typing import Any, Dict, Optional


class ZaloBridgeError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def payload(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(ZaloBridgeError):
    status_code = 400


class NotConnected(ZaloBridgeError):
    """The Zalo session is not logged in."""

    status_code = 503

    def __init__(self, status: str):
        super().__init__("Zalo is not connected")
        self.status = status

    def payload(self) -> Dict[str, Any]:
        return {"error": self.message, "status": self.status}


class ConversationNotFound(ZaloBridgeError):
    status_code = 404

    def __init__(self, conversation_id: str):
        super().__init__("Conversation not found in database")
        self.conversation_id = conversation_id

    def payload(self) -> Dict[str, Any]:
        return {"error": self.message, "conversationId": self.conversation_id}


class UnresolvableThread(ZaloBridgeError):
    """Conversation row has neither a group id nor a participant id."""

    status_code = 400

    def __init__(self, conversation_id: str, conversation: Optional[Dict[str, Any]] = None):
        super().__init__("Cannot determine Zalo thread ID")
        self.conversation_id = conversation_id
        self.conversation = conversation or {}

    def payload(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "conversationId": self.conversation_id,
            "conversation": self.conversation,
        }


class ConversationLookupFailed(ZaloBridgeError):
    status_code = 500

    def __init__(self, details: str):
        super().__init__("Failed to query conversation")
        self.details = details

    def payload(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.details}


class ZaloApiError(Exception):
    """Raised by the Zalo client when the sidecar reports a failure."""

    def __init__(self, message: str, code: Optional[int] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class InvalidRecipient(ZaloBridgeError):
    status_code = 400

    def __init__(self, thread_id: str, code: Optional[int] = None):
        super().__init__("Invalid Zalo thread ID")
        self.thread_id = thread_id
        self.code = code

    def payload(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "details": "The recipient does not exist or has blocked you",
            "zaloThreadId": self.thread_id,
            "code": self.code,
        }


class DispatchFailed(ZaloBridgeError):
    status_code = 500

    def __init__(self, thread_id: str, details: str, code: Optional[int] = None):
        super().__init__("Failed to send message via Zalo")
        self.thread_id = thread_id
        self.details = details
        self.code = code

    def payload(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "details": self.details,
            "code": self.code,
            "threadId": self.thread_id,
        }


class PersistenceFailed(ZaloBridgeError):
    """
    The message reached Zalo but could not be recorded locally.

    Rendered as 207: the send itself succeeded, and the body carries the
    derived ids so the row can be reconciled later.
    """

    status_code = 207

    def __init__(self, message_id: str, client_id: str, thread_id: str, details: str):
        super().__init__("Message sent to Zalo but failed to save to database")
        self.message_id = message_id
        self.client_id = client_id
        self.thread_id = thread_id
        self.details = details

    def payload(self) -> Dict[str, Any]:
        return {
            "success": True,
            "warning": self.message,
            "data": {
                "messageId": self.message_id,
                "clientId": self.client_id,
                "threadId": self.thread_id,
                "error": self.details,
            },
        }


class AvatarUrlNotAllowed(ZaloBridgeError):
    status_code = 403

    def __init__(self, url: str):
        super().__init__("Only allowed Zalo CDN URLs are permitted")
        self.url = url


class UpstreamFetchFailed(ZaloBridgeError):
    """Avatar upstream answered with a non-2xx status; mirrored to the caller."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"Failed to fetch image from Zalo. Status: {status_code}")
        self.url = url
        self.status_code = status_code
