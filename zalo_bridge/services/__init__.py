"""Business logic services"""
from .resolver import ConversationResolver
from .dispatch import MessageDispatcher, SendResult
from .views import ViewAssembler
from .session_import import SessionImportWorker, ImportJob, ImportJobStatus
from .avatar_proxy import AvatarProxy, ProxiedImage

__all__ = [
    "ConversationResolver",
    "MessageDispatcher",
    "SendResult",
    "ViewAssembler",
    "SessionImportWorker",
    "ImportJob",
    "ImportJobStatus",
    "AvatarProxy",
    "ProxiedImage",
]
