from zalo_bridge.models.schemas import (
    LoginStatus,
    ThreadType,
    SendMessageRequest,
    CookieLoginRequest,
    SessionStatus,
    SessionInfo,
    ThreadTarget,
    ImportJobView,
    logged_out_payload,
)

__all__ = [
    "LoginStatus",
    "ThreadType",
    "SendMessageRequest",
    "CookieLoginRequest",
    "SessionStatus",
    "SessionInfo",
    "ThreadTarget",
    "ImportJobView",
    "logged_out_payload",
]
