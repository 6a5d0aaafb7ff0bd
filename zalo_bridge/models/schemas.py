"""
Zalo Bridge Models
Pydantic models for requests and the session status projection
"""
from enum import Enum, IntEnum
from pydantic import BaseModel, Field
from typing import Optional, Any


class LoginStatus(str, Enum):
    LOGGED_OUT = "logged_out"
    LOGGING_IN = "logging_in"
    LOGGED_IN = "logged_in"


class ThreadType(IntEnum):
    """Zalo thread kinds, numbered the way zca-js numbers them."""
    USER = 0
    GROUP = 1


# Request Models

class SendMessageRequest(BaseModel):
    """Request model for POST /send; presence is checked by the dispatcher."""
    conversationId: Optional[str] = Field(None, description="Internal conversation ID")
    message: Optional[str] = Field(None, description="Message text content")
    content: Optional[str] = Field(None, description="Alias of message")
    clientId: Optional[str] = Field(None, description="Client correlation ID used for retries")


class CookieLoginRequest(BaseModel):
    """Request model for POST /login/cookies (exported by Zalo Extractor)."""
    cookies: Optional[Any] = Field(None, description="Cookie list from chat.zalo.me")
    imei: Optional[str] = Field(None, description="Device IMEI bound to the cookies")
    userAgent: Optional[str] = Field(None, description="Browser user agent bound to the cookies")


# Projections

class SessionStatus(BaseModel):
    """Login status as reported by the session sidecar."""
    status: LoginStatus = LoginStatus.LOGGED_OUT
    userId: Optional[str] = None
    qrCode: Optional[str] = None
    isListening: bool = False

    class Config:
        extra = "ignore"

    @property
    def is_logged_in(self) -> bool:
        return self.status == LoginStatus.LOGGED_IN


class SessionInfo(BaseModel):
    userId: Optional[str] = None
    loginTime: Optional[str] = None
    isActive: bool = False

    class Config:
        extra = "ignore"


class ThreadTarget(BaseModel):
    thread_id: str
    thread_type: ThreadType


class ImportJobView(BaseModel):
    jobId: str
    status: str
    error: Optional[str] = None
    createdAt: str
    finishedAt: Optional[str] = None


LOGGED_OUT_STATUS = SessionStatus()


def logged_out_payload(error: str) -> dict:
    """Error body shared by /init and /status: always reports logged_out."""
    return {"error": error, **LOGGED_OUT_STATUS.model_dump(mode="json")}
