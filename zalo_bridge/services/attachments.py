"""
Attachment decoding for stored Zalo payloads.

raw_data holds whatever zca-js returned for the message. Attachments live
under raw_data["message"]["attachments"]; each entry is decoded into one of
the known shapes below, or into UnknownAttachment when its type is not one
we recognise.
"""
import json
import logging
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

PHOTO_PLACEHOLDER = "[Hình ảnh]"
FILE_PLACEHOLDER = "[File]"
CONTENT_PLACEHOLDERS = frozenset({PHOTO_PLACEHOLDER, FILE_PLACEHOLDER})


class _Attachment(BaseModel):
    payload: Any = None

    def to_view(self) -> dict:
        return {"type": self.type, "payload": self.payload}


class PhotoAttachment(_Attachment):
    type: Literal["photo"]


class FileAttachment(_Attachment):
    type: Literal["file"]


class VideoAttachment(_Attachment):
    type: Literal["video"]


class GifAttachment(_Attachment):
    type: Literal["gif"]


class StickerAttachment(_Attachment):
    type: Literal["sticker"]


class VoiceAttachment(_Attachment):
    type: Literal["voice"]


class LinkAttachment(_Attachment):
    type: Literal["link"]


class UnknownAttachment(_Attachment):
    """Anything else; type is whatever the entry carried (possibly None)."""
    type: Optional[Any] = None


KnownAttachment = Annotated[
    Union[
        PhotoAttachment,
        FileAttachment,
        VideoAttachment,
        GifAttachment,
        StickerAttachment,
        VoiceAttachment,
        LinkAttachment,
    ],
    Field(discriminator="type"),
]

Attachment = Union[
    PhotoAttachment,
    FileAttachment,
    VideoAttachment,
    GifAttachment,
    StickerAttachment,
    VoiceAttachment,
    LinkAttachment,
    UnknownAttachment,
]

_known_adapter = TypeAdapter(KnownAttachment)


def decode_attachment(entry: Any) -> Attachment:
    try:
        return _known_adapter.validate_python(entry)
    except ValidationError:
        if isinstance(entry, dict):
            return UnknownAttachment(type=entry.get("type"), payload=entry.get("payload"))
        return UnknownAttachment(payload=entry)


def extract_attachments(raw_data: Any) -> List[Attachment]:
    """
    Pull attachments out of a stored raw payload.

    Malformed or missing payloads yield an empty list; the shape is
    controlled by Zalo, so nothing here raises.
    """
    raw = raw_data
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.debug("raw_data is not valid JSON, skipping attachments")
            return []

    if not isinstance(raw, dict):
        return []
    message = raw.get("message")
    if not isinstance(message, dict):
        return []
    entries = message.get("attachments")
    if not isinstance(entries, list):
        return []

    return [decode_attachment(entry) for entry in entries]


def needs_attachment_recovery(content: Optional[str]) -> bool:
    return not content or content in CONTENT_PLACEHOLDERS


def placeholder_for(attachment: Attachment) -> str:
    return PHOTO_PLACEHOLDER if isinstance(attachment, PhotoAttachment) else FILE_PLACEHOLDER
