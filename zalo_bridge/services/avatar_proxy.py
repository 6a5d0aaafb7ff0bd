"""Avatar proxy: fetch Zalo CDN images server-side to avoid CORS."""
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from zalo_bridge.config.config import config
from zalo_bridge.exceptions import ValidationError, AvatarUrlNotAllowed, UpstreamFetchFailed

logger = logging.getLogger(__name__)


@dataclass
class ProxiedImage:
    content: bytes
    content_type: str


class AvatarProxy:

    def __init__(
        self,
        allowed_prefixes: Optional[List[str]] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.allowed_prefixes = list(allowed_prefixes if allowed_prefixes is not None else config.AVATAR_ALLOWED_PREFIXES)
        self.timeout = timeout
        self._transport = transport

    def is_allowed(self, url: str) -> bool:
        return any(url.startswith(prefix) for prefix in self.allowed_prefixes)

    async def fetch(self, url: Optional[str]) -> ProxiedImage:
        if not url:
            raise ValidationError("URL parameter is required")

        if not self.is_allowed(url):
            logger.warning(f"[Avatar Proxy] Blocked URL: {url}")
            raise AvatarUrlNotAllowed(url)

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport, follow_redirects=True
        ) as client:
            response = await client.get(url)

        if not response.is_success:
            logger.error(f"[Avatar Proxy] Failed to fetch {url} - Status: {response.status_code}")
            raise UpstreamFetchFailed(url, response.status_code)

        return ProxiedImage(
            content=response.content,
            content_type=response.headers.get("content-type", "application/octet-stream"),
        )
