"""
Zalo Client
Talks to the zca-js session sidecar that owns the Zalo login.
The sidecar keeps the QR/cookie session alive; this client only asks it
for status and hands it outgoing messages.
"""
import logging
import httpx
from typing import Optional, Dict, Any, List

from zalo_bridge.config.config import config
from zalo_bridge.exceptions import ZaloApiError
from zalo_bridge.models.schemas import SessionStatus, SessionInfo, ThreadType

logger = logging.getLogger(__name__)


class ZaloClient:
    """HTTP client for the Zalo session sidecar"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        send_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Zalo Client

        Args:
            base_url: Sidecar base URL (default: ZALO_API_URL)
            api_key: Optional API key sent as X-Api-Key (default: ZALO_API_KEY)
            timeout: Timeout for session calls in seconds
            send_timeout: Timeout for message dispatch in seconds
            transport: Optional httpx transport (tests plug a MockTransport here)
        """
        self.base_url = (base_url or config.ZALO_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else config.ZALO_API_KEY
        self.timeout = timeout or config.ZALO_TIMEOUT
        self.send_timeout = send_timeout or config.ZALO_SEND_TIMEOUT
        self._transport = transport

        logger.info(f"Zalo Client initialized with base URL: {self.base_url}")

    def _get_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json"
        }
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        return headers

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=self._get_headers(),
            transport=self._transport,
        )

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        """Turn a sidecar error response into ZaloApiError, keeping its Zalo error code."""
        if response.status_code < 400:
            return
        code = None
        message = response.text
        try:
            body = response.json()
            if isinstance(body, dict):
                code = body.get("code")
                message = body.get("error") or body.get("message") or message
        except ValueError:
            pass
        raise ZaloApiError(
            f"HTTP {response.status_code}: {message}",
            code=code,
            status_code=response.status_code,
        )

    async def _request(self, method: str, path: str, timeout: Optional[float] = None, **kwargs) -> httpx.Response:
        try:
            async with self._client(timeout or self.timeout) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"⏱️ Zalo sidecar timed out on {method} {path}: {e}")
            raise ZaloApiError(f"Zalo sidecar timed out: {e}")
        except httpx.HTTPError as e:
            logger.error(f"❌ Zalo sidecar unreachable on {method} {path}: {e}")
            raise ZaloApiError(f"Zalo sidecar unreachable: {e}")
        self._raise_for_error(response)
        return response

    # =================================================================
    # LOGIN / SESSION
    # =================================================================

    async def login_initiate(self) -> SessionStatus:
        """Start a QR login; the QR payload comes back in the status."""
        response = await self._request("POST", "/login/qr")
        status = SessionStatus.model_validate(response.json())
        logger.info(f"🔄 Zalo login initiated, status={status.status.value}")
        return status

    async def login_import_session(self, imei: str, user_agent: str, cookies: List[Dict[str, Any]]) -> SessionStatus:
        """Log in from exported browser cookies. Can take a while."""
        response = await self._request(
            "POST",
            "/login/cookies",
            json={"imei": imei, "userAgent": user_agent, "cookies": cookies},
        )
        status = SessionStatus.model_validate(response.json())
        logger.info(f"✅ Zalo cookie session imported for user {status.userId}")
        return status

    async def login_get_status(self) -> SessionStatus:
        response = await self._request("GET", "/status")
        return SessionStatus.model_validate(response.json())

    async def login_logout(self) -> None:
        await self._request("POST", "/logout")
        logger.info("👋 Zalo session logged out")

    async def session_get_info(self) -> Optional[SessionInfo]:
        """Stored session details, or None when the sidecar has no session."""
        try:
            response = await self._request("GET", "/session")
        except ZaloApiError as e:
            if e.status_code == 404:
                return None
            raise
        body = response.json()
        if not body:
            return None
        return SessionInfo.model_validate(body)

    # =================================================================
    # MESSAGING
    # =================================================================

    async def api_send_message(self, payload: Dict[str, Any], thread_id: str, thread_type: ThreadType) -> Dict[str, Any]:
        """
        Send a message to a user or group thread.

        Returns the raw zca-js send result, e.g. {"message": {"msgId": 123}}.
        """
        logger.info(f"📤 Sending to thread {thread_id} (type={thread_type.name})")
        response = await self._request(
            "POST",
            "/messages/send",
            timeout=self.send_timeout,
            json={
                "message": payload,
                "threadId": thread_id,
                "threadType": int(thread_type),
            },
        )
        try:
            return response.json()
        except ValueError:
            # accepted but unreadable; the caller synthesizes a local id
            logger.warning(f"⚠️ Send to thread {thread_id} returned a non-JSON body")
            return {}
