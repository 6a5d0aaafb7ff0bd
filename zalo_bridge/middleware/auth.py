"""Service key guard for the bridge's HTTP routes."""
from typing import Optional

from fastapi import Request, HTTPException, Security
from fastapi.security import APIKeyHeader
from zalo_bridge.config.config import config
import logging

logger = logging.getLogger(__name__)

service_key_header = APIKeyHeader(name="X-Service-Key", auto_error=False)


def _bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


async def verify_secret_key(
    request: Request,
    service_key: Optional[str] = Security(service_key_header)
):
    """
    Require ZALO_BRIDGE_SERVICE_KEY on every bridge route.

    The key is read from X-Service-Key, else from an Authorization bearer
    token. Leaving ZALO_BRIDGE_SERVICE_KEY empty opens the bridge to anyone
    who can reach it, which is how local development runs.
    """
    if not config.SERVICE_KEY:
        return True

    presented = service_key or _bearer_token(request)
    if presented != config.SERVICE_KEY:
        host = request.client.host if request.client else "unknown"
        logger.warning(f"⛔ Rejected bridge call to {request.url.path} from {host}")
        raise HTTPException(
            status_code=403,
            detail="Could not validate credentials"
        )

    return True
