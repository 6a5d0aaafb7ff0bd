import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from zalo_bridge.exceptions import ZaloBridgeError
from zalo_bridge.middleware.auth import verify_secret_key
from zalo_bridge.models.schemas import SendMessageRequest, CookieLoginRequest, logged_out_payload
from zalo_bridge.api.dependencies import (
    get_zalo_client,
    get_dispatcher,
    get_views,
    get_session_importer,
    get_avatar_proxy,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_secret_key)])


def internal_error(error: str, e: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": error, "details": str(e)})


# --- LOGIN / SESSION (delegated to the session sidecar) ---

@router.post("/init")
async def init_login(zalo=Depends(get_zalo_client)):
    """Initiate QR code login."""
    try:
        status = await zalo.login_initiate()
        return status.model_dump(mode="json")
    except Exception as e:
        logger.error(f"[Endpoint /init] Init error: {e}")
        return JSONResponse(status_code=500, content=logged_out_payload(str(e)))


@router.post("/login/cookies", status_code=202)
async def login_with_cookies(req: CookieLoginRequest, importer=Depends(get_session_importer)):
    """Queue a login from Zalo Extractor cookies; poll /login/cookies/{job_id} for the outcome."""
    if not req.cookies or not req.imei or not req.userAgent:
        return JSONResponse(status_code=400, content={
            "ok": False,
            "message": "Missing required fields: cookies, imei, userAgent",
        })

    if not isinstance(req.cookies, list) or len(req.cookies) == 0:
        return JSONResponse(status_code=400, content={
            "ok": False,
            "message": "Cookies must be a non-empty array",
        })

    try:
        job = await importer.submit(req.imei, req.userAgent, req.cookies)
        return {
            "ok": True,
            "message": "Login session is being initialized...",
            "jobId": job.id,
        }
    except Exception as e:
        logger.error(f"[Endpoint /login/cookies] Cookies Login error: {e}")
        return JSONResponse(status_code=500, content={"ok": False, "message": str(e)})


@router.get("/login/cookies/{job_id}")
async def get_cookie_login_job(job_id: str, importer=Depends(get_session_importer)):
    job = importer.get(job_id)
    if not job:
        return JSONResponse(status_code=404, content={"error": "Login job not found", "jobId": job_id})
    return job.view().model_dump()


@router.get("/status")
async def get_status(zalo=Depends(get_zalo_client)):
    try:
        status = await zalo.login_get_status()
        return status.model_dump(mode="json")
    except Exception as e:
        logger.error(f"[Endpoint /status] Status error: {e}")
        return JSONResponse(status_code=500, content=logged_out_payload(str(e)))


@router.post("/logout")
async def logout(zalo=Depends(get_zalo_client)):
    try:
        await zalo.login_logout()
        return {"success": True, "message": "Logged out successfully"}
    except Exception as e:
        logger.error(f"[Endpoint /logout] Logout error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.get("/session")
async def get_session(zalo=Depends(get_zalo_client)):
    try:
        session = await zalo.session_get_info()
        if not session:
            return {"exists": False}
        return {"exists": True, **session.model_dump()}
    except Exception as e:
        logger.error(f"[Endpoint /session] Session error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.get("/me")
async def get_me(zalo=Depends(get_zalo_client)):
    """Basic status about the currently logged-in user."""
    try:
        status = await zalo.login_get_status()
        return {
            "userId": status.userId,
            "status": status.status.value,
            "isListening": status.isListening,
        }
    except Exception as e:
        logger.error(f"[Endpoint /me] Error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})


# --- MESSAGING ---

@router.post("/send")
async def send_message(req: SendMessageRequest, dispatcher=Depends(get_dispatcher)):
    """
    Send a message to the conversation's Zalo thread and record it.

    200 for a fresh send or a replay of an already recorded one, 207 when the
    message reached Zalo but could not be saved; errors come from the
    ZaloBridgeError handler.
    """
    try:
        result = await dispatcher.send(
            req.conversationId,
            req.message or req.content,
            req.clientId,
        )
        return result.to_response()
    except ZaloBridgeError:
        raise
    except Exception as e:
        logger.error(f"[Endpoint /send] Internal Error: {e}", exc_info=True)
        return internal_error("Internal server error", e)


@router.get("/conversations")
async def list_conversations(views=Depends(get_views)):
    try:
        conversations = await views.list_conversations(limit=100)
        return {"data": conversations}
    except Exception as e:
        logger.error(f"❌ [Endpoint /conversations] Error: {e}")
        return internal_error("Failed to fetch conversations", e)


@router.get("/messages/{conversation_id}")
async def list_messages(conversation_id: str, views=Depends(get_views)):
    try:
        messages = await views.list_messages(conversation_id, limit=200)
        return {"data": messages}
    except Exception as e:
        logger.error(f"❌ [Endpoint /messages] Error: {e}")
        return internal_error("Failed to fetch messages", e)


@router.get("/avatar-proxy")
async def avatar_proxy(request: Request, proxy=Depends(get_avatar_proxy)):
    """Proxy avatar images from allow-listed Zalo CDN hosts."""
    try:
        image = await proxy.fetch(request.query_params.get("url"))
        return Response(
            content=image.content,
            media_type=image.content_type,
            headers={"Cache-Control": "public, max-age=86400"},
        )
    except ZaloBridgeError:
        raise
    except Exception as e:
        logger.error(f"❌ [Endpoint /avatar-proxy] Error: {e}")
        return internal_error("Failed to proxy image", e)
