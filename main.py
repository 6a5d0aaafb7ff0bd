"""Main Entry Point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from zalo_bridge import __version__
from zalo_bridge.config.config import config
from zalo_bridge.database import Database
from zalo_bridge.exceptions import ZaloBridgeError
from zalo_bridge.zalo import ZaloClient
from zalo_bridge.api import routes
from zalo_bridge.services import (
    ConversationResolver,
    MessageDispatcher,
    ViewAssembler,
    SessionImportWorker,
    AvatarProxy,
)

# --- Logging Configuration ---
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("main")


def create_app(
    db: Optional[Database] = None,
    zalo_client=None,
    avatar_proxy: Optional[AvatarProxy] = None,
) -> FastAPI:
    """
    Composition root: build one instance of every collaborator and hand
    them to the handlers through app.state.
    """
    db = db or Database()
    zalo_client = zalo_client or ZaloClient()
    resolver = ConversationResolver(db)
    session_importer = SessionImportWorker(zalo_client)

    # --- Lifespan (Startup & Shutdown Logic) ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Zalo Bridge Starting...")

        # 1. Connect to Local Database
        await db.connect()

        # 2. Start the cookie login worker
        session_importer.start()

        yield  # The application runs here

        logger.info("Zalo Bridge Stopping...")
        await session_importer.stop()
        await db.close()

    # --- App Definition ---
    app = FastAPI(title="Zalo Bridge", version=__version__, lifespan=lifespan)

    app.state.db = db
    app.state.zalo_client = zalo_client
    app.state.dispatcher = MessageDispatcher(db, zalo_client, resolver)
    app.state.views = ViewAssembler(db)
    app.state.session_importer = session_importer
    app.state.avatar_proxy = avatar_proxy or AvatarProxy()

    # --- Middleware ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Error Handlers ---
    @app.exception_handler(ZaloBridgeError)
    async def bridge_error_handler(request: Request, exc: ZaloBridgeError):
        return JSONResponse(status_code=exc.status_code, content=exc.payload())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        )

    # --- Routes ---
    @app.get("/")
    async def root():
        return {
            "service": "Zalo Bridge",
            "status": "Running",
            "version": __version__,
        }

    app.include_router(routes.router, prefix=config.ROUTE_PREFIX)

    return app


app = create_app()

# --- Execution ---
if __name__ == "__main__":
    config.ensure_data_dir()
    uvicorn.run("main:app", host=config.HOST, port=config.PORT, reload=False)
