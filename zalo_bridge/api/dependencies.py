"""Handlers get their collaborators from app.state, filled in by main.create_app()."""
from fastapi import Request, HTTPException


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=500, detail=f"{name} not initialized")
    return value


def get_zalo_client(request: Request):
    return _state(request, "zalo_client")


def get_dispatcher(request: Request):
    return _state(request, "dispatcher")


def get_views(request: Request):
    return _state(request, "views")


def get_session_importer(request: Request):
    return _state(request, "session_importer")


def get_avatar_proxy(request: Request):
    return _state(request, "avatar_proxy")
