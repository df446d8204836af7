"""
FastAPI dependencies shared by the routers.
"""
from typing import Annotated

from annotated_doc import Doc
from fastapi import Depends, Request

from api.config import Settings
from storage.base import StorageBackend


def get_storage(request: Request) -> StorageBackend:
    """
    Storage backend selected when the application was created.

    The backend is resolved once at startup, so request handlers never look
    at the active profile themselves.
    """
    return request.app.state.storage


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


Storage = Annotated[
    StorageBackend,
    Depends(get_storage),
    Doc("Storage backend for the active profile")
]

AppSettings = Annotated[
    Settings,
    Depends(get_app_settings),
    Doc("Immutable application settings")
]
