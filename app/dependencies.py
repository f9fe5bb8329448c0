"""Dependency providers for the FastAPI application."""

import httpx
from fastapi import Depends
from starlette.requests import HTTPConnection

from app.config import Settings, get_settings
from app.services.completion_service import CompletionService


async def get_http_client(connection: HTTPConnection) -> httpx.AsyncClient:
    """Retrieve the shared AsyncClient from application state."""

    return connection.app.state.http_client  # type: ignore[return-value]


async def get_completion_service(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> CompletionService:
    """Dependency provider for CompletionService."""

    return CompletionService(client=client, settings=settings)
