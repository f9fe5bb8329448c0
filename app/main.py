"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from app import __version__
from app.config import Settings, get_settings
from app.dependencies import get_completion_service
from app.exceptions import CompletionServiceError
from app.logging import configure_logging
from app.models import AskRequest, AskResponse, ErrorResponse
from app.outcomes import Success, interpret
from app.page import render_page
from app.services.completion_service import CompletionService
from app.validation import MAX_QUESTION_LENGTH, validate
from app.websocket_handlers import websocket_endpoint


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create application resources during startup and clean up on shutdown."""

    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        app.state.http_client = client
        yield
        del app.state.http_client


def create_app() -> FastAPI:
    """Application factory."""

    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Medical Question Assistant",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/", response_class=HTMLResponse)
    async def index(settings: Settings = Depends(get_settings)) -> str:
        return render_page(settings.site_title, MAX_QUESTION_LENGTH)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/version")
    async def version(settings: Settings = Depends(get_settings)) -> dict[str, str]:
        return {"version": __version__, "environment": settings.environment}

    @app.post(
        "/api/ask",
        response_model=AskResponse,
        responses={422: {"model": ErrorResponse}},
    )
    async def ask(
        body: AskRequest,
        request: Request,
        completion_service: Annotated[CompletionService, Depends(get_completion_service)],
    ) -> AskResponse | JSONResponse:
        errors = validate(body.question)
        if errors:
            error = ErrorResponse(error="validation_error", detail=errors["question"])
            return JSONResponse(status_code=422, content=error.model_dump())

        try:
            result: httpx.Response | Exception = await completion_service.send(
                body.question, request.headers.get("origin")
            )
        except CompletionServiceError as exc:
            result = exc

        outcome = interpret(result, online=body.online)
        if isinstance(outcome, Success):
            return AskResponse(status="success", response=outcome.text)
        return AskResponse(
            status="error",
            category=outcome.category.value,
            message=outcome.message,
        )

    app.add_api_websocket_route("/ws", websocket_endpoint)

    return app


app = create_app()
