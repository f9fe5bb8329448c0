"""WebSocket handlers for the application."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Annotated

from fastapi import Depends, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from app.config import Settings, get_settings
from app.controller import FormController, log_task_failure
from app.dependencies import get_completion_service
from app.models import ActionIn, ErrorResponse, FormSnapshot
from app.services.completion_service import CompletionService

logger = logging.getLogger(__name__)


async def websocket_endpoint(
    websocket: WebSocket,
    completion_service: Annotated[CompletionService, Depends(get_completion_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """Drive one question form: action frames in, state snapshots out."""

    await websocket.accept()
    should_close = True
    logger.info(
        "WebSocket connection accepted",
        extra={"client": _client_repr(websocket)},
    )

    async def publish(snapshot: FormSnapshot) -> None:
        await websocket.send_text(snapshot.model_dump_json())

    controller = FormController(
        completion_service,
        publish,
        origin=websocket.headers.get("origin"),
        notification_ttl=settings.notification_ttl,
    )
    submission: asyncio.Task[object] | None = None

    try:
        await publish(controller.snapshot())

        while True:
            try:
                message = await asyncio.wait_for(
                    websocket.receive_text(),
                    timeout=settings.ws_inactivity_timeout,
                )
            except asyncio.TimeoutError:
                if controller.loading:
                    continue
                logger.info(
                    "WebSocket inactive; closing",
                    extra={"client": _client_repr(websocket)},
                )
                await websocket.close(code=status.WS_1000_NORMAL_CLOSURE)
                should_close = False
                break
            except WebSocketDisconnect:
                logger.info(
                    "WebSocket client disconnected",
                    extra={"client": _client_repr(websocket)},
                )
                should_close = False
                break

            try:
                action = ActionIn.model_validate_json(message)
            except ValueError:
                await _send_error(
                    websocket,
                    ErrorResponse(error="invalid_payload", detail="Invalid JSON payload."),
                )
                continue

            if action.action == "input":
                await controller.update_question(action.question or "")
            elif action.action == "connectivity":
                await controller.set_online(action.online is not False)
            elif action.action == "clear":
                await controller.clear()
            elif action.action == "submit":
                if action.online is not None:
                    controller.online = action.online
                if not controller.can_submit:
                    await publish(controller.snapshot())
                    continue
                submission = asyncio.create_task(controller.submit())
                submission.add_done_callback(log_task_failure)
    finally:
        controller.close()
        if submission is not None and not submission.done():
            submission.cancel()
        if should_close and websocket.application_state == WebSocketState.CONNECTED:
            with suppress(RuntimeError, WebSocketDisconnect):
                await websocket.close()
        logger.info(
            "WebSocket connection closed",
            extra={"client": _client_repr(websocket)},
        )


async def _send_error(websocket: WebSocket, error: ErrorResponse) -> None:
    """Send a structured error frame."""

    await websocket.send_text(error.model_dump_json())


def _client_repr(websocket: WebSocket) -> str:
    """Render the remote client for logging purposes."""

    client = websocket.client
    if client is None:
        return "unknown"
    return f"{client.host}:{client.port}"
