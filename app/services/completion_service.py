"""Adapter for the OpenRouter-compatible chat completion endpoint."""

from __future__ import annotations

import logging

import httpx

from app.config import Settings
from app.exceptions import CompletionServiceError
from app.models import CompletionRequest

logger = logging.getLogger(__name__)


class CompletionService:
    """Sends a single medical question to the configured completion endpoint."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    def build_request(self, question: str) -> CompletionRequest:
        return CompletionRequest.for_question(question, model=self._settings.completion_model)

    def build_headers(self, origin: str | None = None) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": origin or self._settings.site_origin,
            "X-Title": self._settings.site_title,
        }

    async def send(self, question: str, origin: str | None = None) -> httpx.Response:
        """POST the question and return the raw response, whatever its status.

        Raises ``CompletionServiceError`` when no response was received at all.
        """

        payload = self.build_request(question)

        try:
            response = await self._client.post(
                self._settings.base_url,
                headers=self.build_headers(origin),
                json=payload.model_dump(mode="json"),
            )
        except httpx.TimeoutException as exc:
            logger.warning("Completion request timed out", exc_info=exc)
            raise CompletionServiceError("Completion service timed out") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.exception("Completion request failed")
            raise CompletionServiceError(f"Completion service request failed: {exc}") from exc

        log = logger.info if response.is_success else logger.error
        log(
            "Completion endpoint responded",
            extra={
                "status_code": response.status_code,
                "question_length": len(question.strip()),
            },
        )
        return response
