"""Classification of completion results into user-facing outcomes."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Any, Union

import httpx

logger = logging.getLogger(__name__)

_SERVER_ERROR_PATTERN = re.compile(r"\b5\d\d\b")


class FailureCategory(str, enum.Enum):
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK_OFFLINE = "network_offline"
    GENERIC = "generic"


MESSAGES: dict[FailureCategory, str] = {
    FailureCategory.UNAUTHORIZED: "Invalid API key.",
    FailureCategory.RATE_LIMITED: "Too many requests. Please wait.",
    FailureCategory.SERVER_ERROR: "Server error. Try again later.",
    FailureCategory.NETWORK_OFFLINE: "No internet connection.",
    FailureCategory.GENERIC: "Failed to get response. Please try again.",
}

EMPTY_RESPONSE_MESSAGE = "No response received from the AI"


@dataclass(frozen=True)
class Success:
    text: str


@dataclass(frozen=True)
class Failure:
    category: FailureCategory
    message: str

    @classmethod
    def of(cls, category: FailureCategory) -> "Failure":
        return cls(category, MESSAGES[category])


CompletionOutcome = Union[Success, Failure]


def interpret(result: httpx.Response | Exception, *, online: bool = True) -> CompletionOutcome:
    """Map a raw completion result onto a ``CompletionOutcome``.

    ``result`` is either the endpoint's response or the exception raised while
    sending. ``online`` is the caller's connectivity flag; when it is False any
    failure is reported as ``NETWORK_OFFLINE``.
    """

    if isinstance(result, Exception):
        if not online:
            return Failure.of(FailureCategory.NETWORK_OFFLINE)
        status_code = getattr(result, "status_code", None)
        if status_code is not None:
            return Failure.of(_category_for_status(status_code))
        return Failure.of(_category_for_text(str(result)))

    if not result.is_success:
        if not online:
            return Failure.of(FailureCategory.NETWORK_OFFLINE)
        return Failure.of(_category_for_status(result.status_code))

    try:
        data = result.json()
    except ValueError:
        logger.error("Completion response is not valid JSON")
        return Failure.of(FailureCategory.GENERIC)

    content = _first_choice_content(data)
    if not content:
        logger.warning("Completion response carried no message content")
        return Failure(FailureCategory.GENERIC, EMPTY_RESPONSE_MESSAGE)

    return Success(content)


def _category_for_status(status_code: int) -> FailureCategory:
    if status_code == 401:
        return FailureCategory.UNAUTHORIZED
    if status_code == 429:
        return FailureCategory.RATE_LIMITED
    if 500 <= status_code <= 599:
        return FailureCategory.SERVER_ERROR
    return FailureCategory.GENERIC


def _category_for_text(text: str) -> FailureCategory:
    if "401" in text:
        return FailureCategory.UNAUTHORIZED
    if "429" in text:
        return FailureCategory.RATE_LIMITED
    if _SERVER_ERROR_PATTERN.search(text):
        return FailureCategory.SERVER_ERROR
    return FailureCategory.GENERIC


def _first_choice_content(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(content, str):
        return ""
    return content.strip()
