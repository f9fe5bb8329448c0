"""Pydantic models shared across application layers."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SYSTEM_PROMPT = (
    "You are a helpful medical assistant. Provide informative responses but always "
    "remind users to consult healthcare professionals for medical advice. Keep "
    "responses concise and easy to understand."
)


class ChatMessage(BaseModel):
    """Single message of the chat conversation sent upstream."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user"]
    content: str


class CompletionRequest(BaseModel):
    """Body of the chat completion request."""

    model_config = ConfigDict(frozen=True)

    model: str = "openrouter/auto"
    messages: tuple[ChatMessage, ...]
    max_tokens: int = 512
    temperature: float = 0.7

    @classmethod
    def for_question(cls, question: str, model: str = "openrouter/auto") -> "CompletionRequest":
        return cls(
            model=model,
            messages=(
                ChatMessage(role="system", content=SYSTEM_PROMPT),
                ChatMessage(role="user", content=question.strip()),
            ),
        )


class ActionIn(BaseModel):
    """Incoming WebSocket frame describing a user action."""

    action: Literal["input", "submit", "clear", "connectivity"]
    question: str | None = None
    online: bool | None = None


class NotificationOut(BaseModel):
    message: str
    kind: Literal["success", "error", "loading"]


class FormSnapshot(BaseModel):
    """Render state pushed to the browser after every change."""

    state: Literal["idle", "validating", "submitting"]
    question: str
    response: str
    loading: bool
    errors: dict[str, str] = Field(default_factory=dict)
    notification: NotificationOut | None = None
    can_submit: bool
    can_clear: bool
    character_count: int
    near_limit: bool
    max_length: int
    scroll_to_response: bool = False


class AskRequest(BaseModel):
    """Body of ``POST /api/ask``."""

    question: str
    online: bool = True


class AskResponse(BaseModel):
    status: Literal["success", "error"]
    response: str | None = None
    category: str | None = None
    message: str | None = None


class ErrorResponse(BaseModel):
    """Error frame returned to WebSocket and HTTP clients."""

    error: str
    detail: str | None = None
