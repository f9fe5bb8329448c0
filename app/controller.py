"""Form state machine driving the question page."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal, Protocol

import httpx

from app.exceptions import ServiceError
from app.models import FormSnapshot, NotificationOut
from app.outcomes import CompletionOutcome, Failure, FailureCategory, Success, interpret
from app.validation import MAX_QUESTION_LENGTH, validate

logger = logging.getLogger(__name__)

NEAR_LIMIT_THRESHOLD = 800

NotificationKind = Literal["success", "error", "loading"]
Publisher = Callable[[FormSnapshot], Awaitable[None]]


class QuestionSender(Protocol):
    async def send(self, question: str, origin: str | None = None) -> httpx.Response: ...


def log_task_failure(task: asyncio.Task[object]) -> None:
    """Log the exception of a finished background task, if any."""

    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background task failed", exc_info=exc, extra={"task": task.get_name()})


class FormState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"


@dataclass(frozen=True)
class Notification:
    message: str
    kind: NotificationKind
    token: int


class FormController:
    """Holds the state of one question form and reacts to user actions.

    Every change is pushed to ``publish`` as a ``FormSnapshot``. At most one
    completion request is in flight at a time: ``loading`` is raised before
    the first await of a submission and submit is refused while it is set.
    """

    def __init__(
        self,
        sender: QuestionSender,
        publish: Publisher,
        *,
        origin: str | None = None,
        notification_ttl: float = 4.0,
    ) -> None:
        self._sender = sender
        self._publish_snapshot = publish
        self._origin = origin
        self._notification_ttl = notification_ttl

        self.state = FormState.IDLE
        self.question = ""
        self.response = ""
        self.loading = False
        self.errors: dict[str, str] = {}
        self.online = True
        self.notification: Notification | None = None

        self._notification_counter = 0
        self._dismiss_task: asyncio.Task[None] | None = None

    @property
    def can_submit(self) -> bool:
        return not self.loading and bool(self.question.strip())

    @property
    def can_clear(self) -> bool:
        return not self.loading

    def snapshot(self, *, scroll_to_response: bool = False) -> FormSnapshot:
        notification = None
        if self.notification is not None:
            notification = NotificationOut(
                message=self.notification.message, kind=self.notification.kind
            )
        return FormSnapshot(
            state=self.state.value,
            question=self.question,
            response=self.response,
            loading=self.loading,
            errors=dict(self.errors),
            notification=notification,
            can_submit=self.can_submit,
            can_clear=self.can_clear,
            character_count=len(self.question),
            near_limit=len(self.question) > NEAR_LIMIT_THRESHOLD,
            max_length=MAX_QUESTION_LENGTH,
            scroll_to_response=scroll_to_response,
        )

    async def update_question(self, text: str) -> None:
        self.question = text
        await self._publish()

    async def set_online(self, online: bool) -> None:
        self.online = online
        await self._publish()

    async def submit(self) -> CompletionOutcome | None:
        """Validate the question and, when valid, request a completion.

        Returns the outcome, or ``None`` when nothing was sent.
        """

        if not self.can_submit:
            logger.debug("Submit ignored", extra={"loading": self.loading})
            return None

        self.state = FormState.VALIDATING
        errors = validate(self.question)
        if errors:
            self.errors = errors
            self.state = FormState.IDLE
            self._notify("Please fix the errors in your question", "error")
            await self._publish()
            return None

        question = self.question.strip()
        self.errors = {}
        self.response = ""
        self.loading = True
        self.state = FormState.SUBMITTING
        self._notify("Getting medical insights...", "loading")
        await self._publish()

        try:
            try:
                result: httpx.Response | Exception = await self._sender.send(question, self._origin)
            except ServiceError as exc:
                result = exc
            except Exception:
                self.loading = False
                self.state = FormState.IDLE
                self.response = ""
                self._notify(Failure.of(FailureCategory.GENERIC).message, "error")
                await self._publish()
                raise
            outcome = interpret(result, online=self.online)
        finally:
            self.loading = False
            self.state = FormState.IDLE

        if isinstance(outcome, Success):
            self.response = outcome.text
            self._notify("Response received successfully!", "success")
            await self._publish(scroll_to_response=True)
        else:
            logger.info("Submission failed", extra={"category": outcome.category.value})
            self.response = ""
            self._notify(outcome.message, "error")
            await self._publish()
        return outcome

    async def clear(self) -> None:
        if not self.can_clear:
            logger.debug("Clear ignored while a request is in flight")
            return
        self.question = ""
        self.response = ""
        self.errors = {}
        self._notify("Form cleared", "success")
        await self._publish()

    def close(self) -> None:
        """Cancel the pending notification timer."""

        self._cancel_dismiss()

    def _cancel_dismiss(self) -> None:
        if self._dismiss_task is not None:
            self._dismiss_task.cancel()
            self._dismiss_task = None

    def _notify(self, message: str, kind: NotificationKind) -> None:
        self._notification_counter += 1
        self.notification = Notification(message, kind, self._notification_counter)

        self._cancel_dismiss()
        # Loading notifications stay until the request finishes.
        if kind != "loading":
            self._dismiss_task = asyncio.create_task(
                self._dismiss_after(self._notification_counter)
            )
            self._dismiss_task.add_done_callback(log_task_failure)

    async def _dismiss_after(self, token: int) -> None:
        await asyncio.sleep(self._notification_ttl)
        if self.notification is None or self.notification.token != token:
            return
        self.notification = None
        self._dismiss_task = None
        await self._publish()

    async def _publish(self, *, scroll_to_response: bool = False) -> None:
        await self._publish_snapshot(self.snapshot(scroll_to_response=scroll_to_response))
