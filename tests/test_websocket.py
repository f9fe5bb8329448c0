import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect, WebSocketState

from app.config import Settings
from app.dependencies import get_completion_service
from app.exceptions import CompletionServiceError
from app.websocket_handlers import websocket_endpoint

QUESTION = "What are the symptoms of dehydration?"


class DummyCompletionService:
    def __init__(
        self, response: httpx.Response | None = None, error: Exception | None = None
    ) -> None:
        self.response = response
        self.error = error
        self.gate: asyncio.Event | None = None
        self.questions: list[str] = []
        self.origins: list[str | None] = []

    async def send(self, question: str, origin: str | None = None) -> httpx.Response:
        self.questions.append(question)
        self.origins.append(origin)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response


def ok(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def get_test_client(app, service: DummyCompletionService) -> TestClient:
    app.dependency_overrides[get_completion_service] = lambda: service
    return TestClient(app)


def test_websocket_happy_path(app) -> None:
    service = DummyCompletionService(ok("Drink water."))
    client = get_test_client(app, service)

    with client.websocket_connect("/ws") as websocket:
        initial = websocket.receive_json()
        websocket.send_text(json.dumps({"action": "input", "question": QUESTION}))
        typed = websocket.receive_json()
        websocket.send_text(json.dumps({"action": "submit", "online": True}))
        loading = websocket.receive_json()
        final = websocket.receive_json()

    assert initial["state"] == "idle"
    assert initial["can_submit"] is False
    assert typed["can_submit"] is True
    assert typed["character_count"] == len(QUESTION)
    assert loading["loading"] is True
    assert loading["notification"] == {"message": "Getting medical insights...", "kind": "loading"}
    assert final["response"] == "Drink water."
    assert final["scroll_to_response"] is True
    assert final["notification"]["kind"] == "success"
    assert service.questions == [QUESTION]


def test_websocket_validation_error(app) -> None:
    service = DummyCompletionService(ok("unused"))
    client = get_test_client(app, service)

    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_text(json.dumps({"action": "input", "question": "hi"}))
        websocket.receive_json()
        websocket.send_text(json.dumps({"action": "submit"}))
        rejected = websocket.receive_json()

    assert rejected["errors"] == {"question": "Question must be at least 10 characters long"}
    assert rejected["notification"]["kind"] == "error"
    assert service.questions == []


def test_websocket_rate_limited(app) -> None:
    service = DummyCompletionService(httpx.Response(429))
    client = get_test_client(app, service)

    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_text(json.dumps({"action": "input", "question": QUESTION}))
        websocket.receive_json()
        websocket.send_text(json.dumps({"action": "submit", "online": True}))
        websocket.receive_json()
        final = websocket.receive_json()

    assert final["response"] == ""
    assert final["notification"] == {
        "message": "Too many requests. Please wait.",
        "kind": "error",
    }


def test_websocket_clear(app) -> None:
    client = get_test_client(app, DummyCompletionService(ok("unused")))

    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_text(json.dumps({"action": "input", "question": QUESTION}))
        websocket.receive_json()
        websocket.send_text(json.dumps({"action": "clear"}))
        cleared = websocket.receive_json()

    assert cleared["question"] == ""
    assert cleared["notification"] == {"message": "Form cleared", "kind": "success"}


def test_websocket_invalid_json(app) -> None:
    client = get_test_client(app, DummyCompletionService(ok("unused")))

    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_text("not-json")
        response = websocket.receive_text()

    data = json.loads(response)
    assert data["error"] == "invalid_payload"


def test_websocket_unknown_action(app) -> None:
    client = get_test_client(app, DummyCompletionService(ok("unused")))

    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_text(json.dumps({"action": "delete"}))
        data = websocket.receive_json()

    assert data["error"] == "invalid_payload"


class _ClientAddress:
    def __init__(self, host: str = "127.0.0.1", port: int = 12345) -> None:
        self.host = host
        self.port = port


class DummyWebSocket:
    """Minimal WebSocket stub driving the handler frame by frame.

    With ``idle_when_empty`` the client goes quiet once its frames run out
    instead of disconnecting, and the server is allowed to close it.
    """

    def __init__(self, messages: list[str], *, idle_when_empty: bool = False) -> None:
        self._messages = messages
        self._idle_when_empty = idle_when_empty
        self.accepted = False
        self.sent_text: list[str] = []
        self.close_called = False
        self.close_code: int | None = None
        self.client = _ClientAddress()
        self.headers = {"origin": "https://clinic.example"}
        self.application_state = WebSocketState.CONNECTED

    async def accept(self) -> None:
        self.accepted = True

    async def receive_text(self) -> str:
        # Let background submissions run before the next frame arrives.
        await asyncio.sleep(0.01)
        if not self._messages:
            if self._idle_when_empty:
                await asyncio.sleep(3600)
            raise WebSocketDisconnect()
        item = self._messages.pop(0)
        if item == "__disconnect__":
            raise WebSocketDisconnect()
        return item

    async def send_text(self, data: str) -> None:
        self.sent_text.append(data)

    async def close(self, code: int = 1000) -> None:
        self.close_called = True
        self.close_code = code
        if not self._idle_when_empty:
            raise AssertionError("close should not be invoked when client already disconnected")

    @property
    def frames(self) -> list[dict]:
        return [json.loads(text) for text in self.sent_text]


def frame(action: str, **fields: object) -> str:
    return json.dumps({"action": action, **fields})


@pytest.mark.asyncio
async def test_websocket_skips_close_after_client_disconnect() -> None:
    settings = Settings()
    service = DummyCompletionService(ok("Drink water."))
    websocket = DummyWebSocket(
        [
            frame("input", question=QUESTION),
            frame("submit"),
            "__disconnect__",
        ]
    )

    await websocket_endpoint(websocket, service, settings)

    assert websocket.accepted
    assert websocket.frames[-1]["response"] == "Drink water."
    assert websocket.close_called is False


@pytest.mark.asyncio
async def test_websocket_forwards_page_origin() -> None:
    service = DummyCompletionService(ok("Drink water."))
    websocket = DummyWebSocket([frame("input", question=QUESTION), frame("submit")])

    await websocket_endpoint(websocket, service, Settings())

    assert service.questions == [QUESTION]
    assert service.origins == ["https://clinic.example"]


@pytest.mark.asyncio
async def test_websocket_offline_submit() -> None:
    service = DummyCompletionService(error=CompletionServiceError("request failed: 503"))
    websocket = DummyWebSocket(
        [frame("input", question=QUESTION), frame("submit", online=False)]
    )

    await websocket_endpoint(websocket, service, Settings())

    final = websocket.frames[-1]
    assert final["loading"] is False
    assert final["response"] == ""
    assert final["notification"] == {"message": "No internet connection.", "kind": "error"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("connectivity", "message"),
    [
        ([False], "No internet connection."),
        ([False, True], "Invalid API key."),
    ],
)
async def test_websocket_connectivity_frames(connectivity: list[bool], message: str) -> None:
    service = DummyCompletionService(httpx.Response(401))
    websocket = DummyWebSocket(
        [
            frame("input", question=QUESTION),
            *(frame("connectivity", online=online) for online in connectivity),
            frame("submit"),
        ]
    )

    await websocket_endpoint(websocket, service, Settings())

    assert len(service.questions) == 1
    assert websocket.frames[-1]["notification"] == {"message": message, "kind": "error"}


@pytest.mark.asyncio
async def test_websocket_closes_idle_connection() -> None:
    settings = Settings().model_copy(update={"ws_inactivity_timeout": 0.05})
    websocket = DummyWebSocket([], idle_when_empty=True)

    await asyncio.wait_for(
        websocket_endpoint(websocket, DummyCompletionService(ok("unused")), settings),
        timeout=2,
    )

    assert websocket.close_called is True
    assert websocket.close_code == 1000


@pytest.mark.asyncio
async def test_websocket_stays_open_while_request_in_flight() -> None:
    settings = Settings().model_copy(update={"ws_inactivity_timeout": 0.05})
    service = DummyCompletionService(ok("Drink water."))
    service.gate = asyncio.Event()
    websocket = DummyWebSocket(
        [frame("input", question=QUESTION), frame("submit")],
        idle_when_empty=True,
    )

    endpoint = asyncio.create_task(websocket_endpoint(websocket, service, settings))
    await asyncio.sleep(0.3)

    assert websocket.close_called is False
    assert websocket.frames[-1]["loading"] is True

    service.gate.set()
    await asyncio.wait_for(endpoint, timeout=2)

    assert websocket.close_code == 1000
    assert websocket.frames[-1]["response"] == "Drink water."
