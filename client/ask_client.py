"""Simple WebSocket client for manual testing."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import time

import websockets

DEFAULT_URL = "ws://127.0.0.1:8000/ws"


async def run_client(url: str, question: str, timeout: float) -> int:
    """Submit a question through the form protocol and print the answer."""

    logger = logging.getLogger("ask_client")
    start = time.perf_counter()

    async with websockets.connect(url, ping_interval=None) as websocket:
        await websocket.send(json.dumps({"action": "input", "question": question}))
        await websocket.send(json.dumps({"action": "submit", "online": True}))
        logger.info("Submitted question (%d chars)", len(question))

        while True:
            frame = json.loads(await asyncio.wait_for(websocket.recv(), timeout=timeout))
            if "error" in frame:
                logger.error("Received error frame: %s", frame)
                return 1

            notification = frame.get("notification") or {}
            if frame["errors"]:
                logger.error("Question rejected: %s", frame["errors"]["question"])
                return 1
            if frame["loading"] or (notification.get("kind") != "error" and not frame["response"]):
                continue
            if notification.get("kind") == "error":
                logger.error("Request failed: %s", notification["message"])
                return 1

            elapsed = time.perf_counter() - start
            logger.info("Received response (%d chars) in %.2fs", len(frame["response"]), elapsed)
            print(frame["response"])
            return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Test client for the medical question service.")
    parser.add_argument("--url", default=DEFAULT_URL, help="WebSocket URL (default: %(default)s)")
    parser.add_argument("--question", required=True, help="Medical question to ask.")
    parser.add_argument(
        "--timeout", type=float, default=120.0, help="Seconds to wait for each server frame."
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    try:
        raise SystemExit(asyncio.run(run_client(args.url, args.question, args.timeout)))
    except KeyboardInterrupt:  # pragma: no cover - manual usage only
        pass


if __name__ == "__main__":  # pragma: no cover
    main()
