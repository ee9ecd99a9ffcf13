from __future__ import annotations

import json
import sys
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BASE_DIR / "src"))

from quickclick_mcp.config import ClientConfig  # noqa: E402
from quickclick_mcp.console import ConsoleClient  # noqa: E402

BASE_URL = "https://console.example.test/console/apis"
BASE_PATH = "/console/apis"
ACCOUNT_ID = 42
MENU_ID = 7
FAR_FUTURE = "Thu, 01 Jan 2099 00:00:00 GMT"
SESSION_COOKIE = f"connect.sid=s%3Aabc.def; Path=/; Expires={FAR_FUTURE}; HttpOnly"

Route = Callable[[httpx.Request], httpx.Response] | httpx.Response


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> None:
        self.current += timedelta(**delta)


class FakeTimer:
    def __init__(self, start: float = 1000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class FakeUpstream:
    """Stands in for the console API behind ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Route] = {}
        self.signin_cookies: list[str] = [SESSION_COOKIE]

    def route(self, method: str, path: str, response: Route) -> None:
        self.routes[(method.upper(), path)] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.removeprefix(BASE_PATH)
        if request.method == "POST" and path == "/eaa/signin":
            route = self.routes.get(("POST", path))
            if route is not None:
                return route(request) if callable(route) else route
            headers = [("set-cookie", cookie) for cookie in self.signin_cookies]
            return httpx.Response(200, json={}, headers=headers)
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": f"no route for {request.method} {path}"})
        return route(request) if callable(route) else route

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def log(self) -> list[str]:
        return [f"{call.method} {call.url.path.removeprefix(BASE_PATH)}" for call in self.calls]

    def count(self, method: str, path: str) -> int:
        return self.log().count(f"{method} {path}")

    def signins(self) -> int:
        return self.count("POST", "/eaa/signin")

    def bodies(self, method: str, path: str) -> list[Any]:
        return [
            json.loads(call.content)
            for call in self.calls
            if call.method == method and call.url.path.removeprefix(BASE_PATH) == path
        ]


def account_path(suffix: str) -> str:
    return f"/eaa/console/{ACCOUNT_ID}{suffix}"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(
        username="owner@example.com",
        password="secret",
        account_id=ACCOUNT_ID,
        menu_id=MENU_ID,
        api_base_url=BASE_URL,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def make_console(upstream: FakeUpstream, config: ClientConfig, clock: FakeClock, timer: FakeTimer):
    def _make() -> ConsoleClient:
        client = httpx.AsyncClient(base_url=BASE_URL + "/", transport=upstream.transport())
        return ConsoleClient(config, client=client, clock=clock, now=timer)

    return _make
