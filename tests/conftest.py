"""
pytest configuration and shared fixtures for the OPS client tests.

Provides a fake OPS server behind `httpx.MockTransport`, a controllable
clock and a recording sleep so no test waits on real time.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from patent_ops.core.config import OPSConfig
from patent_ops.tools.ops_client import PatentApiClient

FIXTURES_DIR = Path(__file__).parent / "fixtures"

BASE_URL = "https://ops.test/3.2/rest-services"
AUTH_URL = "https://ops.test/3.2/auth/accesstoken"
BASE_PATH = "/3.2/rest-services"

Responder = Callable[[httpx.Request], httpx.Response]


def load_fixture(name: str) -> Dict[str, Any]:
    with (FIXTURES_DIR / name).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def respond(status: int = 200, json_body: Any = None, **kwargs: Any) -> Responder:
    """Build a responder returning a fresh response on every call."""

    def _responder(request: httpx.Request) -> httpx.Response:
        if json_body is not None:
            return httpx.Response(status, json=json_body, **kwargs)
        return httpx.Response(status, **kwargs)

    return _responder


def sequence(*responders: Responder) -> Responder:
    """Responder that walks through `responders`, repeating the last one."""
    remaining = list(responders)

    def _responder(request: httpx.Request) -> httpx.Response:
        current = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        return current(request)

    return _responder


def token_body(access_token: str = "token-1", expires_in: Any = 3600) -> Dict[str, Any]:
    return {
        "access_token": access_token,
        "token_type": "BearerToken",
        "expires_in": expires_in,
        "scope": "",
    }


class FakeClock:
    """Callable clock returning a settable epoch time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement recording requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(float(seconds))
        await asyncio.sleep(0)


class FakeOPS:
    """In-memory OPS server: token endpoint plus path-routed resources."""

    def __init__(self) -> None:
        self.token_requests: List[httpx.Request] = []
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Responder] = {}
        self._token_count = 0
        self.token_responder: Optional[Responder] = None

    def route(self, path: str, responder: Responder) -> None:
        self.routes[path] = responder

    def requests_for(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == BASE_PATH + path]

    def _default_token(self, request: httpx.Request) -> httpx.Response:
        self._token_count += 1
        return httpx.Response(200, json=token_body(f"token-{self._token_count}"))

    async def handler(self, request: httpx.Request) -> httpx.Response:
        # Yield once so concurrent callers can interleave like on a real socket
        await asyncio.sleep(0)
        if request.url.path.endswith("/auth/accesstoken"):
            self.token_requests.append(request)
            responder = self.token_responder or self._default_token
            return responder(request)

        self.requests.append(request)
        path = request.url.path[len(BASE_PATH):]
        responder = self.routes.get(path)
        if responder is None:
            return httpx.Response(404, json={"code": "SERVER.EntityNotFound"})
        return responder(request)


@pytest.fixture
def ops_config() -> OPSConfig:
    return OPSConfig(
        _env_file=None,
        EPO_CONSUMER_KEY="consumer-key",
        EPO_CONSUMER_SECRET="consumer-secret",
        EPO_OPS_BASE_URL=BASE_URL,
        EPO_OPS_AUTH_URL=AUTH_URL,
        MAX_REQUESTS_PER_MINUTE=0,
        MAX_RETRY_ATTEMPTS=3,
        RETRY_INITIAL_DELAY_MS=1000,
        RETRY_MAX_DELAY_MS=10000,
        RETRY_BACKOFF_FACTOR=2.0,
        RETRY_NETWORK_ERRORS=False,
        EPO_CALL_TIMEOUT_SECONDS=None,
    )


@pytest.fixture
def fake_ops() -> FakeOPS:
    return FakeOPS()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
async def http_client(fake_ops):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_ops.handler)) as client:
        yield client


@pytest.fixture
async def api_client(ops_config, http_client, clock, recording_sleep):
    async with PatentApiClient(
        config=ops_config,
        http_client=http_client,
        clock=clock,
        sleep=recording_sleep,
    ) as client:
        yield client
