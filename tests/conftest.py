import asyncio
from collections.abc import AsyncGenerator, Callable

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from antiproxy.gateway.dispatcher import Dispatcher
from antiproxy.gateway.rate_limiter import MinIntervalRateLimiter
from antiproxy.gateway.types import EndpointSet
from antiproxy.main import app

EP1 = "https://ep1.test/v1internal:streamGenerateContent?alt=sse"
EP2 = "https://ep2.test/v1internal:streamGenerateContent?alt=sse"


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class ScriptedUpstream:
    """MockTransport handler answering per host.

    Each host label (``ep1`` for ``ep1.test``) maps to (status, body), an
    httpx exception class to raise, or a callable taking the request and
    returning either of those or a ready httpx.Response.
    """

    def __init__(self, **script):
        self.script = script
        self.calls: list[httpx.Request] = []

    def calls_to(self, name: str) -> list[httpx.Request]:
        return [r for r in self.calls if r.url.host.split(".")[0] == name]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        action = self.script[request.url.host.split(".")[0]]
        if callable(action) and not isinstance(action, type):
            action = action(request)
            if asyncio.iscoroutine(action):
                action = await action
        if isinstance(action, type) and issubclass(action, Exception):
            raise action("scripted failure", request=request)
        if isinstance(action, httpx.Response):
            return action
        status, body = action
        return httpx.Response(status, text=body)


class CountingRateLimiter(MinIntervalRateLimiter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.charges = 0

    async def wait_turn(self) -> float:
        self.charges += 1
        return await super().wait_turn()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_dispatcher() -> Callable[..., Dispatcher]:
    def _make(
        upstream: ScriptedUpstream,
        endpoints: tuple[str, ...] = (EP1, EP2),
        min_interval: float = 0.0,
        clock: FakeClock | None = None,
        request_timeout: float | None = None,
    ) -> Dispatcher:
        client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
        if clock is not None:
            limiter = CountingRateLimiter(min_interval, clock=clock, sleep=clock.sleep)
        else:
            limiter = CountingRateLimiter(min_interval)
        return Dispatcher(EndpointSet(endpoints), client, limiter, request_timeout=request_timeout)

    return _make


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
