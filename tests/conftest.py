"""Shared pytest fixtures: fake clock, in-memory storage and a scripted backend."""

import json
from typing import Any, Callable, Optional, Union

import httpx
import pytest

from storefront_server.config import Settings
from storefront_server.storage import MemoryStorage
from storefront_server.storefront import Storefront

API_URL = "http://api.test/api/v1"
API_PREFIX = "/api/v1"
PAYMENT_PREFIX = "/api"
NOW = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response], Exception]


class FakeBackend:
    """Route table standing in for the storefront backend."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Reply] = {}
        self.requests: list[httpx.Request] = []

    def route(
        self,
        method: str,
        path: str,
        status: int = 200,
        json_body: Any = None,
        reply: Optional[Reply] = None,
        prefix: str = API_PREFIX,
    ) -> None:
        if reply is None:
            reply = httpx.Response(status, json=json_body)
        self.routes[(method, prefix + path)] = reply

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"message": f"No route {request.url.path}"})
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply

    def calls(self, method: str, path: str, prefix: str = API_PREFIX) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == prefix + path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def redirects() -> list[str]:
    return []


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(api_url=API_URL, state_file=str(tmp_path / "state.json"))


@pytest.fixture()
def make_storefront(settings, storage, clock, backend, redirects):
    """Factory so a test can build a second session over the same storage."""

    def factory() -> Storefront:
        return Storefront(
            settings,
            storage=storage,
            clock=clock,
            transport=httpx.MockTransport(backend),
            redirect=redirects.append,
        )

    return factory


@pytest.fixture()
def storefront(make_storefront) -> Storefront:
    return make_storefront()


def login_reply(token: str = "tok-123", role: str = "user") -> dict[str, Any]:
    return {
        "status": "success",
        "token": token,
        "user": {"_id": "u1", "name": "Ada", "email": "ada@example.com", "role": role},
    }


def vase(item_id: str = "p1", price: str = "$25.00", quantity: int = 1) -> dict[str, Any]:
    return {"id": item_id, "name": "Vase", "price": price, "image": None, "quantity": quantity}
