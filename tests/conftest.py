from __future__ import annotations

import inspect

import httpx
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from order_desk.config import Settings
from order_desk.desk import Desk

PIZZA = {
    "id": "P1",
    "name": "Pizza",
    "price": "25.00",
    "description": "Mozzarella",
    "banner": "pizza.png",
    "category_id": "C1",
}
SODA = {
    "id": "P2",
    "name": "Soda",
    "price": "6.50",
    "description": "Can",
    "banner": None,
    "category_id": "C2",
}


class FakeBackend:
    """Routes requests by (method, path) and records everything it receives."""

    def __init__(self) -> None:
        self.routes = {}
        self.requests: list[httpx.Request] = []

    def on(self, method, path, status_code=200, json=None, handler=None):
        if handler is None:
            def handler(request, status_code=status_code, json=json):
                return httpx.Response(status_code, json=json)
        self.routes[(method, path)] = handler

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": f"no route for {request.method} {request.url.path}"})
        response = route(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    def calls(self, method, path) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def settings():
    return Settings(api_base_url="http://backend.test", token_storage_key="token")


@pytest.fixture
def desk(settings, engine, backend):
    return Desk(settings, engine=engine, transport=backend.transport())


@pytest.fixture
def signed_in_desk(desk):
    desk.tokens.save("secret-token")
    return desk
