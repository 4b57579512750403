import json

import pytest

from order_desk.errors import AuthError, ValidationError
from order_desk.storage import TokenStorage

pytestmark = pytest.mark.anyio


def test_token_storage_round_trip(engine, desk):
    storage = TokenStorage(engine, "token")
    assert storage.load() is None
    storage.save("abc")
    storage.save("def")
    assert storage.load() == "def"
    storage.clear()
    storage.clear()
    assert storage.load() is None


async def test_sign_in_persists_token_and_user(desk, backend):
    backend.on(
        "POST",
        "/session",
        json={"id": 7, "name": "Ana", "email": "ana@pizza.com", "token": "jwt-1"},
    )
    seen = []
    desk.session.on_sign_in = seen.append

    user = await desk.session.sign_in("ana@pizza.com", "pass")

    assert user.id == "7"
    assert desk.session.user == user
    assert desk.tokens.load() == "jwt-1"
    assert desk.session.is_authenticated
    assert seen == [user]
    body = json.loads(backend.calls("POST", "/session")[0].content)
    assert body == {"email": "ana@pizza.com", "password": "pass"}


async def test_rejected_sign_in_changes_nothing(desk, backend):
    backend.on("POST", "/session", status_code=400, json={"error": "User/password incorrect"})

    with pytest.raises(AuthError) as excinfo:
        await desk.session.sign_in("ana@pizza.com", "wrong")

    assert excinfo.value.message == "User/password incorrect"
    assert excinfo.value.status_code == 400
    assert desk.session.user is None
    assert desk.tokens.load() is None


async def test_sign_in_requires_credentials(desk, backend):
    with pytest.raises(ValidationError):
        await desk.session.sign_in("", "pass")
    assert backend.requests == []


async def test_sign_out_is_idempotent(desk, backend):
    backend.on(
        "POST",
        "/session",
        json={"id": "1", "name": "Ana", "email": "ana@pizza.com", "token": "jwt-1"},
    )
    await desk.session.sign_in("ana@pizza.com", "pass")

    desk.session.sign_out()
    desk.session.sign_out()

    assert desk.session.user is None
    assert not desk.session.is_authenticated


async def test_restore_loads_user_for_stored_token(signed_in_desk, backend):
    backend.on("GET", "/detailUser", json={"id": "1", "name": "Ana", "email": "ana@pizza.com"})

    user = await signed_in_desk.session.restore()

    assert user.name == "Ana"
    request = backend.calls("GET", "/detailUser")[0]
    assert request.headers["Authorization"] == "Bearer secret-token"


async def test_restore_drops_rejected_token(signed_in_desk, backend):
    backend.on("GET", "/detailUser", status_code=401, json={"error": "Token invalid"})

    assert await signed_in_desk.session.restore() is None
    assert signed_in_desk.tokens.load() is None


async def test_restore_without_token_skips_backend(desk, backend):
    assert await desk.session.restore() is None
    assert backend.requests == []
