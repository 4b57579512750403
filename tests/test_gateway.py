import httpx
import pytest

from order_desk.errors import RequestError, TransportError
from order_desk.gateway import Err, Ok
from order_desk.schemas import Banner, ProductForm

pytestmark = pytest.mark.anyio


async def test_no_authorization_header_without_token(desk, backend):
    backend.on("GET", "/listCategory", json=[])

    await desk.gateway.list_categories()

    assert "Authorization" not in backend.requests[0].headers


async def test_token_is_read_at_call_time(desk, backend):
    backend.on("GET", "/listCategory", json=[])

    desk.tokens.save("first")
    await desk.gateway.list_categories()
    desk.tokens.save("second")
    await desk.gateway.list_categories()

    headers = [r.headers["Authorization"] for r in backend.requests]
    assert headers == ["Bearer first", "Bearer second"]


async def test_success_is_parsed(signed_in_desk, backend):
    backend.on("GET", "/listCategory", json=[{"id": 1, "name": "Pizzas"}])

    result = await signed_in_desk.gateway.list_categories()

    assert isinstance(result, Ok)
    assert [(c.id, c.name) for c in result.value] == [("1", "Pizzas")]


async def test_application_error_is_returned_verbatim(signed_in_desk, backend):
    backend.on("POST", "/category", status_code=400, json={"error": "Name invalid"})

    result = await signed_in_desk.gateway.create_category("")

    assert isinstance(result, Err)
    assert result.error == RequestError(400, "Name invalid")


async def test_connection_failure_raises_transport_error(signed_in_desk, backend):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend.on("GET", "/orders", handler=refuse)

    with pytest.raises(TransportError):
        await signed_in_desk.gateway.list_orders()


async def test_server_error_raises_transport_error(signed_in_desk, backend):
    backend.on("GET", "/orders", status_code=502, json={"error": "bad gateway"})

    with pytest.raises(TransportError):
        await signed_in_desk.gateway.list_orders()


async def test_malformed_payload_raises_transport_error(signed_in_desk, backend):
    backend.on("GET", "/orders", json={"unexpected": True})

    with pytest.raises(TransportError):
        await signed_in_desk.gateway.list_orders()


async def test_list_products_scopes_by_category(signed_in_desk, backend):
    backend.on("GET", "/category/product", json=[])

    await signed_in_desk.gateway.list_products("C1")

    assert backend.requests[0].url.params["category_id"] == "C1"


async def test_create_product_sends_multipart(signed_in_desk, backend):
    backend.on(
        "POST",
        "/product",
        json={"id": "P9", "name": "Calzone", "price": "30", "description": "Big", "category_id": "C1"},
    )
    form = ProductForm(name="Calzone", price="30", description="Big", category_id="C1")
    banner = Banner(filename="calzone.png", content=b"\x89PNG", content_type="image/png")

    result = await signed_in_desk.gateway.create_product(form, banner)

    request = backend.requests[0]
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    assert b'name="banner"; filename="calzone.png"' in request.content
    assert b'name="category_id"' in request.content
    assert result.value.id == "P9"


async def test_order_detail_accepts_item_list(signed_in_desk, backend):
    backend.on(
        "GET",
        "/order/detail",
        json=[{"id": "i1", "amount": 2, "product": {"id": "P1", "name": "Pizza", "price": 25}}],
    )

    result = await signed_in_desk.gateway.order_detail("10")

    assert backend.requests[0].url.params["order_id"] == "10"
    assert [(i.id, i.amount, i.product.name) for i in result.value] == [("i1", 2, "Pizza")]


async def test_delete_item_targets_item_id(signed_in_desk, backend):
    backend.on("DELETE", "/order/delete", json={"id": "i1"})

    result = await signed_in_desk.gateway.delete_item("i1")

    assert isinstance(result, Ok)
    assert backend.requests[0].url.params["item_id"] == "i1"
