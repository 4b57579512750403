from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar, Union

import httpx
from pydantic import TypeAdapter

from .errors import RequestError, TransportError
from .schemas import (
    Banner,
    Category,
    CreatedRecord,
    Order,
    OrderItem,
    Product,
    ProductForm,
    SessionResponse,
    User,
)
from .storage import TokenStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")

_categories = TypeAdapter(List[Category])
_products = TypeAdapter(List[Product])
_orders = TypeAdapter(List[Order])
_items = TypeAdapter(List[OrderItem])


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: RequestError


Result = Union[Ok[T], Err]


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if body.get(key):
                return str(body[key])
    return response.text or response.reason_phrase


def _detail_items(payload: Any) -> List[OrderItem]:
    if isinstance(payload, dict):
        payload = payload.get("items") or []
    return _items.validate_python(payload)


class RemoteGateway:
    """Thin async wrappers around the order backend.

    Every call returns ``Ok`` with parsed data or ``Err`` with the backend's
    application error. Transport failures raise ``TransportError``.
    """

    def __init__(
        self,
        base_url: str,
        tokens: TokenStorage,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.tokens = tokens
        self.client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "RemoteGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _headers(self) -> dict:
        token = self.tokens.load()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        path: str,
        parse: Optional[Callable[[Any], T]] = None,
        **kwargs,
    ) -> Result[T]:
        try:
            response = await self.client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 500:
            logger.warning("%s %s answered %s", method, path, response.status_code)
            raise TransportError(f"{method} {path} answered {response.status_code}")
        if response.is_error:
            error = RequestError(response.status_code, _error_message(response))
            logger.info("%s %s rejected (%s): %s", method, path, error.status_code, error.message)
            return Err(error)

        try:
            payload = response.json() if response.content else None
            return Ok(parse(payload) if parse is not None else payload)
        except ValueError as exc:
            logger.warning("%s %s returned an unexpected payload: %s", method, path, exc)
            raise TransportError(f"{method} {path} returned an unexpected payload") from exc

    # -------------------------
    # Session
    # -------------------------

    async def authenticate(self, email: str, password: str) -> Result[SessionResponse]:
        return await self._request(
            "POST",
            "session",
            SessionResponse.model_validate,
            json={"email": email, "password": password},
        )

    async def fetch_user_detail(self) -> Result[User]:
        return await self._request("GET", "detailUser", User.model_validate)

    # -------------------------
    # Categories
    # -------------------------

    async def list_categories(self) -> Result[List[Category]]:
        return await self._request("GET", "listCategory", _categories.validate_python)

    async def create_category(self, name: str) -> Result[Category]:
        return await self._request("POST", "category", Category.model_validate, json={"name": name})

    # -------------------------
    # Products
    # -------------------------

    async def list_products(self, category_id: str) -> Result[List[Product]]:
        return await self._request(
            "GET",
            "category/product",
            _products.validate_python,
            params={"category_id": category_id},
        )

    async def create_product(self, form: ProductForm, banner: Banner | None = None) -> Result[Product]:
        files = None
        if banner is not None:
            files = {"banner": (banner.filename, banner.content, banner.content_type)}
        return await self._request(
            "POST",
            "product",
            Product.model_validate,
            data=form.model_dump(),
            files=files,
        )

    # -------------------------
    # Orders
    # -------------------------

    async def list_orders(self) -> Result[List[Order]]:
        return await self._request("GET", "orders", _orders.validate_python)

    async def order_detail(self, order_id: str) -> Result[List[OrderItem]]:
        return await self._request(
            "GET", "order/detail", _detail_items, params={"order_id": order_id}
        )

    async def create_order(self, name: str, table: int) -> Result[CreatedRecord]:
        return await self._request(
            "POST", "order", CreatedRecord.model_validate, json={"name": name, "table": table}
        )

    async def add_item(self, order_id: str, product_id: str, amount: int) -> Result[CreatedRecord]:
        body = {"order_id": order_id, "product_id": product_id, "amount": amount}
        return await self._request("POST", "order/add", CreatedRecord.model_validate, json=body)

    async def update_item(self, order_id: str, product_id: str, new_amount: int) -> Result[Any]:
        body = {"order_id": order_id, "product_id": product_id, "newAmount": new_amount}
        return await self._request("PUT", "order/update", json=body)

    async def send_order(self, order_id: str) -> Result[Any]:
        return await self._request("PUT", "order/send", json={"order_id": order_id})

    async def finish_order(self, order_id: str) -> Result[Any]:
        return await self._request("PUT", "order/finish", json={"order_id": order_id})

    async def delete_order(self, order_id: str) -> Result[Any]:
        return await self._request("DELETE", "order/delete", params={"order_id": order_id})

    async def delete_item(self, item_id: str) -> Result[Any]:
        return await self._request("DELETE", "order/delete", params={"item_id": item_id})
