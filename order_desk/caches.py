from __future__ import annotations

import logging
from typing import Awaitable, Generic, List, Optional, TypeVar

from .errors import TransportError
from .gateway import Err, RemoteGateway, Result
from .notifier import Toast
from .schemas import Banner, Category, CategoryForm, Product, ProductForm, validate_form

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestCounter:
    """Numbers outgoing requests so late responses can be recognised.

    A response is accepted only if it was issued after the last accepted one.
    """

    def __init__(self) -> None:
        self.issued = 0
        self.applied = 0

    def next(self) -> int:
        self.issued += 1
        return self.issued

    def accept(self, number: int) -> bool:
        if number <= self.applied:
            return False
        self.applied = number
        return True

    def is_current(self, number: int) -> bool:
        return number > self.applied

    def invalidate(self) -> None:
        self.applied = self.issued


class PageState:
    """Shared plumbing for state owned by one page: gateway calls and toasts."""

    def __init__(self, gateway: RemoteGateway, toast: Toast) -> None:
        self.gateway = gateway
        self.toast = toast

    def _unwrap(self, result: Result[T]) -> T:
        if isinstance(result, Err):
            self.toast.error(result.error.message)
            raise result.error
        return result.value

    async def _call(self, pending: Awaitable[Result[T]]) -> T:
        try:
            result = await pending
        except TransportError as exc:
            self.toast.error(exc.message)
            raise
        return self._unwrap(result)

    async def _call_latest(
        self, counter: RequestCounter, pending: Awaitable[Result[T]]
    ) -> Optional[Result[T]]:
        """Await a numbered request.

        Returns None when a newer request on the same counter was applied in
        the meantime; stale outcomes, failures included, never reach the toast.
        Otherwise the raw result is returned for the caller to unwrap.
        """
        number = counter.next()
        try:
            result = await pending
        except TransportError as exc:
            if not counter.is_current(number):
                logger.info("%s: dropping stale failure #%s: %s", type(self).__name__, number, exc.message)
                return None
            self.toast.error(exc.message)
            raise
        if not counter.accept(number):
            logger.debug("%s: discarding stale response #%s", type(self).__name__, number)
            return None
        return result


class EntityCache(PageState, Generic[T]):
    """In-memory mirror of one server collection."""

    def __init__(self, gateway: RemoteGateway, toast: Toast) -> None:
        super().__init__(gateway, toast)
        self.items: List[T] = []
        self.requests = RequestCounter()

    def _fetch(self) -> Awaitable[Result[List[T]]]:
        raise NotImplementedError

    async def refresh(self) -> List[T]:
        result = await self._call_latest(self.requests, self._fetch())
        if result is None:
            return self.items
        self.items = list(self._unwrap(result))
        return self.items

    def get(self, item_id: str) -> Optional[T]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


class CategoryCache(EntityCache[Category]):
    def _fetch(self):
        return self.gateway.list_categories()

    async def create(self, name: str) -> Category:
        form = validate_form(CategoryForm, name=name)
        category = await self._call(self.gateway.create_category(form.name))
        self.items = [*self.items, category]
        self.toast.show(f'Category "{category.name}" created')
        return category


class ProductCache(EntityCache[Product]):
    """Products of the currently selected category."""

    def __init__(self, gateway: RemoteGateway, toast: Toast) -> None:
        super().__init__(gateway, toast)
        self.category_id: Optional[str] = None

    def _fetch(self):
        return self.gateway.list_products(self.category_id or "")

    async def refresh(self) -> List[Product]:
        if not self.category_id:
            return self.items
        return await super().refresh()

    async def select_category(self, category_id: str) -> List[Product]:
        if category_id == self.category_id:
            return self.items
        self.category_id = category_id
        self.items = []
        self.requests.invalidate()
        return await self.refresh()

    async def create(
        self,
        name: str,
        price: str,
        description: str,
        category_id: str,
        banner: Banner | None = None,
    ) -> Product:
        form = validate_form(
            ProductForm,
            name=name,
            price=price,
            description=description,
            category_id=category_id,
        )
        product = await self._call(self.gateway.create_product(form, banner))
        if product.category_id == self.category_id:
            self.items = [*self.items, product]
        self.toast.show(f'Product "{product.name}" created')
        return product
