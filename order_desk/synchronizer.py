from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .caches import EntityCache, ProductCache, RequestCounter
from .errors import RequestError, ValidationError
from .gateway import RemoteGateway
from .notifier import Toast
from .schemas import ItemForm, Order, OrderForm, OrderItem, OrderStatus, validate_form

logger = logging.getLogger(__name__)


class OrderEvent(str, Enum):
    SEND = "send"
    FINISH = "finish"
    ITEM_ADDED = "item_added"


TRANSITIONS: Dict[Tuple[OrderStatus, OrderEvent], OrderStatus] = {
    (OrderStatus.OPEN, OrderEvent.SEND): OrderStatus.PENDING,
    (OrderStatus.OPEN, OrderEvent.FINISH): OrderStatus.FINISHED,
    (OrderStatus.PENDING, OrderEvent.FINISH): OrderStatus.FINISHED,
}

# An order with items is no longer a draft.
FOLLOW_UPS: Dict[Tuple[OrderStatus, OrderEvent], OrderEvent] = {
    (OrderStatus.OPEN, OrderEvent.ITEM_ADDED): OrderEvent.SEND,
}


def next_status(order: Order, event: OrderEvent) -> OrderStatus:
    try:
        return TRANSITIONS[(order.status, event)]
    except KeyError:
        raise ValidationError(
            f"order {order.id} cannot {event.value} while {order.status.value}", field="status"
        ) from None


class OrderSynchronizer(EntityCache[Order]):
    """Active orders plus the order currently on display.

    Local state only changes once the backend has confirmed an operation,
    and then by the smallest patch the operation implies.
    """

    def __init__(self, gateway: RemoteGateway, toast: Toast, products: ProductCache) -> None:
        super().__init__(gateway, toast)
        self.products = products
        self.selected_id: Optional[str] = None
        self._order_requests: Dict[str, RequestCounter] = {}

    @property
    def orders(self) -> List[Order]:
        return self.items

    @property
    def selected(self) -> Optional[Order]:
        if self.selected_id is None:
            return None
        return self.get(self.selected_id)

    def _fetch(self):
        return self.gateway.list_orders()

    def _counter(self, order_id: str) -> RequestCounter:
        return self._order_requests.setdefault(order_id, RequestCounter())

    def _require(self, order_id: str) -> Order:
        order = self.get(order_id)
        if order is None:
            raise ValidationError(f"order {order_id} is not open", field="order_id")
        return order

    def _replace(self, order: Order) -> None:
        self.items = [order if current.id == order.id else current for current in self.items]

    def _remove(self, order_id: str) -> None:
        self.items = [order for order in self.items if order.id != order_id]
        self._order_requests.pop(order_id, None)
        if self.selected_id == order_id:
            self.selected_id = None

    def _current(self, order_id: str, operation: str) -> Optional[Order]:
        order = self.get(order_id)
        if order is None:
            logger.info("dropping %s response: order %s is gone", operation, order_id)
        return order

    async def refresh(self) -> List[Order]:
        await super().refresh()
        self.items = [order for order in self.items if order.status is not OrderStatus.FINISHED]
        if self.selected_id is not None and self.get(self.selected_id) is None:
            self.selected_id = None
        self._order_requests = {
            order_id: counter
            for order_id, counter in self._order_requests.items()
            if self.get(order_id) is not None
        }
        return self.items

    def select(self, order_id: str) -> Order:
        order = self._require(order_id)
        self.selected_id = order.id
        return order

    def clear_selection(self) -> None:
        self.selected_id = None

    async def load_detail(self, order_id: str) -> Optional[Order]:
        order = self._require(order_id)
        result = await self._call_latest(self._counter(order.id), self.gateway.order_detail(order.id))
        current = self._current(order.id, "detail")
        if current is None or result is None:
            return current
        items = self._unwrap(result)
        updated = current.model_copy(update={"items": list(items)})
        self._replace(updated)
        return updated

    async def create_order(self, name: str, table: int | str) -> Order:
        form = validate_form(OrderForm, name=name, table=table)
        created = await self._call(self.gateway.create_order(form.name, form.table))
        order = Order(
            id=created.id,
            table=str(form.table),
            name=form.name,
            draft=True,
            created_at=created.created_at,
        )
        if self.get(order.id) is None:
            self.items = [*self.items, order]
        else:
            self._replace(order)
        self.toast.show(f"New order created for {order.label}")
        return order

    async def add_item(self, order_id: str, product_id: str, amount: int) -> Optional[OrderItem]:
        form = validate_form(ItemForm, product_id=product_id, amount=amount)
        order = self._require(order_id)
        product = self.products.get(form.product_id)
        if product is None:
            raise ValidationError("select a product first", field="product_id")

        created = await self._call(self.gateway.add_item(order.id, product.id, form.amount))
        current = self._current(order.id, "add item")
        if current is None:
            return None
        item = OrderItem(id=created.id, product=product, amount=form.amount)
        self._replace(current.model_copy(update={"items": [*current.items, item]}))
        self.toast.show(f"{product.name} added to order")

        follow_up = FOLLOW_UPS.get((current.status, OrderEvent.ITEM_ADDED))
        if follow_up is OrderEvent.SEND:
            try:
                await self.send(order.id)
            except RequestError as exc:
                logger.info("order %s kept as draft: %s", order.id, exc.message)
        return item

    async def update_item_amount(self, order_id: str, item_id: str, amount: int) -> Optional[Order]:
        if amount < 0:
            raise ValidationError("amount must not be negative", field="amount")
        order = self._require(order_id)
        item = next((item for item in order.items if item.id == item_id), None)
        if item is None:
            raise ValidationError(f"item {item_id} is not in order {order_id}", field="item_id")

        result = await self._call_latest(
            self._counter(order.id), self.gateway.update_item(order.id, item.product.id, amount)
        )
        current = self._current(order.id, "update item")
        if current is None or result is None:
            return current
        self._unwrap(result)
        if amount == 0:
            items = [existing for existing in current.items if existing.id != item_id]
        else:
            items = [
                existing.model_copy(update={"amount": amount}) if existing.id == item_id else existing
                for existing in current.items
            ]
        updated = current.model_copy(update={"items": items})
        self._replace(updated)
        self.toast.show(f"Order {order.id} updated")
        return updated

    def remove_item(self, order_id: str, item_id: str) -> bool:
        # Local only: the backend is not told about single-item removals.
        order = self._require(order_id)
        items = [item for item in order.items if item.id != item_id]
        if len(items) == len(order.items):
            return False
        self._replace(order.model_copy(update={"items": items}))
        self.toast.show("Item removed from order")
        return True

    async def send(self, order_id: str) -> Optional[Order]:
        order = self._require(order_id)
        next_status(order, OrderEvent.SEND)
        result = await self._call_latest(self._counter(order.id), self.gateway.send_order(order.id))
        current = self._current(order.id, "send")
        if current is None or result is None:
            return current
        self._unwrap(result)
        updated = current.model_copy(update={"draft": False})
        self._replace(updated)
        self.toast.show(f'Order {order.id} is now "{updated.status.value}"')
        return updated

    async def finish(self, order_id: str) -> bool:
        order = self.get(order_id)
        if order is None:
            logger.debug("finish: order %s already closed", order_id)
            return False
        next_status(order, OrderEvent.FINISH)
        await self._call(self.gateway.finish_order(order.id))
        self._remove(order.id)
        self.toast.show(f"Order {order.id} finished")
        return True

    async def discard(self, order_id: str) -> bool:
        order = self._require(order_id)
        if order.status is not OrderStatus.OPEN:
            raise ValidationError(f"order {order.id} was already sent", field="status")
        await self._call(self.gateway.delete_order(order.id))
        self._remove(order.id)
        self.toast.show(f"Order {order.id} removed")
        return True
