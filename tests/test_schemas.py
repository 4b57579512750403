from decimal import Decimal

import pytest

from order_desk.errors import ValidationError
from order_desk.schemas import (
    Banner,
    Order,
    OrderForm,
    OrderStatus,
    OrderView,
    Product,
    derive_status,
    validate_form,
)


@pytest.mark.parametrize(
    ("draft", "finished", "expected"),
    [
        (True, False, OrderStatus.OPEN),
        (False, False, OrderStatus.PENDING),
        (False, True, OrderStatus.FINISHED),
        (True, True, OrderStatus.FINISHED),
    ],
)
def test_status_is_derived(draft, finished, expected):
    assert derive_status(draft, finished) is expected
    order = Order(id="1", table="1", draft=draft, finished=finished)
    assert order.status is expected


def test_order_from_backend_payload():
    order = Order.model_validate(
        {
            "id": 10,
            "table": 5,
            "name": None,
            "status": False,
            "draft": False,
            "items": None,
            "created_at": "2024-05-01T12:00:00.000Z",
        }
    )

    assert (order.id, order.table, order.name) == ("10", "5", "")
    assert order.items == []
    assert order.status is OrderStatus.PENDING
    assert order.created_at.year == 2024


def test_order_view_carries_label_and_status():
    order = Order(id="10", table="5", name="Ana")

    view = OrderView.from_order(order)

    assert view.label == "Ana - Mesa 5"
    assert view.model_dump()["status"] == "open"


def test_product_accepts_camel_case_category():
    product = Product.model_validate({"id": 1, "name": "Pizza", "price": 25.5, "categoryId": 3})

    assert product.category_id == "3"
    assert product.price == Decimal("25.5")


def test_validate_form_reports_field():
    with pytest.raises(ValidationError) as excinfo:
        validate_form(OrderForm, name="  ", table=3)

    assert excinfo.value.field == "name"
    assert excinfo.value.message == "order name is required"


@pytest.mark.parametrize(
    ("content", "content_type"),
    [
        (b"x" * 5_000_001, "image/png"),
        (b"x", "image/gif"),
    ],
)
def test_banner_limits(content, content_type):
    with pytest.raises(ValidationError):
        validate_form(Banner, filename="banner", content=content, content_type=content_type)
