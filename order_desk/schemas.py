from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional, Type, TypeVar

import pydantic
from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from .errors import ValidationError

PRICE_PATTERN = re.compile(r"^\d+(\.\d{1,2})?$")
MAX_BANNER_SIZE = 5_000_000
ACCEPTED_BANNER_TYPES = ("image/jpeg", "image/png", "image/webp")

FormT = TypeVar("FormT", bound=BaseModel)


def _as_str(value):
    if value is None:
        return value
    return str(value)


# Backend ids and table numbers arrive as either ints or strings.
RemoteId = Annotated[str, BeforeValidator(_as_str)]


class OrderStatus(str, Enum):
    OPEN = "open"
    PENDING = "pending"
    FINISHED = "finished"


def derive_status(draft: bool, finished: bool) -> OrderStatus:
    if finished:
        return OrderStatus.FINISHED
    if draft:
        return OrderStatus.OPEN
    return OrderStatus.PENDING


# -------------------------
# Backend payloads
# -------------------------

class User(BaseModel):
    id: RemoteId
    name: str
    email: str


class SessionResponse(User):
    token: str


class Category(BaseModel):
    id: RemoteId
    name: str


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: RemoteId
    name: str
    price: Decimal
    description: str = ""
    category_id: RemoteId = Field(default="", validation_alias=AliasChoices("category_id", "categoryId"))
    banner: Optional[str] = None


class OrderItem(BaseModel):
    id: RemoteId
    product: Product
    amount: int = Field(ge=1)


class Order(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: RemoteId
    table: RemoteId
    name: str = ""
    draft: bool = True
    finished: bool = Field(default=False, validation_alias=AliasChoices("finished", "status"))
    items: List[OrderItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, value):
        return value or ""

    @field_validator("created_at", mode="before")
    @classmethod
    def blank_created_at(cls, value):
        return value or None

    @field_validator("items", mode="before")
    @classmethod
    def default_items(cls, value):
        return value or []

    @property
    def status(self) -> OrderStatus:
        return derive_status(self.draft, self.finished)

    @property
    def label(self) -> str:
        return f"{self.name} - Mesa {self.table}"


class OrderView(BaseModel):
    id: RemoteId
    table: str
    name: str
    label: str
    status: OrderStatus
    draft: bool
    items: List[OrderItem]
    created_at: Optional[datetime] = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderView":
        return cls(
            id=order.id,
            table=order.table,
            name=order.name,
            label=order.label,
            status=order.status,
            draft=order.draft,
            items=order.items,
            created_at=order.created_at,
        )


class CreatedRecord(BaseModel):
    id: RemoteId
    created_at: Optional[datetime] = None


# -------------------------
# Forms
# -------------------------

class SignInForm(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class CategoryForm(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def require_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("category name is required")
        return value


class ProductForm(BaseModel):
    name: str
    price: str
    description: str
    category_id: str

    @field_validator("name", "description", "category_id")
    @classmethod
    def require_text(cls, value: str, info) -> str:
        value = value.strip()
        if not value:
            raise ValueError(f"{info.field_name} is required")
        return value

    @field_validator("price")
    @classmethod
    def check_price(cls, value: str) -> str:
        value = value.strip()
        if not PRICE_PATTERN.match(value):
            raise ValueError("invalid price format")
        return value


class Banner(BaseModel):
    filename: str
    content: bytes
    content_type: str

    @field_validator("content")
    @classmethod
    def check_size(cls, value: bytes) -> bytes:
        if len(value) > MAX_BANNER_SIZE:
            raise ValueError("banner must be at most 5MB")
        return value

    @field_validator("content_type")
    @classmethod
    def check_type(cls, value: str) -> str:
        if value not in ACCEPTED_BANNER_TYPES:
            raise ValueError("only .jpg, .jpeg, .png and .webp banners are supported")
        return value


class OrderForm(BaseModel):
    name: str
    table: int = Field(ge=1)

    @field_validator("name")
    @classmethod
    def require_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("order name is required")
        return value


class ItemForm(BaseModel):
    product_id: str
    amount: int = Field(ge=1)


def validate_form(model: Type[FormT], **data) -> FormT:
    """Build a form model, turning pydantic errors into a local ValidationError."""
    try:
        return model(**data)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = first.get("msg", str(exc))
        raise ValidationError(message.removeprefix("Value error, "), field=field) from exc


# -------------------------
# Web request bodies
# -------------------------

class SignInRequest(BaseModel):
    email: str
    password: str


class CategoryCreate(BaseModel):
    name: str


class OrderCreate(BaseModel):
    name: str
    table: int | str


class ItemCreate(BaseModel):
    product_id: str
    amount: int


class ItemUpdate(BaseModel):
    amount: int


class ToastRead(BaseModel):
    message: Optional[str] = None
    is_error: bool = False
