from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Annotated, List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Response, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware

from . import schemas
from .config import get_settings
from .desk import Desk
from .errors import AuthError, RequestError, TransportError, ValidationError

logger = logging.getLogger(__name__)

app = FastAPI(title="Order Desk", version="0.1.0")
settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_desk: Desk | None = None


@app.on_event("startup")
def on_startup() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    if _desk is not None:
        await _desk.aclose()


async def get_desk() -> Desk:
    global _desk
    if _desk is None:
        _desk = Desk(settings)
        logger.info("order desk ready against %s", settings.api_base_url)
    return _desk


async def require_session(desk: Annotated[Desk, Depends(get_desk)]) -> Desk:
    if not desk.session.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in",
        )
    return desk


SignedIn = Annotated[Desk, Depends(require_session)]


@contextmanager
def error_boundary():
    try:
        yield
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message) from exc
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message) from exc
    except RequestError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except TransportError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc


def _order_view(desk: Desk, order_id: str) -> schemas.OrderView:
    order = desk.orders.get(order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return schemas.OrderView.from_order(order)


@app.get("/health")
def health_check() -> dict:
    return {"status": "ok"}


# -------------------------
# Session
# -------------------------

@app.post("/session", response_model=schemas.User)
async def sign_in(
    payload: schemas.SignInRequest,
    desk: Annotated[Desk, Depends(get_desk)],
):
    with error_boundary():
        return await desk.session.sign_in(payload.email, payload.password)


@app.get("/session", response_model=schemas.User)
async def current_user(desk: SignedIn):
    user = desk.session.user
    if user is None:
        with error_boundary():
            user = await desk.session.restore()
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
    return user


@app.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(desk: Annotated[Desk, Depends(get_desk)]):
    desk.sign_out()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -------------------------
# Categories and products
# -------------------------

@app.get("/categories", response_model=List[schemas.Category])
async def list_categories(desk: SignedIn):
    with error_boundary():
        return await desk.categories.refresh()


@app.post("/categories", response_model=schemas.Category, status_code=status.HTTP_201_CREATED)
async def create_category(payload: schemas.CategoryCreate, desk: SignedIn):
    with error_boundary():
        return await desk.categories.create(payload.name)


@app.get("/products", response_model=List[schemas.Product])
async def list_products(category_id: str, desk: SignedIn):
    with error_boundary():
        if category_id != desk.products.category_id:
            return await desk.products.select_category(category_id)
        return await desk.products.refresh()


@app.post("/products", response_model=schemas.Product, status_code=status.HTTP_201_CREATED)
async def create_product(
    desk: SignedIn,
    name: Annotated[str, Form()] = "",
    price: Annotated[str, Form()] = "",
    description: Annotated[str, Form()] = "",
    category_id: Annotated[str, Form()] = "",
    banner: Annotated[Optional[UploadFile], File()] = None,
):
    with error_boundary():
        upload = None
        if banner is not None and banner.filename:
            upload = schemas.validate_form(
                schemas.Banner,
                filename=banner.filename,
                content=await banner.read(),
                content_type=banner.content_type or "",
            )
        return await desk.products.create(name, price, description, category_id, upload)


# -------------------------
# Orders
# -------------------------

@app.get("/orders", response_model=List[schemas.OrderView])
async def list_orders(desk: SignedIn):
    with error_boundary():
        orders = await desk.orders.refresh()
    return [schemas.OrderView.from_order(order) for order in orders]


@app.post("/orders", response_model=schemas.OrderView, status_code=status.HTTP_201_CREATED)
async def create_order(payload: schemas.OrderCreate, desk: SignedIn):
    with error_boundary():
        order = await desk.orders.create_order(payload.name, payload.table)
    return schemas.OrderView.from_order(order)


@app.get("/orders/{order_id}", response_model=schemas.OrderView)
async def order_detail(order_id: str, desk: SignedIn):
    with error_boundary():
        await desk.orders.load_detail(order_id)
        desk.orders.select(order_id)
    return _order_view(desk, order_id)


@app.delete("/orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_order(order_id: str, desk: SignedIn):
    with error_boundary():
        await desk.orders.discard(order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/orders/{order_id}/items", response_model=schemas.OrderView, status_code=status.HTTP_201_CREATED)
async def add_item(order_id: str, payload: schemas.ItemCreate, desk: SignedIn):
    with error_boundary():
        await desk.orders.add_item(order_id, payload.product_id, payload.amount)
    return _order_view(desk, order_id)


@app.put("/orders/{order_id}/items/{item_id}", response_model=schemas.OrderView)
async def update_item(order_id: str, item_id: str, payload: schemas.ItemUpdate, desk: SignedIn):
    with error_boundary():
        await desk.orders.update_item_amount(order_id, item_id, payload.amount)
    return _order_view(desk, order_id)


@app.delete("/orders/{order_id}/items/{item_id}", response_model=schemas.OrderView)
async def remove_item(order_id: str, item_id: str, desk: SignedIn):
    with error_boundary():
        desk.orders.remove_item(order_id, item_id)
    return _order_view(desk, order_id)


@app.put("/orders/{order_id}/send", response_model=schemas.OrderView)
async def send_order(order_id: str, desk: SignedIn):
    with error_boundary():
        await desk.orders.send(order_id)
    return _order_view(desk, order_id)


@app.put("/orders/{order_id}/finish")
async def finish_order(order_id: str, desk: SignedIn) -> dict:
    with error_boundary():
        finished = await desk.orders.finish(order_id)
    return {"finished": finished, "selected_id": desk.orders.selected_id}


# -------------------------
# Notifications
# -------------------------

@app.get("/toast", response_model=schemas.ToastRead)
async def read_toast(desk: SignedIn):
    return schemas.ToastRead(**desk.toast.as_dict())


@app.delete("/toast", status_code=status.HTTP_204_NO_CONTENT)
async def hide_toast(desk: SignedIn):
    desk.toast.hide()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
