from __future__ import annotations

from typing import Callable, Optional

import httpx
from sqlalchemy.engine import Engine

from .caches import CategoryCache, ProductCache
from .config import Settings
from .database import get_engine, init_db
from .gateway import RemoteGateway
from .notifier import Toast
from .schemas import User
from .session import SessionStore
from .storage import TokenStorage
from .synchronizer import OrderSynchronizer


class Desk:
    """Everything one signed-in user works with: session, caches, orders."""

    def __init__(
        self,
        settings: Settings,
        *,
        engine: Optional[Engine] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_sign_in: Optional[Callable[[User], None]] = None,
    ) -> None:
        engine = engine or get_engine()
        init_db(engine)
        self.tokens = TokenStorage(engine, settings.token_storage_key)
        self.gateway = RemoteGateway(
            settings.api_base_url,
            self.tokens,
            timeout=settings.request_timeout,
            transport=transport,
        )
        self.toast = Toast()
        self.session = SessionStore(self.gateway, self.tokens, on_sign_in)
        self._reset_pages()

    def _reset_pages(self) -> None:
        self.categories = CategoryCache(self.gateway, self.toast)
        self.products = ProductCache(self.gateway, self.toast)
        self.orders = OrderSynchronizer(self.gateway, self.toast, self.products)

    def sign_out(self) -> None:
        self.session.sign_out()
        self.toast.hide()
        self._reset_pages()

    async def aclose(self) -> None:
        await self.gateway.aclose()
