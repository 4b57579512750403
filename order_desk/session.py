from __future__ import annotations

import logging
from typing import Callable, Optional

from .errors import AuthError
from .gateway import Err, RemoteGateway
from .schemas import SignInForm, User, validate_form
from .storage import TokenStorage

logger = logging.getLogger(__name__)


class SessionStore:
    """Current user and bearer token.

    Only the token is persisted. It is read back from storage on every
    access so that a sign-out elsewhere is seen immediately.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        tokens: TokenStorage,
        on_sign_in: Optional[Callable[[User], None]] = None,
    ) -> None:
        self.gateway = gateway
        self.tokens = tokens
        self.on_sign_in = on_sign_in
        self.user: Optional[User] = None

    @property
    def token(self) -> Optional[str]:
        return self.tokens.load()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    async def sign_in(self, email: str, password: str) -> User:
        form = validate_form(SignInForm, email=email, password=password)
        result = await self.gateway.authenticate(form.email, form.password)
        if isinstance(result, Err):
            logger.info("sign-in rejected for %s: %s", form.email, result.error.message)
            raise AuthError(result.error.status_code, result.error.message)

        session = result.value
        self.tokens.save(session.token)
        self.user = User(id=session.id, name=session.name, email=session.email)
        logger.info("signed in as %s", self.user.email)
        if self.on_sign_in is not None:
            self.on_sign_in(self.user)
        return self.user

    async def restore(self) -> Optional[User]:
        """Reload the user behind a persisted token, if there is one."""
        if not self.is_authenticated:
            return None
        result = await self.gateway.fetch_user_detail()
        if isinstance(result, Err):
            logger.info("stored token rejected: %s", result.error.message)
            self.sign_out()
            return None
        self.user = result.value
        return self.user

    def sign_out(self) -> None:
        self.tokens.clear()
        self.user = None
