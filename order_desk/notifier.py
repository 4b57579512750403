import logging
from typing import Optional

logger = logging.getLogger(__name__)


class Toast:
    """Single transient notification slot shown to the user.

    A new message replaces the current one; ``hide`` dismisses it.
    """

    def __init__(self) -> None:
        self.message: Optional[str] = None
        self.is_error = False

    def show(self, message: str) -> None:
        logger.info("toast: %s", message)
        self.message = message
        self.is_error = False

    def error(self, message: str) -> None:
        logger.warning("toast error: %s", message)
        self.message = message
        self.is_error = True

    def hide(self) -> None:
        self.message = None
        self.is_error = False

    def as_dict(self) -> dict:
        return {"message": self.message, "is_error": self.is_error}
