from __future__ import annotations


class OrderDeskError(Exception):
    """Base class for every error raised by the order desk."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(OrderDeskError, ValueError):
    """A local precondition failed; no request was sent."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class RequestError(OrderDeskError):
    """The backend answered with an application error (HTTP 4xx)."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"RequestError(status_code={self.status_code!r}, message={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequestError):
            return NotImplemented
        return (self.status_code, self.message) == (other.status_code, other.message)

    __hash__ = OrderDeskError.__hash__


class AuthError(RequestError):
    """Sign-in was rejected by the backend."""


class TransportError(OrderDeskError):
    """No usable response was obtained from the backend."""
