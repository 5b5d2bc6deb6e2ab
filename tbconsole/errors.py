from __future__ import annotations


class RequestError(Exception):
    """Failure reported by the backend or the transport."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    @property
    def unauthorized(self) -> bool:
        return self.status == 401

    def __repr__(self) -> str:
        return f"RequestError(status={self.status!r}, message={self.message!r})"


class ValidationError(ValueError):
    """Client-side form check that failed before any network call."""

    @property
    def message(self) -> str:
        return str(self)
