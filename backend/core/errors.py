"""Structured API errors raised by the account core."""

from __future__ import annotations

import traceback
from collections.abc import Sequence
from typing import Any

from fastapi import status
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    field: str | None = None
    message: str


class ErrorResponse(BaseModel):
    """Uniform error payload returned to API callers."""

    status_code: int
    message: str
    success: bool = False
    data: Any = None
    errors: list[ErrorDetail] = Field(default_factory=list)
    stack: str | None = None


class ApiError(Exception):
    """Base error carrying an HTTP status code and per-field details.

    Every failure surfaced by the core is an ``ApiError`` subclass so a
    transport layer can render it without knowing where it came from.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        errors: Sequence[ErrorDetail] = (),
        stack: str | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if status_code is not None:
            self.status_code = status_code
        self.success = False
        self.data = None
        self.errors = list(errors)
        self._stack = stack

    @property
    def stack(self) -> str:
        if self._stack:
            return self._stack
        return "".join(traceback.format_exception(type(self), self, self.__traceback__))

    def to_response(self, *, include_stack: bool = False) -> ErrorResponse:
        return ErrorResponse(
            status_code=self.status_code,
            message=self.message,
            errors=self.errors,
            stack=self.stack if include_stack else None,
        )


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    @classmethod
    def duplicate(cls, field: str | None = None) -> "ValidationError":
        return cls(
            "User with that username or email already exists",
            status_code=status.HTTP_409_CONFLICT,
            errors=[ErrorDetail(field=field, message="Value already in use")],
        )


class HashingError(ApiError):
    default_message = "Password hashing failed"


class TokenInvalid(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid token"


class TokenExpired(TokenInvalid):
    default_message = "Token expired"


class UploadError(ApiError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "File upload failed"


class UniquenessError(Exception):
    """Raised by a repository when a unique constraint rejects a write."""

    def __init__(self, field: str | None = None) -> None:
        self.field = field
        super().__init__(f"Unique constraint violated on {field or 'unknown field'}")


__all__ = [
    "ApiError",
    "ErrorDetail",
    "ErrorResponse",
    "HashingError",
    "TokenExpired",
    "TokenInvalid",
    "UniquenessError",
    "UploadError",
    "ValidationError",
]
