# app/common/exceptions.py

from typing import Any, Optional


class AppError(ValueError):
    """Base class for business errors raised by the service layer."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(AppError):
    """A referenced partner, product, transaction or entity does not exist."""

    status_code = 404


class ValidationError(AppError):
    """A cross-field or cross-entity rule was violated."""

    status_code = 400


class InsufficientStockError(AppError):
    """A sale would drive derived stock below zero. `details` lists the shortages."""

    status_code = 400


class ConflictError(AppError):
    """A unique key collided at the store level."""

    status_code = 409
