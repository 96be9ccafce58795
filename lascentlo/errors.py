"""
Shop errors — one error type with a machine-readable kind.

Domain code returns Result[T, ShopError]. ShopError is also an Exception,
so the HTTP layer (and the rare place that must abort a transaction) can raise it.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_SIZE = "invalid_size"
    INSUFFICIENT_STOCK = "insufficient_stock"
    STOCK_EXHAUSTED = "stock_exhausted"
    PAYMENT_PROCESSOR = "payment_processor_error"
    PAYMENT_UNAVAILABLE = "payment_processor_unavailable"
    PAYMENT_NOT_SETTLED = "payment_not_settled"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    VALIDATION = "validation_error"
    ILLEGAL_TRANSITION = "illegal_transition"
    CONFLICT = "conflict"
    STORAGE = "storage_error"


# Kinds a caller may simply retry later
RETRYABLE = frozenset({ErrorKind.PAYMENT_UNAVAILABLE, ErrorKind.CONFLICT})


class ShopError(Exception):
    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE

    def __repr__(self) -> str:
        return f"ShopError({self.kind.value}, {self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ShopError):
            return NotImplemented
        return (self.kind, self.message) == (other.kind, other.message)

    def __hash__(self) -> int:
        return hash((self.kind, self.message))


class Errors:
    @staticmethod
    def not_found(what: str, ident: str) -> ShopError:
        return ShopError(ErrorKind.NOT_FOUND, f"{what} {ident} not found")

    @staticmethod
    def invalid_size(product_name: str, value: float, unit: str) -> ShopError:
        return ShopError(
            ErrorKind.INVALID_SIZE,
            f"Size {value:g}{unit} is not available for {product_name}",
        )

    @staticmethod
    def insufficient_stock(product_name: str, available: int, requested: int) -> ShopError:
        return ShopError(
            ErrorKind.INSUFFICIENT_STOCK,
            f"Insufficient stock for {product_name}: {available} available, {requested} requested",
        )

    @staticmethod
    def stock_exhausted(order_id: str, refunded: bool = True) -> ShopError:
        outcome = "the payment was refunded" if refunded else "a refund is pending"
        return ShopError(
            ErrorKind.STOCK_EXHAUSTED,
            f"Stock ran out before order {order_id} could be confirmed, {outcome}",
        )

    @staticmethod
    def payment_processor(msg: str = "Payment processor request failed") -> ShopError:
        return ShopError(ErrorKind.PAYMENT_PROCESSOR, msg)

    @staticmethod
    def payment_unavailable() -> ShopError:
        return ShopError(
            ErrorKind.PAYMENT_UNAVAILABLE,
            "Payment processor did not respond in time, please retry",
        )

    @staticmethod
    def payment_not_settled(status: str) -> ShopError:
        return ShopError(
            ErrorKind.PAYMENT_NOT_SETTLED,
            f"Payment has not succeeded (processor status: {status})",
        )

    @staticmethod
    def unauthorized(msg: str = "Not authorized") -> ShopError:
        return ShopError(ErrorKind.UNAUTHORIZED, msg)

    @staticmethod
    def forbidden(msg: str = "Not allowed to access this resource") -> ShopError:
        return ShopError(ErrorKind.FORBIDDEN, msg)

    @staticmethod
    def validation(msg: str) -> ShopError:
        return ShopError(ErrorKind.VALIDATION, msg)

    @staticmethod
    def illegal_transition(current: str, target: str) -> ShopError:
        return ShopError(
            ErrorKind.ILLEGAL_TRANSITION,
            f"Cannot move order from {current} to {target}",
        )

    @staticmethod
    def conflict(msg: str = "Resource was modified concurrently, please retry") -> ShopError:
        return ShopError(ErrorKind.CONFLICT, msg)

    @staticmethod
    def storage() -> ShopError:
        return ShopError(ErrorKind.STORAGE, "Could not save changes")


__all__ = ("ErrorKind", "RETRYABLE", "ShopError", "Errors")
