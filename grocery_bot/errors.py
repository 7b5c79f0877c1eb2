"""Shop error types.

Every error here is recoverable: handlers report it to the user as a
one-shot message and leave local state as it was.
"""

from typing import Optional


class errmsg:
    """User-facing error messages."""

    UNAUTHENTICATED = "You must be logged in to do that."
    BILL_UNAUTHENTICATED = "You must be logged in to download the bill."
    MISSING_ADDRESS = "Please select an address"
    EMPTY_CART = "Your cart is empty!"
    INVALID_QUANTITY = "Quantity must be a whole number from 1 to {limit}"
    OUT_OF_STOCK = "This product is out of stock"
    UNKNOWN_PRODUCT = "This product is no longer available"
    TRANSPORT = "The store is unreachable right now. Please try again."
    TERMINAL_STATE = "Order is {status} and can no longer be changed"
    CANNOT_DELETE = "Cannot delete {status} orders"
    NOT_SELLER = "Sorry, you are not authorized to use the seller panel."
    INVALID_NAME = "Name must only contain letters."
    UNKNOWN_ORDER = "Order not found"


class ShopError(Exception):
    """Base class for shop errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class Unauthenticated(ShopError):
    """No user identity for an action that needs one."""

    def __init__(self, message: str = errmsg.UNAUTHENTICATED):
        super().__init__(message)


class MissingAddress(ShopError):
    def __init__(self, message: str = errmsg.MISSING_ADDRESS):
        super().__init__(message)


class EmptyCart(ShopError):
    def __init__(self, message: str = errmsg.EMPTY_CART):
        super().__init__(message)


class InvalidQuantity(ShopError):
    def __init__(self, limit: int, message: Optional[str] = None):
        super().__init__(message or errmsg.INVALID_QUANTITY.format(limit=limit))
        self.limit = limit


class OutOfStock(ShopError):
    def __init__(self, message: str = errmsg.OUT_OF_STOCK):
        super().__init__(message)


class TransportFailure(ShopError):
    """Backend unreachable or replied with something that is not an envelope."""

    def __init__(self, cause: Exception):
        super().__init__(errmsg.TRANSPORT, cause)


class BackendRejected(ShopError):
    """Backend replied with ``success: false``."""


class TerminalStateViolation(ShopError):
    """Mutation attempted on an order the status policy does not allow."""

    def __init__(self, status: str, message: Optional[str] = None):
        super().__init__(message or errmsg.TERMINAL_STATE.format(status=status))
        self.status = status
