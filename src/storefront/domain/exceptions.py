"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the application and CLI layers can catch them uniformly.  Subclasses
carry the offending product, field or state as attributes so callers can
build a structured error without parsing messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""

    code = "DomainError"
    transient = False


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    code = "ValidationError"


class InvalidRequest(ValidationError):
    """Malformed input that never reaches the core rules."""

    code = "InvalidRequest"


class InvalidCustomerInfo(ValidationError):
    """Shipping/customer data is missing a mandatory field."""

    code = "InvalidCustomerInfo"

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Customer info field '{field}' is required")


class InsufficientStock(ValidationError):

    code = "InsufficientStock"

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product '{product_id}' "
            f"(need {requested}, have {available} available)"
        )


class InvalidStateTransition(ValidationError):

    code = "InvalidStateTransition"

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move order from '{current}' to '{requested}'"
        )


class PaymentNotCompleted(ValidationError):
    """The payment provider did not report a completed capture."""

    code = "PaymentNotCompleted"

    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__(f"Payment was not completed (status={status!r})")


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    code = "NotFound"


class ProductNotFound(EntityNotFoundError):

    code = "ProductNotFound"

    def __init__(self, product_id: str) -> None:
        self.product_id = product_id
        super().__init__(f"Product not found: '{product_id}'")


class OrderNotFound(EntityNotFoundError):

    code = "OrderNotFound"

    def __init__(self, order_id: int) -> None:
        self.order_id = order_id
        super().__init__(f"Order #{order_id} not found")


class CartLineNotFound(EntityNotFoundError):

    code = "CartLineNotFound"

    def __init__(self, product_id: str) -> None:
        self.product_id = product_id
        super().__init__(f"Product '{product_id}' is not in the cart")


class PersistenceError(DomainException):
    """The backing store failed or timed out.  Safe for the caller to retry."""

    code = "TransientError"
    transient = True


class NotificationFailure(DomainException):
    """A confirmation could not be delivered.  Logged, never surfaced."""

    code = "NotificationFailure"


class OrderCreationFailed(DomainException):
    """The order workflow stopped at ``stage`` for ``reason``.

    ``error`` is the underlying domain exception (also chained as
    ``__cause__``).  Stock reserved before the failure has already been
    restored when this is raised.
    """

    def __init__(self, reason: str, stage: str, error: DomainException) -> None:
        self.reason = reason
        self.stage = stage
        self.error = error
        self.transient = error.transient
        super().__init__(str(error))

    @property
    def code(self) -> str:  # type: ignore[override]
        return self.error.code
