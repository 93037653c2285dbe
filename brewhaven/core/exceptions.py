"""
Brew Haven Exception Hierarchy

Every error carries a machine-readable code, an HTTP status, a human-readable
message and optional details. Services raise these; the API layer renders
them through a single exception handler.

Exception Hierarchy:
    BrewHavenError
    ├── ValidationError (400)
    │   ├── InvalidOrderInputError
    │   ├── ItemNotFoundError
    │   ├── OptionMismatchError
    │   └── InvalidTransitionError
    ├── NotFoundOrForbiddenError (404)
    │   ├── OrderNotFoundError
    │   ├── OrderItemNotFoundError
    │   ├── OrderItemOptionNotFoundError
    │   ├── PaymentNotFoundError
    │   ├── CartNotFoundError
    │   └── CartItemNotFoundError
    ├── ForbiddenError (403)
    ├── ConflictError (409)
    │   ├── PaymentAlreadyExistsError (400)
    │   └── OrderNumberExhaustedError
    ├── UpstreamUnavailableError (400)
    │   └── ItemUnavailableError
    └── InternalError (500)
"""
import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class BrewHavenError(Exception):
    """
    Base exception for all Brew Haven errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging
        status_code: HTTP status the API layer responds with
    """

    default_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(BrewHavenError):
    """Malformed or missing input."""
    default_code = "validation_error"
    status_code = 400


class InvalidOrderInputError(ValidationError):
    """Order lines are empty or carry a non-positive quantity."""
    default_code = "invalid_order_input"


class ItemNotFoundError(ValidationError):
    """A line references an item the catalog does not know."""
    default_code = "item_not_found"

    def __init__(self, item_id: Any, **kwargs):
        details = kwargs.pop("details", {})
        details["item_id"] = item_id
        super().__init__(f"Item with ID {item_id} not found", details=details, **kwargs)


class OptionMismatchError(ValidationError):
    """A selected option is unknown or belongs to a different item."""
    default_code = "option_mismatch"

    def __init__(self, message: str, item_id: Any = None, option_id: Any = None, **kwargs):
        details = kwargs.pop("details", {})
        details.update({"item_id": item_id, "option_id": option_id})
        super().__init__(message, details=details, **kwargs)


class InvalidTransitionError(ValidationError):
    """Requested status is not a known value or not reachable."""
    default_code = "invalid_transition"


# =============================================================================
# OWNERSHIP-SCOPED ABSENCE
# =============================================================================

class NotFoundOrForbiddenError(BrewHavenError):
    """
    Resource is missing or outside the caller's scope.

    Both cases look identical to the caller so that other users' resources
    cannot be probed for existence.
    """
    default_code = "not_found"
    status_code = 404


class OrderNotFoundError(NotFoundOrForbiddenError):
    default_code = "order_not_found"

    def __init__(self, message: str = "Order not found", **kwargs):
        super().__init__(message, **kwargs)


class OrderItemNotFoundError(NotFoundOrForbiddenError):
    default_code = "order_item_not_found"

    def __init__(self, message: str = "Order item not found", **kwargs):
        super().__init__(message, **kwargs)


class OrderItemOptionNotFoundError(NotFoundOrForbiddenError):
    default_code = "order_item_option_not_found"

    def __init__(self, message: str = "Order item option not found", **kwargs):
        super().__init__(message, **kwargs)


class PaymentNotFoundError(NotFoundOrForbiddenError):
    default_code = "payment_not_found"

    def __init__(self, message: str = "Payment not found", **kwargs):
        super().__init__(message, **kwargs)


class CartNotFoundError(NotFoundOrForbiddenError):
    default_code = "cart_not_found"

    def __init__(self, message: str = "Cart not found", **kwargs):
        super().__init__(message, **kwargs)


class CartItemNotFoundError(NotFoundOrForbiddenError):
    default_code = "cart_item_not_found"

    def __init__(self, message: str = "Cart item not found", **kwargs):
        super().__init__(message, **kwargs)


# =============================================================================
# AUTHORIZATION
# =============================================================================

class ForbiddenError(BrewHavenError):
    """Role-disallowed action on an existing, visible resource."""
    default_code = "forbidden"
    status_code = 403


# =============================================================================
# CONFLICTS
# =============================================================================

class ConflictError(BrewHavenError):
    default_code = "conflict"
    status_code = 409


class PaymentAlreadyExistsError(ConflictError):
    """The order already has its one payment."""
    default_code = "payment_already_exists"
    status_code = 400

    def __init__(self, order_id: Any, **kwargs):
        details = kwargs.pop("details", {})
        details["order_id"] = order_id
        super().__init__("Payment already exists for this order", details=details, **kwargs)


class OrderNumberExhaustedError(ConflictError):
    """Could not find a free order number within the attempt budget."""
    default_code = "order_number_exhausted"

    def __init__(self, attempts: int, **kwargs):
        details = kwargs.pop("details", {})
        details["attempts"] = attempts
        super().__init__(
            f"Could not generate a unique order number after {attempts} attempts",
            details=details,
            **kwargs,
        )


# =============================================================================
# CATALOG AVAILABILITY
# =============================================================================

class UpstreamUnavailableError(BrewHavenError):
    default_code = "unavailable"
    status_code = 400


class ItemUnavailableError(UpstreamUnavailableError):
    """Item exists but is switched off in the catalog."""
    default_code = "item_unavailable"

    def __init__(self, item_id: Any, item_name: str, **kwargs):
        details = kwargs.pop("details", {})
        details.update({"item_id": item_id, "item_name": item_name})
        super().__init__(f"Item {item_name} is currently unavailable", details=details, **kwargs)


# =============================================================================
# INTERNAL
# =============================================================================

class InternalError(BrewHavenError):
    """Persistence or transaction failure; message is never shown verbatim."""
    default_code = "internal_error"
    status_code = 500
