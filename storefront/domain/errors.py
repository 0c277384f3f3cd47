# storefront/domain/errors.py
from typing import Any


class CheckoutError(Exception):
    """Bazowy blad domeny checkout, routery mapuja go na HTTPException."""

    status_code = 400
    code = "CHECKOUT_ERROR"

    def __init__(self, message: str, details: Any = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if code:
            self.code = code

    def to_detail(self) -> dict:
        detail = {"error": self.message, "code": self.code}
        if self.details is not None:
            detail["details"] = self.details
        return detail


class ValidationError(CheckoutError):
    code = "VALIDATION_ERROR"


class InvalidDestination(CheckoutError):
    code = "INVALID_DESTINATION"


class CatalogMismatch(CheckoutError):
    code = "CATALOG_MISMATCH"

    def __init__(self, missing_products: list[int]):
        super().__init__(
            "Some products are no longer available",
            details={"missing_products": missing_products},
        )
        self.missing_products = missing_products


class DiscountRejected(ValidationError):
    code = "DISCOUNT_REJECTED"


class CatalogUnavailable(CheckoutError):
    status_code = 503
    code = "CATALOG_UNAVAILABLE"


class OrderNotFound(CheckoutError):
    status_code = 404
    code = "ORDER_NOT_FOUND"


class PersistenceFailure(CheckoutError):
    status_code = 500
    code = "PERSISTENCE_FAILURE"


# ponizsze nigdy nie przerywaja checkoutu, tylko raportowane / logowane

class CarrierSubmissionFailure(CheckoutError):
    status_code = 502
    code = "CARRIER_SUBMISSION_FAILURE"


class NotificationFailure(CheckoutError):
    status_code = 502
    code = "NOTIFICATION_FAILURE"
