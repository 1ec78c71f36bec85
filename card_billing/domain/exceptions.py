"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainException):
    """Card, invoice or purchase is missing or not owned by the requesting user"""

    code = "NOT_FOUND"


class ForbiddenError(DomainException):
    """Entity exists but belongs to another user"""

    code = "FORBIDDEN"


class LimitExceededError(DomainException):
    """Purchase value exceeds the card's available credit"""

    code = "LIMIT_EXCEEDED"

    def __init__(self, message: str, requested_cents: int, available_cents: int):
        super().__init__(message)
        self.requested_cents = requested_cents
        self.available_cents = available_cents


class InvalidReferenceError(DomainException):
    """Invoice does not belong to the referenced card"""

    code = "INVALID_REFERENCE"


class DuplicateInvoiceError(DomainException):
    """Store rejected an invoice insert on the (card, month, year) unique key"""

    code = "DUPLICATE_INVOICE"


class InvalidStatusTransitionError(DomainException):
    """Requested invoice status change is not allowed from the current status"""

    code = "INVALID_STATUS_TRANSITION"
