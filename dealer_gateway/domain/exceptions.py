"""Domain-specific exceptions"""

from enum import Enum


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ErrorCode(str, Enum):
    """Machine-stable codes for financing validation failures"""

    MISSING_FIELD = "MISSING_FIELD"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    INVALID_PRICE = "INVALID_PRICE"
    NO_CAMPAIGN_AVAILABLE = "NO_CAMPAIGN_AVAILABLE"
    FINANCING_TYPE_NOT_FOUND = "FINANCING_TYPE_NOT_FOUND"
    PRICE_BELOW_MINIMUM = "PRICE_BELOW_MINIMUM"
    INVALID_TERM = "INVALID_TERM"
    FIXED_DOWN_PAYMENT_REQUIRED = "FIXED_DOWN_PAYMENT_REQUIRED"
    DOWN_PAYMENT_TOO_LOW = "DOWN_PAYMENT_TOO_LOW"
    INVALID_DOWN_PAYMENT = "INVALID_DOWN_PAYMENT"


class FinancingValidationError(DomainException):
    """Financing request cannot be honoured as asked; recoverable by the caller"""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"FinancingValidationError({self.code.value}, {self.message!r})"


class LeadNotFoundError(DomainException):
    """No lead exists with the given id"""

    pass


class StaleLeadError(DomainException):
    """Lead was modified by another writer since it was read"""

    pass
