"""
Error taxonomy for checkout and ledger operations

Services raise these; the API layer renders them through a single
exception handler so callers always get the same error envelope.
"""

from fastapi import status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Any, Dict, Optional

# serialization_failure, deadlock_detected
CONFLICT_SQLSTATES = {"40001", "40P01"}
UNIQUE_VIOLATION = "23505"
SQLITE_BUSY = 5
# SQLITE_CONSTRAINT_PRIMARYKEY, SQLITE_CONSTRAINT_UNIQUE
SQLITE_UNIQUE_ERRORCODES = {1555, 2067}


class CheckoutError(Exception):
    """Base class for all domain errors"""

    code: str = "checkout_error"
    http_status: int = status.HTTP_400_BAD_REQUEST
    retryable: bool = False

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "reason": self.reason,
            "retryable": self.retryable,
        }


class ValidationError(CheckoutError):
    """Bad input shape, non-positive quantity, unknown product/size/addon"""

    code = "validation_error"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY


class BusinessRuleViolation(CheckoutError):
    """A domain rule refused the operation; `reason` says which one"""

    code = "business_rule_violation"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, reason: str, message: str):
        super().__init__(message, reason=reason)


class PermissionDenied(CheckoutError):
    """Caller lacks the capability, or the record belongs to another restaurant"""

    code = "permission_denied"
    http_status = status.HTTP_403_FORBIDDEN


class NotFound(CheckoutError):
    code = "not_found"
    http_status = status.HTTP_404_NOT_FOUND


class ConflictError(CheckoutError):
    """Concurrent update or order number collision that outlived its retries"""

    code = "conflict"
    http_status = status.HTTP_409_CONFLICT
    retryable = True


class InfrastructureError(CheckoutError):
    """Storage unavailable"""

    code = "infrastructure_error"
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


# Reasons carried by BusinessRuleViolation
class Reason:
    INACTIVE = "inactive"
    BELOW_MINIMUM = "below_minimum"
    LIMIT_REACHED = "limit_reached"
    NOT_STARTED = "not_started"
    EXPIRED = "expired"
    INVALID_CODE = "invalid_code"
    INSUFFICIENT_POINTS = "insufficient_points"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVALID_TRANSITION = "invalid_transition"


def from_db_error(exc: SQLAlchemyError) -> CheckoutError:
    """Classify a storage failure as a retryable conflict, a constraint violation or an outage"""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)

    if isinstance(exc, IntegrityError):
        # Only a duplicate key can succeed on retry
        if sqlstate == UNIQUE_VIOLATION or getattr(orig, "sqlite_errorcode", None) in SQLITE_UNIQUE_ERRORCODES:
            return ConflictError("A concurrent write conflicted with this operation")
        return ValidationError("The change violates a data constraint")

    if sqlstate in CONFLICT_SQLSTATES:
        return ConflictError("A concurrent write conflicted with this operation")
    if getattr(orig, "sqlite_errorcode", None) == SQLITE_BUSY:
        return ConflictError("Database is busy")

    return InfrastructureError("Storage is unavailable, please retry")
