"""Exception hierarchy for DataBill.

Every error carries a machine-readable ``ErrorCode``, the HTTP status a
service layer would answer with, and a ``details`` dict for logs and API
error bodies. The billing engine itself raises none of these; they come from
value object validation, the services and the CSV importer.
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes for API responses."""

    UNKNOWN_ERROR = "DB1001"

    # Validation (4xxx)
    VALIDATION_ERROR = "DB4000"
    INVALID_PHONE_NUMBER = "DB4002"
    INVALID_USAGE = "DB4003"
    INVALID_DATE_RANGE = "DB4004"
    INVALID_DATA_FORMAT = "DB4005"

    # Lookup (5xxx)
    RESOURCE_NOT_FOUND = "DB5000"
    SUBSCRIBER_NOT_FOUND = "DB5001"
    PLAN_NOT_FOUND = "DB5002"

    # Conflict (6xxx)
    CONFLICT = "DB6000"
    SUBSCRIBER_EXISTS = "DB6001"
    PLAN_EXISTS = "DB6002"


class DataBillException(Exception):
    """Base exception for all DataBill errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code.
        http_status: HTTP status code for API responses.
        details: Additional context for debugging.
        user_message: Message shown to end users, defaults to ``message``.
    """

    message: str = "An unexpected error occurred"
    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    http_status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: ErrorCode | None = None,
        http_status: HTTPStatus | None = None,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ) -> None:
        self.message = message or type(self).message
        self.error_code = error_code or type(self).error_code
        self.http_status = http_status or type(self).http_status
        self.details = details or {}
        self.user_message = user_message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render as an API error body."""
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.user_message,
                "details": self.details or None,
            }
        }

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"error_code={self.error_code.value}, "
            f"http_status={self.http_status.value}, details={self.details!r})"
        )


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(DataBillException):
    """A value failed validation.

    ``field``, ``value`` and ``constraint`` are folded into ``details``.
    """

    message = "Validation error"
    error_code = ErrorCode.VALIDATION_ERROR
    http_status = HTTPStatus.BAD_REQUEST

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = dict(kwargs.pop("details", None) or {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        if constraint:
            details["constraint"] = constraint
        super().__init__(message, details=details, **kwargs)


class InvalidPhoneNumberError(ValidationError):
    """Phone number is not a string of digits."""

    message = "Invalid phone number format"
    error_code = ErrorCode.INVALID_PHONE_NUMBER

    def __init__(self, phone_number: str | None, **kwargs: Any) -> None:
        super().__init__(
            f"Invalid phone number format: {phone_number}",
            field="phone_number",
            value=phone_number,
            constraint="digits only",
            **kwargs,
        )


class InvalidUsageError(ValidationError):
    message = "Usage must be a non-negative number"
    error_code = ErrorCode.INVALID_USAGE


class InvalidDateRangeError(ValidationError):
    message = "Start date must be before or equal to end date"
    error_code = ErrorCode.INVALID_DATE_RANGE


class InvalidDataFormatError(ValidationError):
    """Imported data does not have the expected shape."""

    message = "Invalid data format"
    error_code = ErrorCode.INVALID_DATA_FORMAT


# ============================================================================
# Lookup Exceptions
# ============================================================================


class NotFoundError(DataBillException):
    """A subscriber, plan or other resource does not exist."""

    message = "Resource not found"
    error_code = ErrorCode.RESOURCE_NOT_FOUND
    http_status = HTTPStatus.NOT_FOUND

    def __init__(
        self,
        message: str | None = None,
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = dict(kwargs.pop("details", None) or {})
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id
        if not message and resource_type:
            message = f"{resource_type} not found"
        super().__init__(message, details=details, **kwargs)


class SubscriberNotFoundError(NotFoundError):
    """Subscriber unknown to the directory or the usage store."""

    message = "Subscriber not found"
    error_code = ErrorCode.SUBSCRIBER_NOT_FOUND

    def __init__(self, subscriber_id: str, **kwargs: Any) -> None:
        self.subscriber_id = subscriber_id
        super().__init__(
            f"Subscriber not found for phone number: {subscriber_id}",
            resource_type="subscriber",
            resource_id=subscriber_id,
            **kwargs,
        )


class PlanNotFoundError(NotFoundError):
    message = "Plan not found"
    error_code = ErrorCode.PLAN_NOT_FOUND

    def __init__(self, plan_id: str, **kwargs: Any) -> None:
        self.plan_id = plan_id
        super().__init__(
            f"Plan {plan_id} not found",
            resource_type="plan",
            resource_id=plan_id,
            **kwargs,
        )


# ============================================================================
# Conflict Exceptions
# ============================================================================


class ConflictError(DataBillException):
    message = "Resource conflict"
    error_code = ErrorCode.CONFLICT
    http_status = HTTPStatus.CONFLICT


class SubscriberExistsError(ConflictError):
    message = "Subscriber already exists"
    error_code = ErrorCode.SUBSCRIBER_EXISTS

    def __init__(self, subscriber_id: str, **kwargs: Any) -> None:
        super().__init__(
            f"Subscriber already exists with phone number: {subscriber_id}",
            details={"resource_id": subscriber_id},
            **kwargs,
        )


class PlanExistsError(ConflictError):
    message = "Plan already exists"
    error_code = ErrorCode.PLAN_EXISTS

    def __init__(self, plan_id: str, **kwargs: Any) -> None:
        self.plan_id = plan_id
        super().__init__(
            f"Plan {plan_id} already exists",
            details={"resource_id": plan_id},
            **kwargs,
        )


_BUILTIN_STATUS: dict[type[Exception], HTTPStatus] = {
    ValueError: HTTPStatus.BAD_REQUEST,
    TypeError: HTTPStatus.BAD_REQUEST,
    KeyError: HTTPStatus.NOT_FOUND,
    TimeoutError: HTTPStatus.GATEWAY_TIMEOUT,
}


def get_http_status_for_exception(exc: Exception) -> HTTPStatus:
    """Map an exception to the HTTP status an API would answer with."""
    if isinstance(exc, DataBillException):
        return exc.http_status
    for exc_type, status in _BUILTIN_STATUS.items():
        if isinstance(exc, exc_type):
            return status
    return HTTPStatus.INTERNAL_SERVER_ERROR
