"""
Custom application exceptions
"""

from typing import Optional, Dict, Any


class MemberlyException(Exception):
    """Base exception for Memberly application"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(MemberlyException):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_ERROR",
            status_code=401,
            details=details
        )


class AuthorizationError(MemberlyException):
    """Authorization related errors"""

    def __init__(self, message: str = "Not authorized", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_FORBIDDEN",
            status_code=403,
            details=details
        )


class NotFoundError(MemberlyException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource}
        )
        self.resource = resource
        self.identifier = identifier


class ValidationError(MemberlyException):
    """Validation errors"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class ConflictError(MemberlyException):
    """Resource conflict errors"""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            details=details
        )


class ExpiredError(MemberlyException):
    """A seat hold lapsed before it was turned into a booking"""

    def __init__(self, message: str = "Reservation expired", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="RESERVATION_EXPIRED",
            status_code=410,
            details=details
        )


class WebhookSignatureError(MemberlyException):
    """Webhook payload failed signature verification"""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(
            message=message,
            code="INVALID_SIGNATURE",
            status_code=400
        )


class ExternalServiceError(MemberlyException):
    """External service error"""

    def __init__(self, service: str, message: str = None, retryable: bool = True):
        super().__init__(
            message=message or f"External service {service} is unavailable",
            code="EXTERNAL_SERVICE_ERROR",
            status_code=503,
            details={"service": service, "retryable": retryable}
        )
        self.service = service
        self.retryable = retryable
