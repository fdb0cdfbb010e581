# ================================
# CUSTOM EXCEPTIONS (core/exceptions.py)
# ================================

from typing import Optional

class AppException(Exception):
    """Base exception for application errors, rendered as {detail, error_code}"""

    def __init__(self, detail: str, status_code: int = 400, error_code: Optional[str] = None):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(detail)

class AuthenticationError(AppException):
    """Missing or invalid credentials"""

    def __init__(self, detail: str = "Authentication failed", error_code: str = "AUTH_FAILED"):
        super().__init__(detail, 401, error_code)

class AuthorizationError(AppException):
    """Authenticated actor lacks the required role"""

    def __init__(self, detail: str = "Access denied", error_code: str = "ACCESS_DENIED"):
        super().__init__(detail, 403, error_code)

class ValidationError(AppException):
    """Malformed or out-of-range input"""

    def __init__(self, detail: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(detail, 400, error_code)

class EligibilityError(AppException):
    """A property or offer failed one of the claim eligibility rules"""

    def __init__(self, detail: str, rule: Optional[str] = None, error_code: str = "NOT_ELIGIBLE"):
        self.rule = rule
        super().__init__(detail, 400, error_code)

class NotFoundError(AppException):
    """Booking, claim or property absent (or not owned by the caller)"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(detail, 404, error_code)

class ConflictError(AppException):
    """Request clashes with the current state of the booking or claim"""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(detail, 409, error_code)
