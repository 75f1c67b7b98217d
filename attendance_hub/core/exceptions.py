from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )

class AccessDeniedError(AppException):
    """Custom permission error. Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: Any = None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )

class ConflictError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT",
            details=details
        )

class InvalidDateRangeError(AppException):
    def __init__(self, start_date, end_date):
        super().__init__(
            message="End date cannot be earlier than start date",
            status_code=400,
            error_code="INVALID_DATE_RANGE",
            details={"start_date": str(start_date), "end_date": str(end_date)}
        )

class InsufficientBalanceError(AppException):
    def __init__(self, leave_type: str, requested: float, available: float):
        super().__init__(
            message=f"Insufficient {leave_type} leave balance: requested {requested:g}, available {available:g}",
            status_code=409,
            error_code="INSUFFICIENT_BALANCE",
            details={"leave_type": leave_type, "requested": requested, "available": available}
        )

class NotPendingError(AppException):
    def __init__(self, request_id: int, status: str):
        super().__init__(
            message=f"Leave request {request_id} has already been {status}",
            status_code=409,
            error_code="NOT_PENDING",
            details={"request_id": request_id, "status": status}
        )

class InvalidValueError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="INVALID_VALUE",
            details=details
        )
