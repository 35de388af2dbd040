class AppError(Exception):
    """Base class for all application exceptions."""
    code = "app_error"

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidFormatError(AppError):
    """Raised when a time or date string is malformed."""
    code = "invalid_format"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class InvalidTimeRangeError(AppError):
    """Raised when an interval does not end after it starts."""
    code = "invalid_time_range"

    def __init__(self, message: str = "Invalid time range: end time must be after start time", details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    code = "not_found"

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class RoleMismatchError(AppError):
    """Raised when a person with the wrong role is attached to a class group."""
    code = "role_mismatch"

    def __init__(self, user_id: str, expected_role: str):
        super().__init__(
            f"User with id {user_id} is not a {expected_role}",
            status_code=400,
            details={"user_id": user_id, "expected_role": expected_role},
        )


class SlotUnavailableError(AppError):
    """Raised when a write would collide with an existing commitment."""
    code = "slot_unavailable"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class UnauthorizedError(AppError):
    """Raised when the actor does not own the resource it is acting on."""
    code = "unauthorized"

    def __init__(self, message: str):
        super().__init__(message, status_code=403)


class InvalidTransitionError(AppError):
    """Raised on an illegal reservation lifecycle move."""
    code = "invalid_transition"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class PolicyViolationError(AppError):
    """Raised when a reservation request breaks the institution's reservation policy."""
    code = "policy_violation"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)
