"""
Service-wide exception hierarchy.

Services raise these types; the onboarding blueprint registers one handler
per type so every endpoint maps them to the same HTTP status and error code.

Usage:
    from app.core.exceptions import NotFoundError, ValidationError, StorageError

    raise NotFoundError(resource="OnboardingRequest", resource_id=request_id)
    raise ValidationError("Invalid status", details={"status": "..."})
    raise StorageError("create_request", cause=exc)
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "OnboardingRequest").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when field values are rejected before reaching the lifecycle.

    Maps to HTTP 400 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown; keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class StorageError(Exception):
    """Raised when the persistence layer could not complete an operation.

    The session has already been rolled back when this is raised, so no
    partial status / percentage / history write is left behind.

    Args:
        operation: Name of the service operation that failed.
        cause: The underlying SQLAlchemy (or driver) exception.
    """

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        self.operation = operation
        self.cause = cause
        msg = f"Storage failure during {operation}"
        if cause is not None:
            msg += f": {type(cause).__name__}"
        super().__init__(msg)
