"""Typed failures raised by the group membership service.

Every error carries a stable ``code`` and the HTTP status the API layer
answers with, so callers can tell NotFound / Forbidden / Conflict /
InvalidOperation apart without parsing messages.
"""


class GroupMembershipError(Exception):
    """Base exception for all membership rule violations."""

    def __init__(self, message: str, code: str, http_status: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status

    def to_response(self) -> dict:
        return {"detail": self.message, "code": self.code}


class NotFoundError(GroupMembershipError):
    """Referenced user, group, membership or join request does not exist."""

    def __init__(self, resource: str, resource_id: int | None = None, message: str | None = None):
        if message is None:
            message = (
                f"{resource} not found"
                if resource_id is None
                else f"{resource} {resource_id} not found"
            )
        super().__init__(message, "NOT_FOUND", 404)
        self.resource = resource
        self.resource_id = resource_id


class ForbiddenError(GroupMembershipError):
    """Acting user lacks the ADMIN role the operation requires."""

    def __init__(self, message: str):
        super().__init__(message, "FORBIDDEN", 403)


class ConflictError(GroupMembershipError):
    """Duplicate membership, duplicate pending request or already-processed request."""

    def __init__(self, message: str):
        super().__init__(message, "CONFLICT", 409)


class InvalidOperationError(GroupMembershipError):
    """Operation does not apply to this group (wrong type, owner leaving)."""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_OPERATION", 400)
