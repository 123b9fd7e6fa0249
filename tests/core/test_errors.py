from app.core.errors import (
    ConflictError,
    ForbiddenError,
    GroupMembershipError,
    InvalidOperationError,
    NotFoundError,
)


def test_error_kinds_map_to_distinct_codes_and_statuses():
    errors = [
        NotFoundError("Group", 3),
        ForbiddenError("nope"),
        ConflictError("dup"),
        InvalidOperationError("wrong type"),
    ]
    assert [(e.code, e.http_status) for e in errors] == [
        ("NOT_FOUND", 404),
        ("FORBIDDEN", 403),
        ("CONFLICT", 409),
        ("INVALID_OPERATION", 400),
    ]
    assert all(isinstance(e, GroupMembershipError) for e in errors)


def test_not_found_message():
    assert NotFoundError("Group", 3).message == "Group 3 not found"
    assert NotFoundError("User").message == "User not found"
    assert NotFoundError("Membership", message="custom").to_response() == {
        "detail": "custom",
        "code": "NOT_FOUND",
    }
