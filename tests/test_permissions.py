import pytest

from campus_stay.core.check_permission import CheckRolePermission, role_permission
from campus_stay.core.errors import (
    ConflictError,
    ErrorKind,
    NotFoundError,
    PermissionDeniedError,
    ServerError,
)
from campus_stay.models.enums import UserRole


@pytest.mark.parametrize(
    "role, required, expected",
    [
        (UserRole.ADMIN, [UserRole.AGENT], True),
        (UserRole.ADMIN, [UserRole.OWNER], True),
        (UserRole.AGENT, [UserRole.STUDENT], True),
        (UserRole.OWNER, [UserRole.STUDENT], True),
        (UserRole.AGENT, [UserRole.OWNER], False),
        (UserRole.OWNER, [UserRole.AGENT], False),
        (UserRole.STUDENT, [UserRole.AGENT], False),
        (UserRole.AGENT, [UserRole.ADMIN], False),
        (UserRole.OWNER, [UserRole.AGENT, UserRole.OWNER], True),
        (UserRole.STUDENT, [], True),
    ],
)
def test_role_hierarchy(role, required, expected):
    assert CheckRolePermission.satisfies(role, required) is expected


def test_ensure_raises_permission_error():
    with pytest.raises(PermissionDeniedError) as exc:
        role_permission.ensure(UserRole.STUDENT, [UserRole.ADMIN])

    assert exc.value.status_code == 403
    assert exc.value.message == "Insufficient permissions"


def test_ensure_exact_ignores_hierarchy():
    role_permission.ensure_exact(UserRole.OWNER, (UserRole.STUDENT, UserRole.OWNER), "no")

    with pytest.raises(PermissionDeniedError, match="Only students"):
        role_permission.ensure_exact(
            UserRole.ADMIN,
            (UserRole.STUDENT, UserRole.OWNER),
            "Only students and property owners can create roommate listings",
        )


def test_error_status_follows_kind():
    assert NotFoundError("Listing not found").status_code == 404
    assert ConflictError().status_code == 409
    assert ConflictError().kind is ErrorKind.CONFLICT
    assert ServerError().message == "An unexpected error occurred"
