from typing import Iterable

from campus_stay.models.enums import UserRole

from .errors import PermissionDeniedError

# Partial order: each role grants itself plus everything listed here.
# Agent and owner are incomparable; admin sits above both.
ROLE_GRANTS: dict[UserRole, frozenset[UserRole]] = {
    UserRole.STUDENT: frozenset({UserRole.STUDENT}),
    UserRole.AGENT: frozenset({UserRole.AGENT, UserRole.STUDENT}),
    UserRole.OWNER: frozenset({UserRole.OWNER, UserRole.STUDENT}),
    UserRole.ADMIN: frozenset(
        {UserRole.ADMIN, UserRole.AGENT, UserRole.OWNER, UserRole.STUDENT}
    ),
}


class CheckRolePermission:
    @staticmethod
    def grants(role: UserRole, required: UserRole) -> bool:
        return required in ROLE_GRANTS.get(role, frozenset())

    @classmethod
    def satisfies(cls, role: UserRole, required: Iterable[UserRole]) -> bool:
        """True when ``role`` covers at least one of ``required``.

        An empty requirement means any authenticated role is enough.
        """
        required = tuple(required)
        if not required:
            return role in ROLE_GRANTS
        return any(cls.grants(role, needed) for needed in required)

    @classmethod
    def ensure(cls, role: UserRole, required: Iterable[UserRole]):
        if not cls.satisfies(role, required):
            raise PermissionDeniedError("Insufficient permissions")

    @staticmethod
    def ensure_exact(role: UserRole, allowed: Iterable[UserRole], message: str):
        if role not in set(allowed):
            raise PermissionDeniedError(message)


role_permission = CheckRolePermission()
