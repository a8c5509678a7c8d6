"""
Access control for EcoVision records.

This module provides:
- Role and operation definitions
- Role-based permissions for tenant-wide actions
- The ownership guard consulted before every record read or mutation
"""

from enum import Enum
from typing import Any, Dict, Optional, Set

from loguru import logger

from ..errors import PermissionDeniedError


class Role(str, Enum):
    """
    Identity roles.
    """
    MEMBER = "member"   # Sees and changes only their own records
    ADMIN = "admin"     # Sees and changes every tenant's records


class Operation(str, Enum):
    """Operations the guard distinguishes."""
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Permission(str, Enum):
    """
    Tenant-wide permissions that are not tied to a single record.
    """
    VIEW_ALL_TENANTS = "view_all_tenants"       # List every tenant's records
    RESET_ANY_TENANT = "reset_any_tenant"       # Reset another identity's data


ROLE_PERMISSIONS: Dict[Role, Set[Permission]] = {
    Role.ADMIN: {
        Permission.VIEW_ALL_TENANTS,
        Permission.RESET_ANY_TENANT,
    },
    Role.MEMBER: set(),
}


def resolve_role(requested_role: Optional[str]) -> Role:
    """
    Resolve a requested role at sign-up.

    Only an explicit ``"admin"`` request yields an admin; anything else,
    including unknown strings, is a member.
    """
    if requested_role is not None and str(requested_role).lower() == Role.ADMIN.value:
        return Role.ADMIN
    return Role.MEMBER


class AccessGuard:
    """
    Decides whether an actor may perform an operation on a resource.

    The guard is a pure predicate; it holds no state beyond the role table.
    """

    def __init__(self):
        """Initialize guard."""
        self.role_permissions = ROLE_PERMISSIONS

    def allow(self, actor: Any, resource: Any, operation: Operation) -> bool:
        """
        Check access to a single record.

        Args:
            actor: Identity performing the operation (needs ``id`` and ``role``)
            resource: Record being accessed (needs ``owner_id``; ``is_public``
                is optional and treated as False when absent)
            operation: Operation being attempted

        Returns:
            bool: True if allowed
        """
        if self.is_admin(actor):
            return True
        if actor.id == resource.owner_id:
            return True
        return operation == Operation.READ and getattr(resource, "is_public", False) is True

    def is_admin(self, actor: Any) -> bool:
        return actor.role == Role.ADMIN

    def has_permission(self, role: str, permission: Permission) -> bool:
        """
        Check if a role has a tenant-wide permission.

        Args:
            role: The identity's role
            permission: The permission to check

        Returns:
            bool: True if the role has the permission, False otherwise
        """
        try:
            role_enum = Role(role)
            return permission in self.role_permissions.get(role_enum, set())
        except ValueError:
            # Unknown role, no permissions
            return False

    def require(self, actor: Any, resource: Any, operation: Operation) -> None:
        """
        Require record access, raising PermissionDeniedError if not allowed.

        Raises:
            PermissionDeniedError: If the guard denies the operation
        """
        if not self.allow(actor, resource, operation):
            logger.warning(f"Denied {operation.value} on {resource.id} for {actor.id}")
            raise PermissionDeniedError(
                actor_id=actor.id,
                action=operation.value,
                resource_id=resource.id,
            )

    def require_permission(self, actor: Any, permission: Permission) -> None:
        """
        Require a tenant-wide permission.

        Raises:
            PermissionDeniedError: If the actor's role lacks the permission
        """
        if not self.has_permission(actor.role, permission):
            logger.warning(f"Denied {permission.value} for {actor.id}")
            raise PermissionDeniedError(actor_id=actor.id, action=permission.value)


# Global guard instance
_guard = AccessGuard()


def allow(actor: Any, resource: Any, operation: Operation) -> bool:
    """
    Global helper for the ownership predicate.

    Args:
        actor: Identity performing the operation
        resource: Record being accessed
        operation: Operation being attempted

    Returns:
        bool: True if allowed, False otherwise
    """
    return _guard.allow(actor, resource, operation)
