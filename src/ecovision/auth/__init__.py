"""
Authentication module for EcoVision.

Provides signed session claims, the identity lifecycle and the ownership
access guard.
"""

from .models import Identity, SessionClaim, SessionRecord
from .directory import IdentityDirectory
from .claims import ClaimCodec, ClaimPayload
from .session_manager import SessionManager
from .permissions import (
    AccessGuard,
    Operation,
    Permission,
    Role,
    ROLE_PERMISSIONS,
    allow,
    resolve_role,
)

__all__ = [
    # Identity models and directory
    "Identity",
    "SessionClaim",
    "SessionRecord",
    "IdentityDirectory",
    # Claims
    "ClaimCodec",
    "ClaimPayload",
    "SessionManager",
    # Access control
    "AccessGuard",
    "Operation",
    "Permission",
    "Role",
    "ROLE_PERMISSIONS",
    "allow",
    "resolve_role",
]
