"""
Error taxonomy.

Every failure of a store, session or collaborator operation is raised as one
of these types so callers can pick their own messaging.
"""

from enum import Enum
from typing import Optional


class EcoVisionError(Exception):
    """Base class for all EcoVision errors."""


class AuthFailure(str, Enum):
    """Reason an authentication step failed."""
    EXPIRED = "expired"
    MALFORMED = "malformed"
    ALREADY_EXISTS = "already_exists"


class AuthError(EcoVisionError):
    """
    Raised when a claim cannot be accepted or an identity cannot be created.

    Attributes:
        reason: Which authentication rule was violated
    """

    def __init__(self, reason: AuthFailure, detail: str = ""):
        self.reason = reason
        self.detail = detail
        message = f"Authentication failed: {reason.value}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class PermissionDeniedError(EcoVisionError):
    """
    Raised when an actor attempts an operation they are not allowed to perform.

    Attributes:
        actor_id: The identity that was denied
        action: The action that was denied
        resource_id: The record the action targeted, if any
    """

    def __init__(self, actor_id: str, action: str, resource_id: Optional[str] = None):
        self.actor_id = actor_id
        self.action = action
        self.resource_id = resource_id

        message = f"Identity {actor_id} denied permission for action: {action}"
        if resource_id:
            message += f" on {resource_id}"

        super().__init__(message)


class NotFoundError(EcoVisionError):
    """Raised when a record or identity does not exist (or is concealed)."""

    def __init__(self, kind: str, resource_id: str):
        self.kind = kind
        self.resource_id = resource_id
        super().__init__(f"{kind} not found: {resource_id}")


class ValidationError(EcoVisionError):
    """
    Raised when input fails validation. Nothing has been written when this
    is raised.

    Attributes:
        field: Name of the offending field
        reason: Human-readable reason
    """

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class CollaboratorTimeout(EcoVisionError):
    """
    Raised when a collaborator (classifier, exporter, locator) does not
    answer in time. Retryable; store state is untouched.
    """

    retryable = True

    def __init__(self, collaborator: str, timeout: float):
        self.collaborator = collaborator
        self.timeout = timeout
        super().__init__(f"{collaborator} timed out after {timeout:.1f}s")


class CollaboratorError(EcoVisionError):
    """
    Raised when a collaborator fails with an error of its own. Store state
    is untouched.

    Attributes:
        collaborator: Which collaborator failed
        detail: The collaborator's error message
    """

    retryable = True

    def __init__(self, collaborator: str, detail: str = ""):
        self.collaborator = collaborator
        self.detail = detail
        message = f"{collaborator} failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)
