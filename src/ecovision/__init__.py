"""
EcoVision core.

Per-tenant record store for e-waste classification results and reports,
with ownership-based access control, signed session claims and
deduplicated notifications.
"""

from .config import Settings, get_settings
from .errors import (
    AuthError,
    AuthFailure,
    CollaboratorError,
    CollaboratorTimeout,
    EcoVisionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .notifications import Notification, NotificationKind, Notifier
from .services import ClassificationService, ClassifiedItem, EcoVision, ReportService, create_app

__version__ = "1.0.0"

__all__ = [
    "Settings",
    "get_settings",
    # Errors
    "AuthError",
    "AuthFailure",
    "CollaboratorError",
    "CollaboratorTimeout",
    "EcoVisionError",
    "NotFoundError",
    "PermissionDeniedError",
    "ValidationError",
    # Notifications
    "Notification",
    "NotificationKind",
    "Notifier",
    # Wiring
    "ClassificationService",
    "ClassifiedItem",
    "EcoVision",
    "ReportService",
    "create_app",
]
