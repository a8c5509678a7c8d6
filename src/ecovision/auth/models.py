"""
Identity and session data models.

Data classes for identities, server-side session entries, and the signed
session claim handed to callers.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..clock import from_iso, to_iso
from .permissions import Role


@dataclass
class Identity:
    """
    A registered identity (tenant).

    Attributes:
        id: Unique identity identifier
        display_name: Name shown in the dashboard
        email: Unique, lower-cased email address
        role: member or admin
        created_at: Account creation timestamp
        last_login_at: Most recent sign-in timestamp
        bio: Free-form profile text
        location: Free-form profile location
        website: Profile website
        avatar: Avatar URL
        classifications_count: Derived count of classifications recorded
        achievements: Derived list of unlocked achievement ids
        certificate_eligible: Derived certificate eligibility
    """
    id: str
    display_name: str
    email: str
    role: Role
    created_at: datetime
    last_login_at: datetime
    bio: str = ""
    location: str = ""
    website: str = ""
    avatar: Optional[str] = None
    classifications_count: int = 0
    achievements: List[str] = field(default_factory=list)
    certificate_eligible: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def copy(self) -> "Identity":
        return replace(self, achievements=list(self.achievements))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "email": self.email,
            "role": self.role.value,
            "created_at": to_iso(self.created_at),
            "last_login_at": to_iso(self.last_login_at),
            "bio": self.bio,
            "location": self.location,
            "website": self.website,
            "avatar": self.avatar,
            "classifications_count": self.classifications_count,
            "achievements": list(self.achievements),
            "certificate_eligible": self.certificate_eligible,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        return cls(
            id=data["id"],
            display_name=data["display_name"],
            email=data["email"],
            role=Role(data["role"]),
            created_at=from_iso(data["created_at"]),
            last_login_at=from_iso(data["last_login_at"]),
            bio=data.get("bio", ""),
            location=data.get("location", ""),
            website=data.get("website", ""),
            avatar=data.get("avatar"),
            classifications_count=data.get("classifications_count", 0),
            achievements=list(data.get("achievements", [])),
            certificate_eligible=data.get("certificate_eligible", False),
        )


# Fields an identity may change about itself through update_profile
PROFILE_FIELDS = frozenset({"display_name", "bio", "location", "website", "avatar"})


@dataclass
class SessionRecord:
    """
    Server-side session entry.

    Attributes:
        jti: Claim ID the session belongs to
        identity_id: Identity that owns this session
        created_at: Session creation timestamp
        expires_at: Session expiration timestamp
        last_activity: Last successful authentication with this claim
    """
    jti: str
    identity_id: str
    created_at: datetime
    expires_at: datetime
    last_activity: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jti": self.jti,
            "identity_id": self.identity_id,
            "created_at": to_iso(self.created_at),
            "expires_at": to_iso(self.expires_at),
            "last_activity": to_iso(self.last_activity),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionRecord":
        return cls(
            jti=data["jti"],
            identity_id=data["identity_id"],
            created_at=from_iso(data["created_at"]),
            expires_at=from_iso(data["expires_at"]),
            last_activity=from_iso(data["last_activity"]),
        )


@dataclass(frozen=True)
class SessionClaim:
    """
    Signed, time-bounded session claim.

    ``identity`` is a copy taken at issue time for display only; the
    identity table stays the source of truth and ``authenticate`` always
    reloads from it.

    Attributes:
        token: Signed token to present on later calls
        jti: Claim ID
        identity: Snapshot of the identity at issue time
        issued_at: Issue timestamp
        expires_at: Expiry timestamp
    """
    token: str
    jti: str
    identity: Identity
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
