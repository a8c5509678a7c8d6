"""
Session claim signing and verification.

Claims are HS256 JWTs that carry an identity reference, the role at issue
time, the claim ID and the validity window.
"""

import math
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from loguru import logger

from ..clock import Clock, utc_now
from ..config import Settings, get_settings
from ..errors import AuthError, AuthFailure
from .models import Identity, SessionClaim


@dataclass
class ClaimPayload:
    """
    Decoded claim payload.

    Attributes:
        identity_id: Identity the claim refers to
        role: Role at issue time
        jti: Claim ID for revocation
        issued_at: Issued at timestamp
        expires_at: Expiration timestamp
    """
    identity_id: str
    role: str
    jti: str
    issued_at: datetime
    expires_at: datetime


class ClaimCodec:
    """
    Session claim codec.

    Creates and validates signed claims.
    """

    def __init__(self, settings: Optional[Settings] = None, clock: Clock = utc_now):
        """
        Initialize codec.

        Args:
            settings: Settings providing the secret, algorithm and TTL
            clock: Source of the current time
        """
        self.settings = settings or get_settings()
        self.clock = clock

    def issue(self, identity: Identity) -> SessionClaim:
        """
        Issue a claim for an identity.

        Args:
            identity: Identity to issue the claim for

        Returns:
            SessionClaim holding the signed token and an identity snapshot
        """
        now = self.clock()
        expire = now + timedelta(hours=self.settings.claim_ttl_hours)
        jti = secrets.token_urlsafe(16)

        payload = {
            "iat": int(now.timestamp()),
            # Rounded up so the claim never expires before the full TTL
            "exp": math.ceil(expire.timestamp()),
            "sub": identity.id,
            "role": identity.role.value,
            "jti": jti,
            "type": "session",
        }

        token = jwt.encode(payload, self.settings.secret_key, algorithm=self.settings.jwt_algorithm)
        logger.debug(f"Session claim issued for identity {identity.id}")

        return SessionClaim(
            token=token,
            jti=jti,
            identity=identity.copy(),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def verify(self, token: str) -> ClaimPayload:
        """
        Verify and decode a claim token.

        Expiry is checked against the codec's clock rather than the wall
        clock, so it honours an injected clock.

        Args:
            token: Signed claim token

        Returns:
            ClaimPayload

        Raises:
            AuthError: MALFORMED for a bad signature or shape, EXPIRED when
                past its expiry
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.secret_key,
                algorithms=[self.settings.jwt_algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": ["exp", "iat", "sub", "jti"],
                },
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid session claim: {e}")
            raise AuthError(AuthFailure.MALFORMED, str(e)) from e

        if payload.get("type") != "session":
            logger.warning("Token is not a session claim")
            raise AuthError(AuthFailure.MALFORMED, "not a session claim")

        try:
            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
            issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as e:
            raise AuthError(AuthFailure.MALFORMED, "bad timestamps") from e

        if self.clock() > expires_at:
            logger.warning("Session claim has expired")
            raise AuthError(AuthFailure.EXPIRED)

        return ClaimPayload(
            identity_id=payload["sub"],
            role=payload.get("role", ""),
            jti=payload["jti"],
            issued_at=issued_at,
            expires_at=expires_at,
        )
