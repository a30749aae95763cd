"""Bearer token issuance and verification.

Tokens are URL-safe, timestamped signatures over the caller's identity claim.
Verification rejects tampered tokens and tokens older than the configured
maximum age.
"""

import logging
from dataclasses import dataclass

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from hospital_meal_service.errors import UnauthenticatedError
from hospital_meal_service.models.user_models import ADMIN_ROLES, Role, User

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_MAX_AGE_SECONDS = 24 * 60 * 60
TOKEN_SALT = "hospital-meal-auth"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller.

    Attributes:
        user_id: Account identifier
        role: Account role at token issuance
        email: Account email at token issuance
    """

    user_id: str
    role: Role
    email: str

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


class TokenService:
    """Signs and verifies identity claims."""

    def __init__(self, secret_key: str, max_age_seconds: int = DEFAULT_TOKEN_MAX_AGE_SECONDS) -> None:
        """Initialize the token service.

        Args:
            secret_key: Signing secret
            max_age_seconds: Token lifetime

        Raises:
            ValueError: If secret_key is empty
        """
        if not secret_key:
            raise ValueError("A token secret key must be provided")

        self.max_age_seconds = max_age_seconds
        self._serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)

    def issue(self, user: User) -> str:
        """Create a signed token for a user."""
        return self._serializer.dumps(
            {"userId": user.id, "email": user.email, "role": user.role.value}
        )

    def verify(self, token: str) -> Identity:
        """Verify a token and return the identity it carries.

        Raises:
            UnauthenticatedError: If the token is tampered, malformed or expired
        """
        try:
            claims = self._serializer.loads(token, max_age=self.max_age_seconds)
        except SignatureExpired as e:
            logger.info(f"Rejected expired token: {e}")
            raise UnauthenticatedError("Token is not valid") from e
        except BadSignature as e:
            logger.info(f"Rejected invalid token: {e}")
            raise UnauthenticatedError("Token is not valid") from e

        try:
            return Identity(
                user_id=str(claims["userId"]),
                role=Role(claims["role"]),
                email=str(claims.get("email", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UnauthenticatedError("Token is not valid") from e
