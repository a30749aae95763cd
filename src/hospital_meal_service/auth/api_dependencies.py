"""FastAPI dependencies for authentication and role checks.

``get_current_identity`` is the entry gate for every protected route;
``require_roles`` builds the single reusable role gate applied to admin routes.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Header, Request

from hospital_meal_service.auth.token_service import Identity, TokenService
from hospital_meal_service.errors import ForbiddenError, UnauthenticatedError
from hospital_meal_service.models.user_models import ADMIN_ROLES, Role

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header.

    Raises:
        UnauthenticatedError: If no token is present
    """
    if not authorization:
        raise UnauthenticatedError("No token, authorization denied")

    token = authorization[len(BEARER_PREFIX):] if authorization.startswith(BEARER_PREFIX) else authorization
    token = token.strip()
    if not token:
        raise UnauthenticatedError("No token, authorization denied")
    return token


def get_current_identity(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    """FastAPI dependency resolving the caller from the bearer token.

    Returns:
        Identity: The authenticated caller

    Raises:
        UnauthenticatedError: 401 if the token is missing or invalid
    """
    token = extract_bearer_token(authorization)
    token_service: TokenService = request.app.state.token_service
    return token_service.verify(token)


def has_role(identity: Identity, allowed_roles: frozenset[Role]) -> bool:
    """Role gate predicate."""
    return identity.role in allowed_roles


def require_roles(*roles: Role) -> Callable[..., Identity]:
    """Build a dependency that admits only callers holding one of ``roles``.

    Example:
        @router.get("/admin/things")
        async def list_things(identity: Identity = Depends(require_roles(*ADMIN_ROLES))):
            ...
    """
    allowed = frozenset(roles)

    def role_gate(identity: Annotated[Identity, Depends(get_current_identity)]) -> Identity:
        if not has_role(identity, allowed):
            raise ForbiddenError("Access denied. Admin privileges required.")
        return identity

    return role_gate


require_admin = require_roles(*ADMIN_ROLES)
