"""
FastAPI dependencies for authentication and authorization.

Two stages run before any customer business logic:

  get_request_context   (auth gateway)
      Authorization header -> token validation -> account re-fetch
      -> RequestContext(principal | None)
  require_roles(...)    (authorization policy)
      RequestContext -> Principal, or 401 / 403

The gateway is installed as a router-level dependency on protected routers,
so it runs once for every request on them. FastAPI caches it per request,
which means the role check declared on each route reuses the same context
instead of validating the token twice.

Missing, malformed, expired or forged tokens do not fail the gateway: the
request simply carries no principal and the policy answers 401. The one
exception is a well-formed token whose account no longer exists, which is
rejected right away because the accounts table is the source of truth for
current roles.

The principal is an explicit, immutable value handed down the dependency
chain. Nothing is stored on globals, thread-locals or the request state.
"""

import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cliente_api.database import get_db
from cliente_api.exceptions import ForbiddenError, NotAuthenticatedError
from cliente_api.models.user import RoleName
from cliente_api.security import validate_access_token
from cliente_api.services import auth_service

logger = logging.getLogger(__name__)

# Reads "Authorization: Bearer <token>". With auto_error=False a missing or
# non-Bearer header arrives as None and the authorization policy answers 401.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/signin", auto_error=False)


@dataclass(frozen=True)
class Principal:
    """The authenticated identity for the duration of one request."""
    id: uuid.UUID
    username: str
    roles: frozenset[RoleName]


@dataclass(frozen=True)
class RequestContext:
    """Per-request security context produced by the auth gateway."""
    path: str
    principal: Principal | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None


async def get_request_context(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    """
    Auth gateway: establish who is calling, if anyone.

    Returns:
        RequestContext with a Principal when the bearer token is valid and
        the account exists, otherwise an anonymous RequestContext.

    Raises:
        NotAuthenticatedError: If the token is valid but its account is gone.
    """
    path = request.url.path
    if not token:
        logger.info("No bearer token on %s %s", request.method, path)
        return RequestContext(path=path)

    validation = validate_access_token(token)
    if not validation.is_valid:
        logger.warning(
            "Bearer token rejected on %s %s: %s",
            request.method,
            path,
            validation.failure.value,
        )
        return RequestContext(path=path)

    user = await auth_service.get_user_by_username(db, validation.subject)
    if user is None:
        logger.warning(
            "Bearer token for unknown account %s on %s %s",
            validation.subject,
            request.method,
            path,
        )
        raise NotAuthenticatedError()

    principal = Principal(
        id=user.id,
        username=user.username,
        roles=frozenset(role.name for role in user.roles),
    )
    logger.info("Authenticated %s on %s %s", principal.username, request.method, path)
    return RequestContext(path=path, principal=principal)


def require_roles(*allowed: RoleName):
    """
    Build an authorization dependency for a route.

    The caller needs at least one of `allowed` (logical OR).

    Usage:
        @router.delete("/{national_id}")
        async def delete(principal: Principal = Depends(require_roles(RoleName.ADMIN))):
            ...
    """
    allowed_roles = frozenset(allowed)

    async def check_roles(
        context: RequestContext = Depends(get_request_context),
    ) -> Principal:
        if context.principal is None:
            raise NotAuthenticatedError()
        if context.principal.roles.isdisjoint(allowed_roles):
            logger.warning(
                "Access denied for %s on %s: requires one of %s",
                context.principal.username,
                context.path,
                sorted(role.value for role in allowed_roles),
            )
            raise ForbiddenError()
        return context.principal

    return check_roles


# Role sets declared by the customer routes
require_admin = require_roles(RoleName.ADMIN)
require_staff = require_roles(RoleName.ADMIN, RoleName.MODERATOR, RoleName.USER)
