"""
Authentication service — signup, signin and account lookup.

Signup flow:
  1. Check if the username is already registered
  2. Map requested role strings to seeded Role rows ("admin", "mod", else user)
  3. Hash the password with Argon2id and persist the User

Signin flow:
  1. Look up user by username
  2. Verify password against stored hash
  3. Return a JWT whose subject is the username

Security notes:
  - Signin returns the same error for "wrong password" and "unknown user"
    to prevent username enumeration
  - JWT tokens are stateless; the auth gateway re-reads the account on every
    request so role changes and deleted accounts take effect immediately
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cliente_api.exceptions import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    ReferenceDataMissingError,
)
from cliente_api.models.user import Role, RoleName, User
from cliente_api.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


# Role strings accepted at signup. Anything unrecognised falls back to USER.
_ROLE_ALIASES = {
    "admin": RoleName.ADMIN,
    "mod": RoleName.MODERATOR,
}


def resolve_role_names(requested: list[str] | None) -> set[RoleName]:
    """Translate signup role strings into RoleName values (default: USER)."""
    if not requested:
        return {RoleName.USER}
    return {_ROLE_ALIASES.get(role.lower(), RoleName.USER) for role in requested}


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def signup(
    db: AsyncSession,
    username: str,
    password: str,
    requested_roles: list[str] | None = None,
) -> User:
    """
    Register a new user.

    Raises:
        DuplicateUsernameError: If the username is already registered.
        ReferenceDataMissingError: If the roles have not been seeded.
    """
    if await get_user_by_username(db, username) is not None:
        raise DuplicateUsernameError(username)

    role_names = resolve_role_names(requested_roles)
    result = await db.execute(select(Role).where(Role.name.in_(role_names)))
    roles = list(result.scalars().all())
    if len(roles) != len(role_names):
        missing = role_names - {role.name for role in roles}
        raise ReferenceDataMissingError(
            f"roles {', '.join(sorted(name.value for name in missing))}"
        )

    user = User(
        username=username,
        hashed_password=hash_password(password),
        roles=roles,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent signup for the same username
        raise DuplicateUsernameError(username) from exc

    logger.info("Registered user %s with roles %s", username, user.role_names)
    return user


async def signin(
    db: AsyncSession,
    username: str,
    password: str,
) -> tuple[User, str]:
    """
    Authenticate a user and return a JWT token.

    Returns:
        Tuple of (User instance, JWT token string).

    Raises:
        InvalidCredentialsError: If the user doesn't exist or password is wrong.
    """
    user = await get_user_by_username(db, username)

    # Same error for both cases, prevents username enumeration
    if user is None or not verify_password(password, user.hashed_password):
        logger.warning("Signin rejected for username %s", username)
        raise InvalidCredentialsError()

    token = create_access_token(subject=user.username)
    logger.info("Issued access token for %s", username)
    return user, token
