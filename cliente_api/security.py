"""
Security utilities: password hashing and JWT access tokens.

This module centralizes all cryptographic operations so they're easy to
audit and update.

1. PASSWORD HASHING (Argon2)
   - Passwords are never stored in plaintext
   - passlib's CryptContext manages the Argon2id scheme

2. JWT TOKENS (JSON Web Tokens)
   - After signin, the user receives a signed JWT whose subject is the username
   - The token is signed with SECRET_KEY using HS256 (HMAC-SHA256)
   - Tokens expire after ACCESS_TOKEN_EXPIRE_MINUTES (default: 30 min)
   - The server is stateless: no session table, so a token cannot be revoked
     before it expires

Token validation never raises. It returns a TokenValidation value that is
either a subject or one of the TokenFailure kinds. Callers collapse every
failure into a single "unauthenticated" outcome; the kind exists for logs.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from passlib.context import CryptContext

from cliente_api.config import settings


# ---------------------------------------------------------------------------
# 1. Password Hashing (Argon2)
# ---------------------------------------------------------------------------

# deprecated="auto" lets passlib re-hash transparently if the scheme changes
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """
    Hash a plaintext password using Argon2id.

    Returns:
        An Argon2 hash string (e.g., "$argon2id$v=19$m=65536,t=3,p=4$...").
    """
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a stored Argon2 hash."""
    return pwd_context.verify(plain_password, hashed_password)


# ---------------------------------------------------------------------------
# 2. JWT Tokens
# ---------------------------------------------------------------------------


class TokenFailure(str, enum.Enum):
    """Why a bearer token was rejected. Diagnostic only, never sent to clients."""
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    INVALID_CLAIMS = "invalid_claims"


@dataclass(frozen=True)
class TokenValidation:
    """Outcome of validate_access_token: a subject, or a failure kind."""
    subject: str | None = None
    failure: TokenFailure | None = None

    @property
    def is_valid(self) -> bool:
        return self.failure is None and self.subject is not None


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    issued_at: datetime | None = None,
) -> str:
    """
    Create a signed JWT access token.

    The token payload contains:
      - "sub": The subject (username)
      - "iat": Issued-at timestamp
      - "exp": Expiration timestamp; after this, the token is rejected

    Args:
        subject: The authenticated username.
        expires_delta: Optional custom lifetime. Defaults to
                       ACCESS_TOKEN_EXPIRE_MINUTES from settings.
        issued_at: Optional clock override (tests use it to mint stale tokens).

    Returns:
        An encoded JWT string.
    """
    now = issued_at or datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": subject,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def validate_access_token(token: str) -> TokenValidation:
    """
    Verify signature and expiry of a JWT access token.

    The unverified claims are parsed first so a structurally broken token is
    reported as MALFORMED rather than as a signature mismatch.

    Returns:
        TokenValidation with the subject on success, otherwise with the
        failure kind. Never raises.
    """
    try:
        jwt.get_unverified_claims(token)
    except (JWTError, ValueError, TypeError):
        return TokenValidation(failure=TokenFailure.MALFORMED)

    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except ExpiredSignatureError:
        return TokenValidation(failure=TokenFailure.EXPIRED)
    except JWTClaimsError:
        return TokenValidation(failure=TokenFailure.INVALID_CLAIMS)
    except JWTError:
        return TokenValidation(failure=TokenFailure.BAD_SIGNATURE)

    # jose only checks exp when present; a token without one never expires
    if "exp" not in payload:
        return TokenValidation(failure=TokenFailure.INVALID_CLAIMS)

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        return TokenValidation(failure=TokenFailure.INVALID_CLAIMS)

    return TokenValidation(subject=subject)
