"""
auth/tokens.py -- JWT and password hashing utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (user id), email, role, iat
       and exp = iat + 24h. They are never stored server-side; validity is
       signature + expiry only, so there is no revocation.

       validate_token() pins the algorithm to HS256 twice over: the header is
       checked before verification (so a token claiming "none", RS256, HS512,
       ... is refused outright) and jose is told to accept HS256 only. Every
       failure raises the same UnauthorizedError; the specific reason goes to
       the log, never to the client.

  Passwords: bcrypt directly (no passlib wrapper). The work factor comes
       from Settings.bcrypt_rounds. dummy_hash() provides a hash of the same
       cost for timing equalization in AuthService.login(), so response time
       does not reveal whether an email is registered.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import UnauthorizedError

logger = logging.getLogger("workmate.auth")

ALGORITHM = "HS256"
TOKEN_TTL = timedelta(hours=24)

# bcrypt only looks at the first 72 bytes of a password and bcrypt>=5
# raises on longer input, so both hashing and checking cut there.
_BCRYPT_MAX_BYTES = 72


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def _password_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int) -> str:
    """Return a salted bcrypt hash of the plaintext password."""
    return bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


@lru_cache(maxsize=4)
def dummy_hash(rounds: int) -> str:
    """A throwaway hash with the given cost, computed once per cost."""
    return hash_password("workmate_timing_dummy", rounds)


# ---------------------------------------------------------------------------
# JWT encode / validate
# ---------------------------------------------------------------------------


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    secret: str,
    issued_at: datetime | None = None,
) -> str:
    """Encode a signed HS256 JWT for the given identity.

    Args:
        user_id:   Subject claim.
        email:     Copied into the token for clients; not used for auth.
        role:      "Admin" or "Employee". Stored only; nothing enforces it.
        secret:    Server-held signing key (Settings.jwt_secret).
        issued_at: Defaults to now. Expiry is always issued_at + 24h.
    """
    iat = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": iat,
        "exp": iat + TOKEN_TTL,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def validate_token(token: str, secret: str, now: datetime | None = None) -> str:
    """Verify a token and return its subject (the user id).

    A token is expired from the second its exp is reached (now >= exp).
    jose only rejects once exp has passed, so that boundary is checked here
    against `now`, which defaults to the current time.

    Raises UnauthorizedError for a malformed token, a wrong or missing
    algorithm, a bad signature, an expired token, or a missing claim.
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        raise _rejected("malformed token") from None
    if header.get("alg") != ALGORITHM:
        raise _rejected(f"unexpected algorithm {header.get('alg')!r}")

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require_exp": True, "require_sub": True},
        )
    except ExpiredSignatureError:
        raise _rejected("token expired") from None
    except JWTClaimsError as exc:
        raise _rejected(f"invalid claims: {exc}") from None
    except JWTError as exc:
        raise _rejected(f"verification failed: {exc}") from None

    current = int((now or datetime.now(timezone.utc)).timestamp())
    if payload["exp"] <= current:
        raise _rejected("token expired")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise _rejected("empty subject")
    return subject


def _rejected(reason: str) -> UnauthorizedError:
    logger.info("Rejected bearer token: %s", reason)
    return UnauthorizedError()
