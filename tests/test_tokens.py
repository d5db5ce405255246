"""Unit tests for auth/tokens.py -- password hashing and JWT issue/validate.

Covers:
- bcrypt hash/verify, including malformed hashes and >72-byte passwords
- token round-trip returns the subject
- claims carried by the token (email, role, iat, exp = iat + 24h)
- expiry, wrong secret, wrong algorithm ("none", HS512), malformed input and
  missing subject are all rejected with the same UnauthorizedError
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import UnauthorizedError
from auth.tokens import (
    ALGORITHM,
    TOKEN_TTL,
    create_access_token,
    dummy_hash,
    hash_password,
    validate_token,
    verify_password,
)

SECRET = "unit-test-secret"


def _b64(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


class TestPasswordHashing:
    def test_hash_is_not_plaintext_and_verifies(self) -> None:
        hashed = hash_password("secret1", rounds=4)
        assert hashed != "secret1"
        assert hashed.startswith("$2")
        assert verify_password("secret1", hashed)

    def test_wrong_password_does_not_verify(self) -> None:
        assert not verify_password("secret2", hash_password("secret1", rounds=4))

    def test_hash_embeds_cost(self) -> None:
        assert hash_password("secret1", rounds=5).split("$")[2] == "05"

    def test_same_password_gets_distinct_salts(self) -> None:
        assert hash_password("secret1", rounds=4) != hash_password("secret1", rounds=4)

    def test_malformed_hash_is_a_mismatch(self) -> None:
        assert not verify_password("secret1", "not-a-bcrypt-hash")

    def test_long_password_round_trips(self) -> None:
        long_pw = "p" * 200
        assert verify_password(long_pw, hash_password(long_pw, rounds=4))

    def test_dummy_hash_is_cached_per_cost(self) -> None:
        assert dummy_hash(4) is dummy_hash(4)
        assert dummy_hash(4).split("$")[2] == "04"


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TestTokenRoundTrip:
    def test_fresh_token_resolves_to_subject(self) -> None:
        token = create_access_token("user-123", "ann@workmate.io", "Employee", SECRET)
        assert validate_token(token, SECRET) == "user-123"

    def test_claims(self) -> None:
        issued = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        token = create_access_token("user-123", "ann@workmate.io", "Admin", SECRET, issued_at=issued)
        claims = jwt.get_unverified_claims(token)
        assert claims["sub"] == "user-123"
        assert claims["email"] == "ann@workmate.io"
        assert claims["role"] == "Admin"
        assert claims["iat"] == int(issued.timestamp())
        assert claims["exp"] == int((issued + TOKEN_TTL).timestamp())
        assert jwt.get_unverified_header(token)["alg"] == ALGORITHM

    def test_token_issued_almost_a_day_ago_is_still_valid(self) -> None:
        issued = datetime.now(timezone.utc) - TOKEN_TTL + timedelta(minutes=5)
        token = create_access_token("user-123", "ann@workmate.io", "Employee", SECRET, issued_at=issued)
        assert validate_token(token, SECRET) == "user-123"


class TestTokenRejection:
    def test_expired_token(self) -> None:
        issued = datetime.now(timezone.utc) - TOKEN_TTL - timedelta(minutes=1)
        token = create_access_token("user-123", "ann@workmate.io", "Employee", SECRET, issued_at=issued)
        with pytest.raises(UnauthorizedError):
            validate_token(token, SECRET)

    def test_token_is_expired_at_exactly_exp(self) -> None:
        # Issued in the future so only the explicit `now` decides expiry.
        issued = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(hours=1)
        token = create_access_token("user-123", "ann@workmate.io", "Employee", SECRET, issued_at=issued)
        with pytest.raises(UnauthorizedError):
            validate_token(token, SECRET, now=issued + TOKEN_TTL)

    def test_token_is_valid_one_second_before_exp(self) -> None:
        issued = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(hours=1)
        token = create_access_token("user-123", "ann@workmate.io", "Employee", SECRET, issued_at=issued)
        assert validate_token(token, SECRET, now=issued + TOKEN_TTL - timedelta(seconds=1)) == "user-123"

    def test_wrong_secret(self) -> None:
        token = create_access_token("user-123", "ann@workmate.io", "Employee", "another-secret")
        with pytest.raises(UnauthorizedError):
            validate_token(token, SECRET)

    def test_other_hmac_algorithm(self) -> None:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode({"sub": "user-123", "exp": exp}, SECRET, algorithm="HS512")
        with pytest.raises(UnauthorizedError):
            validate_token(token, SECRET)

    def test_unsigned_none_algorithm(self) -> None:
        exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
        token = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64({'sub': 'user-123', 'exp': exp})}."
        with pytest.raises(UnauthorizedError):
            validate_token(token, SECRET)

    def test_missing_subject(self) -> None:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode({"exp": exp}, SECRET, algorithm=ALGORITHM)
        with pytest.raises(UnauthorizedError):
            validate_token(token, SECRET)

    def test_missing_expiry(self) -> None:
        token = jwt.encode({"sub": "user-123"}, SECRET, algorithm=ALGORITHM)
        with pytest.raises(UnauthorizedError):
            validate_token(token, SECRET)

    @pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", "Bearer xyz"])
    def test_malformed(self, garbage: str) -> None:
        with pytest.raises(UnauthorizedError):
            validate_token(garbage, SECRET)

    def test_tampered_payload(self) -> None:
        token = create_access_token("user-123", "ann@workmate.io", "Employee", SECRET)
        header, _payload, signature = token.split(".")
        exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
        forged = f"{header}.{_b64({'sub': 'someone-else', 'exp': exp})}.{signature}"
        with pytest.raises(UnauthorizedError):
            validate_token(forged, SECRET)

    def test_all_failures_share_one_message(self) -> None:
        expired = create_access_token(
            "u", "e@workmate.io", "Employee", SECRET, issued_at=datetime.now(timezone.utc) - timedelta(days=2)
        )
        messages = set()
        for token in (expired, "garbage", create_access_token("u", "e@workmate.io", "Employee", "other")):
            with pytest.raises(UnauthorizedError) as excinfo:
                validate_token(token, SECRET)
            messages.add(str(excinfo.value))
        assert len(messages) == 1
