"""Unit tests for password hashing and token issuance."""

import base64
import json
from datetime import timedelta

import pytest
from jose import jwt

from market_api.models.account import Account, AccountRole
from market_api.services.security import (
    ACCESS,
    REFRESH,
    InvalidTokenError,
    TokenExpiredError,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)


@pytest.fixture
def account():
    return Account(id=42, role=AccountRole.SHOP)


class TestPasswordHashing:

    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = get_password_hash("12345678", rounds=4)

        assert hashed != "12345678"
        assert verify_password("12345678", hashed) is True

    def test_same_password_produces_different_hashes(self):
        assert get_password_hash("12345678", rounds=4) != get_password_hash("12345678", rounds=4)

    def test_wrong_password_is_rejected(self):
        hashed = get_password_hash("12345678", rounds=4)
        assert verify_password("87654321", hashed) is False

    def test_work_factor_is_encoded_in_hash(self):
        assert get_password_hash("secret-pw", rounds=5).startswith("$2b$05$")

    @pytest.mark.parametrize("bad_hash", [None, "", "not-a-bcrypt-hash"])
    def test_malformed_hash_returns_false(self, bad_hash):
        assert verify_password("12345678", bad_hash) is False


class TestTokens:

    def test_access_token_carries_id_and_role(self, account, settings):
        token = create_access_token(account, settings)
        claims = decode_token(token, ACCESS, settings)

        assert claims.id == 42
        assert claims.role == AccountRole.SHOP
        assert claims.type == ACCESS

    def test_refresh_token_carries_only_id(self, account, settings):
        token = create_refresh_token(account, settings)
        payload = jwt.get_unverified_claims(token)

        assert payload["id"] == 42
        assert "role" not in payload
        assert decode_token(token, REFRESH, settings).id == 42

    def test_default_lifetimes(self, account, settings):
        access = jwt.get_unverified_claims(create_access_token(account, settings))
        refresh = jwt.get_unverified_claims(create_refresh_token(account, settings))

        assert access["exp"] - access["iat"] == 15 * 60
        assert refresh["exp"] - refresh["iat"] == 7 * 24 * 60 * 60

    def test_expired_token_raises_expiry_error(self, account, settings):
        token = create_access_token(account, settings, expires_delta=timedelta(seconds=-30))

        with pytest.raises(TokenExpiredError):
            decode_token(token, ACCESS, settings)

    def test_tampered_token_is_invalid_not_expired(self, account, settings):
        token = create_access_token(account, settings)
        header, _, signature = token.split(".")
        escalated = base64.urlsafe_b64encode(
            json.dumps({"id": 42, "role": "ADMIN", "type": ACCESS}).encode()
        ).rstrip(b"=").decode()
        tampered = ".".join([header, escalated, signature])

        with pytest.raises(InvalidTokenError) as exc_info:
            decode_token(tampered, ACCESS, settings)
        assert not isinstance(exc_info.value, TokenExpiredError)

    def test_refresh_token_is_not_accepted_as_access(self, account, settings):
        token = create_refresh_token(account, settings)

        with pytest.raises(InvalidTokenError):
            decode_token(token, ACCESS, settings)

    def test_access_token_is_not_accepted_as_refresh(self, account, settings):
        token = create_access_token(account, settings)

        with pytest.raises(InvalidTokenError):
            decode_token(token, REFRESH, settings)

    def test_token_signed_with_other_secret_is_invalid(self, account, settings):
        forged = jwt.encode({"id": 1, "role": "ADMIN", "type": ACCESS}, "guessed", algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            decode_token(forged, ACCESS, settings)

    def test_unknown_role_claim_is_invalid(self, settings):
        token = jwt.encode(
            {"id": 1, "role": "admin", "type": ACCESS},
            settings.ACCESS_TOKEN_SECRET,
            algorithm=settings.ALGORITHM,
        )

        with pytest.raises(InvalidTokenError):
            decode_token(token, ACCESS, settings)
