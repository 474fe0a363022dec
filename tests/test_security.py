"""
Tests for the claims codec and the expiry policy.
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from models.schemas.identity import Identity
from utils.errors import BackendFailure, InvalidToken, TokenSigningError
from utils.security import Claims, ExpiryPolicy, TokenCodec, TokenKind, TokenSettings

from conftest import ACCESS_SECRET, REFRESH_SECRET

FIXED_NOW = datetime(2030, 1, 1, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_NOW


class TestTokenCodec:
    """Encoding and decoding of signed tokens per token class."""

    @pytest.mark.parametrize("kind", [TokenKind.ACCESS, TokenKind.REFRESH])
    def test_round_trip(self, codec, policy, kind):
        claims = policy.new_claims(Identity(id=7), kind)

        token = codec.encode(claims, kind)

        assert codec.decode(token, kind) == claims

    def test_encode_is_deterministic(self, codec):
        claims = Claims(exp=1_900_000_000, identity=Identity(id=1), iat=1_800_000_000, jti="fixed")

        assert codec.encode(claims, TokenKind.ACCESS) == codec.encode(claims, TokenKind.ACCESS)

    def test_payload_layout(self, codec, policy):
        claims = policy.new_claims(Identity(id=3), TokenKind.REFRESH)

        token = codec.encode(claims, TokenKind.REFRESH)
        decoded = jwt.decode(token, REFRESH_SECRET, algorithms=["HS256"], options={"verify_iss": False})

        assert decoded["user"] == {"id": 3}
        assert decoded["type"] == "refresh"
        assert decoded["exp"] == claims.exp
        assert decoded["jti"] == claims.jti

    def test_expired_token_rejected(self, codec):
        past = ExpiryPolicy(clock=lambda: datetime.now(timezone.utc) - timedelta(hours=1))
        claims = past.new_claims(Identity(id=1), TokenKind.ACCESS)
        token = codec.encode(claims, TokenKind.ACCESS)

        with pytest.raises(InvalidToken):
            codec.decode(token, TokenKind.ACCESS)

    def test_access_token_is_not_a_refresh_token(self, codec, policy):
        claims = policy.new_claims(Identity(id=1), TokenKind.ACCESS)
        token = codec.encode(claims, TokenKind.ACCESS)

        with pytest.raises(InvalidToken):
            codec.decode(token, TokenKind.REFRESH)

    def test_token_signed_with_other_class_secret_rejected(self, codec):
        # claims say refresh, signature is from the access secret
        now = int(datetime.now(timezone.utc).timestamp())
        payload = {
            "iss": "cookie-token-auth",
            "type": "refresh",
            "iat": now,
            "exp": now + 60,
            "jti": "x",
            "user": {"id": 1},
        }
        token = jwt.encode(payload, ACCESS_SECRET, algorithm="HS256")

        with pytest.raises(InvalidToken):
            codec.decode(token, TokenKind.REFRESH)

    def test_tampered_token_rejected(self, codec, policy):
        claims = policy.new_claims(Identity(id=1), TokenKind.REFRESH)
        header, _, signature = codec.encode(claims, TokenKind.REFRESH).split(".")
        other = codec.encode(policy.new_claims(Identity(id=2), TokenKind.REFRESH), TokenKind.REFRESH)
        # identity 2's payload under identity 1's signature
        tampered = ".".join([header, other.split(".")[1], signature])

        with pytest.raises(InvalidToken):
            codec.decode(tampered, TokenKind.REFRESH)

    @pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
    def test_garbage_rejected(self, codec, token):
        with pytest.raises(InvalidToken):
            codec.decode(token, TokenKind.REFRESH)

    def test_foreign_issuer_rejected(self, codec, policy):
        claims = policy.new_claims(Identity(id=1), TokenKind.REFRESH)
        other = TokenCodec(TokenSettings(ACCESS_SECRET, REFRESH_SECRET, issuer="someone-else"))
        token = other.encode(claims, TokenKind.REFRESH)

        with pytest.raises(InvalidToken):
            codec.decode(token, TokenKind.REFRESH)

    @pytest.mark.parametrize("user", [None, {"id": "1"}, {"id": 0}, {"name": "ada"}, "1"])
    def test_malformed_identity_rejected(self, codec, user):
        now = int(datetime.now(timezone.utc).timestamp())
        payload = {
            "iss": "cookie-token-auth",
            "type": "refresh",
            "iat": now,
            "exp": now + 60,
            "jti": "x",
            "user": user,
        }
        token = jwt.encode(payload, REFRESH_SECRET, algorithm="HS256")

        with pytest.raises(InvalidToken):
            codec.decode(token, TokenKind.REFRESH)

    def test_missing_secret_fails_encode_as_backend_failure(self, policy):
        codec = TokenCodec(TokenSettings(ACCESS_SECRET, None))
        claims = policy.new_claims(Identity(id=1), TokenKind.REFRESH)

        with pytest.raises(TokenSigningError):
            codec.encode(claims, TokenKind.REFRESH)
        # access tokens are unaffected
        assert codec.encode(policy.new_claims(Identity(id=1), TokenKind.ACCESS), TokenKind.ACCESS)

    def test_signing_error_is_a_backend_failure(self):
        assert issubclass(TokenSigningError, BackendFailure)

    def test_shared_secret_refused(self):
        with pytest.raises(ValueError):
            TokenSettings("same", "same")

    def test_settings_from_config(self):
        settings = TokenSettings.from_config({
            "ACCESS_TOKEN_SECRET": "a",
            "REFRESH_TOKEN_SECRET": "r",
            "JWT_ISSUER": "issuer",
            "JWT_LEEWAY_SECONDS": "5",
        })

        assert settings.secret_for(TokenKind.ACCESS) == "a"
        assert settings.secret_for(TokenKind.REFRESH) == "r"
        assert settings.issuer == "issuer"
        assert settings.leeway == 5


class TestExpiryPolicy:

    def test_default_lifetimes(self):
        policy = ExpiryPolicy(clock=fixed_clock)
        now = int(FIXED_NOW.timestamp())

        assert policy.expiry_for(TokenKind.ACCESS) == now + 1800
        assert policy.expiry_for(TokenKind.REFRESH) == now + 2_592_000

    def test_lifetimes_overridable(self):
        policy = ExpiryPolicy.from_config(
            {
                "ACCESS_TOKEN_EXPIRES": timedelta(seconds=60),
                "REFRESH_TOKEN_EXPIRES": timedelta(hours=1),
            },
            clock=fixed_clock,
        )
        now = int(FIXED_NOW.timestamp())

        assert policy.expiry_for(TokenKind.ACCESS) == now + 60
        assert policy.expiry_for(TokenKind.REFRESH) == now + 3600

    def test_unrepresentable_expiry_is_already_expired(self, codec):
        policy = ExpiryPolicy(clock=lambda: datetime.max.replace(tzinfo=timezone.utc) - timedelta(seconds=10))

        assert policy.expiry_for(TokenKind.REFRESH) == 0

        claims = policy.new_claims(Identity(id=1), TokenKind.REFRESH)
        token = codec.encode(claims, TokenKind.REFRESH)
        with pytest.raises(InvalidToken):
            codec.decode(token, TokenKind.REFRESH)

    def test_claims_pairs_are_unique(self):
        policy = ExpiryPolicy(clock=fixed_clock)

        first = policy.new_claims(Identity(id=1), TokenKind.REFRESH)
        second = policy.new_claims(Identity(id=1), TokenKind.REFRESH)

        assert first.exp == second.exp
        assert first.jti != second.jti
        assert first != second
