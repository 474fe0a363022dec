"""
security helpers:
- TokenKind: the two token classes, each bound to its own secret
- ExpiryPolicy: lifetimes per token class measured from an injectable clock
- TokenCodec: JWT creation/verification via PyJWT (HS256)
- JTI generation for token identifiers
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

import jwt
from marshmallow import ValidationError

from models.schemas.identity import Identity, IdentitySchema
from utils.errors import InvalidToken, TokenSigningError

logger = logging.getLogger(__name__)

DEFAULT_ACCESS_LIFETIME = timedelta(seconds=1800)
DEFAULT_REFRESH_LIFETIME = timedelta(seconds=2_592_000)  # 30 days


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Claims:
    exp: int
    identity: Identity
    iat: int = 0
    jti: str = field(default_factory=generate_jti)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExpiryPolicy:
    """
    Computes expiry instants per token class.
    If now + lifetime cannot be represented the expiry is the epoch, so the
    token is born expired instead of failing the request.
    """

    def __init__(
        self,
        access_lifetime: timedelta = DEFAULT_ACCESS_LIFETIME,
        refresh_lifetime: timedelta = DEFAULT_REFRESH_LIFETIME,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.lifetimes = {
            TokenKind.ACCESS: access_lifetime,
            TokenKind.REFRESH: refresh_lifetime,
        }
        self.clock = clock

    @classmethod
    def from_config(cls, config: Mapping[str, Any], clock: Callable[[], datetime] = utcnow) -> "ExpiryPolicy":
        return cls(
            access_lifetime=config.get("ACCESS_TOKEN_EXPIRES", DEFAULT_ACCESS_LIFETIME),
            refresh_lifetime=config.get("REFRESH_TOKEN_EXPIRES", DEFAULT_REFRESH_LIFETIME),
            clock=clock,
        )

    def now(self) -> datetime:
        return self.clock()

    def expiry_for(self, kind: TokenKind, now: Optional[datetime] = None) -> int:
        now = now or self.clock()
        try:
            return int((now + self.lifetimes[kind]).timestamp())
        except (OverflowError, OSError, ValueError):
            logger.warning("expiry for %s token not representable; issuing it expired", kind.value)
            return 0

    def new_claims(self, identity: Identity, kind: TokenKind, now: Optional[datetime] = None) -> Claims:
        now = now or self.clock()
        try:
            iat = int(now.timestamp())
        except (OverflowError, OSError, ValueError):
            iat = 0
        return Claims(exp=self.expiry_for(kind, now), identity=identity, iat=iat)


class TokenSettings:
    """Signing parameters; each token class is bound to its own secret once."""

    def __init__(
        self,
        access_secret: Optional[str],
        refresh_secret: Optional[str],
        algorithm: str = "HS256",
        issuer: str = "cookie-token-auth",
        leeway: int = 0,
    ):
        if access_secret and refresh_secret and access_secret == refresh_secret:
            raise ValueError("access and refresh tokens must be signed with different secrets")
        self._secrets = {
            TokenKind.ACCESS: access_secret or None,
            TokenKind.REFRESH: refresh_secret or None,
        }
        self.algorithm = algorithm
        self.issuer = issuer
        self.leeway = leeway

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenSettings":
        return cls(
            access_secret=config.get("ACCESS_TOKEN_SECRET"),
            refresh_secret=config.get("REFRESH_TOKEN_SECRET"),
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "cookie-token-auth"),
            leeway=int(config.get("JWT_LEEWAY_SECONDS", 0)),
        )

    def secret_for(self, kind: TokenKind) -> str:
        secret = self._secrets[kind]
        if not secret:
            raise TokenSigningError(f"no signing secret configured for {kind.value} tokens")
        return secret


class TokenCodec:
    """Encodes Claims into signed tokens and back, per token class."""

    def __init__(self, settings: TokenSettings):
        self.settings = settings

    def encode(self, claims: Claims, kind: TokenKind) -> str:
        secret = self.settings.secret_for(kind)
        payload = {
            "iss": self.settings.issuer,
            "type": kind.value,
            "iat": claims.iat,
            "exp": claims.exp,
            "jti": claims.jti,
            "user": {"id": claims.identity.id},
        }
        try:
            return jwt.encode(payload, secret, algorithm=self.settings.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise TokenSigningError(f"signing {kind.value} token failed: {exc}") from exc

    def decode(self, token: str, kind: TokenKind) -> Claims:
        """
        Decode and validate a token of the given class.
        Raises InvalidToken on bad signature, expiry, wrong class or payload;
        the reason is only logged.
        """
        secret = self.settings.secret_for(kind)
        try:
            decoded: Dict[str, Any] = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.algorithm],
                issuer=self.settings.issuer,
                leeway=self.settings.leeway,
                options={"require": ["exp", "iat", "jti", "iss"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("%s token expired", kind.value)
            raise InvalidToken("token expired")
        except jwt.InvalidTokenError as exc:
            logger.debug("%s token rejected: %s", kind.value, exc)
            raise InvalidToken(f"invalid token: {exc}")

        if decoded.get("type") != kind.value:
            logger.debug("token type %r presented as %s", decoded.get("type"), kind.value)
            raise InvalidToken("wrong token type")
        try:
            identity = IdentitySchema().load(decoded.get("user") or {})
        except ValidationError as exc:
            logger.debug("%s token carries a malformed identity: %s", kind.value, exc.messages)
            raise InvalidToken("malformed identity")

        return Claims(exp=decoded["exp"], identity=identity, iat=decoded["iat"], jti=decoded["jti"])
