"""
Cookie policy: every token travels in an HttpOnly, Secure cookie whose
expiry is the token's own `exp` claim.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from flask import Response

from utils.security import Claims, TokenKind, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cookie:
    name: str
    value: str
    expires: datetime
    http_only: bool = True
    secure: bool = True
    path: str = "/"
    samesite: Optional[str] = "Lax"
    domain: Optional[str] = None


@dataclass(frozen=True)
class CookieSettings:
    access_name: str = "access_token"
    refresh_name: str = "refresh_token"
    path: str = "/"
    samesite: Optional[str] = "Lax"
    domain: Optional[str] = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "CookieSettings":
        return cls(
            access_name=config.get("ACCESS_COOKIE_NAME", "access_token"),
            refresh_name=config.get("REFRESH_COOKIE_NAME", "refresh_token"),
            path=config.get("COOKIE_PATH", "/"),
            samesite=config.get("COOKIE_SAMESITE") or None,
            domain=config.get("COOKIE_DOMAIN") or None,
        )

    def name_for(self, kind: TokenKind) -> str:
        return self.access_name if kind is TokenKind.ACCESS else self.refresh_name


def cookie_expiry(exp: int, clock: Callable[[], datetime] = utcnow) -> datetime:
    """Convert a claims expiry to a cookie expiry; unconvertible values expire now."""
    try:
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.warning("claims expiry %r is not a valid cookie expiry; expiring cookie now", exp)
        return clock()


def build_cookie(
    kind: TokenKind,
    value: str,
    claims: Claims,
    settings: CookieSettings = CookieSettings(),
    clock: Callable[[], datetime] = utcnow,
) -> Cookie:
    return Cookie(
        name=settings.name_for(kind),
        value=value,
        expires=cookie_expiry(claims.exp, clock),
        path=settings.path,
        samesite=settings.samesite,
        domain=settings.domain,
    )


def attach_cookie(response: Response, cookie: Cookie) -> Response:
    response.set_cookie(
        cookie.name,
        cookie.value,
        expires=cookie.expires,
        path=cookie.path,
        domain=cookie.domain,
        secure=cookie.secure,
        httponly=cookie.http_only,
        samesite=cookie.samesite,
    )
    return response


def expire_cookie(response: Response, name: str, settings: CookieSettings = CookieSettings()) -> Response:
    response.delete_cookie(
        name,
        path=settings.path,
        domain=settings.domain,
        secure=True,
        httponly=True,
        samesite=settings.samesite,
    )
    return response
