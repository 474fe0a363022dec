"""
Rotation controller: issues access/refresh pairs at login and, on protected
routes, re-issues an expired access token from a still-valid refresh token.

Request states:
    Unauthenticated -> HasValidRefresh -> HasValidAccess
    or Rejected (Unauthenticated / RotationConflict)

Rotation always replaces both tokens; the refresh token presented by the
caller is retired by a compare-and-swap in the revocation store.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from models.revocation_store import RevocationStore
from models.schemas.identity import Identity
from utils.cookies import Cookie, CookieSettings, build_cookie
from utils.errors import InvalidToken, Unauthenticated
from utils.security import Claims, ExpiryPolicy, TokenCodec, TokenKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_claims: Claims
    access_token: str
    refresh_claims: Claims
    refresh_token: str
    cookies: List[Cookie] = field(default_factory=list)


@dataclass(frozen=True)
class AuthResult:
    identity: Identity
    refresh_token: str
    # empty unless the pair was rotated on this request
    cookies: List[Cookie] = field(default_factory=list)

    @property
    def rotated(self) -> bool:
        return bool(self.cookies)


class RotationController:

    def __init__(
        self,
        codec: TokenCodec,
        policy: ExpiryPolicy,
        store: RevocationStore,
        cookie_settings: CookieSettings = CookieSettings(),
    ):
        self.codec = codec
        self.policy = policy
        self.store = store
        self.cookie_settings = cookie_settings

    def issue_pair(self, identity: Identity) -> TokenPair:
        """Mint new access and refresh claims for identity and their cookies."""
        now = self.policy.now()
        access_claims = self.policy.new_claims(identity, TokenKind.ACCESS, now)
        refresh_claims = self.policy.new_claims(identity, TokenKind.REFRESH, now)
        access_token = self.codec.encode(access_claims, TokenKind.ACCESS)
        refresh_token = self.codec.encode(refresh_claims, TokenKind.REFRESH)
        cookies = [
            build_cookie(TokenKind.ACCESS, access_token, access_claims, self.cookie_settings, self.policy.clock),
            build_cookie(TokenKind.REFRESH, refresh_token, refresh_claims, self.cookie_settings, self.policy.clock),
        ]
        return TokenPair(access_claims, access_token, refresh_claims, refresh_token, cookies)

    def login(self, identity: Identity, access_cookie: Optional[str] = None) -> Optional[TokenPair]:
        """
        Provision a session for a caller-supplied identity.
        Returns None when an access cookie is already present (nothing to do).
        Raises IdentityNotFound if the identity does not exist.
        """
        if access_cookie:
            logger.debug("login for %s skipped: access cookie present", identity.id)
            return None

        pair = self.issue_pair(identity)
        self.store.set_token(identity, pair.refresh_token)
        logger.info("issued token pair for identity %s", identity.id)
        return pair

    def authenticate(self, refresh_cookie: Optional[str], access_cookie: Optional[str] = None) -> AuthResult:
        """
        Resolve the identity behind a protected request.

        The refresh token is the source of truth for identity. A present access
        cookie is trusted as proof of recent authentication and is not
        re-verified here. Without one, the pair is rotated.
        """
        if not refresh_cookie:
            raise Unauthenticated("missing refresh cookie")

        try:
            claims = self.codec.decode(refresh_cookie, TokenKind.REFRESH)
        except InvalidToken as exc:
            raise Unauthenticated(f"refresh token rejected: {exc}") from exc
        identity = claims.identity

        if access_cookie:
            return AuthResult(identity=identity, refresh_token=refresh_cookie)

        if not self.store.exists(refresh_cookie):
            logger.info("superseded refresh token presented for identity %s", identity.id)
            raise Unauthenticated("refresh token is no longer current")

        pair = self.issue_pair(identity)
        # compare against the presented token, never the freshly minted one
        self.store.rotate_token(identity, refresh_cookie, pair.refresh_token)
        logger.info("rotated token pair for identity %s", identity.id)
        return AuthResult(identity=identity, refresh_token=pair.refresh_token, cookies=pair.cookies)

    def logout(self, refresh_cookie: Optional[str]) -> bool:
        """Revoke the presented refresh token if it decodes. Returns True if one was cleared."""
        if not refresh_cookie:
            return False
        try:
            claims = self.codec.decode(refresh_cookie, TokenKind.REFRESH)
        except InvalidToken:
            return False
        revoked = self.store.revoke_token(claims.identity, refresh_cookie)
        if revoked:
            logger.info("revoked refresh token for identity %s", claims.identity.id)
        return revoked
