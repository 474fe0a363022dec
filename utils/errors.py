"""
Error taxonomy shared by the codec, the store and the rotation controller.

Each class carries the HTTP status and error code it maps to; the mapping to
a response happens once, in api.errors.
"""
from __future__ import annotations


class AuthError(Exception):
    status = 500
    error = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, detail: str | None = None):
        # detail is for the log only; responses use the class-level message
        super().__init__(detail or self.message)
        self.detail = detail


class IdentityNotFound(AuthError):
    status = 404
    error = "NOT_FOUND"
    message = "Resource not found"


class Unauthenticated(AuthError):
    status = 401
    error = "UNAUTHORIZED"
    message = "Authentication required"


class RotationConflict(Unauthenticated):
    """Lost a rotation race: the presented refresh token was already consumed."""


class BackendFailure(AuthError):
    pass


class TokenSigningError(BackendFailure):
    """Signing secret unavailable or the signing library failed."""


class InvalidToken(Exception):
    """Token failed verification. Never crosses the HTTP boundary as-is."""
