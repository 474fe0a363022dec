from __future__ import annotations
from functools import wraps
from flask import after_this_request, current_app, g, request

from utils.cookies import attach_cookie
from utils.rotation import RotationController


def rotation_controller() -> RotationController:
    return current_app.extensions["rotation_controller"]


def refresh_required():
    """
    Protected-route middleware. Requires a valid, current refresh cookie,
    rotates the token pair when the access cookie is gone, and exposes the
    resolved identity as g.current_identity.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            controller = rotation_controller()
            settings = controller.cookie_settings
            result = controller.authenticate(
                request.cookies.get(settings.refresh_name),
                request.cookies.get(settings.access_name),
            )

            if result.rotated:
                @after_this_request
                def set_rotated_cookies(response):
                    for cookie in result.cookies:
                        attach_cookie(response, cookie)
                    return response

            g.current_identity = result.identity
            g.current_refresh_token = result.refresh_token
            return fn(*args, **kwargs)

        return wrapper

    return decorator
