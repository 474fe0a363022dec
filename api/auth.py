"""
Authentication blueprint:
- POST /login
- POST /logout

The implementation:
- Trusts the caller-supplied identity ({"id": <int>}); there is no credential check
- Issues a short-lived access token and a long-lived refresh token (JWTs signed
  with HS256, one secret per token class) in HttpOnly, Secure cookies
- Stores the single current refresh token per identity so it can be rotated
  and revoked
"""
from __future__ import annotations

from flask import Blueprint, jsonify, make_response, request

from models.schemas.identity import IdentitySchema, IdentityOutSchema
from utils.cookies import attach_cookie, expire_cookie
from utils.decorators import rotation_controller

bp = Blueprint("auth", __name__)

identity_schema = IdentitySchema()
identity_out_schema = IdentityOutSchema()


@bp.post("/login")
def login():
    """
    Login: set access_token and refresh_token cookies
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [id]
           properties:
             id: { type: integer }
    responses:
      200:
        description: OK (cookies set)
      204:
        description: Already logged in
      404:
        description: Unknown identity
      422:
        description: Validation error
    """
    controller = rotation_controller()
    settings = controller.cookie_settings

    payload = request.get_json(silent=True)
    identity = identity_schema.load(payload if payload is not None else {})

    pair = controller.login(identity, request.cookies.get(settings.access_name))
    if pair is None:
        return ("", 204)

    response = make_response(jsonify({"data": identity_out_schema.dump(identity)}), 200)
    for cookie in pair.cookies:
        attach_cookie(response, cookie)
    return response


@bp.post("/logout")
def logout():
    """
    logout: revokes the refresh token and clears both cookies
    ---
    tags:
      - Auth
    responses:
      204:
        description: ""
    """
    controller = rotation_controller()
    settings = controller.cookie_settings

    controller.logout(request.cookies.get(settings.refresh_name))

    response = make_response("", 204)
    expire_cookie(response, settings.access_name, settings)
    expire_cookie(response, settings.refresh_name, settings)
    return response
