from flask import Blueprint, g, jsonify

from models.schemas.identity import IdentityOutSchema
from utils.decorators import refresh_required

bp = Blueprint("index", __name__)

identity_out_schema = IdentityOutSchema()


@bp.get("/")
@refresh_required()
def index():
    """
    Current identity (protected)
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK
        schema:
          type: object
          properties:
            data:
              type: object
              properties:
                id: { type: integer }
      401:
        description: Unauthorized
    """
    return jsonify({"data": identity_out_schema.dump(g.current_identity)}), 200
