from dataclasses import dataclass

from marshmallow import Schema, fields, post_load, validate

# identities are stored in an INTEGER column
MAX_IDENTITY = 2_147_483_647


@dataclass(frozen=True)
class Identity:
    """Caller identity embedded in every token; compared by equality only."""
    id: int


class IdentitySchema(Schema):
    """Login payload and the `user` claim of every token: {"id": <int>}"""
    id = fields.Integer(required=True, strict=True, validate=validate.Range(min=1, max=MAX_IDENTITY))

    @post_load
    def make_identity(self, data, **kwargs):
        return Identity(id=data["id"])


class IdentityOutSchema(Schema):
    id = fields.Integer()
