from marshmallow import EXCLUDE

from snapfeed.extensions.extensions import ma


class UserResponseSchema(ma.Schema):
    id = ma.Int()
    name = ma.Str()
    email = ma.Str()
    avatar = ma.Str(allow_none=True)
    avatar_url = ma.Str(allow_none=True)
    created_at = ma.DateTime()


class ProfileUpdateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    name = ma.Str(allow_none=True, load_default=None)
    avatar = ma.Str(allow_none=True, load_default=None)
