from marshmallow import EXCLUDE

from snapfeed.extensions.extensions import ma


class RegisterSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    name = ma.Str(required=True)
    email = ma.Str(required=True)
    password = ma.Str(required=True)


class LoginSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    email = ma.Str(required=True)
    password = ma.Str(required=True)
