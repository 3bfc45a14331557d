from marshmallow import EXCLUDE

from snapfeed.extensions.extensions import ma


class PostCreateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    content = ma.Str(allow_none=True, load_default="")
    image_url = ma.Str(allow_none=True, load_default=None)
    image_storage_id = ma.Str(allow_none=True, load_default=None)


class PostResponseSchema(ma.Schema):
    id = ma.Int()
    user_id = ma.Int()
    content = ma.Str()
    image_url = ma.Str(allow_none=True)
    image_storage_id = ma.Str(allow_none=True)
    image = ma.Str(allow_none=True)
    likes = ma.Int()
    comments = ma.Int()
    created_at = ma.DateTime()


class EnrichedPostResponseSchema(PostResponseSchema):
    user_name = ma.Str()
    user_avatar = ma.Str(allow_none=True)


class UploadHandleSchema(ma.Schema):
    url = ma.Str()
    storage_id = ma.Str()
    expires_at = ma.DateTime()
