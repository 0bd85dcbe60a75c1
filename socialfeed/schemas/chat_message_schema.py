from socialfeed.extensions.extensions import ma
from socialfeed.schemas.post_schema import AuthorSchema


class ChatMessageSchema(ma.Schema):
    id = ma.Str()
    message = ma.Str()
    author_id = ma.Str(data_key="authorId")
    created_at = ma.DateTime(data_key="createdAt")
    author = ma.Nested(AuthorSchema)
