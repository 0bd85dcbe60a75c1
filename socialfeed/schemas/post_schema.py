from socialfeed.extensions.extensions import ma


class AuthorSchema(ma.Schema):
    id = ma.Str()
    username = ma.Str()


class MediaSchema(ma.Schema):
    id = ma.Str()
    post_id = ma.Str(data_key="postId")
    type = ma.Str()
    url = ma.Str()
    caption = ma.Str(allow_none=True)
    position = ma.Int()
    uploaded_at = ma.DateTime(data_key="uploadedAt")


class PostSchema(ma.Schema):
    id = ma.Str()
    text = ma.Str(allow_none=True)
    author_id = ma.Str(data_key="authorId")
    created_at = ma.DateTime(data_key="createdAt")
    author = ma.Nested(AuthorSchema)
    media = ma.List(ma.Nested(MediaSchema))
