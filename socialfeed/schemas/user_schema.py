from socialfeed.extensions.extensions import ma


class UserSchema(ma.Schema):
    id = ma.Str()
    username = ma.Str()
    role = ma.Str()
    is_active = ma.Bool(data_key="isActive")
    bio = ma.Str(allow_none=True)
    avatar_url = ma.Str(data_key="avatarUrl", allow_none=True)
    created_at = ma.DateTime(data_key="createdAt")
    updated_at = ma.DateTime(data_key="updatedAt")
