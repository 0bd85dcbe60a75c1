from socialfeed.extensions.extensions import ma


class AuditLogSchema(ma.Schema):
    id = ma.Str()
    user_id = ma.Str(data_key="userId")
    username = ma.Str(allow_none=True)
    action = ma.Str()
    target_table = ma.Str(data_key="targetTable")
    target_id = ma.Str(data_key="targetId")
    details = ma.Str(allow_none=True)
    timestamp = ma.DateTime()
