# social_backend/api/follows/schemas.py
from marshmallow import Schema, fields

class FollowStatusResponseSchema(Schema):
    """
    POST/DELETE /api/users/{user_id}/follow 응답 형식.
    팔로워 수는 트리거가 비동기로 갱신하므로 응답에 포함하지 않습니다.
    """
    user_id = fields.Str(required=True)
    following = fields.Bool(required=True)
    changed = fields.Bool(required=True)
