# social_backend/api/users/schemas.py
from marshmallow import Schema, fields

class UserPublicResponseSchema(Schema):
    """
    GET /api/users/{user_id}
    다른 사용자의 프로필 정보를 응답할 때 사용하는 스키마.
    민감한 정보(email, push_token, 지갑)는 제외하고 공개 가능한 정보만 반환합니다.
    """
    uid = fields.Str(required=True, dump_only=True)
    username = fields.Str(required=True)
    display_name = fields.Str(required=True)
    bio = fields.Str()
    avatar = fields.Str()
    followers_count = fields.Int(required=True)
    following_count = fields.Int(required=True)
    posts_count = fields.Int(required=True)

class PushTokenSchema(Schema):
    """
    POST /api/users/me/push-token
    푸시 토큰 등록/업데이트 요청 본문의 유효성을 검사하는 스키마.
    """
    push_token = fields.Str(required=True, error_messages={"required": "push_token은 필수 항목입니다."})

class NotificationSettingSchema(Schema):
    """PATCH /api/users/me/settings"""
    notifications = fields.Bool(required=True)

class AccountDeletionResponseSchema(Schema):
    """DELETE /api/users/me 응답"""
    success = fields.Bool(required=True)
