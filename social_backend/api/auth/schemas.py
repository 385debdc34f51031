# social_backend/api/auth/schemas.py
from marshmallow import Schema, fields

class TokenExchangeSchema(Schema):
    """Firebase ID 토큰을 서버 JWT로 교환하는 요청의 유효성을 검사하는 스키마"""
    id_token = fields.Str(
        required=True,
        metadata={"description": "Firebase Authentication에서 발급한 ID 토큰"}
    )

class LogoutRequestSchema(Schema):
    """로그아웃 요청의 유효성을 검사하는 스키마"""
    access_token = fields.Str(required=True)
    refresh_token = fields.Str(required=True)
