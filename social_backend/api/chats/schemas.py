# social_backend/api/chats/schemas.py
from marshmallow import Schema, fields, validate

class ChatCreateSchema(Schema):
    """POST /api/chats 요청 본문: 대화 상대 ID"""
    user_id = fields.Str(required=True, validate=validate.Length(min=1))

class MessageCreateSchema(Schema):
    """POST /api/chats/{chat_id}/messages 요청 본문"""
    text = fields.Str(required=True, validate=validate.Length(min=1, max=1000, error="메시지는 1~1000자 사이여야 합니다."))

class ChatResponseSchema(Schema):
    chat_id = fields.Str(required=True)
    participants = fields.List(fields.Str(), required=True)
    last_message = fields.Str(attribute='lastMessage')
    created = fields.Bool(dump_only=True)

class MessageResponseSchema(Schema):
    message_id = fields.Str(required=True)
    chat_id = fields.Str(required=True)
    sender_id = fields.Str(attribute='senderId')
    sender_name = fields.Str(attribute='senderName')
    text = fields.Str(required=True)
    created_at = fields.DateTime(attribute='createdAt', allow_none=True)
