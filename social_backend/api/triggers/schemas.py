# social_backend/api/triggers/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

class FollowerWrittenEventSchema(Schema):
    """
    users/{user_id}/followers/{follower_id} 문서 쓰기 이벤트.
    before/after 는 변경 전후 문서 데이터이며, 문서가 없으면 null 입니다.
    """
    class Meta:
        unknown = EXCLUDE

    event_id = fields.Str(required=True, validate=validate.Length(min=1))
    user_id = fields.Str(required=True, validate=validate.Length(min=1))
    follower_id = fields.Str(required=True, validate=validate.Length(min=1))
    before = fields.Dict(load_default=None, allow_none=True)
    after = fields.Dict(load_default=None, allow_none=True)

class MessageEventDataSchema(Schema):
    """생성된 메시지 문서 데이터 중 알림에 필요한 필드"""
    class Meta:
        unknown = EXCLUDE

    senderId = fields.Str(required=True)
    senderName = fields.Str(load_default=None, allow_none=True)
    text = fields.Str(load_default='', allow_none=True)

class MessageCreatedEventSchema(Schema):
    """chats/{chat_id}/messages/{message_id} 문서 생성 이벤트"""
    class Meta:
        unknown = EXCLUDE

    event_id = fields.Str(required=True, validate=validate.Length(min=1))
    chat_id = fields.Str(required=True, validate=validate.Length(min=1))
    message_id = fields.Str(required=True)
    message = fields.Nested(MessageEventDataSchema, required=True)
