# social_backend/api/chats/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from social_backend.api.chats.schemas import (
    ChatCreateSchema, MessageCreateSchema, ChatResponseSchema, MessageResponseSchema
)

chats_bp = Blueprint('chats_bp', __name__)

@chats_bp.route('', methods=['POST'])
@jwt_required()
def open_chat():
    """대화 상대와의 1:1 채팅방을 열거나 새로 만듭니다."""
    chat_service = current_app.services['chats']
    user_id = get_jwt_identity()
    try:
        data = ChatCreateSchema().load(request.get_json())
        chat = chat_service.get_or_create_chat(user_id, data['user_id'])
        return jsonify(ChatResponseSchema().dump(chat)), 201 if chat['created'] else 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "INVALID_CHAT_TARGET", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"채팅방 생성 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "CHAT_CREATION_FAILED", "message": "채팅방 생성 중 오류가 발생했습니다."}), 500


@chats_bp.route('/<string:chat_id>/messages', methods=['POST'])
@jwt_required()
def send_message(chat_id: str):
    """
    채팅방에 메시지를 보냅니다.
    - 수신자 푸시 알림은 메시지 생성 트리거가 따로 처리합니다.
    """
    chat_service = current_app.services['chats']
    user_id = get_jwt_identity()
    try:
        data = MessageCreateSchema().load(request.get_json())
        text = data['text'].strip()
        if not text:
            return jsonify({"error_code": "VALIDATION_ERROR", "details": {"text": ["빈 메시지는 보낼 수 없습니다."]}}), 400
        message = chat_service.send_message(chat_id, user_id, text)
        return jsonify(MessageResponseSchema().dump(message)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except ValueError as e:
        return jsonify({"error_code": "CHAT_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"메시지 전송 중 오류 발생 (chat_id: {chat_id}): {e}", exc_info=True)
        return jsonify({"error_code": "MESSAGE_SEND_FAILED", "message": "메시지 전송 중 오류가 발생했습니다."}), 500
