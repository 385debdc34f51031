# social_backend/api/triggers/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from social_backend.api.triggers.schemas import FollowerWrittenEventSchema, MessageCreatedEventSchema
from social_backend.core.security import trigger_token_required

triggers_bp = Blueprint('triggers_bp', __name__)

# 트리거 핸들러는 최종 사용자에게 오류를 전달하지 않습니다.
# 처리 중 오류는 로그로 남기고 200 {"handled": false}로 응답하며, 재시도 여부는 플랫폼 재전송 정책에 맡깁니다.

@triggers_bp.route('/follower-written', methods=['POST'])
@trigger_token_required
def on_follower_written():
    """
    팔로워 관계 문서 생성/삭제 이벤트를 처리합니다.
    - 생성: 팔로워/팔로잉 수 +1 후 마일스톤 보상 확인
    - 삭제: 팔로워/팔로잉 수 -1
    - 그 외(수정): 무시
    """
    try:
        event = FollowerWrittenEventSchema().load(request.get_json(silent=True))
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    created = event['after'] is not None and event['before'] is None
    deleted = event['before'] is not None and event['after'] is None
    if not created and not deleted:
        return jsonify({"handled": True, "action": "ignored"}), 200

    follow_service = current_app.services['follows']
    reward_service = current_app.services['rewards']
    user_id, follower_id = event['user_id'], event['follower_id']
    try:
        applied = follow_service.reconcile_follower_counts(
            event['event_id'], user_id, follower_id, 1 if created else -1
        )
    except Exception as e:
        logging.error(f"팔로워 수 집계 실패 (event: {event['event_id']}): {e}", exc_info=True)
        return jsonify({"handled": False}), 200

    response = {"handled": True, "action": "created" if created else "deleted", "counts_applied": applied}
    if created:
        try:
            response["reward_granted"] = reward_service.check_follower_reward(user_id)
        except Exception as e:
            logging.error(f"팔로워 보상 확인 실패 (user_id: {user_id}): {e}", exc_info=True)
            response["handled"] = False
    return jsonify(response), 200


@triggers_bp.route('/message-created', methods=['POST'])
@trigger_token_required
def on_message_created():
    """새 채팅 메시지 생성 이벤트를 받아 수신자에게 푸시 알림을 보냅니다."""
    try:
        event = MessageCreatedEventSchema().load(request.get_json(silent=True))
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    chat_service = current_app.services['chats']
    try:
        notified = chat_service.relay_message_notification(event['event_id'], event['chat_id'], event['message'])
    except Exception as e:
        logging.error(f"메시지 알림 처리 실패 (chat_id: {event['chat_id']}): {e}", exc_info=True)
        return jsonify({"handled": False}), 200
    return jsonify({"handled": True, "notified": notified}), 200
