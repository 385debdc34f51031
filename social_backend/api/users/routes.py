# social_backend/api/users/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity, get_jwt
from marshmallow import ValidationError

from social_backend.api.auth.services import auth_service
from social_backend.api.users.purge_services import AccountPurgeError
from social_backend.api.users.schemas import (
    UserPublicResponseSchema, PushTokenSchema, NotificationSettingSchema, AccountDeletionResponseSchema
)
from social_backend.utils.datetime_utils import DateTimeUtils

users_bp = Blueprint('users_bp', __name__)

@users_bp.route('/<string:user_id>', methods=['GET'])
@jwt_required(optional=True)
def get_user_profile(user_id: str):
    """특정 사용자의 공개 프로필 정보(팔로워/팔로잉/게시물 수 포함)를 조회합니다."""
    user_service = current_app.services['users']
    try:
        user_profile = user_service.get_user_profile(user_id)
        if not user_profile:
            return jsonify({"error_code": "USER_NOT_FOUND", "message": "사용자를 찾을 수 없습니다."}), 404

        return jsonify(UserPublicResponseSchema().dump(user_profile)), 200
    except Exception as e:
        logging.error(f"사용자 프로필 조회 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "PROFILE_FETCH_FAILED", "message": "프로필 조회 중 오류가 발생했습니다."}), 500


@users_bp.route('/me/push-token', methods=['POST'])
@jwt_required()
def register_push_token():
    """
    클라이언트의 Expo 푸시 토큰을 등록/업데이트합니다.
    """
    user_service = current_app.services['users']
    user_id = get_jwt_identity()
    try:
        data = PushTokenSchema().load(request.get_json())
        user_service.update_push_token(user_id, data['push_token'])
        return jsonify({"message": "푸시 토큰이 성공적으로 업데이트되었습니다."}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"푸시 토큰 업데이트 중 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "푸시 토큰 업데이트 중 서버 오류가 발생했습니다."}), 500


@users_bp.route('/me/settings', methods=['PATCH'])
@jwt_required()
def update_notification_setting():
    """새 메시지 푸시 알림 수신 여부를 변경합니다."""
    user_service = current_app.services['users']
    user_id = get_jwt_identity()
    try:
        data = NotificationSettingSchema().load(request.get_json())
        settings = user_service.update_notification_setting(user_id, data['notifications'])
        return jsonify({"settings": settings}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"알림 설정 변경 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "알림 설정 변경 중 서버 오류가 발생했습니다."}), 500


@users_bp.route('/me', methods=['DELETE'])
@jwt_required()
def delete_my_account():
    """
    현재 로그인된 사용자 본인의 계정과 모든 데이터를 영구적으로 삭제합니다.
    - 삭제 대상은 항상 토큰의 사용자 본인입니다.
    - 실패 시 구체적인 원인은 서버 로그에만 남기고 일반 오류를 반환합니다.
    """
    purge_service = current_app.services['account_purge']
    user_id = get_jwt_identity()
    try:
        purge_service.purge_user_account(user_id)
    except AccountPurgeError as e:
        logging.error(f"회원 탈퇴 처리 실패 (user_id: {user_id}, step: {e.failed_step}, state: {e.result.state.value})")
        # 문서가 이미 삭제되었다면 인증 정보 삭제가 실패했더라도 서버 토큰은 막습니다.
        if 'commit_documents' in e.result.completed_steps:
            _revoke_user_tokens(user_id)
        return jsonify({"error_code": "ACCOUNT_DELETION_FAILED", "message": "회원 탈퇴 처리 중 서버 오류가 발생했습니다."}), 500
    except Exception as e:
        logging.error(f"회원 탈퇴 처리 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "ACCOUNT_DELETION_FAILED", "message": "회원 탈퇴 처리 중 서버 오류가 발생했습니다."}), 500

    if not _revoke_user_tokens(user_id):
        return jsonify({"error_code": "ACCOUNT_DELETION_FAILED", "message": "회원 탈퇴 처리 중 서버 오류가 발생했습니다."}), 500

    # 탈퇴에 사용한 access 토큰도 더 이상 쓸 수 없도록 무효화합니다.
    jwt_payload = get_jwt()
    auth_service.add_token_to_blocklist(jwt_payload['jti'], DateTimeUtils.from_timestamp(jwt_payload['exp']))
    return jsonify(AccountDeletionResponseSchema().dump({"success": True})), 200


def _revoke_user_tokens(user_id: str) -> bool:
    """탈퇴한 사용자의 모든 서버 발급 토큰(Access/Refresh)을 거부하도록 기록합니다."""
    try:
        auth_service.revoke_user(user_id)
        return True
    except Exception as e:
        logging.error(f"탈퇴 사용자 토큰 무효화 실패 (user_id: {user_id}): {e}", exc_info=True)
        return False
