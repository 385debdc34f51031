# social_backend/api/follows/routes.py
import logging
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from social_backend.api.follows.schemas import FollowStatusResponseSchema

follows_bp = Blueprint('follows_bp', __name__)

@follows_bp.route('/<string:user_id>/follow', methods=['POST'])
@jwt_required()
def follow_user(user_id: str):
    """현재 로그인된 사용자가 user_id 사용자를 팔로우합니다."""
    follow_service = current_app.services['follows']
    current_user_id = get_jwt_identity()
    try:
        created = follow_service.follow_user(current_user_id, user_id)
        response = {"user_id": user_id, "following": True, "changed": created}
        return jsonify(FollowStatusResponseSchema().dump(response)), 201 if created else 200
    except ValueError as e:
        error_code = "INVALID_FOLLOW_TARGET" if current_user_id == user_id else "USER_NOT_FOUND"
        status = 400 if current_user_id == user_id else 404
        return jsonify({"error_code": error_code, "message": str(e)}), status
    except Exception as e:
        logging.error(f"팔로우 처리 중 오류 발생 ({current_user_id} -> {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FOLLOW_FAILED", "message": "팔로우 처리 중 서버 오류가 발생했습니다."}), 500


@follows_bp.route('/<string:user_id>/follow', methods=['DELETE'])
@jwt_required()
def unfollow_user(user_id: str):
    """현재 로그인된 사용자의 user_id 팔로우를 취소합니다."""
    follow_service = current_app.services['follows']
    current_user_id = get_jwt_identity()
    try:
        removed = follow_service.unfollow_user(current_user_id, user_id)
        response = {"user_id": user_id, "following": False, "changed": removed}
        return jsonify(FollowStatusResponseSchema().dump(response)), 200
    except Exception as e:
        logging.error(f"언팔로우 처리 중 오류 발생 ({current_user_id} -> {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UNFOLLOW_FAILED", "message": "언팔로우 처리 중 서버 오류가 발생했습니다."}), 500
