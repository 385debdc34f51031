# social_backend/api/wallet/routes.py
import logging
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from social_backend.api.wallet.schemas import WalletResponseSchema, RewardRuleResponseSchema

wallet_bp = Blueprint('wallet_bp', __name__)

@wallet_bp.route('', methods=['GET'])
@jwt_required()
def get_my_wallet():
    """현재 로그인된 사용자의 지갑 잔액과 최근 거래 20건을 조회합니다."""
    reward_service = current_app.services['rewards']
    user_id = get_jwt_identity()
    try:
        wallet = reward_service.get_wallet(user_id)
        if wallet is None:
            return jsonify({"error_code": "USER_NOT_FOUND", "message": "사용자를 찾을 수 없습니다."}), 404
        return jsonify(WalletResponseSchema().dump(wallet)), 200
    except Exception as e:
        logging.error(f"지갑 조회 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "WALLET_FETCH_FAILED", "message": "지갑 조회 중 오류가 발생했습니다."}), 500


@wallet_bp.route('/reward-rule', methods=['GET'])
@jwt_required(optional=True)
def get_reward_rule():
    """현재 적용 중인 팔로워 마일스톤 보상 규칙을 조회합니다."""
    reward_service = current_app.services['rewards']
    rule = reward_service.get_reward_rule()
    return jsonify(RewardRuleResponseSchema().dump(rule)), 200
