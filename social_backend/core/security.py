# social_backend/core/security.py
import hmac
import logging
from functools import wraps
from flask import request, jsonify, current_app

TRIGGER_TOKEN_HEADER = "X-Trigger-Token"

def trigger_token_required(f):
    """
    플랫폼 트리거 이벤트 요청인지 공유 비밀 값으로 확인하는 데코레이터.
    비밀 값이 설정되지 않았거나 일치하지 않으면 핸들러를 실행하지 않습니다.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get('TRIGGER_SHARED_SECRET')
        if not expected:
            logging.error("TRIGGER_SHARED_SECRET이 설정되지 않아 트리거 요청을 거부합니다.")
            return jsonify({"error_code": "UNAUTHENTICATED", "message": "트리거 인증 정보가 없습니다."}), 401

        provided = request.headers.get(TRIGGER_TOKEN_HEADER, "")
        if not hmac.compare_digest(provided.encode(), expected.encode()):
            return jsonify({"error_code": "UNAUTHENTICATED", "message": "트리거 인증 정보가 올바르지 않습니다."}), 401

        return f(*args, **kwargs)

    return decorated_function
