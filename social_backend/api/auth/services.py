# social_backend/api/auth/services.py
import logging
from datetime import datetime
from typing import Optional
from firebase_admin import firestore, auth as firebase_auth
from flask import Flask

from social_backend.utils.datetime_utils import DateTimeUtils

class AuthService:
    def __init__(self):
        self.db = None
        self.revoked_tokens_ref = None
        self.revoked_users_ref = None
        self.app: Optional[Flask] = None

    def init_app(self, app: Flask):
        """앱 초기화 과정에서 호출되어 DB 연결 및 앱 컨텍스트를 설정합니다."""
        self.db = firestore.client()
        self.revoked_tokens_ref = self.db.collection('revoked_tokens')
        self.revoked_users_ref = self.db.collection('revoked_users')
        self.app = app

    def verify_firebase_id_token(self, id_token: str) -> str:
        """
        클라이언트가 Firebase Authentication으로 받은 ID 토큰을 검증하고 uid를 반환합니다.
        삭제(탈퇴)되었거나 폐기된 계정의 토큰은 거부합니다.

        :raises PermissionError: 토큰이 유효하지 않은 경우
        """
        try:
            decoded = firebase_auth.verify_id_token(id_token, check_revoked=True)
        except (firebase_auth.RevokedIdTokenError, firebase_auth.UserDisabledError,
                firebase_auth.UserNotFoundError, firebase_auth.InvalidIdTokenError, ValueError) as e:
            logging.warning(f"Firebase ID 토큰 검증 실패: {e}")
            raise PermissionError("유효하지 않은 인증 토큰입니다.") from e
        return decoded['uid']

    # --- Blocklist 관련 로직 ---
    def add_token_to_blocklist(self, jti: str, expires: datetime):
        """전달받은 토큰의 jti를 만료 시간과 함께 Firestore에 저장합니다."""
        try:
            self.revoked_tokens_ref.document(jti).set({
                'revokedAt': DateTimeUtils.now(),
                'expiresAt': expires
            })
        except Exception as e:
            logging.error(f"Blocklist 토큰 추가 실패 (jti: {jti}): {e}", exc_info=True)

    def revoke_user(self, user_id: str):
        """
        탈퇴한 사용자를 기록합니다. 이후 이 사용자에게 발급된 모든 Access/Refresh 토큰은 거부됩니다.
        (실패 시 예외를 그대로 전달합니다)
        """
        self.revoked_users_ref.document(user_id).set({'revokedAt': DateTimeUtils.now()})
        logging.info(f"탈퇴 사용자 토큰 무효화 기록 (user_id: {user_id})")

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        """
        jti가 무효화 목록에 있거나, 토큰의 사용자(sub)가 탈퇴한 경우 True를 반환합니다.
        """
        jti = jwt_payload['jti']
        if self.revoked_tokens_ref.document(jti).get().exists:
            return True
        user_id = jwt_payload.get('sub')
        return bool(user_id) and self.revoked_users_ref.document(user_id).get().exists

    def logout_user(self, access_jti: str, access_exp: int, refresh_jti: str, refresh_exp: int):
        """Access 토큰과 Refresh 토큰을 모두 Blocklist에 추가합니다."""
        self.add_token_to_blocklist(access_jti, DateTimeUtils.from_timestamp(access_exp))
        self.add_token_to_blocklist(refresh_jti, DateTimeUtils.from_timestamp(refresh_exp))
        logging.info(f"사용자 로그아웃 처리 완료. JTI: {access_jti[:8]}..., {refresh_jti[:8]}...")

auth_service = AuthService()
