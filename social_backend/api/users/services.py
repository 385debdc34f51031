# social_backend/api/users/services.py
import logging
from typing import Optional, Dict, Any
from firebase_admin import firestore

from social_backend.models.user import User

class UserService:
    """
    사용자 프로필과 알림 설정 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 팔로워/팔로잉 수와 지갑 필드는 여기서 수정하지 않습니다.
    """
    def __init__(self):
        self.db = firestore.client()
        self.users_ref = self.db.collection('users')

    def get_user_profile(self, user_id: str) -> Optional[User]:
        """
        사용자 ID로 프로필을 조회합니다.
        :param user_id: 조회할 사용자의 고유 ID
        :return: User 객체 또는 None
        """
        try:
            user_doc = self.users_ref.document(user_id).get()
            if not user_doc.exists:
                return None
            user_data = user_doc.to_dict()
            user_data.setdefault('uid', user_doc.id)
            return User.from_dict(user_data)
        except Exception as e:
            logging.error(f"사용자 프로필 조회 실패 (user_id: {user_id}): {e}", exc_info=True)
            raise

    def update_push_token(self, user_id: str, push_token: str) -> None:
        """
        사용자의 Expo 푸시 토큰을 저장하거나 갱신합니다.
        :param user_id: 토큰을 갱신할 사용자 ID
        :param push_token: 클라이언트로부터 받은 새 토큰
        """
        try:
            self.users_ref.document(user_id).update({'pushToken': push_token})
            logging.info(f"푸시 토큰 업데이트 완료 (user_id: {user_id})")
        except Exception as e:
            logging.error(f"푸시 토큰 업데이트 실패 (user_id: {user_id}): {e}", exc_info=True)
            raise

    def update_notification_setting(self, user_id: str, enabled: bool) -> Dict[str, Any]:
        """settings.notifications 값을 변경하고 변경된 settings 맵을 반환합니다."""
        user_ref = self.users_ref.document(user_id)
        try:
            user_ref.update({
                'settings.notifications': enabled,
                'updatedAt': firestore.SERVER_TIMESTAMP
            })
        except Exception as e:
            logging.error(f"알림 설정 변경 실패 (user_id: {user_id}): {e}", exc_info=True)
            raise
        return user_ref.get().to_dict().get('settings') or {}
