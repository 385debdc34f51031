# social_backend/api/wallet/services.py
import logging
from typing import Optional, Dict, Any, List
from firebase_admin import firestore

from social_backend.models.notification import PushMessage, NotificationType
from social_backend.models.reward_rule import RewardRule
from social_backend.models.transaction import Transaction, TransactionType
from social_backend.services.notification_service import PushNotificationService
from social_backend.utils.datetime_utils import DateTimeUtils

REWARD_RULE_PATH = ('settings', 'rewardRule')

class RewardService:
    """
    지갑 조회와 팔로워 마일스톤 보상 지급을 담당하는 서비스 클래스.
    - 보상은 사용자당 한 번만 지급되며, rewardClaimed 플래그를 같은 트랜잭션에서 확인하고 설정합니다.
    - 임계값을 나중에 낮추더라도 이미 넘은 사용자는 다음 팔로워가 생길 때까지 지급되지 않습니다. (주기적 점검 없음)
    """
    def __init__(self, notification_service: PushNotificationService, default_threshold: int = 5000, default_amount: int = 1000):
        self.db = firestore.client()
        self.users_ref = self.db.collection('users')
        self.rule_ref = self.db.collection(REWARD_RULE_PATH[0]).document(REWARD_RULE_PATH[1])
        self.notification_service = notification_service
        self.default_threshold = default_threshold
        self.default_amount = default_amount

    def get_reward_rule(self) -> RewardRule:
        """settings/rewardRule 문서를 읽어 기본값이 적용된 규칙을 반환합니다."""
        doc = self.rule_ref.get()
        return RewardRule.from_dict(doc.to_dict() if doc.exists else None, self.default_threshold, self.default_amount)

    def set_reward_rule(self, follower_threshold: int, reward_amount: int) -> RewardRule:
        """
        보상 규칙을 저장합니다. 일반 API에는 노출하지 않고 관리자 CLI에서만 호출합니다.
        """
        if follower_threshold <= 0 or reward_amount <= 0:
            raise ValueError("followerThreshold와 rewardAmount는 양수여야 합니다.")
        rule = RewardRule(follower_threshold=follower_threshold, reward_amount=reward_amount)
        self.rule_ref.set(rule.to_dict())
        logging.info(f"보상 규칙 변경: threshold={follower_threshold}, amount={reward_amount}")
        return rule

    def check_follower_reward(self, user_id: str) -> bool:
        """
        사용자가 팔로워 임계값에 도달했고 아직 보상을 받지 않았다면 보상을 지급합니다.
        잔액 증가, rewardClaimed 설정, 거래 기록 추가를 하나의 트랜잭션으로 처리한 뒤
        커밋이 끝나면 푸시 알림을 보냅니다.

        :param user_id: 팔로워가 늘어난 사용자 ID
        :return: 이번 호출에서 보상이 지급되었으면 True
        """
        rule = self.get_reward_rule()
        user_ref = self.users_ref.document(user_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def _grant_in_transaction(transaction, user_ref, rule):
            snapshot = user_ref.get(transaction=transaction)
            if not snapshot.exists:
                logging.warning(f"보상 확인 대상 사용자를 찾을 수 없음 (user_id: {user_id})")
                return None

            user_data = snapshot.to_dict()
            followers_count = user_data.get('followersCount') or 0
            if followers_count < rule.follower_threshold or user_data.get('rewardClaimed'):
                return None

            reward = Transaction(
                type=TransactionType.REWARD,
                amount=rule.reward_amount,
                description=f"Milestone reward for reaching {rule.follower_threshold} followers"
            )
            transaction.update(user_ref, {
                'wallet.balance': firestore.Increment(rule.reward_amount),
                'rewardClaimed': True
            })
            transaction.set(user_ref.collection('transactions').document(), reward.to_dict())
            # 트랜잭션은 재시도될 수 있으므로 알림은 커밋 이후에 보냅니다.
            return {'push_token': user_data.get('pushToken')}

        granted = _grant_in_transaction(transaction, user_ref, rule)
        if granted is None:
            return False

        logging.info(f"팔로워 마일스톤 보상 {rule.reward_amount} 지급 완료 (user_id: {user_id})")

        if granted['push_token']:
            self.notification_service.send_push_notification(PushMessage(
                to=granted['push_token'],
                title='Congratulations! 🎉',
                body=f"You've earned ₹{rule.reward_amount} for reaching {rule.follower_threshold} followers!",
                data={'type': NotificationType.REWARD.value, 'amount': rule.reward_amount}
            ))
        return True

    def get_wallet(self, user_id: str, limit: int = 20) -> Optional[Dict[str, Any]]:
        """지갑 잔액과 최근 거래 내역(최신순)을 조회합니다."""
        user_doc = self.users_ref.document(user_id).get()
        if not user_doc.exists:
            return None

        user_data = user_doc.to_dict()
        query = (
            self.users_ref.document(user_id).collection('transactions')
            .order_by('createdAt', direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        transactions: List[Dict[str, Any]] = []
        for doc in query.stream():
            tx = DateTimeUtils.from_firestore(doc.to_dict())
            tx['transaction_id'] = doc.id
            transactions.append(tx)

        return {
            'balance': (user_data.get('wallet') or {}).get('balance') or 0,
            'reward_claimed': bool(user_data.get('rewardClaimed')),
            'transactions': transactions,
        }
