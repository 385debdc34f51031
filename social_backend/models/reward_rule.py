# social_backend/models/reward_rule.py
from dataclasses import dataclass
from typing import Any, Dict, Optional

@dataclass
class RewardRule:
    """'settings/rewardRule' 싱글톤 설정 문서."""
    follower_threshold: int
    reward_amount: int

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], default_threshold: int, default_amount: int) -> 'RewardRule':
        """문서가 없거나 필드가 비어 있으면 기본값을 사용합니다."""
        data = data or {}
        return cls(
            follower_threshold=data.get('followerThreshold') or default_threshold,
            reward_amount=data.get('rewardAmount') or default_amount,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'followerThreshold': self.follower_threshold,
            'rewardAmount': self.reward_amount,
        }
