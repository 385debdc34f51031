# social_backend/models/user.py
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

@dataclass
class UserSettings:
    """사용자 문서 내부 'settings' 맵."""
    notifications: bool = True
    two_factor_enabled: bool = False
    privacy: str = 'public'

@dataclass
class User:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    모바일 클라이언트와 필드명을 공유하므로 저장 시에는 camelCase 키를 사용합니다.
    """
    uid: str
    email: str
    username: str
    display_name: str
    bio: str = ''
    avatar: str = ''
    followers_count: int = 0   # Follower-Count 트리거만 갱신합니다.
    following_count: int = 0
    posts_count: int = 0
    wallet_balance: int = 0
    reward_claimed: bool = False # 마일스톤 보상은 한 번만 지급
    settings: UserSettings = field(default_factory=UserSettings)
    push_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        settings = data.get('settings') or {}
        return cls(
            uid=data.get('uid'),
            email=data.get('email'),
            username=data.get('username'),
            display_name=data.get('displayName') or data.get('username'),
            bio=data.get('bio', ''),
            avatar=data.get('avatar', ''),
            followers_count=data.get('followersCount') or 0,
            following_count=data.get('followingCount') or 0,
            posts_count=data.get('postsCount') or 0,
            wallet_balance=(data.get('wallet') or {}).get('balance') or 0,
            reward_claimed=bool(data.get('rewardClaimed')),
            settings=UserSettings(
                notifications=bool(settings.get('notifications')),
                two_factor_enabled=bool(settings.get('twoFactorEnabled')),
                privacy=settings.get('privacy', 'public'),
            ),
            push_token=data.get('pushToken'),
        )
