# social_backend/models/notification.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any

class NotificationType(Enum):
    """푸시 알림 data.type 값. 클라이언트 딥링크 분기에 사용됩니다."""
    REWARD = "reward"
    MESSAGE = "message"

@dataclass
class PushMessage:
    """
    푸시 게이트웨이로 전송되는 메시지 본문.
    필드명이 Expo push API 요청 형식과 같으므로 asdict() 결과를 그대로 전송합니다.
    """
    to: str                 # Expo 푸시 토큰
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)
    sound: str = 'default'
