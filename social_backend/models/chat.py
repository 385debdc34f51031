# social_backend/models/chat.py
from dataclasses import dataclass
from typing import Any, Dict, List

from firebase_admin import firestore

def direct_chat_id(user_id: str, other_user_id: str) -> str:
    """1:1 채팅방 ID는 두 사용자 ID를 정렬해 '_'로 이은 값입니다."""
    return '_'.join(sorted([user_id, other_user_id]))

@dataclass
class Chat:
    """Firestore 'chats' 컬렉션 문서."""
    participants: List[str]
    last_message: str = ''
    unread_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'participants': list(self.participants),
            'createdAt': firestore.SERVER_TIMESTAMP,
            'lastMessage': self.last_message,
            'lastMessageAt': firestore.SERVER_TIMESTAMP,
            'unreadCount': self.unread_count,
        }

@dataclass
class Message:
    """'chats/{chat_id}/messages' 서브컬렉션 문서."""
    sender_id: str
    text: str
    sender_name: str = ''
    sender_avatar: str = ''
    seen: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'senderId': self.sender_id,
            'senderName': self.sender_name,
            'senderAvatar': self.sender_avatar,
            'text': self.text,
            'createdAt': firestore.SERVER_TIMESTAMP,
            'seen': self.seen,
        }
