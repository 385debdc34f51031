# social_backend/api/chats/services.py
import logging
from typing import Dict, Any
from firebase_admin import firestore

from social_backend.models.chat import Chat, Message, direct_chat_id
from social_backend.models.notification import PushMessage, NotificationType
from social_backend.models.user import User
from social_backend.services.firestore_service import (
    processed_event_ref, is_event_processed, mark_event_processed
)
from social_backend.services.notification_service import PushNotificationService

PREVIEW_MAX_LENGTH = 50

def build_message_preview(text: str, max_length: int = PREVIEW_MAX_LENGTH) -> str:
    """알림 본문용 미리보기. max_length자를 넘으면 잘라내고 '...'을 붙입니다."""
    text = text or ''
    if len(text) > max_length:
        return text[:max_length] + '...'
    return text

class ChatService:
    """
    1:1 채팅 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 메시지 전달 자체는 클라이언트의 Firestore 실시간 구독이 처리합니다.
    - 새 메시지 알림은 메시지 생성 트리거에서 relay_message_notification 으로 보냅니다.
    """
    def __init__(self, notification_service: PushNotificationService):
        self.db = firestore.client()
        self.chats_ref = self.db.collection('chats')
        self.users_ref = self.db.collection('users')
        self.notification_service = notification_service

    def get_or_create_chat(self, user_id: str, other_user_id: str) -> Dict[str, Any]:
        """두 사용자 사이의 1:1 채팅방을 찾거나 새로 만듭니다."""
        if user_id == other_user_id:
            raise ValueError("자기 자신과의 채팅방은 만들 수 없습니다.")

        chat_id = direct_chat_id(user_id, other_user_id)
        chat_ref = self.chats_ref.document(chat_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def _create_in_transaction(transaction, chat_ref):
            other_doc = self.users_ref.document(other_user_id).get(transaction=transaction)
            if not other_doc.exists:
                raise ValueError("대화 상대를 찾을 수 없습니다.")
            chat_doc = chat_ref.get(transaction=transaction)
            if chat_doc.exists:
                return False
            transaction.set(chat_ref, Chat(participants=[user_id, other_user_id]).to_dict())
            return True

        created = _create_in_transaction(transaction, chat_ref)
        if created:
            logging.info(f"채팅방 생성 (chat_id: {chat_id})")

        chat_data = chat_ref.get().to_dict()
        chat_data['chat_id'] = chat_id
        chat_data['created'] = created
        return chat_data

    def send_message(self, chat_id: str, sender_id: str, text: str) -> Dict[str, Any]:
        """
        메시지 문서를 추가하고 채팅방의 마지막 메시지 정보를 같은 배치로 갱신합니다.
        참여자가 아니면 PermissionError를 발생시킵니다.
        """
        chat_ref = self.chats_ref.document(chat_id)
        chat_doc = chat_ref.get()
        if not chat_doc.exists:
            raise ValueError("채팅방을 찾을 수 없습니다.")
        if sender_id not in (chat_doc.to_dict().get('participants') or []):
            raise PermissionError("채팅방 참여자만 메시지를 보낼 수 있습니다.")

        sender_doc = self.users_ref.document(sender_id).get()
        sender_data = sender_doc.to_dict() if sender_doc.exists else {}
        message = Message(
            sender_id=sender_id,
            text=text,
            sender_name=sender_data.get('displayName') or sender_data.get('username') or '',
            sender_avatar=sender_data.get('avatar') or ''
        )

        message_ref = chat_ref.collection('messages').document()
        batch = self.db.batch()
        batch.set(message_ref, message.to_dict())
        batch.update(chat_ref, {
            'lastMessage': text,
            'lastMessageAt': firestore.SERVER_TIMESTAMP,
            'lastMessageSender': sender_id
        })
        batch.commit()

        message_data = message_ref.get().to_dict()
        message_data['message_id'] = message_ref.id
        message_data['chat_id'] = chat_id
        return message_data

    def relay_message_notification(self, event_id: str, chat_id: str, message: Dict[str, Any]) -> bool:
        """
        새 메시지의 수신자(보낸 사람이 아닌 참여자)에게 푸시 알림을 보냅니다.
        - 수신자가 알림을 끄거나 푸시 토큰이 없으면 보내지 않습니다.
        - 같은 event_id는 한 번만 보냅니다. 전송 실패는 기록만 하고 넘깁니다.

        :param event_id: 메시지 생성 이벤트 ID
        :param chat_id: 메시지가 속한 채팅방 ID
        :param message: 생성된 메시지 문서 데이터 (senderId, senderName, text)
        :return: 알림이 게이트웨이에 정상 전달되었으면 True
        """
        sender_id = message.get('senderId')
        chat_doc = self.chats_ref.document(chat_id).get()
        if not chat_doc.exists:
            logging.warning(f"메시지 알림 생략: 채팅방 없음 (chat_id: {chat_id})")
            return False

        participants = chat_doc.to_dict().get('participants') or []
        recipient_id = next((uid for uid in participants if uid != sender_id), None)
        if not recipient_id:
            return False

        recipient_doc = self.users_ref.document(recipient_id).get()
        if not recipient_doc.exists:
            return False
        recipient = User.from_dict(recipient_doc.to_dict())
        if not recipient.push_token or not recipient.settings.notifications:
            return False

        if not self._claim_event(event_id):
            logging.info(f"이미 처리된 메시지 알림 이벤트 무시 (event: {event_id})")
            return False

        return self.notification_service.send_push_notification(PushMessage(
            to=recipient.push_token,
            title=message.get('senderName') or 'New Message',
            body=build_message_preview(message.get('text')),
            data={
                'type': NotificationType.MESSAGE.value,
                'chatId': chat_id,
                'senderId': sender_id
            }
        ))

    def _claim_event(self, event_id: str) -> bool:
        """이벤트 처리 기록을 남기고, 이미 기록이 있으면 False를 반환합니다."""
        event_ref = processed_event_ref(self.db, event_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def _claim_in_transaction(transaction):
            if is_event_processed(transaction, event_ref):
                return False
            mark_event_processed(transaction, event_ref, 'relay_message_notification')
            return True

        return _claim_in_transaction(transaction)
