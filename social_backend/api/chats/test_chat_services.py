# social_backend/api/chats/test_chat_services.py
"""
1:1 채팅 및 새 메시지 알림 테스트

사용법: python -m pytest social_backend/api/chats/test_chat_services.py -v
"""

import pytest
from social_backend.api.chats.services import ChatService, build_message_preview
from social_backend.services.notification_service import PushNotificationService

@pytest.fixture
def chat_service(fake_db):
    return ChatService(PushNotificationService(gateway_url='https://push.test/send'))

def _message(sender_id='alice', text='hello', sender_name='Alice'):
    return {'senderId': sender_id, 'senderName': sender_name, 'text': text}

def test_build_message_preview():
    assert build_message_preview('short') == 'short'
    assert build_message_preview('a' * 50) == 'a' * 50
    assert build_message_preview('a' * 120) == 'a' * 50 + '...'
    assert build_message_preview(None) == ''

def test_get_or_create_chat_uses_sorted_id(fake_db, make_user, chat_service):
    make_user('alice')
    make_user('bob')

    chat = chat_service.get_or_create_chat('bob', 'alice')
    assert chat['chat_id'] == 'alice_bob'
    assert chat['created'] is True
    assert chat['participants'] == ['bob', 'alice']

    again = chat_service.get_or_create_chat('alice', 'bob')
    assert again['chat_id'] == 'alice_bob'
    assert again['created'] is False

    with pytest.raises(ValueError):
        chat_service.get_or_create_chat('alice', 'ghost')

def test_send_message_updates_last_message(fake_db, make_user, chat_service):
    make_user('alice', display_name='Alice')
    make_user('bob')
    chat_service.get_or_create_chat('alice', 'bob')

    message = chat_service.send_message('alice_bob', 'alice', 'hi bob')
    assert message['senderName'] == 'Alice'
    assert message['seen'] is False
    assert fake_db.data(f"chats/alice_bob/messages/{message['message_id']}")['text'] == 'hi bob'

    chat = fake_db.data('chats/alice_bob')
    assert chat['lastMessage'] == 'hi bob'
    assert chat['lastMessageSender'] == 'alice'

def test_send_message_requires_participant(make_user, chat_service):
    make_user('alice')
    make_user('bob')
    make_user('eve')
    chat_service.get_or_create_chat('alice', 'bob')

    with pytest.raises(PermissionError):
        chat_service.send_message('alice_bob', 'eve', 'hi')
    with pytest.raises(ValueError):
        chat_service.send_message('nope', 'alice', 'hi')

def test_relay_notifies_recipient(fake_db, make_user, push_gateway, chat_service):
    make_user('alice')
    make_user('bob', push_token='ExponentPushToken[bob]')
    fake_db.seed('chats/alice_bob', {'participants': ['alice', 'bob']})

    assert chat_service.relay_message_notification('evt-1', 'alice_bob', _message(text='x' * 120)) is True
    assert push_gateway.messages == [{
        'to': 'ExponentPushToken[bob]',
        'title': 'Alice',
        'body': 'x' * 50 + '...',
        'data': {'type': 'message', 'chatId': 'alice_bob', 'senderId': 'alice'},
        'sound': 'default',
    }]

def test_relay_sends_once_per_event(fake_db, make_user, push_gateway, chat_service):
    make_user('alice')
    make_user('bob', push_token='ExponentPushToken[bob]')
    fake_db.seed('chats/alice_bob', {'participants': ['alice', 'bob']})

    chat_service.relay_message_notification('evt-1', 'alice_bob', _message())
    assert chat_service.relay_message_notification('evt-1', 'alice_bob', _message()) is False
    assert len(push_gateway.requests) == 1

def test_relay_respects_recipient_preferences(fake_db, make_user, push_gateway, chat_service):
    """알림을 끄거나 토큰이 없는 수신자에게는 보내지 않아야 함"""
    make_user('alice')
    make_user('muted', notifications=False, push_token='ExponentPushToken[muted]')
    make_user('tokenless')
    fake_db.seed('chats/alice_muted', {'participants': ['alice', 'muted']})
    fake_db.seed('chats/alice_tokenless', {'participants': ['alice', 'tokenless']})

    assert chat_service.relay_message_notification('evt-1', 'alice_muted', _message()) is False
    assert chat_service.relay_message_notification('evt-2', 'alice_tokenless', _message()) is False
    assert chat_service.relay_message_notification('evt-3', 'missing_chat', _message()) is False
    assert push_gateway.requests == []

def test_relay_uses_default_title(fake_db, make_user, push_gateway, chat_service):
    make_user('alice')
    make_user('bob', push_token='ExponentPushToken[bob]')
    fake_db.seed('chats/alice_bob', {'participants': ['alice', 'bob']})

    chat_service.relay_message_notification('evt-1', 'alice_bob', _message(sender_name=None))
    assert push_gateway.messages[0]['title'] == 'New Message'

def test_relay_gateway_failure_is_not_raised(fake_db, make_user, push_gateway, chat_service):
    make_user('alice')
    make_user('bob', push_token='ExponentPushToken[bob]')
    fake_db.seed('chats/alice_bob', {'participants': ['alice', 'bob']})
    push_gateway.status_code = 503

    assert chat_service.relay_message_notification('evt-1', 'alice_bob', _message()) is False
