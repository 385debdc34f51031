# social_backend/services/firestore_service.py
"""
트리거 이벤트 중복 처리 방지를 위한 'processed_events' 기록 헬퍼.

플랫폼은 같은 문서 이벤트를 두 번 이상 전달할 수 있습니다(at-least-once).
핸들러는 효과를 쓰는 트랜잭션 안에서 이벤트 기록을 함께 읽고 쓰므로,
같은 event_id로 다시 호출되면 아무 것도 하지 않습니다.
"""
from firebase_admin import firestore

from social_backend.utils.datetime_utils import DateTimeUtils

PROCESSED_EVENTS_COLLECTION = 'processed_events'
# Firestore TTL 정책이 expireAt 필드를 기준으로 기록을 정리합니다.
PROCESSED_EVENT_TTL_DAYS = 7

def processed_event_ref(db, event_id: str):
    """event_id에 해당하는 처리 기록 문서 참조를 반환합니다."""
    if not event_id:
        raise ValueError("event_id는 필수입니다.")
    return db.collection(PROCESSED_EVENTS_COLLECTION).document(event_id)

def is_event_processed(transaction, event_ref) -> bool:
    """트랜잭션 안에서 이벤트 처리 여부를 읽습니다. (모든 쓰기보다 먼저 호출해야 합니다)"""
    return event_ref.get(transaction=transaction).exists

def mark_event_processed(transaction, event_ref, handler: str) -> None:
    """효과와 같은 트랜잭션에 이벤트 처리 기록을 추가합니다."""
    transaction.set(event_ref, {
        'handler': handler,
        'processedAt': firestore.SERVER_TIMESTAMP,
        'expireAt': DateTimeUtils.expires_after(PROCESSED_EVENT_TTL_DAYS),
    })
