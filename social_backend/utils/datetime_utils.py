# social_backend/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간 처리를 위한 유틸리티 모듈

- 백엔드는 모든 시간을 UTC timezone-aware datetime으로 다룹니다.
- Firestore에서 읽은 timestamp를 API 응답용 datetime으로 정규화합니다.
- 처리 완료 이벤트 기록(processed_events)의 TTL 만료 시각을 계산합니다.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

class DateTimeUtils:
    """시간 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def expires_after(days: int, start: Optional[datetime] = None) -> datetime:
        """start(기본값: 현재)로부터 days일 뒤의 UTC 시각을 반환"""
        base = start or DateTimeUtils.now()
        if base.tzinfo is None:
            base = base.replace(tzinfo=timezone.utc)
        return base.astimezone(timezone.utc) + relativedelta(days=days)

    @staticmethod
    def from_timestamp(seconds: Union[int, float]) -> datetime:
        """Unix timestamp(초, JWT 'exp' 클레임 등)를 UTC datetime으로 변환"""
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
            logger.error(f"timestamp 변환 실패: {seconds!r}")
            raise ValueError(f"timestamp는 숫자여야 합니다: {seconds}")
        return datetime.fromtimestamp(seconds, tz=timezone.utc)

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Firestore에서 읽은 데이터의 datetime 필드를 UTC timezone-aware datetime으로 변환
        (DatetimeWithNanoseconds는 datetime의 하위 클래스입니다)
        """
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)
        elif isinstance(obj, dict):
            return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DateTimeUtils.from_firestore(item) for item in obj]
        return obj
