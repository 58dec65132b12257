"""
시간 관련 유틸리티 함수
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """현재 UTC 시각 (DB 저장용 naive datetime)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
