"""
Domain Events

스토어 변경 피드로 전달되는 이벤트 정의
"""

from .base import DomainEvent
from .change_events import RowChanged, EVENT_INSERT, EVENT_UPDATE, EVENT_DELETE, ALL_EVENTS

__all__ = [
    'DomainEvent',
    'RowChanged',
    'EVENT_INSERT',
    'EVENT_UPDATE',
    'EVENT_DELETE',
    'ALL_EVENTS',
]
