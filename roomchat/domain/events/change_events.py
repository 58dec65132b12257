"""
Store Change Events
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from .base import DomainEvent

EVENT_INSERT = "INSERT"
EVENT_UPDATE = "UPDATE"
EVENT_DELETE = "DELETE"
ALL_EVENTS = frozenset({EVENT_INSERT, EVENT_UPDATE, EVENT_DELETE})


@dataclass
class RowChanged(DomainEvent):
    """테이블 행 변경 이벤트 (insert/update/delete)"""
    timestamp: datetime
    table: str
    event_type: str
    new: Dict[str, Any] = field(default_factory=dict)  # insert/update 이후 값
    old: Dict[str, Any] = field(default_factory=dict)  # update/delete 조건

    def matches(self, filters: Optional[Dict[str, Any]]) -> bool:
        """구독 필터(컬럼 == 값) 일치 여부"""
        if not filters:
            return True
        row = self.new or self.old
        return all(str(row.get(key)) == str(value) for key, value in filters.items())
