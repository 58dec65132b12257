"""
Domain Event Base Class
"""

from dataclasses import dataclass, asdict
from datetime import datetime, date
from typing import Dict, Any
import json


def _json_default(value: Any):
    """datetime 등 JSON 비호환 값 변환"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@dataclass
class DomainEvent:
    """Domain Event 기본 클래스"""
    timestamp: datetime

    def to_dict(self) -> Dict:
        """Event를 dict로 변환"""
        data = asdict(self)
        # datetime을 ISO 형식 문자열로 변환
        data['timestamp'] = self.timestamp.isoformat()
        # Event 타입 추가 (구독자 라우팅용)
        data['__event_type__'] = self.__class__.__name__
        return data

    def to_json(self) -> str:
        """Event를 JSON으로 변환"""
        return json.dumps(self.to_dict(), default=_json_default)

    @classmethod
    def from_dict(cls, data: Dict):
        """dict에서 Event 복원"""
        data = dict(data)
        if 'timestamp' in data and isinstance(data['timestamp'], str):
            data['timestamp'] = datetime.fromisoformat(data['timestamp'])
        data.pop('__event_type__', None)
        return cls(**data)

    @classmethod
    def from_json(cls, raw: str):
        """JSON에서 Event 복원"""
        return cls.from_dict(json.loads(raw))
