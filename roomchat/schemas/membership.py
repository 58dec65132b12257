from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict


class MembershipResponse(BaseModel):
    """채팅방 멤버십 스키마"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    room_id: str = Field(..., description="채팅방 ID")
    user_id: str = Field(..., description="사용자 ID")
    joined_at: datetime = Field(..., description="입장일시")


class JoinResult(str, Enum):
    """입장 결과"""
    JOINED = "joined"
    ALREADY_MEMBER = "already_member"
