from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict


class RoomBase(BaseModel):
    """채팅방 기본 스키마"""
    name: str = Field(..., description="채팅방 이름 (고유하지 않음)")
    max_users: int = Field(..., ge=1, le=100, description="최대 인원 (1-100)")


class RoomResponse(RoomBase):
    """채팅방 응답 스키마"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(..., description="채팅방 ID")
    owner_id: str = Field(..., description="소유자 ID")
    owner_email: str = Field(..., description="소유자 표시 이메일")
    created_at: datetime = Field(..., description="생성일시")
    password_hash: str = Field(..., exclude=True, repr=False, description="비밀번호 해시 (직렬화 제외)")

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id

