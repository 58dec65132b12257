from pydantic import BaseModel, Field, ConfigDict


class SessionUser(BaseModel):
    """인증된 세션 사용자"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="사용자 ID")
    email: str = Field(..., description="사용자 이메일 (표시용)")
