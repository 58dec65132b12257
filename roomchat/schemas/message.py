from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Union
from pydantic import BaseModel, Field, ConfigDict


class TextPayload(BaseModel):
    """텍스트 메시지 본문"""
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    content: str = Field(..., description="메시지 내용")


class ImagePayload(BaseModel):
    """이미지 메시지 본문"""
    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    url: str = Field(..., description="공개 이미지 URL")
    placeholder: str = Field(..., description="대체 텍스트")


MessagePayload = Annotated[Union[TextPayload, ImagePayload], Field(discriminator="type")]


class MessageResponse(BaseModel):
    """메시지 응답 스키마 (생성 후 변경 불가)"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="메시지 ID")
    room_id: str = Field(..., description="채팅방 ID")
    author_id: str = Field(..., description="작성자 ID")
    author_email: str = Field(..., description="작성자 표시 이메일")
    created_at: datetime = Field(..., description="생성일시")
    payload: MessagePayload

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "MessageResponse":
        """messages 테이블 행을 태그드 유니온 스키마로 변환"""
        message_type = row.get("message_type", "text")

        if message_type == "image":
            if not row.get("image_url"):
                raise ValueError(f"Image message {row.get('id')} has no image_url")
            payload = {"type": "image", "url": row["image_url"], "placeholder": row["content"]}
        elif message_type == "text":
            payload = {"type": "text", "content": row["content"]}
        else:
            raise ValueError(f"Unknown message_type: {message_type}")

        return cls.model_validate({
            "id": row["id"],
            "room_id": row["room_id"],
            "author_id": row["author_id"],
            "author_email": row["author_email"],
            "created_at": row["created_at"],
            "payload": payload,
        })

    @property
    def is_image(self) -> bool:
        return isinstance(self.payload, ImagePayload)


def build_message_row(room_id: str, author_id: str, author_email: str, payload: Union[TextPayload, ImagePayload]) -> Dict[str, Any]:
    """태그드 유니온 본문을 messages 테이블 행으로 변환"""
    row = {
        "room_id": room_id,
        "author_id": author_id,
        "author_email": author_email,
        "message_type": payload.type,
    }
    if isinstance(payload, ImagePayload):
        row.update(content=payload.placeholder, image_url=payload.url)
    else:
        row.update(content=payload.content, image_url=None)
    return row
