import uuid
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, CheckConstraint, Index
from roomchat.database.engine import Base
from roomchat.utils.time_utils import utc_now


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint("message_type IN ('text', 'image')", name="ck_messages_type"),
        Index("ix_messages_room_created", "room_id", "created_at", "id"),  # 채팅방별 시간순 조회
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(String(64), nullable=False)
    author_email = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)  # message_type == "image"일 때만
    message_type = Column(String(10), nullable=False, default="text")
    created_at = Column(DateTime, nullable=False, default=utc_now)

    def __repr__(self):
        return f"<Message(id={self.id}, room_id={self.room_id}, author_id={self.author_id}, type={self.message_type})>"
