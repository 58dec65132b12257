from sqlalchemy import Column, String, DateTime, ForeignKey
from roomchat.database.engine import Base
from roomchat.utils.time_utils import utc_now


class RoomMember(Base):
    """
    채팅방 멤버십 테이블

    (room_id, user_id) 쌍이 곧 식별자이며, 행이 있으면 비밀번호 없이 입장 가능
    """
    __tablename__ = "room_members"

    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(64), primary_key=True, index=True)
    joined_at = Column(DateTime, nullable=False, default=utc_now)

    def __repr__(self):
        return f"<RoomMember(room_id={self.room_id}, user_id={self.user_id})>"
