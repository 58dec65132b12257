import uuid
from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from roomchat.database.engine import Base
from roomchat.utils.time_utils import utc_now


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint("max_users >= 1 AND max_users <= 100", name="ck_rooms_max_users"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)  # KDF 해시, 평문 저장 금지
    max_users = Column(Integer, nullable=False, default=10)
    owner_id = Column(String(64), nullable=False, index=True)
    owner_email = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)

    def __repr__(self):
        return f"<Room(id={self.id}, name={self.name}, owner_id={self.owner_id})>"
