from sqlalchemy import Column, String, DateTime, ForeignKey
from roomchat.database.engine import Base
from roomchat.utils.time_utils import utc_now


class MessageReaction(Base):
    __tablename__ = "message_reactions"

    message_id = Column(String(36), ForeignKey("messages.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(64), primary_key=True)
    emoji = Column(String(32), primary_key=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    def __repr__(self):
        return f"<MessageReaction(message_id={self.message_id}, user_id={self.user_id}, emoji={self.emoji})>"
