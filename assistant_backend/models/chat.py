from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship
from assistant_backend.core.database import Base

SENDER_AI = "AI"
SENDER_USER = "user"


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    id = Column(Integer, primary_key=True, index=True)
    service = Column(String, nullable=False)
    service_item = Column(String, nullable=False)
    user_email = Column(String, index=True, nullable=True)
    session_id = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    chat_logs = relationship(
        "ChatLog",
        back_populates="chat_session",
        order_by="ChatLog.position",
        cascade="all, delete-orphan",
    )


class ChatLog(Base):
    __tablename__ = "chat_logs"

    id = Column(Integer, primary_key=True, index=True)
    chat_session_id = Column(Integer, ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    sender = Column(String(8), nullable=False)  # "AI" or "user"
    message = Column(Text, nullable=False)

    chat_session = relationship("ChatSession", back_populates="chat_logs")

    # Two concurrent turns on one session collide here instead of interleaving
    __table_args__ = (
        UniqueConstraint("chat_session_id", "position", name="uq_chat_logs_session_position"),
    )
