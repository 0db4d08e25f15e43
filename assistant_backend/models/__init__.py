from assistant_backend.models.user import User
from assistant_backend.models.user_session import UserSession
from assistant_backend.models.chat import ChatSession, ChatLog

__all__ = ["User", "UserSession", "ChatSession", "ChatLog"]
