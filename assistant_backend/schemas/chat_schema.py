from pydantic import BaseModel, Field
from typing import List, Optional


class CreateSessionRequest(BaseModel):
    user_email: Optional[str] = Field(default=None, alias="userEmail")

    class Config:
        populate_by_name = True


class AskRequest(BaseModel):
    prompt: str = Field(min_length=1)


class CreateSessionResponse(BaseModel):
    session_id: str = Field(alias="sessionId")
    message: str

    class Config:
        populate_by_name = True


class ChatReply(BaseModel):
    message: str


class ChatLogItem(BaseModel):
    sender: str  # 'AI' or 'user'
    message: str

    class Config:
        from_attributes = True


class ChatSessionResponse(BaseModel):
    session_id: str = Field(alias="sessionId")
    service: str
    service_item: str = Field(alias="serviceItem")
    user_email: Optional[str] = Field(default=None, alias="userEmail")
    chat_logs: List[ChatLogItem] = Field(default_factory=list, alias="chatLogs")

    class Config:
        populate_by_name = True
        from_attributes = True
