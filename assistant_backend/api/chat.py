from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from assistant_backend.api.deps import get_auth_service, get_chat_service
from assistant_backend.core.security import get_current_user_id
from assistant_backend.models.chat import ChatSession
from assistant_backend.schemas.chat_schema import (
    AskRequest,
    ChatLogItem,
    ChatReply,
    ChatSessionResponse,
    CreateSessionRequest,
    CreateSessionResponse,
)
from assistant_backend.services.auth_service import AuthService
from assistant_backend.services.chat_service import ChatService
from assistant_backend.utils.logger import get_logger

logger = get_logger("assistant_backend.api.chat")

router = APIRouter(prefix="/api", tags=["chat"])


def _session_response(chat_session: ChatSession) -> ChatSessionResponse:
    return ChatSessionResponse(
        session_id=chat_session.session_id,
        service=chat_session.service,
        service_item=chat_session.service_item,
        user_email=chat_session.user_email,
        chat_logs=[ChatLogItem(sender=log.sender, message=log.message) for log in chat_session.chat_logs],
    )


async def _owner_email(
    requested: Optional[str],
    user_id: int,
    auth: AuthService,
) -> str:
    # Fall back to the caller's own address when no owner is given
    if requested:
        return requested.strip().lower()
    user = await auth.get_user(user_id)
    return user.email


@router.post("/create-session/{service}/{service_item}", response_model=CreateSessionResponse)
async def create_session(
    service: str,
    service_item: str,
    body: Optional[CreateSessionRequest] = Body(default=None),
    user_id: int = Depends(get_current_user_id),
    chat: ChatService = Depends(get_chat_service),
    auth: AuthService = Depends(get_auth_service),
):
    owner = await _owner_email(body.user_email if body else None, user_id, auth)
    logger.info("Chat session requested", extra={"user_id": user_id, "service": service, "service_item": service_item})
    result = await chat.create_session(service, service_item, owner)
    return CreateSessionResponse(session_id=result["sessionId"], message=result["message"])


@router.post("/ask/{session_id}", response_model=ChatReply)
async def ask(
    session_id: str,
    body: AskRequest,
    user_id: int = Depends(get_current_user_id),
    chat: ChatService = Depends(get_chat_service),
):
    logger.info("Chat turn requested", extra={"user_id": user_id, "session_id": session_id})
    result = await chat.continue_session(session_id, body.prompt)
    return ChatReply(**result)


@router.get("/get-sessions", response_model=List[ChatSessionResponse])
async def get_sessions(
    user_email: Optional[str] = Query(default=None, alias="userEmail"),
    user_id: int = Depends(get_current_user_id),
    chat: ChatService = Depends(get_chat_service),
    auth: AuthService = Depends(get_auth_service),
):
    owner = await _owner_email(user_email, user_id, auth)
    sessions = await chat.list_sessions(owner)
    return [_session_response(s) for s in sessions]


@router.get("/get-session/{session_id}", response_model=ChatSessionResponse)
async def get_session(
    session_id: str,
    user_id: int = Depends(get_current_user_id),
    chat: ChatService = Depends(get_chat_service),
):
    chat_session = await chat.get_session(session_id)
    return _session_response(chat_session)
