import secrets
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from assistant_backend.core.exceptions import ConcurrentTurn, SessionNotFound, UnknownServiceItem
from assistant_backend.models.chat import SENDER_AI, SENDER_USER, ChatLog, ChatSession
from assistant_backend.services.completion import CompletionClient
from assistant_backend.services.prompts import continuation_prompt, get_service_prompt
from assistant_backend.utils.logger import get_logger

logger = get_logger("assistant_backend.services.chat")

SESSION_ID_BYTES = 16
MAX_SESSION_ID_ATTEMPTS = 5


def render_transcript(chat_logs: List[ChatLog]) -> str:
    return "\n".join(f"{log.sender}: {log.message}" for log in chat_logs)


class ChatService:
    def __init__(self, db: AsyncSession, completion: CompletionClient):
        self.db = db
        self.completion = completion

    async def _session_id_taken(self, session_id: str) -> bool:
        result = await self.db.execute(
            select(ChatSession.id).filter(ChatSession.session_id == session_id)
        )
        return result.first() is not None

    async def _new_session_id(self) -> str:
        for _ in range(MAX_SESSION_ID_ATTEMPTS):
            session_id = secrets.token_urlsafe(SESSION_ID_BYTES)
            if not await self._session_id_taken(session_id):
                return session_id
            logger.warning("Session id collision, regenerating")
        raise RuntimeError("Could not allocate a unique session id")

    async def create_session(self, service: str, service_item: str, owner_email: str) -> dict:
        prompt = get_service_prompt(service, service_item)
        if prompt is None:
            logger.info("Unknown service item requested", extra={
                "service": service,
                "service_item": service_item,
            })
            raise UnknownServiceItem()

        session_id = await self._new_session_id()
        ai_response = await self.completion.complete(prompt)

        chat_session = ChatSession(
            service=service,
            service_item=service_item,
            user_email=owner_email,
            session_id=session_id,
            chat_logs=[ChatLog(position=1, sender=SENDER_AI, message=ai_response)],
        )
        self.db.add(chat_session)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.error("Chat session insert failed", extra={"session_id": session_id}, exc_info=True)
            raise

        logger.info("Chat session created", extra={
            "session_id": session_id,
            "service": service,
            "service_item": service_item,
            "user_email": owner_email,
        })
        return {"sessionId": session_id, "message": ai_response}

    async def _load(self, session_id: str) -> ChatSession:
        result = await self.db.execute(
            select(ChatSession)
            .options(selectinload(ChatSession.chat_logs))
            .filter(ChatSession.session_id == session_id)
        )
        chat_session = result.scalar_one_or_none()
        if chat_session is None:
            raise SessionNotFound()
        return chat_session

    async def continue_session(self, session_id: str, user_prompt: str) -> dict:
        """
        Send the prior transcript plus the new prompt to the completion API,
        then append the user turn and the AI turn, in that order.
        Nothing is stored if the completion call fails.
        """
        chat_session = await self._load(session_id)

        transcript = render_transcript(chat_session.chat_logs)
        combined_prompt = continuation_prompt.format(transcript=transcript, prompt=user_prompt)
        ai_response = await self.completion.complete(combined_prompt)

        next_position = max((log.position for log in chat_session.chat_logs), default=0) + 1
        chat_session.chat_logs.append(
            ChatLog(position=next_position, sender=SENDER_USER, message=user_prompt)
        )
        chat_session.chat_logs.append(
            ChatLog(position=next_position + 1, sender=SENDER_AI, message=ai_response)
        )
        try:
            await self.db.commit()
        except IntegrityError:
            # Another turn on the same session was stored first
            await self.db.rollback()
            logger.error("Concurrent turn detected", extra={"session_id": session_id})
            raise ConcurrentTurn()

        logger.info("Chat turn saved", extra={
            "session_id": session_id,
            "user_msg_len": len(user_prompt),
            "assistant_msg_len": len(ai_response),
            "log_count": len(chat_session.chat_logs),
        })
        return {"message": ai_response}

    async def list_sessions(self, owner_email: str) -> List[ChatSession]:
        result = await self.db.execute(
            select(ChatSession)
            .options(selectinload(ChatSession.chat_logs))
            .filter(ChatSession.user_email == owner_email)
            .order_by(ChatSession.id.desc())
        )
        sessions = list(result.scalars().all())
        logger.info("Chat sessions listed", extra={"user_email": owner_email, "count": len(sessions)})
        return sessions

    async def get_session(self, session_id: str) -> ChatSession:
        return await self._load(session_id)
