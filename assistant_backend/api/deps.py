from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from assistant_backend.core.database import get_db
from assistant_backend.core.security import TokenIssuer, get_token_issuer
from assistant_backend.services.auth_service import AuthService
from assistant_backend.services.chat_service import ChatService
from assistant_backend.services.completion import CompletionClient, get_completion_client


def get_auth_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthService:
    return AuthService(
        db=db,
        token_issuer=issuer,
        notifier=request.app.state.notifier,
        settings=request.app.state.settings,
    )


def get_chat_service(
    db: AsyncSession = Depends(get_db),
    completion: CompletionClient = Depends(get_completion_client),
) -> ChatService:
    return ChatService(db=db, completion=completion)
