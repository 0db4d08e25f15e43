from fastapi import Request
from langchain_core.language_models.chat_models import BaseChatModel

from assistant_backend.core.config import Settings
from assistant_backend.core.exceptions import UpstreamError
from assistant_backend.utils.logger import get_logger

logger = get_logger("assistant_backend.services.completion")


def build_chat_model(settings: Settings) -> BaseChatModel:
    """Gemini chat model configured from settings."""
    from langchain_google_genai import ChatGoogleGenerativeAI

    return ChatGoogleGenerativeAI(
        model=settings.COMPLETION_MODEL,
        google_api_key=settings.GOOGLE_API_KEY,
        temperature=settings.COMPLETION_TEMPERATURE,
        max_output_tokens=settings.COMPLETION_MAX_OUTPUT_TOKENS,
    )


class CompletionClient:
    """Prompt in, text out. Any provider failure surfaces as UpstreamError."""

    def __init__(self, llm: BaseChatModel):
        self.llm = llm

    async def complete(self, prompt: str) -> str:
        logger.info("Requesting completion", extra={"prompt_length": len(prompt)})
        try:
            result = await self.llm.ainvoke(prompt)
        except Exception as e:
            logger.error(f"Completion API error: {e}", exc_info=True)
            raise UpstreamError() from e

        answer = _text_of(result.content).strip()
        logger.info("Completion received", extra={"answer_length": len(answer)})
        return answer


def _text_of(content) -> str:
    # Some providers return a list of content parts instead of a plain string
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def get_completion_client(request: Request) -> CompletionClient:
    return request.app.state.completion_client
