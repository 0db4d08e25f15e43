from typing import Dict, Optional

from langchain_core.prompts import PromptTemplate

# Prompts that seed a new chat session, keyed by service then service item
SERVICE_PROMPTS: Dict[str, Dict[str, str]] = {
    "writing": {
        "writeanarticle": (
            "Write an article like a grad-level professor. If understood, just reply "
            "\"Hello! What article may I write for you today?\""
        ),
        "proofread": (
            "Act as a meticulous copy editor. Correct grammar, spelling and punctuation "
            "while keeping the author's voice. If understood, just reply "
            "\"Hello! Paste the text you would like me to proofread.\""
        ),
        "summarize": (
            "Summarize texts clearly and concisely, keeping every key point. If understood, "
            "just reply \"Hello! What would you like me to summarize?\""
        ),
    },
}


def get_service_prompt(service: str, service_item: str) -> Optional[str]:
    return SERVICE_PROMPTS.get(service, {}).get(service_item)


continuation_prompt = PromptTemplate(
    input_variables=["transcript", "prompt"],
    template="""You are continuing a conversation with a user. Each line of the transcript is prefixed with its sender.

{transcript}
user: {prompt}
AI:""",
)
