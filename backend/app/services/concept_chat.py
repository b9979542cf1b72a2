"""Answer free-form learning questions with the AI service."""
from __future__ import annotations

import logging
from typing import Optional

from app.services.ai_client import GenerationClient, require_client
from app.services.errors import GenerationServiceError

logger = logging.getLogger(__name__)

CONCEPT_BOT_PROMPT = (
    "You are a learning assistant helping users understand concepts and achieve their learning goals.\n"
    "Your role is to:\n"
    "- Answer questions about learning concepts\n"
    "- Provide study tips and strategies\n"
    "- Help break down complex topics\n"
    "- Suggest resources for further learning\n"
    "Do NOT generate schedules - that's handled by a different system."
)

UNAVAILABLE_REPLY = (
    "I'm sorry, but I'm having trouble connecting to the AI service right now. "
    "Please try again later, or consider checking documentation or online tutorials for help with your question."
)


def answer_question(client: Optional[GenerationClient], message: str) -> tuple[str, bool]:
    """Return the reply and whether it came from the AI service."""
    prompt = (
        f"User's question: {message}\n\n"
        "Provide a clear, helpful response that focuses on understanding and learning."
    )
    try:
        reply = require_client(client).generate(prompt, system_prompt=CONCEPT_BOT_PROMPT)
    except GenerationServiceError as exc:
        logger.warning("Concept chat unavailable (%s)", exc.kind)
        return UNAVAILABLE_REPLY, False
    if not reply.strip():
        return UNAVAILABLE_REPLY, False
    return reply, True
