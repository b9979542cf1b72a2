"""AI text-generation capability injected into schedule and grading call sites."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Protocol

import openai

from app.core.config import settings
from app.services.errors import GenerationServiceError

logger = logging.getLogger(__name__)


class GenerationClient(Protocol):
    """Anything that turns a prompt into free-form text."""

    def generate(self, prompt: str, *, system_prompt: Optional[str] = None, json_mode: bool = False) -> str:
        ...


class OpenAIGenerationClient:
    """Chat-completions backed client; SDK failures surface as GenerationServiceError."""

    def __init__(self, api_key: str, *, model: str, timeout: float | None = None) -> None:
        kwargs = {"api_key": api_key}
        if timeout is not None:
            kwargs["timeout"] = timeout
        self._client = openai.OpenAI(**kwargs)
        self.model = model

    def generate(self, prompt: str, *, system_prompt: Optional[str] = None, json_mode: bool = False) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        request = {"model": self.model, "messages": messages}
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            completion = self._client.chat.completions.create(**request)
        except openai.AuthenticationError as exc:
            raise GenerationServiceError(str(exc), kind="auth") from exc
        except openai.RateLimitError as exc:
            raise GenerationServiceError(str(exc), kind="quota") from exc
        except openai.APITimeoutError as exc:
            raise GenerationServiceError(str(exc), kind="timeout") from exc
        except openai.OpenAIError as exc:
            raise GenerationServiceError(str(exc)) from exc

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""


@lru_cache
def _build_openai_client(api_key: str, model: str, timeout: float | None) -> OpenAIGenerationClient:
    logger.info("AI generation client initialised (model=%s)", model)
    return OpenAIGenerationClient(api_key, model=model, timeout=timeout)


def get_generation_client() -> Optional[GenerationClient]:
    """FastAPI dependency returning the configured client, or None without an API key."""
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY missing; AI features will use fallbacks.")
        return None
    return _build_openai_client(settings.openai_api_key, settings.openai_model, settings.openai_timeout_seconds)


def require_client(client: Optional[GenerationClient]) -> GenerationClient:
    """Return the client or raise GenerationServiceError when none is configured."""
    if client is None:
        raise GenerationServiceError("AI generation service is not configured", kind="missing_key")
    return client
