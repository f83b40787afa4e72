"""
Thin async clients for the remote language model.

Clients return the SDK's raw response object; turning it into text is the
extractor's job. SDK exceptions propagate unchanged so the backoff executor
can inspect their status codes and messages.
"""
import asyncio
import logging
from typing import Any, Awaitable, Dict, Optional

import google.generativeai as genai
from groq import AsyncGroq

from .config import Settings
from .errors import ConfigurationError, ServiceTimeoutError

logger = logging.getLogger('llm_client')


class LLMClient:
    """Interface the orchestrator depends on."""

    name = 'base'

    async def generate(self, prompt: str, structured: bool = False) -> Any:
        raise NotImplementedError


async def with_timeout(awaitable: Awaitable[Any], timeout: Optional[float]) -> Any:
    if not timeout:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        raise ServiceTimeoutError(timeout) from None


class GeminiClient(LLMClient):
    name = 'gemini'

    def __init__(self, api_key: str, model_name: str = 'gemini-1.5-flash', temperature: float = 0.2,
                 max_output_tokens: int = 2048, request_timeout: Optional[float] = 60, model: Any = None):
        self.model_name = model_name
        self.request_timeout = request_timeout
        self.generation_config: Dict[str, Any] = {
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        }
        if model is None:
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(model_name)
            logger.info(f"Initialized Gemini model {model_name}")
        self.model = model

    async def generate(self, prompt: str, structured: bool = False) -> Any:
        config = dict(self.generation_config)
        if structured:
            config["response_mime_type"] = "application/json"
        logger.debug(f"Gemini request ({'structured' if structured else 'text'}), {len(prompt)} chars")
        return await with_timeout(
            self.model.generate_content_async(prompt, generation_config=config),
            self.request_timeout,
        )


class GroqClient(LLMClient):
    name = 'groq'

    def __init__(self, api_key: str, model_name: str = 'llama-3.1-8b-instant', temperature: float = 0.2,
                 max_output_tokens: int = 2048, request_timeout: Optional[float] = 60, client: Any = None):
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.request_timeout = request_timeout
        if client is None:
            client = AsyncGroq(api_key=api_key)
            logger.info(f"Initialized Groq client for {model_name}")
        self.client = client

    async def generate(self, prompt: str, structured: bool = False) -> Any:
        kwargs: Dict[str, Any] = {
            "messages": [{"role": "user", "content": prompt}],
            "model": self.model_name,
            "temperature": self.temperature,
            "max_tokens": self.max_output_tokens,
        }
        if structured:
            kwargs["response_format"] = {"type": "json_object"}
        logger.debug(f"Groq request ({'structured' if structured else 'text'}), {len(prompt)} chars")
        return await with_timeout(self.client.chat.completions.create(**kwargs), self.request_timeout)


def create_client(settings: Settings) -> Optional[LLMClient]:
    """
    Build the configured client, or None when no usable API key is set.

    Raises:
        ConfigurationError: unknown provider or the SDK rejected its setup
    """
    if not settings.has_credentials:
        logger.info("No API key configured, remote analysis disabled")
        return None

    common = dict(
        api_key=settings.api_key,
        model_name=settings.model,
        temperature=settings.temperature,
        max_output_tokens=settings.max_output_tokens,
        request_timeout=settings.request_timeout,
    )
    try:
        if settings.provider == 'gemini':
            return GeminiClient(**common)
        if settings.provider == 'groq':
            return GroqClient(**common)
    except Exception as e:
        logger.error(f"Failed to initialize {settings.provider} client: {str(e)}")
        raise ConfigurationError(f"Failed to initialize {settings.provider} client: {e}") from e
    raise ConfigurationError(f"Unknown AI provider '{settings.provider}'")
