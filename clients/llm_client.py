"""
Streaming chat-completion client for question generation.
Wraps the Groq and OpenAI async SDKs behind one token stream and maps
their failures onto ProviderError codes.
"""

import logging
from typing import Any, AsyncGenerator, Dict

import groq
import openai
from groq import AsyncGroq
from openai import AsyncOpenAI

from utils.exceptions import ProviderError
from utils.model_config import ModelProvider

logger = logging.getLogger(__name__)

_CONNECTION_ERRORS = (
    groq.APIConnectionError,
    openai.APIConnectionError,
)


def _create_client(provider: str, api_key: str):
    if provider == ModelProvider.GROQ:
        return AsyncGroq(api_key=api_key)
    if provider == ModelProvider.OPENAI:
        return AsyncOpenAI(api_key=api_key)
    raise ProviderError(f"Unknown provider: {provider}", error_code="UNKNOWN_PROVIDER")


def classify_provider_error(exc: Exception, provider: str) -> ProviderError:
    """Translate an SDK exception into a ProviderError with a user-facing message."""
    if isinstance(exc, ProviderError):
        return exc

    status = getattr(exc, "status_code", None)
    context = {"provider": str(getattr(provider, "value", provider)), "status_code": status}

    # SDK errors carry status_code; anything else only has its message to go on
    text = str(exc).lower() if status is None else ""

    if status == 401 or "401" in text:
        return ProviderError(
            f"Invalid API key. Please check your {context['provider']} API key configuration.",
            error_code="PROVIDER_AUTH_FAILED",
            context=context,
        )
    if status == 429 or "429" in text or "rate limit" in text or "rate_limit" in text:
        return ProviderError(
            "API rate limit exceeded. Please try again later.",
            error_code="PROVIDER_RATE_LIMITED",
            context=context,
        )
    if (status is not None and status >= 500) or "500" in text or "503" in text:
        return ProviderError(
            "API service is currently unavailable. Please try again later.",
            error_code="PROVIDER_UNAVAILABLE",
            context=context,
        )
    if isinstance(exc, _CONNECTION_ERRORS):
        return ProviderError(
            "Could not reach the question generation service. Please try again.",
            error_code="PROVIDER_UNREACHABLE",
            context=context,
        )
    return ProviderError(
        "Failed to generate question. Please check your API key and configuration.",
        context=context,
    )


async def stream_completion(
    prompt: str,
    system_prompt: str,
    model_config: Dict[str, Any],
    api_key: str,
) -> AsyncGenerator[str, None]:
    """
    Stream text fragments from the configured provider.

    Args:
        prompt: User message.
        system_prompt: System message.
        model_config: Entry from MODEL_CONFIGS.
        api_key: Provider key, already checked by the caller.

    Yields:
        Non-empty content deltas in arrival order.

    Raises:
        ProviderError for any SDK or network failure, including mid-stream ones.
    """
    provider = model_config["provider"]
    client = _create_client(provider, api_key)
    try:
        stream = await client.chat.completions.create(
            model=model_config["model"],
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=model_config.get("temperature", 0.7),
            max_tokens=model_config.get("max_tokens", 1000),
            stream=True,
        )
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta
    except Exception as e:
        logger.error(f"{provider} streaming error: {e}")
        raise classify_provider_error(e, provider) from e
    finally:
        await client.close()
