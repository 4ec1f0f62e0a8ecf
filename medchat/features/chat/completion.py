from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import openai
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from medchat.core.config import get_settings

from .errors import CompletionError
from .payload import ChatPayload, ImageBlock, PayloadMessage, TextBlock
from .prompts import TITLE_PROMPT
from .types import CompletionResult

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I could not generate a response."
TITLE_MAX_WORDS = 6
TITLE_MAX_TOKENS = 20


@dataclass(frozen=True)
class ModelSpec:
    name: str
    build_model: Callable[[], Any]


def completion_model_spec(
    model_name: str,
    *,
    max_tokens: int,
    temperature: float,
) -> ModelSpec | None:
    settings = get_settings()
    if not settings.openai_api_key:
        return None

    def _build_model() -> ChatOpenAI:
        model_kwargs: dict[str, Any] = {
            "model": model_name,
            "api_key": settings.openai_api_key,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if settings.openai_base_url:
            model_kwargs["base_url"] = settings.openai_base_url
        return ChatOpenAI(**model_kwargs)

    return ModelSpec(name=model_name, build_model=_build_model)


def _block_to_openai(block: TextBlock | ImageBlock) -> dict[str, Any]:
    if isinstance(block, ImageBlock):
        return {"type": "image_url", "image_url": {"url": block.url, "detail": block.detail}}
    return {"type": "text", "text": block.text}


def to_openai_messages(messages: list[PayloadMessage]) -> list[BaseMessage]:
    converted: list[BaseMessage] = []
    for message in messages:
        if message.role == "system":
            text = "".join(block.text for block in message.content if isinstance(block, TextBlock))
            converted.append(SystemMessage(content=text))
            continue
        content = [_block_to_openai(block) for block in message.content]
        if message.role == "assistant":
            converted.append(AIMessage(content=content))
        else:
            converted.append(HumanMessage(content=content))
    return converted


def _response_text(response: Any) -> str:
    content = getattr(response, "content", "")
    if isinstance(content, list):
        parts = [
            item.get("text", "") if isinstance(item, dict) else str(item)
            for item in content
        ]
        content = "".join(parts)
    return str(content or "")


def _map_api_error(exc: openai.APIError) -> CompletionError:
    if isinstance(exc, openai.RateLimitError):
        if exc.code == "insufficient_quota":
            return CompletionError("insufficient_quota", "The completion provider quota is exhausted.")
        return CompletionError("rate_limit", "The completion provider is rate limiting requests.")
    return CompletionError("upstream", f"The completion provider returned an error: {exc}")


async def get_chat_completion(
    payload: ChatPayload,
    *,
    max_tokens: int | None = None,
    temperature: float | None = None,
) -> CompletionResult | None:
    """Send an assembled payload to the completion API.

    Returns ``None`` when no API key is configured so the caller can store a
    fallback reply. Provider failures are raised as ``CompletionError``.
    """
    settings = get_settings()
    spec = completion_model_spec(
        payload.model,
        max_tokens=max_tokens if max_tokens is not None else settings.chat_max_tokens,
        temperature=temperature if temperature is not None else settings.chat_temperature,
    )
    if spec is None:
        logger.error("OPENAI_API_KEY is not configured; skipping chat completion.")
        return None

    model = spec.build_model()
    try:
        response = await model.ainvoke(to_openai_messages(payload.messages))
    except openai.APIError as exc:
        logger.warning("Chat completion failed (model=%s): %s", spec.name, exc)
        raise _map_api_error(exc) from exc

    text = _response_text(response).strip() or FALLBACK_REPLY
    metadata = getattr(response, "response_metadata", None) or {}
    used_model = str(metadata.get("model_name") or spec.name)
    logger.info("Chat completion succeeded (model=%s, chars=%d).", used_model, len(text))
    return CompletionResult(content=text, model=used_model)


def clean_title(raw_title: str) -> str | None:
    title = raw_title.strip().strip("\"'`“”‘’").strip()
    words = title.split()
    if not words:
        return None
    return " ".join(words[:TITLE_MAX_WORDS])


async def generate_chat_title(first_message: str) -> str | None:
    settings = get_settings()
    spec = completion_model_spec(
        settings.chat_text_model,
        max_tokens=TITLE_MAX_TOKENS,
        temperature=settings.chat_temperature,
    )
    if spec is None or not first_message.strip():
        return None

    model = spec.build_model()
    try:
        response = await model.ainvoke(
            [SystemMessage(content=TITLE_PROMPT), HumanMessage(content=first_message)]
        )
    except openai.APIError as exc:
        logger.warning("Title generation failed: %s", exc)
        return None
    return clean_title(_response_text(response))


__all__ = [
    "FALLBACK_REPLY",
    "ModelSpec",
    "clean_title",
    "completion_model_spec",
    "generate_chat_title",
    "get_chat_completion",
    "to_openai_messages",
]
