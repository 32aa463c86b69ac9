"""LLM provider collaborator."""

from dataclasses import dataclass, field
from typing import Any, Protocol, TypedDict

import anthropic

from src.sitegen.agents.parsing import Content
from src.sitegen.agents.pricing import TokenUsage
from src.sitegen.core.exceptions import ProviderError
from src.sitegen.core.logging import get_logger

logger = get_logger(__name__)


class Message(TypedDict):
    role: str  # "user" or "assistant"
    content: str


@dataclass
class Completion:
    """Provider answer plus the tokens it consumed."""

    content: Content
    usage: TokenUsage = field(default_factory=TokenUsage)


class LLMProvider(Protocol):
    """Anything that can complete a conversation.

    Implementations raise :class:`ProviderError` for every failure so agents
    never see SDK-specific exceptions.
    """

    async def complete(
        self,
        system_prompt: str,
        messages: list[Message],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> Completion: ...


class AnthropicProvider:
    """Claude via the official Anthropic SDK."""

    def __init__(self, api_key: str | None, *, timeout: float = 120.0):
        self.api_key = api_key
        self.timeout = timeout

    async def complete(
        self,
        system_prompt: str,
        messages: list[Message],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> Completion:
        if not self.api_key:
            raise ProviderError("ANTHROPIC_API_KEY is not configured")

        try:
            # SDK-level retries are disabled; the orchestrator owns the retry budget
            async with anthropic.AsyncAnthropic(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            ) as client:
                response = await client.messages.create(
                    model=model,
                    system=system_prompt,
                    messages=messages,  # type: ignore[arg-type]
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
        except anthropic.APIStatusError as e:
            raise ProviderError(
                f"Provider returned HTTP {e.status_code}",
                details={"status_code": e.status_code},
            ) from e
        except anthropic.APIError as e:
            raise ProviderError(f"Provider call failed: {e}") from e

        parts: list[dict[str, Any]] = [
            {"type": "text", "text": block.text} for block in response.content if block.type == "text"
        ]
        if not parts:
            raise ProviderError(
                "Provider response contained no text", details={"stop_reason": response.stop_reason}
            )
        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            cache_write_tokens=response.usage.cache_creation_input_tokens or 0,
            cache_read_tokens=response.usage.cache_read_input_tokens or 0,
        )
        logger.debug(
            "LLM call completed",
            model=model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
        )
        return Completion(content=parts, usage=usage)
