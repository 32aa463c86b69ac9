"""Token usage accounting and model pricing."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_write_tokens: int = 0
    cache_read_tokens: int = 0

    @property
    def total(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            cache_write_tokens=self.cache_write_tokens + other.cache_write_tokens,
            cache_read_tokens=self.cache_read_tokens + other.cache_read_tokens,
        )


@dataclass(frozen=True)
class ModelPricing:
    """USD per million tokens."""

    input: float
    output: float
    cache_write: float
    cache_read: float


# Keyed by model family; dated snapshot ids match by prefix
MODEL_PRICING: dict[str, ModelPricing] = {
    "claude-opus-4": ModelPricing(input=15.0, output=75.0, cache_write=18.75, cache_read=1.5),
    "claude-sonnet-4": ModelPricing(input=3.0, output=15.0, cache_write=3.75, cache_read=0.3),
    "claude-haiku-4": ModelPricing(input=1.0, output=5.0, cache_write=1.25, cache_read=0.1),
    "claude-3-7-sonnet": ModelPricing(input=3.0, output=15.0, cache_write=3.75, cache_read=0.3),
    "claude-3-5-sonnet": ModelPricing(input=3.0, output=15.0, cache_write=3.75, cache_read=0.3),
    "claude-3-5-haiku": ModelPricing(input=0.8, output=4.0, cache_write=1.0, cache_read=0.08),
    "claude-3-opus": ModelPricing(input=15.0, output=75.0, cache_write=18.75, cache_read=1.5),
    "claude-3-haiku": ModelPricing(input=0.25, output=1.25, cache_write=0.3, cache_read=0.03),
}
DEFAULT_PRICING = MODEL_PRICING["claude-sonnet-4"]


def pricing_for(model: str) -> ModelPricing:
    """Longest matching family prefix, falling back to Sonnet pricing for unknown models."""
    matches = [family for family in MODEL_PRICING if model.startswith(family)]
    if not matches:
        return DEFAULT_PRICING
    return MODEL_PRICING[max(matches, key=len)]


def calculate_cost(usage: TokenUsage, model: str) -> float:
    """USD cost of ``usage`` on ``model``, rounded to micro-dollars."""
    pricing = pricing_for(model)
    cost = (
        usage.input_tokens * pricing.input
        + usage.output_tokens * pricing.output
        + usage.cache_write_tokens * pricing.cache_write
        + usage.cache_read_tokens * pricing.cache_read
    ) / 1_000_000
    return round(cost, 6)
