"""Model pricing for token cost estimates.

Prices are dollars per 1M tokens. Unknown models fall back to the
default price rather than being treated as free.
"""

from __future__ import annotations

from typing import Mapping

from ..config_schema import CostsConfig, ModelPrice

DEFAULT_PRICE = ModelPrice(input=3.0, output=15.0)

MODEL_PRICING: dict[str, ModelPrice] = {
    # Anthropic
    "claude-3-opus": ModelPrice(input=15.0, output=75.0),
    "claude-3.5-sonnet": ModelPrice(input=3.0, output=15.0),
    "claude-3-sonnet": ModelPrice(input=3.0, output=15.0),
    "claude-3-haiku": ModelPrice(input=0.25, output=1.25),
    "claude-opus-4-5": ModelPrice(input=15.0, output=75.0),
    "anthropic/claude-opus-4-5": ModelPrice(input=15.0, output=75.0),
    # OpenAI
    "gpt-4-turbo": ModelPrice(input=10.0, output=30.0),
    "gpt-4o": ModelPrice(input=2.5, output=10.0),
    "gpt-4o-mini": ModelPrice(input=0.15, output=0.6),
    "gpt-3.5-turbo": ModelPrice(input=0.5, output=1.5),
    # Google
    "gemini-pro": ModelPrice(input=0.5, output=1.5),
    "gemini-1.5-pro": ModelPrice(input=3.5, output=10.5),
}

TOKENS_PER_PRICE_UNIT = 1_000_000


class PriceTable:
    """Exact-match model prices with a fallback default."""

    def __init__(
        self,
        prices: Mapping[str, ModelPrice] | None = None,
        default: ModelPrice = DEFAULT_PRICE,
    ) -> None:
        self.prices = dict(MODEL_PRICING if prices is None else prices)
        self.default = default

    @classmethod
    def from_config(cls, costs: CostsConfig) -> "PriceTable":
        """Built-in table with the configured overrides merged on top."""
        prices = dict(MODEL_PRICING)
        prices.update(costs.pricing)
        return cls(prices, costs.default_price)

    def price_for(self, model: str) -> ModelPrice:
        return self.prices.get(model, self.default)

    def cost(self, input_tokens: int, output_tokens: int, model: str = "default") -> float:
        price = self.price_for(model)
        return (
            input_tokens / TOKENS_PER_PRICE_UNIT * price.input
            + output_tokens / TOKENS_PER_PRICE_UNIT * price.output
        )


def calculate_cost(
    input_tokens: int,
    output_tokens: int,
    model: str = "default",
    prices: PriceTable | None = None,
) -> float:
    """Dollar cost of one call.

    >>> calculate_cost(1_000_000, 0, "gpt-4o")
    2.5
    """
    return (prices or PriceTable()).cost(input_tokens, output_tokens, model)
