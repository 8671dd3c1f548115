"""Token estimation and per-provider cost."""

import math
import re
from dataclasses import asdict, dataclass
from typing import Any

CHARS_PER_TOKEN = 4.0
# Above this many characters the plain ratio is used
LARGE_CONTENT_THRESHOLD = 100_000

# (density threshold, correction factor), checked in order
WHITESPACE_CORRECTIONS = ((0.30, 0.85), (0.25, 0.90), (0.20, 0.95))
SYMBOL_CORRECTIONS = ((0.35, 1.25), (0.25, 1.15), (0.20, 1.05))

_WHITESPACE_RE = re.compile(r"\s")
_SYMBOL_RE = re.compile(r"""[{}()\[\]<>:;,.!?@#$%^&*+=|\\/'"`~-]""")


@dataclass(frozen=True)
class LLMProvider:
    name: str
    display_name: str
    context_window: int
    input_cost_per_million: float
    output_cost_per_million: float


LLM_PROVIDERS: dict[str, LLMProvider] = {
    p.name: p
    for p in (
        LLMProvider("claude-sonnet", "Claude 3.5 Sonnet", 200_000, 3.0, 15.0),
        LLMProvider("claude-opus", "Claude 3 Opus", 200_000, 15.0, 75.0),
        LLMProvider("claude-haiku", "Claude 3.5 Haiku", 200_000, 0.80, 4.0),
        LLMProvider("gpt-4o", "GPT-4o", 128_000, 2.50, 10.0),
        LLMProvider("gpt-4-turbo", "GPT-4 Turbo", 128_000, 10.0, 30.0),
        LLMProvider("gpt-4", "GPT-4", 8192, 30.0, 60.0),
        LLMProvider("o1", "OpenAI o1", 200_000, 15.0, 60.0),
        LLMProvider("gemini", "Gemini 1.5 Pro", 2_000_000, 1.25, 5.0),
    )
}

DEFAULT_PROVIDER = "claude-sonnet"


@dataclass(frozen=True)
class CostEstimate:
    provider: str
    display_name: str
    tokens: int
    input_cost: float
    within_context_window: bool
    context_window: int
    utilization_percent: float

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {
            "provider": data["provider"],
            "displayName": data["display_name"],
            "tokens": data["tokens"],
            "inputCost": data["input_cost"],
            "withinContextWindow": data["within_context_window"],
            "contextWindow": data["context_window"],
            "utilizationPercent": data["utilization_percent"],
        }


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text``.

    Starts from about four characters per token. For text up to 100k
    characters the estimate is scaled down for whitespace-heavy content and
    up for symbol-dense content.
    """
    if not text:
        return 0

    char_count = len(text)
    if char_count > LARGE_CONTENT_THRESHOLD:
        return math.ceil(char_count / CHARS_PER_TOKEN)

    whitespace = len(_WHITESPACE_RE.findall(text))
    whitespace_density = whitespace / char_count

    content_chars = char_count - whitespace
    symbols = len(_SYMBOL_RE.findall(text))
    symbol_density = symbols / content_chars if content_chars > 0 else 0.0

    factor = 1.0
    for threshold, correction in WHITESPACE_CORRECTIONS:
        if whitespace_density > threshold:
            factor = correction
            break
    for threshold, correction in SYMBOL_CORRECTIONS:
        if symbol_density > threshold:
            factor *= correction
            break

    return math.ceil(char_count / CHARS_PER_TOKEN * factor)


def calculate_cost(tokens: int, provider_name: str) -> CostEstimate | None:
    """Input cost and context fit for one provider, or None if unknown."""
    provider = LLM_PROVIDERS.get(provider_name)
    if provider is None:
        return None

    return CostEstimate(
        provider=provider.name,
        display_name=provider.display_name,
        tokens=tokens,
        input_cost=tokens / 1_000_000 * provider.input_cost_per_million,
        within_context_window=tokens <= provider.context_window,
        context_window=provider.context_window,
        utilization_percent=tokens / provider.context_window * 100,
    )


def get_all_cost_estimates(tokens: int) -> list[CostEstimate]:
    return [
        estimate
        for name in LLM_PROVIDERS
        if (estimate := calculate_cost(tokens, name)) is not None
    ]
