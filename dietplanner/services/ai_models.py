# dietplanner/services/ai_models.py
# OpenRouter models a user can pick, cheapest first.
# combined_price weights output tokens at 80% since plans are output-heavy.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

DEFAULT_AI_MODEL = "openai/gpt-4.1-nano"


@dataclass(frozen=True)
class AiModel:
    id: str
    name: str
    provider: str
    input_price: float   # USD per 1M input tokens
    output_price: float  # USD per 1M output tokens
    power_rank: int      # higher is stronger

    @property
    def combined_price(self) -> float:
        return round(self.input_price * 0.2 + self.output_price * 0.8, 4)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider,
            "inputPrice": self.input_price,
            "outputPrice": self.output_price,
            "combinedPrice": self.combined_price,
            "powerRank": self.power_rank,
        }


AVAILABLE_AI_MODELS: List[AiModel] = [
    AiModel("google/gemini-2.5-flash-lite", "Gemini 2.5 Flash Lite", "Google", 0.1, 0.4, 7),
    AiModel("openai/gpt-4.1-nano", "GPT-4.1 Nano", "OpenAI", 0.1, 0.4, 5),
    AiModel("meta-llama/llama-4-scout", "Llama 4 Scout", "Meta", 0.18, 0.59, 4),
    AiModel("xai/grok-code-fast-1", "Grok Code Fast 1", "xAI", 0.2, 1.5, 10),
    AiModel("openai/gpt-5-mini", "GPT-5 Mini", "OpenAI", 0.25, 2.0, 2),
    AiModel("google/gemini-2.5-flash", "Gemini 2.5 Flash", "Google", 0.3, 2.5, 8),
    AiModel("openai/gpt-4.1-mini", "GPT-4.1 Mini", "OpenAI", 0.4, 1.6, 5),
    AiModel("openai/gpt-4o-mini", "GPT-4o-mini", "OpenAI", 0.6, 2.4, 6),
    AiModel("anthropic/claude-sonnet-4", "Claude Sonnet 4", "Anthropic", 3.0, 15.0, 3),
    AiModel("anthropic/claude-sonnet-4.5", "Claude Sonnet 4.5", "Anthropic", 3.0, 15.0, 9),
]

_BY_ID = {m.id: m for m in AVAILABLE_AI_MODELS}


def get_model_by_id(model_id: str) -> Optional[AiModel]:
    return _BY_ID.get(model_id)


def is_valid_model_id(model_id: str) -> bool:
    return model_id in _BY_ID
