"""LLM integration: prompts, prompt context and the text generation client."""

from .context_builder import MAX_PROMPT_POINTS, format_series_for_prompt
from .prompts import ADVICE_SYSTEM, build_advice_prompt
from .providers import (
    LLMClient,
    LLMMetrics,
    RetryConfig,
    close_llm_client,
    get_llm_client,
    get_llm_metrics,
    reset_llm_client,
    validate_endpoint,
)

__all__ = [
    "ADVICE_SYSTEM",
    "MAX_PROMPT_POINTS",
    "LLMClient",
    "LLMMetrics",
    "RetryConfig",
    "build_advice_prompt",
    "close_llm_client",
    "format_series_for_prompt",
    "get_llm_client",
    "get_llm_metrics",
    "reset_llm_client",
    "validate_endpoint",
]
