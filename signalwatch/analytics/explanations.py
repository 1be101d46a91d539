"""Natural-language trend explanations.

The model call is a collaborator: any failure (or a missing API key) falls
back to a templated sentence built from the numeric fields.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import openai

logger = logging.getLogger(__name__)


class ExplanationError(RuntimeError):
    """Raised when the model returns no usable text."""


@dataclass(frozen=True)
class TrendContext:
    scope_type: str
    scope_id: str
    themes: Sequence[str]
    signal_types: Sequence[str]
    direction: str
    magnitude: Optional[float]
    signal_count: int
    baseline_count: int
    time_window: str = "30d"

    @property
    def is_emerging(self) -> bool:
        return self.direction == "emerging"


Explainer = Callable[[TrendContext], str]


def _direction_word(direction: str) -> str:
    if direction == "up":
        return "increased"
    if direction == "down":
        return "decreased"
    return "remained stable"


def fallback_explanation(ctx: TrendContext) -> str:
    if ctx.is_emerging or ctx.magnitude is None:
        return (
            f"Emerging activity in {ctx.scope_id}: {ctx.signal_count} signals in the past "
            f"{ctx.time_window} against a baseline of {ctx.baseline_count}."
        )
    return (
        f"Signal activity in {ctx.scope_id} has {_direction_word(ctx.direction)} by "
        f"{abs(ctx.magnitude):.0f}% in the past {ctx.time_window}."
    )


def build_prompt(ctx: TrendContext) -> str:
    if ctx.is_emerging or ctx.magnitude is None:
        movement = (
            f"Signal activity is emerging: {ctx.signal_count} signals over the past {ctx.time_window} "
            f"against a low baseline of {ctx.baseline_count} in the prior period. "
            "Do not quote a percentage change."
        )
    else:
        movement = (
            f"Signal activity has {_direction_word(ctx.direction)} by {abs(ctx.magnitude):.0f}% "
            f"over the past {ctx.time_window}."
        )
    return f"""Write a concise 2-3 sentence trend summary for an editorial intelligence report.

Scope: {ctx.scope_type} - {ctx.scope_id}
{movement}
Signal count: {ctx.signal_count}
Top themes: {", ".join(ctx.themes) or "general activity"}
Signal types: {", ".join(ctx.signal_types) or "various"}

Write a professional, factual summary that:
1. States the trend clearly
2. Highlights the key theme(s) driving it
3. Suggests what this might mean for the industry

Return ONLY the summary text, no JSON or formatting."""


class OpenAITrendExplainer:
    """Chat-completions explainer; raises on failure, see ``explain_trend``."""

    def __init__(self, api_key: str, *, model: str = "gpt-4o-mini", max_tokens: int = 200, client=None):
        self.model = model
        self.max_tokens = max_tokens
        self.client = client if client is not None else openai.OpenAI(api_key=api_key)

    def __call__(self, ctx: TrendContext) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": build_prompt(ctx)}],
            temperature=0.3,
            max_tokens=self.max_tokens,
        )
        text = ""
        if response.choices:
            text = (response.choices[0].message.content or "").strip()
        if not text:
            raise ExplanationError(f"empty explanation for {ctx.scope_type}:{ctx.scope_id}")
        return text


def explain_trend(explainer: Optional[Explainer], ctx: TrendContext) -> str:
    if explainer is None:
        return fallback_explanation(ctx)
    try:
        return explainer(ctx)
    except Exception as e:
        logger.warning(f"[trends] explanation failed for {ctx.scope_type}:{ctx.scope_id}, using fallback: {e}")
        return fallback_explanation(ctx)
