"""LLM-backed forecaster (Time-LLM).

Sends the recent history to a chat-completion model and parses a reply of the
form ``PREDICTIONS: [v1, v2, ...]`` with an optional ``CONFIDENCE: [...]``.

CRITICAL: predict() never raises for upstream problems. A missing API key,
network failure or non-success status yields a degraded "Fallback" result
with lower fit_quality; malformed text is absorbed by the parser.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

import numpy as np
import structlog
from openai import OpenAI, OpenAIError

from demandcast.core.config import get_settings
from demandcast.features.forecasting.models import (
    CONFIDENCE_FLOOR,
    BaseForecaster,
    SeriesInput,
    build_forecast_point,
    round_half_up,
)
from demandcast.features.forecasting.schemas import (
    ForecastPoint,
    ForecastResult,
    TrainingSeries,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

PREDICTIONS_PATTERN = re.compile(r"PREDICTIONS:\s*\[([^\]]+)\]", re.IGNORECASE)
CONFIDENCE_PATTERN = re.compile(r"CONFIDENCE:\s*\[([^\]]+)\]", re.IGNORECASE)
NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")

DEFAULT_CONFIDENCE = 0.8
LOOSE_NUMBERS_CONFIDENCE = 0.7
PERTURBED_CONFIDENCE = 0.6
SUCCESS_FIT_QUALITY = 0.85
FALLBACK_FIT_QUALITY = 0.5
FALLBACK_CONFIDENCE = 0.7
TREND_WINDOW = 7

SYSTEM_PROMPT = (
    "You are a demand forecasting assistant for retail inventory. "
    "Answer only in the requested format."
)


class LLMForecastError(Exception):
    """Error calling the forecasting language model."""

    pass


@dataclass(frozen=True)
class ParsedForecast:
    """Values and confidences recovered from a model reply.

    Attributes:
        values: Exactly ``steps`` point forecasts.
        confidences: Exactly ``steps`` confidence scores.
        source: Which parsing stage produced the values.
    """

    values: list[float]
    confidences: list[float]
    source: Literal["predictions", "numbers", "perturbed"]


def trailing_trend(history: Sequence[float], window: int = TREND_WINDOW) -> float:
    """Average per-step change over the last ``window`` observations."""
    span = min(window, len(history))
    if span < 2:
        return 0.0
    return (float(history[-1]) - float(history[-span])) / (span - 1)


def perturbed_sequence(
    history: Sequence[float], steps: int, rng: np.random.Generator
) -> list[float]:
    """Last value grown 2% per step with +/-5% uniform noise.

    Formula: base + base * 0.02 * i + U(-0.05, 0.05) * base, i = 0..steps-1
    """
    base = float(history[-1]) if len(history) else 0.0
    return [
        max(0.0, base + base * 0.02 * i + float(rng.uniform(-0.05, 0.05)) * base)
        for i in range(steps)
    ]


def _to_float(token: str) -> float:
    """Parse a forecast value; unparseable or non-finite tokens become 0."""
    try:
        value = float(token.strip())
    except ValueError:
        return 0.0
    return value if np.isfinite(value) else 0.0


def _to_confidence(token: str) -> float:
    try:
        value = float(token.strip())
    except ValueError:
        return DEFAULT_CONFIDENCE
    return value if 0.0 <= value <= 1.0 else DEFAULT_CONFIDENCE


def parse_llm_response(
    text: str,
    steps: int,
    history: Sequence[float],
    rng: np.random.Generator,
) -> ParsedForecast:
    """Recover ``steps`` forecasts from free-form model output.

    Stages, first match wins:
        1. ``PREDICTIONS: [...]`` block. Short lists are padded by extending
           the trend of the parsed values, (last - first) / (len - 1);
           ``CONFIDENCE: [...]`` entries outside [0, 1] become 0.8.
        2. At least ``steps`` bare numbers anywhere in the text
           (confidence 0.7).
        3. Perturbed last value (confidence 0.6).

    Args:
        text: Raw model reply.
        steps: Number of forecasts required.
        history: Observations sent in the prompt.
        rng: Random generator for the perturbed fallback.

    Returns:
        ParsedForecast with exactly ``steps`` values and confidences.
    """
    match = PREDICTIONS_PATTERN.search(text)
    if match:
        values = [_to_float(token) for token in match.group(1).split(",")][:steps]
        trend = trailing_trend(values, window=len(values))
        last = values[-1] if values else (float(history[-1]) if len(history) else 0.0)
        for k in range(1, steps - len(values) + 1):
            values.append(max(0.0, last + trend * k))

        confidences: list[float] = []
        confidence_match = CONFIDENCE_PATTERN.search(text)
        if confidence_match:
            confidences = [_to_confidence(t) for t in confidence_match.group(1).split(",")]
        confidences = confidences[:steps]
        confidences += [DEFAULT_CONFIDENCE] * (steps - len(confidences))
        return ParsedForecast(values=values, confidences=confidences, source="predictions")

    numbers = NUMBER_PATTERN.findall(text)
    if len(numbers) >= steps:
        return ParsedForecast(
            values=[_to_float(n) for n in numbers[:steps]],
            confidences=[LOOSE_NUMBERS_CONFIDENCE] * steps,
            source="numbers",
        )

    return ParsedForecast(
        values=perturbed_sequence(history, steps, rng),
        confidences=[PERTURBED_CONFIDENCE] * steps,
        source="perturbed",
    )


def build_prompt(values: Sequence[float], dates: Sequence[str] | None, steps: int) -> str:
    """Render the history as ``label: value`` lines plus format instructions."""
    lines = []
    for i, value in enumerate(values):
        label = dates[i] if dates is not None else f"Day {i + 1}"
        lines.append(f"{label}: {float(value):.2f}")
    history = "\n".join(lines)
    return (
        f"Here is recent daily demand data:\n{history}\n\n"
        f"Forecast the next {steps} values. Consider trend and weekly seasonality.\n"
        f"Respond in exactly this format:\n"
        f"PREDICTIONS: [v1, v2, ..., v{steps}]\n"
        f"CONFIDENCE: [c1, c2, ..., c{steps}] with each confidence between 0 and 1"
    )


class TimeLLMForecaster(BaseForecaster):
    """Forecaster that delegates to a chat-completion model.

    Attributes:
        context_points: Most recent observations included in the prompt.
        llm_model: Chat model name.
    """

    name = "Time-LLM"

    def __init__(
        self,
        context_points: int | None = None,
        llm_model: str | None = None,
        client: Any = None,  # noqa: ANN401
        random_state: int = 42,
        strict: bool = True,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the LLM forecaster.

        Args:
            context_points: Observations in the prompt (default from settings).
            llm_model: Chat model (default from settings).
            client: OpenAI-compatible client; created lazily when None.
            random_state: Seed for the perturbed fallback.
            strict: Reject empty training series.
            logger: Observability hook.
        """
        super().__init__(random_state, strict, logger)
        self.settings = get_settings()
        self.context_points = context_points or self.settings.llm_context_points
        self.llm_model = llm_model or self.settings.llm_model
        self._client = client
        self._values: list[float] = []
        self._dates: list[str] | None = None

    def _get_client(self) -> Any:  # noqa: ANN401
        """Get or create the OpenAI client.

        Raises:
            LLMForecastError: If the OpenAI API key is not configured.
        """
        if self._client is None:
            if not self.settings.openai_api_key:
                raise LLMForecastError(
                    "OpenAI API key not configured. Set OPENAI_API_KEY environment variable."
                )
            self._client = OpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.llm_timeout_seconds,
            )
        return self._client

    def fit(self, series: SeriesInput) -> TimeLLMForecaster:
        """Store the most recent observations for the prompt.

        Args:
            series: Training observations (dates label the prompt lines).

        Returns:
            self (for method chaining).
        """
        values = self._coerce_series(series)
        if values is None:
            return self

        dates = series.dates if isinstance(series, TrainingSeries) else None
        self._values = [float(v) for v in values[-self.context_points :]]
        self._dates = list(dates[-self.context_points :]) if dates is not None else None
        self._is_fitted = True
        return self

    def predict(self, steps: int) -> ForecastResult:
        """Ask the model for ``steps`` forecasts.

        Args:
            steps: Number of future steps.

        Returns:
            ForecastResult; a "Fallback" result when the model call fails.
        """
        self._check_can_predict(steps)
        rng = np.random.default_rng(self.random_state)

        try:
            text = self._complete(build_prompt(self._values, self._dates, steps))
        except (OpenAIError, LLMForecastError) as e:
            self._logger.warning(
                "forecasting.llm_fallback",
                model=self.llm_model,
                error=str(e),
                error_type=type(e).__name__,
            )
            return self._fallback_result(steps, rng, str(e))

        parsed = parse_llm_response(text, steps, self._values, rng)
        self._logger.info(
            "forecasting.llm_completed",
            model=self.llm_model,
            steps=steps,
            parse_source=parsed.source,
        )

        forecasts: list[ForecastPoint] = []
        running_confidence = 1.0
        for step, (value, confidence) in enumerate(
            zip(parsed.values, parsed.confidences, strict=True), start=1
        ):
            # Non-increasing and floored so later steps never claim more trust
            running_confidence = max(CONFIDENCE_FLOOR, min(confidence, running_confidence))
            value = max(0.0, value)
            margin = value * (1 - running_confidence) * 0.5
            forecasts.append(build_forecast_point(step, value, margin, running_confidence))

        return ForecastResult(
            forecasts=forecasts,
            model_name=f"Time-LLM ({self.display_model_name})",
            parameters={
                "llm_model": self.llm_model,
                "context_points": len(self._values),
                "parse_source": parsed.source,
            },
            fit_quality=SUCCESS_FIT_QUALITY,
        )

    def get_params(self) -> dict[str, Any]:
        """Get model parameters.

        Returns:
            Dictionary with context_points, llm_model and random_state.
        """
        return {
            "context_points": self.context_points,
            "llm_model": self.llm_model,
            "random_state": self.random_state,
        }

    @property
    def display_model_name(self) -> str:
        """Model name with the GPT prefix capitalized, e.g. GPT-4o."""
        return re.sub(r"^gpt", "GPT", self.llm_model)

    def _complete(self, prompt: str) -> str:
        client = self._get_client()
        response = client.chat.completions.create(
            model=self.llm_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.settings.llm_temperature,
            max_tokens=self.settings.llm_max_tokens,
        )
        return response.choices[0].message.content or ""

    def _fallback_result(
        self, steps: int, rng: np.random.Generator, error: str
    ) -> ForecastResult:
        forecasts = [
            ForecastPoint(
                step=step,
                predicted_value=round_half_up(value),
                confidence_lower=round_half_up(value * 0.8),
                confidence_upper=round_half_up(value * 1.2),
                confidence_level=FALLBACK_CONFIDENCE,
            )
            for step, value in enumerate(perturbed_sequence(self._values, steps, rng), start=1)
        ]
        return ForecastResult(
            forecasts=forecasts,
            model_name="Time-LLM (Fallback)",
            parameters={"error": error, "fallback_used": True},
            fit_quality=FALLBACK_FIT_QUALITY,
        )
