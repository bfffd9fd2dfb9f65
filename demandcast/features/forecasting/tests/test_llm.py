"""Tests for the LLM-backed forecaster and its reply parser."""

import json
import math

import httpx
import numpy as np
import pytest
from openai import APIConnectionError

from demandcast.features.forecasting.llm import (
    TimeLLMForecaster,
    build_prompt,
    parse_llm_response,
    trailing_trend,
)
from demandcast.features.forecasting.schemas import TrainingSeries

HISTORY = [10.0, 11.0, 12.0, 13.0]


@pytest.fixture
def rng():
    """Seeded generator for the perturbed fallback."""
    return np.random.default_rng(42)


@pytest.fixture
def no_api_key(settings_override):
    """Settings without an OpenAI key."""
    return settings_override(OPENAI_API_KEY="")


class TestParseLlmResponse:
    """Tests for parse_llm_response."""

    def test_predictions_and_confidence(self, rng):
        """Both blocks are parsed and truncated to steps."""
        text = "PREDICTIONS: [20, 21.5, 22, 99]\nCONFIDENCE: [0.9, 0.85, 0.8, 0.1]"

        parsed = parse_llm_response(text, 3, HISTORY, rng)

        assert parsed.source == "predictions"
        assert parsed.values == [20.0, 21.5, 22.0]
        assert parsed.confidences == [0.9, 0.85, 0.8]

    def test_short_predictions_padded_with_parsed_trend(self, rng):
        """Missing steps extend the trend of the returned values, not the history."""
        parsed = parse_llm_response("PREDICTIONS: [10, 20]", 4, [5.0, 5.0, 5.0], rng)

        assert parsed.values == pytest.approx([10.0, 20.0, 30.0, 40.0])
        assert parsed.confidences == [0.8, 0.8, 0.8, 0.8]

    def test_single_prediction_padded_flat(self, rng):
        """One returned value has no trend, so padding repeats it."""
        parsed = parse_llm_response("PREDICTIONS: [20]", 3, HISTORY, rng)

        assert parsed.values == [20.0, 20.0, 20.0]

    def test_padding_floored_at_zero(self, rng):
        """A falling trend never pads below zero."""
        parsed = parse_llm_response("PREDICTIONS: [10, 2]", 4, HISTORY, rng)

        assert parsed.values == [10.0, 2.0, 0.0, 0.0]

    @pytest.mark.parametrize(
        "text",
        [
            "PREDICTIONS: [1e999, inf, 10]",
            "PREDICTIONS: [Infinity, -inf, 10]",
            "PREDICTIONS: [nan, NaN, 10]",
        ],
    )
    def test_non_finite_predictions_become_zero(self, rng, text):
        """Overflowing and non-finite tokens are treated as unparseable."""
        parsed = parse_llm_response(text, 3, HISTORY, rng)

        assert parsed.values == [0.0, 0.0, 10.0]

    def test_overflowing_loose_number_becomes_zero(self, rng):
        """A bare number too large for a float is treated as unparseable."""
        text = f"Expect {'9' * 400} then 12 units."

        parsed = parse_llm_response(text, 2, HISTORY, rng)

        assert parsed.source == "numbers"
        assert parsed.values == [0.0, 12.0]

    def test_unparseable_prediction_becomes_zero(self, rng):
        """Entries that are not numbers become 0."""
        parsed = parse_llm_response("PREDICTIONS: [10, abc, 12]", 3, HISTORY, rng)

        assert parsed.values == [10.0, 0.0, 12.0]

    def test_out_of_range_confidence_replaced(self, rng):
        """Confidences outside [0, 1] become 0.8 and short lists are padded."""
        text = "PREDICTIONS: [1, 2, 3]\nCONFIDENCE: [1.5, 0.9]"

        parsed = parse_llm_response(text, 3, HISTORY, rng)

        assert parsed.confidences == [0.8, 0.9, 0.8]

    def test_case_insensitive_markers(self, rng):
        """Markers match regardless of case."""
        parsed = parse_llm_response("predictions: [5, 6]", 2, HISTORY, rng)

        assert parsed.values == [5.0, 6.0]

    def test_loose_numbers(self, rng):
        """Without a PREDICTIONS block, the first bare numbers are used."""
        parsed = parse_llm_response("I expect 14, then 15 and 16.5 units.", 3, HISTORY, rng)

        assert parsed.source == "numbers"
        assert parsed.values == [14.0, 15.0, 16.5]
        assert parsed.confidences == [0.7, 0.7, 0.7]

    def test_perturbed_fallback(self, rng):
        """Unusable text falls back to the perturbed last value."""
        parsed = parse_llm_response("Sorry, I cannot help.", 4, HISTORY, rng)

        assert parsed.source == "perturbed"
        assert parsed.confidences == [0.6] * 4
        for i, value in enumerate(parsed.values):
            low = 13.0 + 13.0 * 0.02 * i - 0.05 * 13.0
            high = 13.0 + 13.0 * 0.02 * i + 0.05 * 13.0
            assert low <= value <= high

    def test_perturbed_fallback_is_seeded(self):
        """Same seed, same fallback values."""
        first = parse_llm_response("", 5, HISTORY, np.random.default_rng(7))
        second = parse_llm_response("", 5, HISTORY, np.random.default_rng(7))

        assert first.values == second.values

    @pytest.mark.parametrize("text", ["", "PREDICTIONS: []", "]]][[[", "CONFIDENCE: [x]"])
    def test_never_raises(self, rng, text):
        """Malformed text always yields exactly steps values."""
        parsed = parse_llm_response(text, 3, HISTORY, rng)

        assert len(parsed.values) == 3
        assert len(parsed.confidences) == 3


class TestHelpers:
    """Tests for prompt and trend helpers."""

    def test_trailing_trend(self):
        """Average step over the trailing window."""
        assert trailing_trend([1.0, 3.0, 5.0]) == pytest.approx(2.0)
        assert trailing_trend([4.0]) == 0.0

    def test_build_prompt_with_dates(self):
        """Dated history uses the date labels."""
        prompt = build_prompt([1.0, 2.0], ["2024-01-01", "2024-01-02"], 3)

        assert "2024-01-02: 2.00" in prompt
        assert "PREDICTIONS:" in prompt
        assert "next 3 values" in prompt

    def test_build_prompt_without_dates(self):
        """Undated history falls back to Day labels."""
        prompt = build_prompt([1.0, 2.0], None, 1)

        assert "Day 1: 1.00" in prompt
        assert "Day 2: 2.00" in prompt


class TestTimeLLMForecaster:
    """Tests for TimeLLMForecaster."""

    def test_successful_forecast(self, fake_chat_client):
        """A well-formed reply becomes a rounded result with margins."""
        client = fake_chat_client("PREDICTIONS: [20, 21, 22]\nCONFIDENCE: [0.9, 0.9, 0.8]")
        model = TimeLLMForecaster(client=client).fit(HISTORY)

        result = model.predict(3)

        assert result.model_name == "Time-LLM (GPT-4o)"
        assert result.fit_quality == 0.85
        assert result.predicted_values == [20.0, 21.0, 22.0]
        first = result.forecasts[0]
        # margin = 20 * (1 - 0.9) * 0.5
        assert first.confidence_lower == pytest.approx(19.0)
        assert first.confidence_upper == pytest.approx(21.0)
        assert [p.confidence_level for p in result.forecasts] == [0.9, 0.9, 0.8]

    def test_request_parameters(self, fake_chat_client):
        """The call uses the configured model, temperature and token limit."""
        client = fake_chat_client("PREDICTIONS: [1]")
        TimeLLMForecaster(client=client).fit(HISTORY).predict(1)

        (call,) = client.calls
        assert call["model"] == "gpt-4o"
        assert call["temperature"] == 0.1
        assert call["max_tokens"] == 500
        assert call["messages"][-1]["role"] == "user"

    def test_prompt_uses_recent_context_only(self, fake_chat_client):
        """Only the last context_points observations are sent."""
        client = fake_chat_client("PREDICTIONS: [1]")
        series = TrainingSeries(
            values=[float(i) for i in range(30)],
            dates=[f"2024-01-{day:02d}" for day in range(1, 31)],
        )

        TimeLLMForecaster(context_points=20, client=client).fit(series).predict(1)

        prompt = client.calls[0]["messages"][-1]["content"]
        assert "2024-01-10:" not in prompt
        assert "2024-01-11: 10.00" in prompt
        assert "2024-01-30: 29.00" in prompt

    def test_confidence_is_non_increasing_and_floored(self, fake_chat_client):
        """Rising or very low confidences are clamped for the interval invariant."""
        client = fake_chat_client("PREDICTIONS: [5, 5, 5, 5]\nCONFIDENCE: [0.7, 0.9, 0.3, 0.8]")

        result = TimeLLMForecaster(client=client).fit(HISTORY).predict(4)

        assert [p.confidence_level for p in result.forecasts] == [0.7, 0.7, 0.6, 0.6]

    def test_negative_predictions_floored(self, fake_chat_client):
        """Negative demand from the model is floored at 0."""
        client = fake_chat_client("PREDICTIONS: [-4, 3]")

        result = TimeLLMForecaster(client=client).fit(HISTORY).predict(2)

        assert result.predicted_values == [0.0, 3.0]
        assert result.forecasts[0].confidence_lower == 0.0

    def test_non_finite_reply_stays_json_compliant(self, fake_chat_client):
        """Overflowing values never reach the result or the metrics."""
        client = fake_chat_client("PREDICTIONS: [1e999, 10]")
        model = TimeLLMForecaster(client=client).fit(HISTORY)

        result = model.predict(2)
        metrics = model.validate([12.0, 10.0])

        assert result.predicted_values == [0.0, 10.0]
        json.dumps(result.model_dump(mode="json"), allow_nan=False)
        json.dumps(metrics.model_dump(mode="json"), allow_nan=False)
        assert math.isfinite(metrics.mae)

    def test_empty_reply_uses_perturbed_values(self, fake_chat_client):
        """A None message content is parsed as empty text."""
        client = fake_chat_client(None)

        result = TimeLLMForecaster(client=client).fit(HISTORY).predict(3)

        assert result.parameters["parse_source"] == "perturbed"
        assert result.fit_quality == 0.85

    def test_connection_error_falls_back(self, fake_chat_client):
        """Network failures give a degraded Fallback result, never an exception."""
        error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1"))
        client = fake_chat_client(error=error)

        result = TimeLLMForecaster(client=client).fit(HISTORY).predict(3)

        assert result.model_name == "Time-LLM (Fallback)"
        assert result.fit_quality == 0.5
        assert result.parameters["fallback_used"] is True
        assert "error" in result.parameters
        for point in result.forecasts:
            assert point.confidence_level == 0.7
            assert point.confidence_lower == pytest.approx(point.predicted_value * 0.8, abs=0.011)
            assert point.confidence_upper == pytest.approx(point.predicted_value * 1.2, abs=0.011)

    def test_missing_api_key_falls_back(self, no_api_key):
        """Without a key and without an injected client, predict degrades."""
        result = TimeLLMForecaster().fit(HISTORY).predict(2)

        assert result.model_name == "Time-LLM (Fallback)"
        assert "OPENAI_API_KEY" in result.parameters["error"]

    def test_validate_uses_predictions(self, fake_chat_client):
        """validate() scores the model's reply against actuals."""
        client = fake_chat_client("PREDICTIONS: [14, 15]")

        metrics = TimeLLMForecaster(client=client).fit(HISTORY).validate([14.0, 15.0])

        assert metrics.mae == 0.0
        assert metrics.accuracy_percentage == 100.0

    def test_predict_before_fit_raises(self, fake_chat_client):
        """predict() should raise if not fitted."""
        with pytest.raises(RuntimeError, match="must be fitted"):
            TimeLLMForecaster(client=fake_chat_client("")).predict(1)

    def test_fit_empty_raises_in_strict_mode(self, fake_chat_client):
        """Empty series is a caller error by default."""
        with pytest.raises(ValueError, match="Cannot fit on empty series"):
            TimeLLMForecaster(client=fake_chat_client("")).fit([])

    def test_get_params(self):
        """get_params() reports prompt size and model."""
        params = TimeLLMForecaster(context_points=5, llm_model="gpt-4o-mini").get_params()

        assert params["context_points"] == 5
        assert params["llm_model"] == "gpt-4o-mini"
