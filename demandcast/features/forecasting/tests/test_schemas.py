"""Tests for forecasting schemas."""

import pytest
from pydantic import TypeAdapter, ValidationError

from demandcast.features.forecasting.schemas import (
    ArimaModelConfig,
    CsvForecastRequest,
    ForecastPoint,
    ForecastResult,
    ForecastRunRequest,
    HoltWintersModelConfig,
    ModelConfig,
    SarimaModelConfig,
    TimeLLMModelConfig,
    TrainingSeries,
    TrendMovingAverageModelConfig,
)


class TestArimaModelConfig:
    """Tests for ArimaModelConfig schema."""

    def test_default_values(self):
        """Test default configuration values."""
        config = ArimaModelConfig()
        assert config.model_type == "arima"
        assert config.schema_version == "1.0"
        assert (config.p, config.d, config.q) == (2, 1, 2)

    def test_frozen_immutability(self):
        """Test that config is immutable (frozen=True)."""
        config = ArimaModelConfig()
        with pytest.raises(ValidationError):
            config.p = 5  # type: ignore[misc]

    def test_extra_fields_forbidden(self):
        """Test that unknown fields are rejected."""
        with pytest.raises(ValidationError):
            ArimaModelConfig(window_size=3)  # type: ignore[call-arg]

    def test_order_validation(self):
        """Test order bounds."""
        with pytest.raises(ValidationError):
            ArimaModelConfig(p=-1)
        with pytest.raises(ValidationError):
            ArimaModelConfig(d=4)

    def test_config_hash_determinism(self):
        """Test that config_hash is deterministic."""
        assert ArimaModelConfig(p=1).config_hash() == ArimaModelConfig(p=1).config_hash()
        assert len(ArimaModelConfig().config_hash()) == 16

    def test_config_hash_changes_with_params(self):
        """Test that config_hash changes when params differ."""
        assert ArimaModelConfig(p=1).config_hash() != ArimaModelConfig(p=2).config_hash()


class TestSarimaModelConfig:
    """Tests for SarimaModelConfig schema."""

    def test_default_values(self):
        """Test SARIMA(1,1,1)(1,1,1)[7] defaults."""
        config = SarimaModelConfig()
        assert (config.p, config.d, config.q) == (1, 1, 1)
        assert (config.seasonal_p, config.seasonal_d, config.seasonal_q) == (1, 1, 1)
        assert config.seasonal_period == 7

    def test_seasonal_period_validation(self):
        """Test seasonal period bounds."""
        with pytest.raises(ValidationError):
            SarimaModelConfig(seasonal_period=0)
        with pytest.raises(ValidationError):
            SarimaModelConfig(seasonal_period=400)


class TestHoltWintersModelConfig:
    """Tests for HoltWintersModelConfig schema."""

    def test_default_values(self):
        """Test smoothing defaults."""
        config = HoltWintersModelConfig()
        assert (config.alpha, config.beta, config.gamma) == (0.3, 0.2, 0.1)
        assert config.seasonal_period == 7

    @pytest.mark.parametrize("field", ["alpha", "beta", "gamma"])
    def test_smoothing_bounds(self, field):
        """Test smoothing factors are limited to [0, 1]."""
        with pytest.raises(ValidationError):
            HoltWintersModelConfig(**{field: 1.1})


class TestModelConfigUnion:
    """Tests for the discriminated ModelConfig union."""

    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            ({"model_type": "arima"}, ArimaModelConfig),
            ({"model_type": "sarima", "seasonal_period": 12}, SarimaModelConfig),
            ({"model_type": "holt_winters"}, HoltWintersModelConfig),
            ({"model_type": "trend_moving_average"}, TrendMovingAverageModelConfig),
            ({"model_type": "time_llm", "context_points": 10}, TimeLLMModelConfig),
        ],
    )
    def test_discriminator(self, payload, expected):
        """model_type selects the config class."""
        config = TypeAdapter(ModelConfig).validate_python(payload)
        assert isinstance(config, expected)

    def test_unknown_model_type(self):
        """Unknown model_type is rejected."""
        with pytest.raises(ValidationError):
            TypeAdapter(ModelConfig).validate_python({"model_type": "prophet"})


class TestTrainingSeries:
    """Tests for TrainingSeries schema."""

    def test_values_only(self):
        """Dates are optional."""
        series = TrainingSeries(values=[1.0, 2.0])
        assert series.dates is None

    def test_empty_values_rejected(self):
        """At least one observation is required."""
        with pytest.raises(ValidationError):
            TrainingSeries(values=[])

    def test_dates_length_mismatch(self):
        """Dates must line up with values."""
        with pytest.raises(ValidationError, match="same length"):
            TrainingSeries(values=[1.0, 2.0], dates=["2024-01-01"])


class TestForecastResult:
    """Tests for ForecastResult schema."""

    def test_predicted_values(self):
        """predicted_values lists point forecasts in step order."""
        result = ForecastResult(
            forecasts=[
                ForecastPoint(
                    step=1,
                    predicted_value=5.0,
                    confidence_lower=4.0,
                    confidence_upper=6.0,
                    confidence_level=0.93,
                ),
                ForecastPoint(
                    step=2,
                    predicted_value=6.0,
                    confidence_lower=4.5,
                    confidence_upper=7.5,
                    confidence_level=0.91,
                ),
            ],
            model_name="ARIMA(2,1,2)",
            fit_quality=0.5,
        )
        assert result.predicted_values == [5.0, 6.0]
        assert result.parameters == {}

    def test_step_must_be_positive(self):
        """Steps are 1-based."""
        with pytest.raises(ValidationError):
            ForecastPoint(
                step=0,
                predicted_value=1.0,
                confidence_lower=0.0,
                confidence_upper=2.0,
                confidence_level=0.9,
            )


class TestRequests:
    """Tests for API request schemas."""

    def test_run_request_defaults(self):
        """Horizon defaults to 14 and test_size to the settings ratio."""
        request = ForecastRunRequest.model_validate(
            {"series": {"values": [1, 2, 3]}, "config": {"model_type": "arima"}}
        )
        assert request.horizon == 14
        assert request.test_size is None
        assert isinstance(request.config, ArimaModelConfig)

    def test_run_request_horizon_validation(self):
        """Horizon must be positive."""
        with pytest.raises(ValidationError):
            ForecastRunRequest.model_validate(
                {"series": {"values": [1]}, "config": {"model_type": "arima"}, "horizon": 0}
            )

    def test_csv_request(self):
        """CSV request defaults to the Date column."""
        request = CsvForecastRequest.model_validate(
            {
                "target_column": "Units Sold",
                "filters": {"Store ID": "S001"},
                "config": {"model_type": "holt_winters"},
            }
        )
        assert request.date_column == "Date"
        assert request.filters == {"Store ID": "S001"}
