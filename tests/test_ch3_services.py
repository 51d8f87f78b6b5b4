"""
Chapter 3: Decomposition and Forecasting Service Tests

X13 runs against a mocked statsmodels call (no x13as binary needed);
classical decomposition and statsforecast models run for real.
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pandas as pd
import pytest

from src.chapter3.services import (ClassicalDecompositionService, ServiceFactory,
                                   StatsForecastService, X13DecompositionService,
                                   decompose_all)


def seasonal_series(n_years=4, name="LNS14000000"):
    index = pd.date_range("2018-01-01", periods=12 * n_years, freq="MS")
    t = np.arange(len(index), dtype=float)
    values = 5.0 + 0.05 * t + np.sin(2 * np.pi * t / 12)
    return pd.Series(values, index=index, name=name)


@pytest.mark.smoke
class TestClassicalDecomposition:

    def test_components_add_up(self):
        series = seasonal_series()
        result = ClassicalDecompositionService().decompose(series)

        assert result.method == "classical"
        recomposed = result.trend + result.seasonal + result.irregular
        np.testing.assert_allclose(recomposed.to_numpy(), series.to_numpy())
        np.testing.assert_allclose(
            (result.seasadj + result.seasonal).to_numpy(), series.to_numpy()
        )

    def test_no_nan_trend_at_edges(self):
        result = ClassicalDecompositionService().decompose(seasonal_series())
        assert not result.trend.isna().any()

    def test_to_frame(self):
        result = ClassicalDecompositionService().decompose(seasonal_series())
        frame = result.to_frame()

        assert list(frame.columns) == [
            "unique_id", "ds", "observed", "trend", "seasonal", "irregular", "seasadj"
        ]
        assert (frame["unique_id"] == "LNS14000000").all()
        assert len(frame) == 48

    def test_too_short_raises(self):
        with pytest.raises(ValueError):
            ClassicalDecompositionService().decompose(seasonal_series(n_years=1))

    def test_nan_raises(self):
        series = seasonal_series()
        series.iloc[5] = np.nan
        with pytest.raises(ValueError, match="NaN"):
            ClassicalDecompositionService().decompose(series)


@pytest.mark.smoke
class TestX13Decomposition:

    def _mock_result(self, series):
        res = MagicMock()
        res.seasadj = series.to_numpy() - 1.0
        res.trend = series.to_numpy() - 0.5
        res.irregular = np.full(len(series), 0.25)
        return res

    def test_additive(self):
        series = seasonal_series()
        with patch("statsmodels.tsa.x13.x13_arima_analysis") as mock_x13:
            mock_x13.return_value = self._mock_result(series)
            result = X13DecompositionService(x12path="/opt/x13").decompose(series)

        kwargs = mock_x13.call_args.kwargs
        assert kwargs["log"] is False
        assert kwargs["x12path"] == "/opt/x13"
        assert result.method == "x13"
        np.testing.assert_allclose(result.seasonal.to_numpy(), 1.0)
        assert result.seasadj.index.equals(series.index)

    def test_multiplicative_uses_log(self):
        series = seasonal_series()
        with patch("statsmodels.tsa.x13.x13_arima_analysis") as mock_x13:
            res = self._mock_result(series)
            res.seasadj = series.to_numpy() / 2.0
            mock_x13.return_value = res
            result = X13DecompositionService(mode="multiplicative").decompose(series)

        assert mock_x13.call_args.kwargs["log"] is True
        np.testing.assert_allclose(result.seasonal.to_numpy(), 2.0)

    def test_bad_mode(self):
        with pytest.raises(ValueError):
            X13DecompositionService(mode="log")


@pytest.mark.smoke
class TestStatsForecastService:

    def test_drift_extends_linear_trend(self):
        index = pd.date_range("2019-01-01", periods=24, freq="MS")
        series = pd.Series(np.arange(1, 25, dtype=float), index=index, name="A")

        output = StatsForecastService("drift").forecast(series, horizon=12, level=95)
        frame = output.frame

        assert list(frame.columns) == ["unique_id", "ds", "forecast", "lower", "upper"]
        assert len(frame) == 12
        np.testing.assert_allclose(frame["forecast"].to_numpy(), np.arange(25, 37, dtype=float))
        assert frame["ds"].iloc[0] == pd.Timestamp("2021-01-01")
        assert (frame["lower"] <= frame["forecast"]).all()
        assert (frame["upper"] >= frame["forecast"]).all()

    def test_naive_repeats_last_value(self):
        series = seasonal_series()
        output = StatsForecastService("naive").forecast(series, horizon=3, unique_id="X")

        assert output.unique_id == "X"
        assert output.model == "naive"
        np.testing.assert_allclose(output.frame["forecast"].to_numpy(), series.iloc[-1])

    def test_bad_horizon(self):
        with pytest.raises(ValueError):
            StatsForecastService("drift").forecast(seasonal_series(), horizon=0)

    def test_unknown_model(self):
        with pytest.raises(ValueError):
            StatsForecastService("arima")


class TestServiceFactory:

    def test_lists(self):
        assert ServiceFactory.list_decomposers() == ["x13", "classical"]
        assert "drift" in ServiceFactory.list_forecasters()

    def test_create(self):
        assert ServiceFactory.create_decomposer("classical").get_name() == "classical"
        assert ServiceFactory.create_forecaster("seasonal_naive").get_name() == "seasonal_naive"

    @pytest.mark.fail_loud
    def test_unknown_names(self):
        with pytest.raises(ValueError):
            ServiceFactory.create_decomposer("stl")
        with pytest.raises(ValueError):
            ServiceFactory.create_forecaster("prophet")

    def test_decompose_all(self):
        a, b = seasonal_series(name="A"), seasonal_series(name="B")
        tidy = pd.concat([
            pd.DataFrame({"unique_id": s.name, "ds": s.index, "y": s.to_numpy()})
            for s in (a, b)
        ], ignore_index=True)

        results = decompose_all(tidy, ClassicalDecompositionService())
        assert sorted(results) == ["A", "B"]
