"""
Chapter 3: Decomposition and Forecasting Services

Both steps are delegated to existing libraries behind a small interface so
they can be swapped:
1. X13-ARIMA-SEATS (statsmodels, needs the x13as binary)
2. Classical decomposition (statsmodels, no binary)
3. Random walk with drift / naive / seasonal naive (statsforecast)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from src.chapter2.prepare import to_monthly_series

logger = logging.getLogger(__name__)


@dataclass
class DecompositionResult:
    """Components of one decomposed series"""
    observed: pd.Series
    trend: pd.Series
    seasonal: pd.Series
    irregular: pd.Series
    seasadj: pd.Series
    method: str

    def to_frame(self, unique_id: Optional[str] = None) -> pd.DataFrame:
        """Long format: [unique_id, ds, observed, trend, seasonal, irregular, seasadj]"""
        frame = pd.DataFrame({
            "observed": self.observed,
            "trend": self.trend,
            "seasonal": self.seasonal,
            "irregular": self.irregular,
            "seasadj": self.seasadj,
        })
        frame.index.name = "ds"
        frame = frame.reset_index()
        frame.insert(0, "unique_id", unique_id or self.observed.name)
        return frame


@dataclass
class ForecastOutput:
    """Forecast for one series: [unique_id, ds, forecast, lower, upper]"""
    unique_id: str
    model: str
    horizon: int
    level: int
    frame: pd.DataFrame


def _check_series(series: pd.Series) -> None:
    if series.empty:
        raise ValueError("Series is empty")
    if not isinstance(series.index, pd.DatetimeIndex):
        raise ValueError("Series must have a DatetimeIndex")
    n_nan = int(series.isna().sum())
    if n_nan:
        raise ValueError(f"Series has {n_nan} NaN values; fill or trim before modeling")


class DecompositionService(ABC):
    """Base class for seasonal decomposition"""

    @abstractmethod
    def decompose(self, series: pd.Series) -> DecompositionResult:
        """Split series into trend, seasonal and irregular components"""
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Service name"""
        pass


class X13DecompositionService(DecompositionService):
    """X13-ARIMA-SEATS via statsmodels"""

    def __init__(self, x12path: Optional[str] = None, mode: str = "additive", outlier: bool = True):
        if mode not in ("additive", "multiplicative"):
            raise ValueError(f"mode must be 'additive' or 'multiplicative', got {mode!r}")
        self.x12path = x12path
        self.mode = mode
        self.outlier = outlier

    def decompose(self, series: pd.Series) -> DecompositionResult:
        from statsmodels.tsa.x13 import x13_arima_analysis

        _check_series(series)
        res = x13_arima_analysis(
            endog=series,
            log=self.mode == "multiplicative",
            outlier=self.outlier,
            x12path=self.x12path,
        )

        seasadj = pd.Series(np.asarray(res.seasadj, dtype=float), index=series.index)
        trend = pd.Series(np.asarray(res.trend, dtype=float), index=series.index)
        irregular = pd.Series(np.asarray(res.irregular, dtype=float), index=series.index)
        if self.mode == "multiplicative":
            seasonal = series / seasadj
        else:
            seasonal = series - seasadj

        logger.debug("X13 decomposition done for %s (%s)", series.name, self.mode)
        return DecompositionResult(
            observed=series,
            trend=trend,
            seasonal=seasonal,
            irregular=irregular,
            seasadj=seasadj,
            method=self.get_name(),
        )

    def get_name(self) -> str:
        return "x13"


class ClassicalDecompositionService(DecompositionService):
    """Moving-average decomposition (statsmodels seasonal_decompose)"""

    def __init__(self, period: int = 12, model: str = "additive"):
        self.period = period
        self.model = model

    def decompose(self, series: pd.Series) -> DecompositionResult:
        from statsmodels.tsa.seasonal import seasonal_decompose

        _check_series(series)
        if len(series) < 2 * self.period:
            raise ValueError(
                f"Need at least {2 * self.period} observations, got {len(series)}"
            )

        res = seasonal_decompose(
            series,
            model=self.model,
            period=self.period,
            extrapolate_trend="freq",
        )
        if self.model == "multiplicative":
            seasadj = series / res.seasonal
        else:
            seasadj = series - res.seasonal

        return DecompositionResult(
            observed=series,
            trend=res.trend,
            seasonal=res.seasonal,
            irregular=res.resid,
            seasadj=seasadj,
            method=self.get_name(),
        )

    def get_name(self) -> str:
        return "classical"


class ForecastService(ABC):
    """Base class for forecasting services"""

    @abstractmethod
    def forecast(
        self,
        series: pd.Series,
        horizon: int,
        level: int = 95,
        unique_id: Optional[str] = None,
    ) -> ForecastOutput:
        """Forecast horizon steps past the end of series"""
        pass

    @abstractmethod
    def get_name(self) -> str:
        pass


class StatsForecastService(ForecastService):
    """
    Single-model statsforecast wrapper for monthly data.

    Models:
    - drift: RandomWalkWithDrift
    - naive: Naive
    - seasonal_naive: SeasonalNaive(season_length)
    """

    def __init__(self, model_name: str = "drift", season_length: int = 12, freq: str = "MS"):
        self.model_name = model_name
        self.season_length = season_length
        self.freq = freq
        self.model = self._build_model()

    def _build_model(self) -> Any:
        from statsforecast.models import Naive, RandomWalkWithDrift, SeasonalNaive

        if self.model_name == "drift":
            return RandomWalkWithDrift()
        if self.model_name == "naive":
            return Naive()
        if self.model_name == "seasonal_naive":
            return SeasonalNaive(season_length=self.season_length)
        raise ValueError(f"Unknown model: {self.model_name}")

    @property
    def alias(self) -> str:
        return getattr(self.model, "alias", type(self.model).__name__)

    def forecast(
        self,
        series: pd.Series,
        horizon: int,
        level: int = 95,
        unique_id: Optional[str] = None,
    ) -> ForecastOutput:
        from statsforecast import StatsForecast

        _check_series(series)
        if horizon < 1:
            raise ValueError(f"horizon must be >= 1, got {horizon}")

        uid = unique_id or (str(series.name) if series.name is not None else "series")
        train_df = pd.DataFrame({
            "unique_id": uid,
            "ds": series.index.to_numpy(),
            "y": series.to_numpy(dtype=float),
        })

        sf = StatsForecast(models=[self.model], freq=self.freq, n_jobs=1)
        fc = sf.forecast(df=train_df, h=horizon, level=[level])
        if "unique_id" not in fc.columns:
            fc = fc.reset_index()

        lo_col = f"{self.alias}-lo-{level}"
        hi_col = f"{self.alias}-hi-{level}"
        frame = pd.DataFrame({
            "unique_id": uid,
            "ds": pd.to_datetime(fc["ds"]).to_numpy(),
            "forecast": fc[self.alias].to_numpy(dtype=float),
            "lower": fc[lo_col].to_numpy(dtype=float) if lo_col in fc.columns else np.nan,
            "upper": fc[hi_col].to_numpy(dtype=float) if hi_col in fc.columns else np.nan,
        })

        logger.info("Forecast %s: %s, h=%d", uid, self.alias, horizon)
        return ForecastOutput(
            unique_id=uid,
            model=self.model_name,
            horizon=horizon,
            level=level,
            frame=frame,
        )

    def get_name(self) -> str:
        return self.model_name


class ServiceFactory:
    """Factory for decomposition and forecasting services"""

    _decomposers = {
        "x13": X13DecompositionService,
        "classical": ClassicalDecompositionService,
    }

    _forecasters = ("drift", "naive", "seasonal_naive")

    @classmethod
    def create_decomposer(cls, name: str, **kwargs) -> DecompositionService:
        if name not in cls._decomposers:
            raise ValueError(f"Unknown decomposition method: {name}")
        return cls._decomposers[name](**kwargs)

    @classmethod
    def create_forecaster(cls, name: str, **kwargs) -> ForecastService:
        if name not in cls._forecasters:
            raise ValueError(f"Unknown forecaster: {name}")
        return StatsForecastService(name, **kwargs)

    @classmethod
    def list_decomposers(cls) -> List[str]:
        return list(cls._decomposers.keys())

    @classmethod
    def list_forecasters(cls) -> List[str]:
        return list(cls._forecasters)


def decompose_all(
    tidy: pd.DataFrame,
    service: DecompositionService,
) -> Dict[str, DecompositionResult]:
    """Decompose every unique_id in a tidy frame (missing months fail loud)."""
    return {
        uid: service.decompose(to_monthly_series(tidy, uid))
        for uid in sorted(tidy["unique_id"].unique())
    }
