"""
Chapter 3: Pipeline Configuration
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Tuple

from src.chapter1.series import DEFAULT_SERIES


@dataclass(frozen=True)
class PipelineConfig:
    # Data parameters
    series_ids: Tuple[str, ...] = DEFAULT_SERIES
    start_year: int = 1982
    end_year: int = 2021

    # IO
    data_dir: str = "data"
    artifacts_dir: str = "artifacts"
    overwrite: bool = False

    # Smoothing
    window: int = 12
    center: bool = False

    # Decomposition / forecasting
    decomposition: str = "x13"
    forecaster: str = "drift"
    horizon: int = 12
    confidence_level: int = 95

    # Figures
    make_figures: bool = True

    def run_id(self) -> str:
        return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")

    def data_path(self) -> Path:
        return Path(self.data_dir)

    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir)

    def raw_path(self) -> Path:
        return self.data_path() / "raw.parquet"

    def clean_path(self) -> Path:
        return self.data_path() / "clean.parquet"

    def metadata_path(self) -> Path:
        return self.data_path() / "metadata.json"

    def decomposition_path(self) -> Path:
        return self.artifacts_path() / "decomposition.parquet"

    def predictions_path(self) -> Path:
        return self.artifacts_path() / "predictions.parquet"

    def figures_path(self) -> Path:
        return self.artifacts_path() / "figures"
