# file: src/chapter3/tasks.py
"""
Chapter 3: Idempotent Pipeline Tasks

These tasks are designed to be:
- deterministic for a given config (historical year ranges)
- atomic on write
- safe to rerun (overwrite flag controls)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from src.chapter1.client import BLSClient
from src.chapter1.config import MAX_SPAN, load_settings
from src.chapter1.ingest import SeriesRetrievalClient, fetch_series
from src.chapter1.series import series_label
from src.chapter1.validate import validate_observation_table
from src.chapter2 import plotting
from src.chapter2.prepare import observations_to_frame, to_monthly_series, to_tidy_frame
from src.chapter2.smoothing import moving_average
from src.chapter3.config import PipelineConfig
from src.chapter3.io_utils import (atomic_write_json, atomic_write_parquet, ensure_dir,
                                   read_observation_table)
from src.chapter3.services import (DecompositionResult, ForecastOutput, ServiceFactory,
                                   decompose_all)

logger = logging.getLogger(__name__)


def compute_monthly_integrity(tidy: pd.DataFrame) -> Dict:
    """
    Core invariants of the clean table, returned as a dict.
    Requires columns: unique_id, ds, y
    """
    if not {"unique_id", "ds", "y"}.issubset(tidy.columns):
        raise ValueError(f"Expected unique_id/ds/y, got {tidy.columns.tolist()}")

    df = tidy.sort_values(["unique_id", "ds"]).reset_index(drop=True)

    dup_counts = df.groupby(["unique_id", "ds"]).size()
    duplicate_pairs = int((dup_counts > 1).sum())

    missing_months = 0
    gaps_detail = []
    for uid, sub in df.groupby("unique_id"):
        expected = pd.date_range(sub["ds"].min(), sub["ds"].max(), freq="MS")
        missing = expected.difference(pd.DatetimeIndex(sub["ds"]))
        missing_months += len(missing)
        for ts in missing[:10]:
            gaps_detail.append({"unique_id": uid, "missing_ds": ts})

    status = "valid" if duplicate_pairs == 0 else "invalid"
    return {
        "status": status,
        "duplicate_pairs": duplicate_pairs,
        "missing_months": int(missing_months),
        "null_values": int(df["y"].isna().sum()),
        "gaps_detail": gaps_detail,
        "n_rows": int(len(df)),
    }


def _build_client(config: PipelineConfig) -> BLSClient:
    settings = load_settings(
        series_ids=config.series_ids,
        start_year=config.start_year,
        end_year=config.end_year,
    )
    return BLSClient.from_settings(settings)


def ingest_bls(config: PipelineConfig, client: Optional[SeriesRetrievalClient] = None) -> str:
    """
    Task 1: Fetch the full year range and save data/raw.parquet
    """
    raw_path = config.raw_path()
    ensure_dir(raw_path.parent)

    if raw_path.exists() and not config.overwrite:
        logger.info(f"[ingest] raw exists, skipping: {raw_path}")
        return str(raw_path)

    if client is None:
        client = _build_client(config)
    max_span = getattr(client, "max_span", MAX_SPAN["v2"])

    table = fetch_series(
        config.series_ids,
        config.start_year,
        config.end_year,
        max_span,
        client,
    )

    result = validate_observation_table(table)
    if not result.is_valid:
        raise ValueError(
            f"Fetched table failed integrity: duplicates={result.n_duplicates}, "
            f"sorted={result.is_sorted}"
        )
    if result.n_missing_months:
        logger.warning(f"[ingest] {result.n_missing_months} missing months, first: {result.missing_months[:3]}")

    atomic_write_parquet(observations_to_frame(table), raw_path)
    logger.info(f"[ingest] wrote raw: {raw_path} ({len(table)} rows)")
    return str(raw_path)


def prepare_clean(raw_path: str, config: PipelineConfig) -> str:
    """
    Task 2: Tidy + moving average, save data/clean.parquet + data/metadata.json
    """
    clean_path = config.clean_path()
    ensure_dir(clean_path.parent)

    if clean_path.exists() and not config.overwrite:
        logger.info(f"[prepare] clean exists, skipping: {clean_path}")
        return str(clean_path)

    table = read_observation_table(Path(raw_path))
    tidy = to_tidy_frame(table)
    df_clean = moving_average(tidy, window=config.window, center=config.center)

    metadata = {
        "pull_timestamp": datetime.now(timezone.utc).isoformat(),
        "series_ids": list(config.series_ids),
        "start_year": config.start_year,
        "end_year": config.end_year,
        "window": config.window,
        "raw_rows": int(len(table)),
        "clean_rows": int(len(df_clean)),
    }

    atomic_write_parquet(df_clean, clean_path)
    atomic_write_json(metadata, config.metadata_path())

    logger.info(f"[prepare] wrote clean: {clean_path} ({len(df_clean)} rows)")
    return str(clean_path)


def validate_clean(clean_path: str) -> Dict:
    """
    Task 3: Validate the clean table (duplicates fail, gaps are reported).
    """
    df_clean = pd.read_parquet(clean_path)

    report = compute_monthly_integrity(df_clean)
    if report["status"] != "valid":
        raise ValueError(
            f"Time-series integrity failed: "
            f"{report['duplicate_pairs']} duplicate (unique_id, ds) pairs"
        )

    if report["null_values"] or report["missing_months"]:
        # Decomposition and forecasting need a complete monthly index
        logger.warning(
            f"[validate] {report['null_values']} unreported values and "
            f"{report['missing_months']} missing months; modeling steps will fail"
        )

    logger.info(f"[validate] OK: rows={report['n_rows']} missing_months={report['missing_months']}")
    return report


def decompose_series(clean_path: str, config: PipelineConfig) -> str:
    """
    Task 4: Seasonal decomposition per series, save artifacts/decomposition.parquet
    """
    out_path = config.decomposition_path()
    ensure_dir(out_path.parent)

    if out_path.exists() and not config.overwrite:
        logger.info(f"[decompose] exists, skipping: {out_path}")
        return str(out_path)

    df_clean = pd.read_parquet(clean_path)
    service = ServiceFactory.create_decomposer(config.decomposition)
    results = decompose_all(df_clean, service)

    frame = pd.concat(
        [res.to_frame(uid) for uid, res in results.items()],
        ignore_index=True,
    )
    atomic_write_parquet(frame, out_path)
    logger.info(f"[decompose] wrote {service.get_name()} components: {out_path} ({len(frame)} rows)")
    return str(out_path)


def forecast_publish(clean_path: str, config: PipelineConfig) -> str:
    """
    Task 5: Fit on all clean data and publish artifacts/predictions.parquet
    """
    pred_path = config.predictions_path()
    ensure_dir(pred_path.parent)

    if pred_path.exists() and not config.overwrite:
        logger.info(f"[forecast] predictions exist, skipping: {pred_path}")
        return str(pred_path)

    df_clean = pd.read_parquet(clean_path)
    service = ServiceFactory.create_forecaster(config.forecaster)

    outputs = [
        service.forecast(
            to_monthly_series(df_clean, uid),
            horizon=config.horizon,
            level=config.confidence_level,
            unique_id=uid,
        )
        for uid in sorted(df_clean["unique_id"].unique())
    ]
    forecast_df = pd.concat([out.frame for out in outputs], ignore_index=True)
    forecast_df["model"] = config.forecaster

    atomic_write_parquet(forecast_df, pred_path)
    logger.info(f"[forecast] wrote predictions: {pred_path} ({len(forecast_df)} rows)")
    return str(pred_path)


def _decomposition_from_frame(frame: pd.DataFrame, method: str) -> DecompositionResult:
    indexed = frame.set_index("ds")
    uid = str(frame["unique_id"].iloc[0])

    def col(name: str) -> pd.Series:
        return indexed[name].rename(uid)

    return DecompositionResult(
        observed=col("observed"),
        trend=col("trend"),
        seasonal=col("seasonal"),
        irregular=col("irregular"),
        seasadj=col("seasadj"),
        method=method,
    )


def render_figures(
    clean_path: str,
    config: PipelineConfig,
    decomposition_path: Optional[str] = None,
    predictions_path: Optional[str] = None,
) -> List[str]:
    """
    Task 6: Save PNG charts under artifacts/figures/
    """
    fig_dir = config.figures_path()
    ensure_dir(fig_dir)
    df_clean = pd.read_parquet(clean_path)
    written = []

    def target(name: str) -> Path:
        path = fig_dir / name
        written.append(str(path))
        return path

    plotting.close(plotting.plot_series(
        df_clean, title="BLS labor series", labels=series_label, path=target("series.png")
    ))

    for uid in sorted(df_clean["unique_id"].unique()):
        plotting.close(plotting.plot_moving_average(
            df_clean, uid, config.window, path=target(f"{uid}_moving_average.png")
        ))

    if decomposition_path:
        decomp = pd.read_parquet(decomposition_path)
        for uid, sub in decomp.groupby("unique_id"):
            result = _decomposition_from_frame(sub, config.decomposition)
            plotting.close(plotting.plot_decomposition(result, path=target(f"{uid}_decomposition.png")))

    if predictions_path:
        preds = pd.read_parquet(predictions_path)
        for uid, sub in preds.groupby("unique_id"):
            output = ForecastOutput(
                unique_id=str(uid),
                model=config.forecaster,
                horizon=len(sub),
                level=config.confidence_level,
                frame=sub.reset_index(drop=True),
            )
            history = to_monthly_series(df_clean, str(uid))
            plotting.close(plotting.plot_forecast(history, output, path=target(f"{uid}_forecast.png")))

    logger.info(f"[figures] wrote {len(written)} figures to {fig_dir}")
    return written


def run_full_pipeline(config: PipelineConfig, client: Optional[SeriesRetrievalClient] = None) -> Dict:
    """
    Runs tasks in order and returns a summary dict.
    """
    logger.info("=" * 60)
    logger.info("START PIPELINE")
    logger.info("=" * 60)

    run_id = config.run_id()
    logger.info(f"Pipeline run_id: {run_id}")

    raw = ingest_bls(config, client=client)
    clean = prepare_clean(raw, config)
    integrity = validate_clean(clean)
    decomposition = decompose_series(clean, config)
    predictions = forecast_publish(clean, config)

    figures: List[str] = []
    if config.make_figures:
        figures = render_figures(clean, config, decomposition, predictions)

    out = {
        "raw_path": raw,
        "clean_path": clean,
        "integrity": integrity["status"],
        "missing_months": integrity["missing_months"],
        "decomposition_path": decomposition,
        "predictions_path": predictions,
        "figures": len(figures),
        "run_id": run_id,
    }

    logger.info("=" * 60)
    logger.info("PIPELINE COMPLETE")
    logger.info("=" * 60)
    return out
