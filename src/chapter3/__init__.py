"""
Chapter 3: Decomposition, Forecasting and Automation

- services - Swappable decomposition (X13, classical) and forecasting (drift) wrappers
- config - PipelineConfig
- tasks - Idempotent pipeline steps
- cli - Typer entry point
"""

from .config import PipelineConfig
from .services import (ClassicalDecompositionService, DecompositionResult,
                       DecompositionService, ForecastOutput, ForecastService,
                       ServiceFactory, StatsForecastService,
                       X13DecompositionService, decompose_all)

__all__ = [
    "PipelineConfig",
    "DecompositionResult",
    "DecompositionService",
    "X13DecompositionService",
    "ClassicalDecompositionService",
    "ForecastOutput",
    "ForecastService",
    "StatsForecastService",
    "ServiceFactory",
    "decompose_all",
]
