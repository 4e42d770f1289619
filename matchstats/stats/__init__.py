"""
Stats module: pure view derivations over event log snapshots.
"""
from .aggregator import (
    ViewKind,
    Precalculated,
    DEFAULT_PERIOD_COUNT,
    compute_view,
    aggregate,
    period_key,
)

__all__ = [
    "ViewKind",
    "Precalculated",
    "DEFAULT_PERIOD_COUNT",
    "compute_view",
    "aggregate",
    "period_key",
]
