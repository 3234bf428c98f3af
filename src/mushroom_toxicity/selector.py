from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from .models import get_family
from .tuner import TuneResult

TIE_TOLERANCE = 1e-12


@dataclass
class Selection:
    family: str
    config_id: int
    params: dict[str, Any]
    mean: float
    std_err: float
    warnings: list[str] = field(default_factory=list)


def _ranked(result: TuneResult) -> pd.DataFrame:
    """Valid configurations, best first.

    Highest mean wins; means within ``TIE_TOLERANCE`` of each other are
    treated as equal and ordered by simplicity, then by ``config_id``.
    """
    family = get_family(result.family)
    summary = result.summary[np.isfinite(result.summary["mean"].astype(float))].copy()
    if summary.empty:
        return summary

    best = summary["mean"].max()

    def sort_key(row: pd.Series) -> tuple:
        # near-ties with the best score share its value so the later keys decide
        score = best if best - row["mean"] <= TIE_TOLERANCE else row["mean"]
        config_id = int(row["config_id"])
        return (-score, family.simplicity_key(result.params[config_id]), config_id)

    order = sorted(summary.index, key=lambda i: sort_key(summary.loc[i]))
    return summary.loc[order]


def select_best(result: TuneResult) -> Selection:
    ranked = _ranked(result)
    if ranked.empty:
        raise RuntimeError(f"No configuration of '{result.family}' produced a finite score")

    top = ranked.iloc[0]
    config_id = int(top["config_id"])
    return Selection(
        family=result.family,
        config_id=config_id,
        params=dict(result.params[config_id]),
        mean=float(top["mean"]),
        std_err=float(top["std_err"]),
        warnings=list(top["warnings"]),
    )


def show_best(result: TuneResult, n: int = 5) -> pd.DataFrame:
    """Top ``n`` configurations in selection order."""
    return _ranked(result).head(n).reset_index(drop=True)
