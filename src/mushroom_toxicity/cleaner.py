from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from .schema import MISSING_MARKER, TARGET_COL
from .utils.logger import get_logger


@dataclass
class CleaningReport:
    """What the cleaner removed and why."""
    n_rows: int = 0
    dropped_constant: list[str] = field(default_factory=list)
    dropped_missing: dict[str, float] = field(default_factory=dict)
    missing_counts: dict[str, int] = field(default_factory=dict)

    @property
    def dropped(self) -> list[str]:
        return self.dropped_constant + list(self.dropped_missing)


class Cleaner:
    """Drops uninformative attributes and marks missing values explicitly.

    Whole attributes are removed, rows never are:
      - attributes with a single observed category,
      - attributes whose missing fraction reaches ``max_missing_fraction``.
    The missing marker is replaced by ``unknown_label`` in the attributes that
    survive, and categories that are no longer observed are removed.
    """

    def __init__(
        self,
        missing_marker: str = MISSING_MARKER,
        unknown_label: str = "unknown",
        max_missing_fraction: float = 0.3,
        target_col: str = TARGET_COL,
    ):
        if not 0.0 < max_missing_fraction <= 1.0:
            raise ValueError("max_missing_fraction must be in (0, 1]")
        self.missing_marker = missing_marker
        self.unknown_label = unknown_label
        self.max_missing_fraction = max_missing_fraction
        self.target_col = target_col
        self.logger = get_logger(self.__class__.__name__)
        self.report_ = CleaningReport()

    def clean(self, df: pd.DataFrame) -> pd.DataFrame:
        out = df.copy()
        report = CleaningReport(n_rows=len(out))
        attributes = [c for c in out.columns if c != self.target_col]

        for col in attributes:
            out[col] = out[col].astype("category").cat.remove_unused_categories()
            if out[col].nunique(dropna=False) < 2:
                report.dropped_constant.append(col)
                self.logger.info(f"Dropping '{col}': single observed category")
        out = out.drop(columns=report.dropped_constant)

        for col in [c for c in attributes if c not in report.dropped_constant]:
            is_missing = out[col] == self.missing_marker
            n_missing = int(is_missing.sum())
            report.missing_counts[col] = n_missing
            if n_missing == 0:
                continue

            fraction = n_missing / max(len(out), 1)
            if fraction >= self.max_missing_fraction:
                report.dropped_missing[col] = fraction
                self.logger.info(
                    f"Dropping '{col}': {fraction:.1%} missing "
                    f"(threshold {self.max_missing_fraction:.0%})"
                )
                continue

            if self.unknown_label not in out[col].cat.categories:
                out[col] = out[col].cat.add_categories([self.unknown_label])
            out.loc[is_missing, col] = self.unknown_label
        out = out.drop(columns=list(report.dropped_missing))

        for col in out.columns:
            if isinstance(out[col].dtype, pd.CategoricalDtype):
                out[col] = out[col].cat.remove_unused_categories()

        self.report_ = report
        n_kept = len([c for c in out.columns if c != self.target_col])
        self.logger.info(
            f"Cleaning kept {n_kept} attributes, dropped {len(report.dropped)}: {report.dropped}"
        )
        return out
