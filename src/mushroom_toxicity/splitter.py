from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold, train_test_split

from .utils.logger import get_logger

logger = get_logger("Splitter")


def _check_class_counts(labels: pd.Series, minimum: int, what: str) -> None:
    counts = labels.value_counts()
    counts = counts[counts > 0]
    too_small = counts[counts < minimum]
    if len(counts) < 2 or not too_small.empty:
        raise ValueError(
            f"Cannot stratify {what}: every label class needs at least {minimum} "
            f"rows, got {counts.to_dict()}"
        )


def stratified_split(
    df: pd.DataFrame,
    target_col: str,
    train_fraction: float = 0.8,
    rng: np.random.RandomState | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Split rows into train/test preserving label proportions."""
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")
    _check_class_counts(df[target_col], 2, "train/test split")

    train, test = train_test_split(
        df,
        train_size=train_fraction,
        stratify=df[target_col],
        random_state=rng,
    )
    train = train.reset_index(drop=True)
    test = test.reset_index(drop=True)

    logger.info(f"Split {len(df):,} rows into train={len(train):,} / test={len(test):,}")
    return train, test


def stratified_folds(
    df: pd.DataFrame,
    target_col: str,
    n_splits: int = 10,
    rng: np.random.RandomState | None = None,
) -> list[tuple[np.ndarray, np.ndarray]]:
    """
    Partition rows into ``n_splits`` stratified folds.

    Returns positional ``(train_idx, val_idx)`` pairs. The folds are drawn once
    so every configuration is scored on the same resamples.
    """
    _check_class_counts(df[target_col], n_splits, f"{n_splits} folds")
    skf = StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=rng)
    folds = [
        (np.asarray(train_idx), np.asarray(val_idx))
        for train_idx, val_idx in skf.split(np.zeros(len(df)), df[target_col])
    ]
    sizes = [len(val_idx) for _, val_idx in folds]
    logger.info(f"Built {n_splits} folds, validation sizes {min(sizes)}-{max(sizes)}")
    return folds
