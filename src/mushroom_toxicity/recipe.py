from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.preprocessing import OneHotEncoder, StandardScaler
from sklearn.utils.validation import check_is_fitted

from .utils.logger import get_logger


class Recipe(BaseEstimator, TransformerMixin):
    """Indicator expansion, near-zero-variance filter and standardization.

    Every statistic is learned in ``fit`` and reused unchanged by
    ``transform``, so a recipe fit on the training rows can be applied to
    validation or test rows without leaking their distribution.
    """

    def __init__(
        self,
        max_dominant_share: float = 0.95,
        drop_first: bool = False,
        verbose: bool = False,
    ):
        """
        Parameters
        ----------
        max_dominant_share:
            An indicator column is dropped when its most frequent value covers
            more than this share of the training rows.
        drop_first:
            Encode each attribute with a reference level instead of a full
            one-hot expansion.
        verbose:
            If True, logs the dropped indicator columns.
        """
        self.max_dominant_share = max_dominant_share
        self.drop_first = drop_first
        self.verbose = verbose

    def _make_onehot(self) -> OneHotEncoder:
        return OneHotEncoder(
            handle_unknown="ignore",
            drop="first" if self.drop_first else None,
            sparse_output=False,
            dtype=float,
        )

    @staticmethod
    def _as_strings(X: pd.DataFrame) -> pd.DataFrame:
        return X.astype(str)

    def fit(self, X: pd.DataFrame, y: Optional[np.ndarray] = None) -> "Recipe":
        if not 0.5 <= self.max_dominant_share <= 1.0:
            raise ValueError("max_dominant_share must be in [0.5, 1]")
        logger = get_logger(self.__class__.__name__)

        self.input_columns_ = list(X.columns)
        self.encoder_ = self._make_onehot()
        dummies = self.encoder_.fit_transform(self._as_strings(X))
        names = np.asarray(self.encoder_.get_feature_names_out(self.input_columns_))

        share_of_ones = dummies.mean(axis=0)
        dominant_share = np.maximum(share_of_ones, 1.0 - share_of_ones)
        self.keep_mask_ = dominant_share <= self.max_dominant_share
        self.dropped_columns_ = names[~self.keep_mask_].tolist()
        self.feature_names_ = names[self.keep_mask_].tolist()

        # StandardScaler leaves zero-variance columns unscaled (scale_ == 1)
        self.scaler_ = StandardScaler().fit(dummies[:, self.keep_mask_])

        if self.verbose and self.dropped_columns_:
            logger.info(
                f"Dropped {len(self.dropped_columns_)} near-zero-variance "
                f"indicators: {self.dropped_columns_}"
            )
        if self.verbose:
            logger.info(
                f"Recipe: {len(self.input_columns_)} attributes -> "
                f"{len(self.feature_names_)} features"
            )
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        check_is_fitted(self, "scaler_")
        missing = [c for c in self.input_columns_ if c not in X.columns]
        if missing:
            raise ValueError(f"Columns missing from input: {missing}")

        dummies = self.encoder_.transform(self._as_strings(X[self.input_columns_]))
        scaled = self.scaler_.transform(dummies[:, self.keep_mask_])
        return pd.DataFrame(scaled, columns=self.feature_names_, index=X.index)

    @property
    def center_(self) -> np.ndarray:
        return self.scaler_.mean_

    @property
    def scale_(self) -> np.ndarray:
        return self.scaler_.scale_

    def get_feature_names_out(self, input_features=None) -> np.ndarray:
        check_is_fitted(self, "scaler_")
        return np.asarray(self.feature_names_, dtype=object)
