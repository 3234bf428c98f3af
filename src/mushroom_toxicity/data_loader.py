import os
from typing import Optional, Sequence

import numpy as np
import pandas as pd
import requests

from .schema import COLUMNS
from .utils.logger import get_logger

UCI_URL = (
    "https://archive.ics.uci.edu/ml/machine-learning-databases/"
    "mushroom/agaricus-lepiota.data"
)


def fetch_dataset(path: str, url: str = UCI_URL, timeout: int = 30) -> str:
    """Download the raw UCI file to ``path`` unless it is already there."""
    logger = get_logger("fetch_dataset")
    if os.path.exists(path):
        return path
    logger.info(f"Fetching dataset from {url}")
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w") as f:
        f.write(response.text)
    logger.info(f"Saved dataset: {path}")
    return path


class DataLoader:
    """Loads the headerless mushroom file and optionally samples rows."""

    def __init__(
        self,
        path: str,
        sample_size: Optional[int] = None,
        columns: Sequence[str] = COLUMNS,
    ):
        self.path = path
        self.sample_size = sample_size
        self.columns = list(columns)
        self.logger = get_logger(self.__class__.__name__)

    def _validate(self, df: pd.DataFrame) -> None:
        """Reject short rows and anything that is not a single-character code."""
        # depending on the pandas version a missing trailing field reads as NaN or ""
        short = (df.isna() | df.eq("")).any(axis=1)
        if short.any():
            first = int(np.flatnonzero(short.to_numpy())[0]) + 1
            raise ValueError(
                f"{self.path}: {int(short.sum())} malformed row(s), first at line {first}"
            )
        for col in df.columns:
            lengths = df[col].str.len()
            if (lengths != 1).any():
                bad = df.loc[lengths != 1, col].iloc[0]
                raise ValueError(
                    f"{self.path}: column '{col}' holds non single-character code {bad!r}"
                )

    def load(self, rng: Optional[np.random.RandomState] = None) -> pd.DataFrame:
        """Read the file, validate it and draw ``sample_size`` rows with ``rng``."""
        df = pd.read_csv(
            self.path,
            header=None,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
        if df.shape[1] != len(self.columns):
            raise ValueError(
                f"{self.path}: expected {len(self.columns)} fields per row, found {df.shape[1]}"
            )
        df.columns = self.columns
        self._validate(df)
        df = df.astype("category")
        self.logger.info(f"Read {len(df):,} rows x {df.shape[1]} cols from {self.path}")

        if self.sample_size:
            df = df.sample(self.sample_size, random_state=rng).reset_index(drop=True)
            self.logger.info(f"Sampled {len(df):,} rows")
        return df
