import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from mushroom_toxicity.schema import ATTRIBUTES, COLUMNS


def make_mushrooms(n: int = 400, seed: int = 0) -> pd.DataFrame:
    """Mushroom-like records: odor carries the label, veil_type is constant,
    stalk_root is mostly missing and cap_shape is a little missing."""
    rng = np.random.RandomState(seed)
    label = np.array(["e", "p"] * (n // 2))
    rng.shuffle(label)

    data = {"class": label}
    for col in ATTRIBUTES:
        data[col] = rng.choice(list("abcd"), size=n)

    data["odor"] = np.where(
        label == "p", rng.choice(list("fsy"), size=n), rng.choice(list("anl"), size=n)
    )
    data["veil_type"] = np.full(n, "p")

    stalk_root = rng.choice(list("bce"), size=n)
    stalk_root[rng.rand(n) < 0.4] = "?"
    data["stalk_root"] = stalk_root

    cap_shape = rng.choice(list("xfk"), size=n)
    cap_shape[:10] = "?"
    data["cap_shape"] = cap_shape

    return pd.DataFrame(data, columns=COLUMNS)


def write_mushrooms(df: pd.DataFrame, path) -> str:
    df.to_csv(path, header=False, index=False)
    return str(path)


@pytest.fixture
def mushrooms() -> pd.DataFrame:
    return make_mushrooms()


@pytest.fixture
def mushroom_file(tmp_path, mushrooms) -> str:
    return write_mushrooms(mushrooms, tmp_path / "agaricus-lepiota.data")
