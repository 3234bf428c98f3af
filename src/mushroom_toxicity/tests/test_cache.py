import os

import pandas as pd

from mushroom_toxicity.cache import ResultCache


def test_cache_computes_once_for_same_settings(tmp_path):
    cache = ResultCache(str(tmp_path))
    calls = []

    def compute():
        calls.append(1)
        return {"auc": 0.99}

    settings = {"seed": 1, "X": pd.DataFrame({"a": [1, 2]})}
    first = cache.load_or_compute("tree", settings, compute)
    second = cache.load_or_compute("tree", settings, compute)

    assert first == second == {"auc": 0.99}
    assert len(calls) == 1
    assert os.path.exists(cache.path("tree"))


def test_cache_recomputes_when_settings_change(tmp_path):
    cache = ResultCache(str(tmp_path))
    cache.load_or_compute("tree", {"seed": 1}, lambda: "old")
    assert cache.load_or_compute("tree", {"seed": 2}, lambda: "new") == "new"
    assert cache.load_or_compute("tree", {"seed": 2}, lambda: "newer") == "new"


def test_disabled_cache_writes_nothing(tmp_path):
    cache = ResultCache(str(tmp_path / "cache"), enabled=False)
    assert cache.load_or_compute("tree", {}, lambda: 1) == 1
    assert not os.path.exists(cache.path("tree"))
