import numpy as np
import pandas as pd
import pytest

from mushroom_toxicity.cleaner import Cleaner
from mushroom_toxicity.models import ModelFamily, get_family
from mushroom_toxicity.splitter import stratified_folds
from mushroom_toxicity.tuner import GridTuner, summarize


@pytest.fixture
def training(mushrooms):
    df = Cleaner().clean(mushrooms.astype("category"))
    X = df.drop(columns=["class"])
    y = (df["class"] == "p").astype(int).to_numpy()
    folds = stratified_folds(df, "class", 4, np.random.RandomState(43920))
    return X, y, folds


def test_tuner_scores_every_configuration_on_every_fold(training):
    X, y, folds = training
    result = GridTuner(levels=3, random_state=0).tune(get_family("decision_tree"), X, y, folds)

    assert len(result.summary) == 3
    assert len(result.metrics) == 3 * len(folds)
    assert set(result.metrics["fold"]) == {1, 2, 3, 4}
    assert result.summary["n_folds"].eq(len(folds)).all()
    assert result.summary["mean"].between(0.0, 1.0).all()
    # odor separates the classes in the synthetic data
    assert result.summary["mean"].max() > 0.95


def test_tuner_aggregates_mean_and_standard_error(training):
    X, y, folds = training
    result = GridTuner(levels=2, random_state=0).tune(get_family("decision_tree"), X, y, folds)

    for config_id, group in result.metrics.groupby("config_id"):
        row = result.summary.set_index("config_id").loc[config_id]
        scores = group["roc_auc"].to_numpy()
        assert row["mean"] == pytest.approx(scores.mean())
        assert row["std_err"] == pytest.approx(scores.std(ddof=1) / np.sqrt(len(scores)))


def test_tuner_without_hyperparameters_runs_a_single_configuration(training):
    X, y, folds = training
    result = GridTuner(design="tpe", n_trials=5).tune(get_family("logistic_regression"), X, y, folds)
    assert len(result.summary) == 1
    assert result.design == "grid"


def test_tuner_tpe_falls_back_to_grid_when_trials_cover_it(training):
    X, y, folds = training
    tuner = GridTuner(levels=2, design="tpe", n_trials=3, random_state=0)
    result = tuner.tune(get_family("decision_tree"), X, y, folds)

    assert result.design == "grid"
    assert len(result.summary) == 2


def test_tuner_tpe_design_is_reproducible(training):
    X, y, folds = training
    family = get_family("elastic_net")

    def run():
        return GridTuner(levels=3, design="tpe", n_trials=4, random_state=1).tune(family, X, y, folds)

    a, b = run(), run()
    assert a.design == "tpe"
    assert 1 <= len(a.summary) <= 4
    assert set(a.summary["config_id"]) <= set(range(9))
    pd.testing.assert_frame_equal(
        a.summary.drop(columns=["warnings"]), b.summary.drop(columns=["warnings"])
    )


def test_tuner_results_do_not_depend_on_worker_count(training):
    X, y, folds = training
    family = get_family("decision_tree")
    serial = GridTuner(levels=2, n_jobs=1, random_state=0).tune(family, X, y, folds)
    parallel = GridTuner(levels=2, n_jobs=2, random_state=0).tune(family, X, y, folds)
    pd.testing.assert_frame_equal(
        serial.summary.drop(columns=["warnings"]), parallel.summary.drop(columns=["warnings"])
    )


def _failing_builder(params, n_samples, n_features, random_state=None):
    raise ValueError("solver blew up")


def test_tuner_marks_failed_fits_instead_of_aborting(training):
    X, y, folds = training
    family = ModelFamily(name="decision_tree", label="broken", builder=_failing_builder)
    result = GridTuner().tune(family, X, y, folds)

    row = result.summary.iloc[0]
    assert row["n_failed"] == len(folds)
    assert np.isnan(row["mean"])
    assert any("solver blew up" in w for w in row["warnings"])


def test_summarize_is_independent_of_record_order():
    family = get_family("decision_tree")
    records = [
        {"config_id": c, "fold": f, "roc_auc": 0.9 + 0.01 * f + 0.001 * c, "warnings": [], "error": None}
        for c in range(2)
        for f in range(1, 4)
    ]
    params = {0: {"cost_complexity": 0.001}, 1: {"cost_complexity": 0.1}}

    _, forward = summarize(records, params, family)
    _, backward = summarize(list(reversed(records)), params, family)
    pd.testing.assert_frame_equal(forward, backward)


def test_tuner_rejects_unknown_design():
    with pytest.raises(ValueError):
        GridTuner(design="bayes")
    with pytest.raises(ValueError):
        GridTuner(design="tpe")
