import json
import os

import numpy as np

from mushroom_toxicity.cleaner import Cleaner
from mushroom_toxicity.evaluator import Evaluator
from mushroom_toxicity.selector import Selection
from mushroom_toxicity.splitter import stratified_split


def _split(mushrooms):
    df = Cleaner().clean(mushrooms.astype("category"))
    train, test = stratified_split(df, "class", 0.8, np.random.RandomState(43920))
    y_train = (train["class"] == "p").astype(int).to_numpy()
    y_test = (test["class"] == "p").astype(int).to_numpy()
    return train.drop(columns=["class"]), y_train, test.drop(columns=["class"]), y_test


def test_evaluator_scores_the_test_rows(tmp_path, mushrooms):
    X_train, y_train, X_test, y_test = _split(mushrooms)
    selection = Selection(
        family="elastic_net",
        config_id=90,
        params={"penalty": 1e-4, "mixture": 1.0},
        mean=1.0,
        std_err=0.0,
    )
    evaluator = Evaluator(figures_dir=str(tmp_path), random_state=0)
    result = evaluator.evaluate(selection, X_train, y_train, X_test, y_test)

    assert 0.95 <= result.roc_auc <= 1.0
    assert result.confusion.shape == (2, 2)
    assert result.confusion.sum() == len(y_test)
    assert 0.0 <= result.accuracy <= 1.0
    assert result.fpr[0] == 0.0 and result.tpr[-1] == 1.0
    assert os.path.exists(result.figure_path)


def test_evaluator_flags_a_cv_score_the_test_set_cannot_reproduce(tmp_path, mushrooms):
    X_train, y_train, X_test, y_test = _split(mushrooms)
    # a tree pruned to its root predicts a constant, far below the claimed CV score
    selection = Selection(
        family="decision_tree",
        config_id=9,
        params={"cost_complexity": 1.0},
        mean=1.0,
        std_err=0.0,
    )
    result = Evaluator(figures_dir=str(tmp_path)).evaluate(
        selection, X_train, y_train, X_test, y_test
    )
    assert result.roc_auc < 0.95
    assert any("leakage" in w for w in result.warnings)


def test_evaluator_surfaces_selection_warnings(tmp_path, mushrooms):
    X_train, y_train, X_test, y_test = _split(mushrooms)
    selection = Selection(
        family="decision_tree",
        config_id=0,
        params={"cost_complexity": 0.001},
        mean=1.0,
        std_err=0.0,
        warnings=["did not converge"],
    )
    result = Evaluator(figures_dir=str(tmp_path)).evaluate(
        selection, X_train, y_train, X_test, y_test
    )
    assert "did not converge" in result.warnings


def test_save_metrics_writes_json(tmp_path, mushrooms):
    X_train, y_train, X_test, y_test = _split(mushrooms)
    selection = Selection("decision_tree", 0, {"cost_complexity": 0.001}, 1.0, 0.0)
    evaluator = Evaluator(figures_dir=str(tmp_path))
    result = evaluator.evaluate(selection, X_train, y_train, X_test, y_test)

    path = tmp_path / "out" / "metrics.json"
    evaluator.save_metrics([result], str(path))
    saved = json.loads(path.read_text())
    assert saved[0]["family"] == "decision_tree"
    assert saved[0]["confusion_matrix"] == result.confusion.tolist()
