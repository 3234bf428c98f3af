"""
Model families behind one interface.

Each family declares its hyperparameters as (range, levels, scale) and knows
how to build a scikit-learn estimator from one configuration. Fitting goes
through ``fit_model`` so convergence problems are captured per fit instead of
being printed and lost.
"""

from __future__ import annotations

import itertools
import warnings
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np
import pandas as pd
from sklearn.base import ClassifierMixin
from sklearn.ensemble import RandomForestClassifier
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.tree import DecisionTreeClassifier


@dataclass(frozen=True)
class Hyperparameter:
    """One tunable knob and the direction in which the model gets simpler."""
    name: str
    low: float
    high: float
    scale: str = "linear"
    integer: bool = False
    simpler: str = "low"

    def values(self, levels: int) -> list:
        if self.scale == "log":
            raw = np.logspace(np.log10(self.low), np.log10(self.high), levels)
        elif self.scale == "linear":
            raw = np.linspace(self.low, self.high, levels)
        else:
            raise ValueError(f"Unknown scale '{self.scale}' for {self.name}")

        if not self.integer:
            return [float(v) for v in raw]
        # rounding can collapse neighbouring levels
        return list(dict.fromkeys(int(v) for v in np.round(raw)))


def regular_grid(hyperparameters: tuple[Hyperparameter, ...], levels: int) -> list[dict[str, Any]]:
    """Full factorial of ``levels`` values per hyperparameter, in declared order."""
    if not hyperparameters:
        return [{}]
    names = [hp.name for hp in hyperparameters]
    axes = [hp.values(levels) for hp in hyperparameters]
    return [dict(zip(names, combo)) for combo in itertools.product(*axes)]


@dataclass(frozen=True)
class ModelFamily:
    name: str
    label: str
    builder: Callable[..., ClassifierMixin]
    hyperparameters: tuple[Hyperparameter, ...] = ()
    defaults: dict[str, Any] = field(default_factory=dict)

    def grid(self, levels: int = 10) -> list[dict[str, Any]]:
        return regular_grid(self.hyperparameters, levels)

    def simplicity_key(self, params: dict[str, Any]) -> tuple:
        """Sort key that orders simpler configurations first."""
        key = []
        for hp in self.hyperparameters:
            value = float(params[hp.name])
            key.append(value if hp.simpler == "low" else -value)
        return tuple(key)

    def build(
        self,
        params: dict[str, Any],
        n_samples: int,
        n_features: int,
        random_state: int | None = None,
        **options: Any,
    ) -> ClassifierMixin:
        settings = dict(self.defaults)
        settings.update(options)
        return self.builder(
            params,
            n_samples=n_samples,
            n_features=n_features,
            random_state=random_state,
            **settings,
        )


def _logistic_regression(params, n_samples, n_features, random_state=None, max_iter=1000):
    # unpenalized
    return LogisticRegression(C=np.inf, max_iter=max_iter, random_state=random_state)


def _elastic_net(params, n_samples, n_features, random_state=None, max_iter=5000):
    # glmnet-style penalty: loss/n + penalty * R(w)  <=>  C = 1 / (n * penalty)
    return LogisticRegression(
        solver="saga",
        C=1.0 / (n_samples * params["penalty"]),
        l1_ratio=params["mixture"],
        max_iter=max_iter,
        random_state=random_state,
    )


def _decision_tree(params, n_samples, n_features, random_state=None, max_depth=30):
    return DecisionTreeClassifier(
        ccp_alpha=params["cost_complexity"],
        max_depth=max_depth,
        random_state=random_state,
    )


def _random_forest(params, n_samples, n_features, random_state=None, n_jobs=1):
    return RandomForestClassifier(
        n_estimators=params["trees"],
        max_features=min(params["mtry"], n_features),
        min_samples_split=params["min_n"],
        random_state=random_state,
        n_jobs=n_jobs,
    )


FAMILIES: dict[str, ModelFamily] = {
    "logistic_regression": ModelFamily(
        name="logistic_regression",
        label="Logistic regression",
        builder=_logistic_regression,
    ),
    "elastic_net": ModelFamily(
        name="elastic_net",
        label="Elastic net",
        builder=_elastic_net,
        hyperparameters=(
            Hyperparameter("penalty", 1e-4, 1.0, scale="log", simpler="high"),
            # ties go to the ridge end (mixture 0), not to the sparser lasso end
            Hyperparameter("mixture", 0.0, 1.0),
        ),
    ),
    "decision_tree": ModelFamily(
        name="decision_tree",
        label="Decision tree",
        builder=_decision_tree,
        hyperparameters=(
            Hyperparameter("cost_complexity", 1e-3, 1e-1, scale="log", simpler="high"),
        ),
    ),
    "random_forest": ModelFamily(
        name="random_forest",
        label="Random forest",
        builder=_random_forest,
        hyperparameters=(
            Hyperparameter("mtry", 2, 17, integer=True),
            Hyperparameter("trees", 100, 1000, integer=True),
            Hyperparameter("min_n", 2, 10, integer=True, simpler="high"),
        ),
    ),
}


def get_family(name: str) -> ModelFamily:
    try:
        return FAMILIES[name]
    except KeyError:
        raise KeyError(f"Unknown model family '{name}', expected one of {sorted(FAMILIES)}") from None


@dataclass
class FitOutcome:
    model: ClassifierMixin
    warnings: list[str] = field(default_factory=list)


def fit_model(
    family: ModelFamily,
    X: pd.DataFrame,
    y: np.ndarray,
    params: dict[str, Any],
    random_state: int | None = None,
    **options: Any,
) -> FitOutcome:
    """Build and fit one configuration, recording convergence warnings.

    Deprecation notices raised during the fit are re-issued to the caller
    instead of being attached to the configuration."""
    model = family.build(
        params,
        n_samples=X.shape[0],
        n_features=X.shape[1],
        random_state=random_state,
        **options,
    )
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("ignore")
        warnings.simplefilter("always", ConvergenceWarning)
        warnings.simplefilter("always", FutureWarning)
        warnings.simplefilter("always", DeprecationWarning)
        model.fit(X, y)

    messages = []
    for w in caught:
        if issubclass(w.category, ConvergenceWarning):
            messages.append(str(w.message))
        else:
            warnings.warn_explicit(w.message, w.category, w.filename, w.lineno)
    return FitOutcome(model=model, warnings=list(dict.fromkeys(messages)))


def predict_proba(model: ClassifierMixin, X: pd.DataFrame) -> np.ndarray:
    """Probability of the positive class (label 1)."""
    classes = list(model.classes_)
    return model.predict_proba(X)[:, classes.index(1)]
