from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
import optuna
import pandas as pd
from joblib import Parallel, delayed
from sklearn.metrics import roc_auc_score

from .models import ModelFamily, fit_model, predict_proba
from .recipe import Recipe
from .utils.logger import get_logger

FIT_ERRORS = (ValueError, ArithmeticError, np.linalg.LinAlgError)


@dataclass
class EncodedFold:
    fold: int
    X_train: pd.DataFrame
    y_train: np.ndarray
    X_val: pd.DataFrame
    y_val: np.ndarray


@dataclass
class TuneResult:
    """Per-fold metrics and per-configuration summary for one model family."""
    family: str
    metrics: pd.DataFrame
    summary: pd.DataFrame
    params: dict[int, dict[str, Any]] = field(default_factory=dict)
    design: str = "grid"


def _score_cell(
    family: ModelFamily,
    config_id: int,
    params: dict[str, Any],
    encoded: EncodedFold,
    random_state: Optional[int],
    options: dict[str, Any],
) -> dict[str, Any]:
    """Fit one configuration on one fold and score it on the validation rows."""
    record: dict[str, Any] = {
        "config_id": config_id,
        "fold": encoded.fold,
        "roc_auc": float("nan"),
        "warnings": [],
        "error": None,
    }
    try:
        outcome = fit_model(
            family, encoded.X_train, encoded.y_train, params,
            random_state=random_state, **options,
        )
        proba = predict_proba(outcome.model, encoded.X_val)
        record["roc_auc"] = float(roc_auc_score(encoded.y_val, proba))
        record["warnings"] = outcome.warnings
    except FIT_ERRORS as exc:
        record["error"] = f"{type(exc).__name__}: {exc}"
    return record


def summarize(
    records: list[dict[str, Any]],
    params: dict[int, dict[str, Any]],
    family: ModelFamily,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Aggregate fold records into mean / standard error per configuration."""
    metrics = (
        pd.DataFrame(records, columns=["config_id", "fold", "roc_auc", "warnings", "error"])
        .sort_values(["config_id", "fold"])
        .reset_index(drop=True)
    )

    rows = []
    for config_id, group in metrics.groupby("config_id", sort=True):
        scores = group["roc_auc"].to_numpy(dtype=float)
        finite = scores[np.isfinite(scores)]
        n = len(finite)
        diagnostics = [w for ws in group["warnings"] for w in ws]
        diagnostics += [e for e in group["error"] if e]

        row = {"config_id": int(config_id)}
        row.update(params[config_id])
        row.update(
            {
                "mean": float(finite.mean()) if n else float("nan"),
                "std_err": float(finite.std(ddof=1) / np.sqrt(n)) if n > 1 else float("nan"),
                "n_folds": n,
                "n_failed": int(len(scores) - n),
                "warnings": list(dict.fromkeys(diagnostics)),
            }
        )
        rows.append(row)

    columns = ["config_id"] + [hp.name for hp in family.hyperparameters]
    columns += ["mean", "std_err", "n_folds", "n_failed", "warnings"]
    return metrics, pd.DataFrame(rows, columns=columns)


class GridTuner:
    """
    Cross-validated tuning of one model family scored by ROC-AUC.

    The recipe is fit on each fold's training rows only and applied to its
    validation rows; encoded folds are shared by every configuration.

    Designs:
      - grid: every configuration of the regular grid
      - tpe:  ``n_trials`` configurations of the same grid picked by Optuna's
              seeded TPE sampler
    """

    DESIGNS = ("grid", "tpe")

    def __init__(
        self,
        levels: int = 10,
        design: str = "grid",
        n_trials: Optional[int] = None,
        n_jobs: int = 1,
        random_state: int = 42,
        model_options: Optional[dict[str, Any]] = None,
        recipe_params: Optional[dict[str, Any]] = None,
    ):
        if design not in self.DESIGNS:
            raise ValueError(f"Unknown tuning design '{design}', expected one of {self.DESIGNS}")
        if design == "tpe" and not n_trials:
            raise ValueError("design 'tpe' needs n_trials")
        self.levels = levels
        self.design = design
        self.n_trials = n_trials
        self.n_jobs = n_jobs
        self.random_state = random_state
        self.model_options = dict(model_options or {})
        self.recipe_params = dict(recipe_params or {})
        self.logger = get_logger(self.__class__.__name__)

    def encode_folds(
        self,
        X_df: pd.DataFrame,
        y: np.ndarray,
        folds: list[tuple[np.ndarray, np.ndarray]],
    ) -> list[EncodedFold]:
        y = np.asarray(y).astype(int)
        encoded = []
        for fold, (train_idx, val_idx) in enumerate(folds, start=1):
            recipe = Recipe(**self.recipe_params)
            X_train = recipe.fit_transform(X_df.iloc[train_idx].reset_index(drop=True))
            X_val = recipe.transform(X_df.iloc[val_idx].reset_index(drop=True))
            encoded.append(EncodedFold(fold, X_train, y[train_idx], X_val, y[val_idx]))
        return encoded

    def _run(
        self,
        family: ModelFamily,
        configs: list[tuple[int, dict[str, Any]]],
        encoded: list[EncodedFold],
    ) -> list[dict[str, Any]]:
        return Parallel(n_jobs=self.n_jobs)(
            delayed(_score_cell)(
                family, config_id, params, fold, self.random_state, self.model_options
            )
            for config_id, params in configs
            for fold in encoded
        )

    def _tune_tpe(
        self,
        family: ModelFamily,
        grid: list[dict[str, Any]],
        encoded: list[EncodedFold],
    ) -> dict[int, list[dict[str, Any]]]:
        names = [hp.name for hp in family.hyperparameters]
        axes = {hp.name: hp.values(self.levels) for hp in family.hyperparameters}
        index = {tuple(p[n] for n in names): i for i, p in enumerate(grid)}
        evaluated: dict[int, list[dict[str, Any]]] = {}

        def objective(trial: optuna.Trial) -> float:
            params = {name: trial.suggest_categorical(name, values) for name, values in axes.items()}
            config_id = index[tuple(params[n] for n in names)]
            if config_id not in evaluated:
                evaluated[config_id] = self._run(family, [(config_id, grid[config_id])], encoded)
            scores = np.array([r["roc_auc"] for r in evaluated[config_id]], dtype=float)
            scores = scores[np.isfinite(scores)]
            return float(scores.mean()) if len(scores) else float("nan")

        optuna.logging.set_verbosity(optuna.logging.WARNING)
        sampler = optuna.samplers.TPESampler(seed=self.random_state)
        study = optuna.create_study(direction="maximize", sampler=sampler)
        study.optimize(objective, n_trials=self.n_trials)
        return evaluated

    def tune(
        self,
        family: ModelFamily,
        X_df: pd.DataFrame,
        y: np.ndarray,
        folds: list[tuple[np.ndarray, np.ndarray]],
    ) -> TuneResult:
        grid = family.grid(self.levels)
        design = self.design if family.hyperparameters else "grid"
        encoded = self.encode_folds(X_df, y, folds)

        if design == "tpe" and self.n_trials < len(grid):
            self.logger.info(
                f"Tuning {family.name}: {self.n_trials} TPE trials over "
                f"{len(grid)} configurations x {len(folds)} folds"
            )
            evaluated = self._tune_tpe(family, grid, encoded)
            records = [r for config_id in sorted(evaluated) for r in evaluated[config_id]]
        else:
            design = "grid"
            self.logger.info(
                f"Tuning {family.name}: {len(grid)} configurations x {len(folds)} folds"
            )
            records = self._run(family, list(enumerate(grid)), encoded)

        params = {i: grid[i] for i in {r["config_id"] for r in records}}
        metrics, summary = summarize(records, params, family)

        flagged = summary[summary["warnings"].map(len) > 0]
        if not flagged.empty:
            self.logger.warning(
                f"{family.name}: {len(flagged)} configuration(s) raised diagnostics, "
                f"e.g. {flagged['warnings'].iloc[0][0]}"
            )
        degraded = int((summary["n_failed"] > 0).sum())
        if degraded:
            self.logger.warning(f"{family.name}: {degraded} configuration(s) failed on some folds")

        best = summary["mean"].max()
        self.logger.info(f"{family.name}: best mean CV ROC-AUC {best:.4f}")
        return TuneResult(family=family.name, metrics=metrics, summary=summary, params=params, design=design)

