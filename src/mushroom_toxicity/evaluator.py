import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.metrics import accuracy_score, confusion_matrix, roc_auc_score, roc_curve

from .models import fit_model, get_family, predict_proba
from .recipe import Recipe
from .selector import Selection
from .utils.logger import get_logger

CLASS_NAMES = ["Edible", "Poisonous"]


@dataclass
class EvaluationResult:
    """Held-out performance of one selected configuration."""
    family: str
    params: Dict[str, Any]
    cv_mean: float
    cv_std_err: float
    roc_auc: float
    accuracy: float
    sensitivity: float
    specificity: float
    confusion: np.ndarray
    fpr: np.ndarray
    tpr: np.ndarray
    figure_path: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family,
            "params": self.params,
            "cv_roc_auc": self.cv_mean,
            "cv_std_err": self.cv_std_err,
            "test_roc_auc": self.roc_auc,
            "accuracy": self.accuracy,
            "sensitivity": self.sensitivity,
            "specificity": self.specificity,
            "confusion_matrix": self.confusion.tolist(),
            "warnings": self.warnings,
        }


class Evaluator:
    """Refit a selected configuration on the training rows and score the test rows."""

    def __init__(
        self,
        figures_dir: str = "artifacts",
        threshold: float = 0.5,
        leakage_tolerance: float = 0.05,
        random_state: Optional[int] = None,
        verbose: bool = True,
    ):
        self.figures_dir = figures_dir
        self.threshold = threshold
        self.leakage_tolerance = leakage_tolerance
        self.random_state = random_state
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    def _plot_confusion_matrix(self, cm: np.ndarray, family: str, title: str) -> str:
        """Plot confusion matrix counts and save to figures_dir. Returns saved path."""
        plt.figure(figsize=(5, 4))
        sns.heatmap(
            cm,
            annot=True,
            fmt="d",
            cmap="Blues",
            cbar=False,
            xticklabels=CLASS_NAMES,
            yticklabels=CLASS_NAMES,
        )
        plt.xlabel("Predicted")
        plt.ylabel("Actual")
        plt.title(f"{title} (threshold {self.threshold:.2f})")

        os.makedirs(self.figures_dir, exist_ok=True)
        path = os.path.join(self.figures_dir, f"confusion_matrix_{family}.png")

        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close()

        if self.verbose:
            self.logger.info(f"Saved confusion matrix: {path}")

        return path

    def evaluate(
        self,
        selection: Selection,
        X_train_df: pd.DataFrame,
        y_train: np.ndarray,
        X_test_df: pd.DataFrame,
        y_test: np.ndarray,
        recipe_params: Optional[Dict[str, Any]] = None,
        model_options: Optional[Dict[str, Any]] = None,
    ) -> EvaluationResult:
        family = get_family(selection.family)
        y_train = np.asarray(y_train).astype(int)
        y_test = np.asarray(y_test).astype(int)

        # recipe statistics come from the training rows only
        recipe = Recipe(**(recipe_params or {}))
        X_train = recipe.fit_transform(X_train_df)
        X_test = recipe.transform(X_test_df)

        outcome = fit_model(
            family, X_train, y_train, selection.params,
            random_state=self.random_state, **(model_options or {}),
        )
        y_proba = predict_proba(outcome.model, X_test)
        y_pred = (y_proba >= self.threshold).astype(int)

        cm = confusion_matrix(y_test, y_pred, labels=[0, 1])
        tn, fp, fn, tp = cm.ravel()
        fpr, tpr, _ = roc_curve(y_test, y_proba)
        auc = float(roc_auc_score(y_test, y_proba))

        warnings = list(dict.fromkeys(selection.warnings + outcome.warnings))
        for message in warnings:
            self.logger.warning(f"{family.name}: {message}")

        gap = selection.mean - auc
        if gap > self.leakage_tolerance:
            message = (
                f"CV ROC-AUC {selection.mean:.4f} exceeds test ROC-AUC {auc:.4f} by "
                f"{gap:.4f}; check the resampling for leakage"
            )
            self.logger.warning(f"{family.name}: {message}")
            warnings.append(message)

        path = self._plot_confusion_matrix(cm, family.name, family.label)

        result = EvaluationResult(
            family=family.name,
            params=dict(selection.params),
            cv_mean=selection.mean,
            cv_std_err=selection.std_err,
            roc_auc=auc,
            accuracy=float(accuracy_score(y_test, y_pred)),
            sensitivity=float(tp / max(tp + fn, 1)),
            specificity=float(tn / max(tn + fp, 1)),
            confusion=cm,
            fpr=fpr,
            tpr=tpr,
            figure_path=path,
            warnings=warnings,
        )
        if self.verbose:
            self.logger.info(
                f"{family.name}: test ROC-AUC {auc:.4f}, accuracy {result.accuracy:.4f}"
            )
        return result

    def save_metrics(self, results: List[EvaluationResult], metrics_path: str) -> None:
        """Write the per-family metrics as JSON."""
        directory = os.path.dirname(metrics_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(metrics_path, "w") as f:
            json.dump([r.as_dict() for r in results], f, indent=4)

        if self.verbose:
            self.logger.info(f"Saved metrics: {metrics_path}")
