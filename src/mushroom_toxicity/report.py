from __future__ import annotations

import math
import os

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from .cleaner import CleaningReport
from .evaluator import EvaluationResult
from .models import get_family
from .selector import show_best
from .tuner import TuneResult
from .utils.logger import get_logger


def df_to_markdown(data: pd.DataFrame, index: bool = False) -> str:
    """Render a small DataFrame as a Markdown table; list cells become counts."""
    data = data.copy()
    for col in data.columns:
        if data[col].map(lambda v: isinstance(v, list)).any():
            data[col] = data[col].map(len)
    return data.to_markdown(index=index, floatfmt=".4g")


def label_proportions(df: pd.DataFrame, target_col: str) -> pd.Series:
    return df[target_col].value_counts(normalize=True).sort_index()


class ReportWriter:
    """Renders figures and the Markdown report into ``report_dir``."""

    def __init__(self, report_dir: str = "artifacts/report", dpi: int = 120):
        self.report_dir = report_dir
        self.dpi = dpi
        self.logger = get_logger(self.__class__.__name__)
        os.makedirs(self.report_dir, exist_ok=True)

    def _save(self, fig, filename: str) -> str:
        path = os.path.join(self.report_dir, filename)
        fig.tight_layout()
        fig.savefig(path, dpi=self.dpi)
        plt.close(fig)
        self.logger.info(f"Saved figure: {path}")
        return path

    def plot_attribute_proportions(
        self, df: pd.DataFrame, target_col: str, filename: str = "attribute_proportions.png"
    ) -> str:
        """Stacked bars of label share within each category of every attribute."""
        attributes = [c for c in df.columns if c != target_col]
        n_cols = 4
        n_rows = max(1, math.ceil(len(attributes) / n_cols))
        fig, axes = plt.subplots(n_rows, n_cols, figsize=(4 * n_cols, 3 * n_rows), squeeze=False)

        plot_df = df.astype(str)
        for ax, col in zip(axes.flat, attributes):
            sns.histplot(
                data=plot_df,
                x=col,
                hue=target_col,
                multiple="fill",
                stat="proportion",
                shrink=0.8,
                discrete=True,
                legend=ax is axes.flat[0],
                ax=ax,
            )
            ax.set_title(col)
            ax.set_xlabel("")
            ax.set_ylabel("share")
        for ax in list(axes.flat)[len(attributes):]:
            ax.set_visible(False)

        return self._save(fig, filename)

    def plot_roc_curves(self, results: list[EvaluationResult], filename: str = "roc_curves.png") -> str:
        fig, ax = plt.subplots(figsize=(6, 5))
        for result in results:
            label = f"{get_family(result.family).label} (AUC={result.roc_auc:.3f})"
            ax.plot(result.fpr, result.tpr, label=label)
        ax.plot([0, 1], [0, 1], linestyle="--", color="grey")
        ax.set_xlabel("False positive rate")
        ax.set_ylabel("True positive rate")
        ax.set_title("ROC curves on the test set")
        ax.legend(loc="lower right")
        return self._save(fig, filename)

    def write(
        self,
        n_loaded: int,
        cleaning: CleaningReport,
        train: pd.DataFrame,
        test: pd.DataFrame,
        target_col: str,
        n_splits: int,
        tune_results: dict[str, TuneResult],
        evaluations: list[EvaluationResult],
        figures: dict[str, str],
        filename: str = "report.md",
    ) -> str:
        md: list[str] = []
        md.append("# Mushroom toxicity: model comparison\n")

        md.append("## Data")
        md.append(
            f"{n_loaded:,} sampled records. Attributes removed during cleaning "
            f"(rows are never dropped):"
        )
        for col in cleaning.dropped_constant:
            md.append(f"- `{col}`: a single observed category")
        for col, fraction in cleaning.dropped_missing.items():
            md.append(f"- `{col}`: {fraction:.1%} missing")
        if not cleaning.dropped:
            md.append("- none")
        n_attributes = len([c for c in train.columns if c != target_col])
        md.append(f"\n{n_attributes} predictor attributes remain.")
        if "attribute_proportions" in figures:
            md.append(f"\n![Label share per category]({os.path.basename(figures['attribute_proportions'])})")

        md.append("\n## Split")
        proportions = pd.DataFrame(
            {
                "train": label_proportions(train, target_col),
                "test": label_proportions(test, target_col),
            }
        )
        md.append(f"Stratified split: {len(train):,} train / {len(test):,} test rows, "
                  f"{n_splits}-fold stratified cross-validation on the training rows.\n")
        md.append(df_to_markdown(proportions, index=True))

        md.append("\n## Cross-validated tuning (ROC-AUC)")
        for name, result in tune_results.items():
            family = get_family(name)
            n_configs = len(result.summary)
            md.append(f"\n### {family.label}")
            md.append(f"{n_configs} configuration(s) evaluated ({result.design} design).\n")
            md.append(df_to_markdown(show_best(result, 5)))

        md.append("\n## Test set")
        table = pd.DataFrame(
            [
                {
                    "model": get_family(r.family).label,
                    "cv_roc_auc": r.cv_mean,
                    "test_roc_auc": r.roc_auc,
                    "accuracy": r.accuracy,
                    "sensitivity": r.sensitivity,
                    "specificity": r.specificity,
                }
                for r in evaluations
            ]
        )
        md.append(df_to_markdown(table))
        if "roc_curves" in figures:
            md.append(f"\n![ROC curves]({os.path.basename(figures['roc_curves'])})")
        for r in evaluations:
            if r.figure_path:
                md.append(f"\n![{r.family} confusion matrix]({os.path.basename(r.figure_path)})")

        md.append("\n## Diagnostics")
        flagged = [r for r in evaluations if r.warnings]
        if not flagged:
            md.append("No convergence or leakage warnings.")
        for r in flagged:
            md.append(f"\n**{get_family(r.family).label}** (selected: `{r.params}`)")
            for message in r.warnings:
                md.append(f"- {message}")

        path = os.path.join(self.report_dir, filename)
        with open(path, "w") as f:
            f.write("\n".join(md) + "\n")
        self.logger.info(f"Saved report: {path}")
        return path
