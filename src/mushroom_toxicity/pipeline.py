import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from .cache import ResultCache
from .cleaner import Cleaner, CleaningReport
from .config import Config
from .data_loader import UCI_URL, DataLoader, fetch_dataset
from .evaluator import EvaluationResult, Evaluator
from .models import get_family
from .report import ReportWriter
from .selector import Selection, select_best
from .splitter import stratified_folds, stratified_split
from .tuner import GridTuner, TuneResult
from .utils.logger import get_logger

# keys of a model section that steer tuning rather than the estimator
TUNING_KEYS = ("levels", "design", "n_trials")


@dataclass
class PipelineResult:
    train: pd.DataFrame
    test: pd.DataFrame
    folds: List[tuple]
    cleaning: CleaningReport = field(default_factory=CleaningReport)
    tune_results: Dict[str, TuneResult] = field(default_factory=dict)
    selections: Dict[str, Selection] = field(default_factory=dict)
    evaluations: List[EvaluationResult] = field(default_factory=list)
    report_path: str = ""


class PipelineRunner:
    """End-to-end mushroom toxicity pipeline.

    Steps:
      1. Load the raw file and sample rows
      2. Clean attributes (zero variance, missing markers, unused levels)
      3. Stratified train/test split
      4. Stratified folds on the training rows
      5. Tune every configured model family with fold-wise recipes
      6. Select the best configuration per family
      7. Refit on the training rows, score the test rows
      8. Render figures, metrics and the report"""

    def __init__(self, config_path: str):
        self.config = Config.from_yaml(config_path)
        self.logger = get_logger(self.__class__.__name__)
        warnings.filterwarnings(
            "ignore",
            message="X does not have valid feature names",
            category=UserWarning,
            module="sklearn",
        )

    def _target(self, df: pd.DataFrame) -> np.ndarray:
        cfg = self.config
        positive = cfg.data.get("positive_label", "p")
        return (df[cfg.data["target_col"]].astype(str) == positive).astype(int).to_numpy()

    def _tune_family(
        self,
        name: str,
        section: Dict[str, Any],
        X_train: pd.DataFrame,
        y_train: np.ndarray,
        folds: List[tuple],
        cache: ResultCache,
    ) -> TuneResult:
        cfg = self.config
        family = get_family(name)
        model_options = {k: v for k, v in section.items() if k not in TUNING_KEYS}
        tuner = GridTuner(
            levels=section.get("levels", 10),
            design=section.get("design", "grid"),
            n_trials=section.get("n_trials"),
            n_jobs=cfg.validation.get("n_jobs", 1),
            random_state=cfg.seed,
            model_options=model_options,
            recipe_params=cfg.preprocessing,
        )
        settings = {
            "family": name,
            "section": section,
            "preprocessing": cfg.preprocessing,
            "seed": cfg.seed,
            "X": X_train,
            "y": y_train,
            "folds": folds,
        }
        return cache.load_or_compute(
            f"{name}_tuning", settings, lambda: tuner.tune(family, X_train, y_train, folds)
        )

    def run(self) -> PipelineResult:
        cfg = self.config
        target_col = cfg.data["target_col"]
        self.logger.info("Starting mushroom toxicity pipeline")

        # one generator for sampling, splitting and folds
        rng = np.random.RandomState(cfg.seed)

        if cfg.data.get("download", False):
            fetch_dataset(cfg.data["path"], cfg.data.get("url", UCI_URL))
        df = DataLoader(cfg.data["path"], cfg.data.get("sample_size")).load(rng)
        n_loaded = len(df)

        cleaner = Cleaner(
            missing_marker=cfg.cleaning.get("missing_marker", "?"),
            unknown_label=cfg.cleaning.get("unknown_label", "unknown"),
            max_missing_fraction=cfg.cleaning.get("max_missing_fraction", 0.3),
            target_col=target_col,
        )
        df = cleaner.clean(df)

        train, test = stratified_split(
            df, target_col, cfg.validation.get("train_fraction", 0.8), rng
        )
        n_splits = cfg.validation.get("n_splits", 10)
        folds = stratified_folds(train, target_col, n_splits, rng)

        X_train = train.drop(columns=[target_col])
        X_test = test.drop(columns=[target_col])
        y_train = self._target(train)
        y_test = self._target(test)

        result = PipelineResult(train=train, test=test, folds=folds, cleaning=cleaner.report_)
        cache = ResultCache(cfg.output["cache_dir"], enabled=cfg.output.get("use_cache", True))
        report_dir = cfg.output["report_dir"]
        evaluator = Evaluator(
            figures_dir=report_dir,
            threshold=cfg.validation.get("threshold", 0.5),
            leakage_tolerance=cfg.validation.get("leakage_tolerance", 0.05),
            random_state=cfg.seed,
        )

        for name, section in cfg.models.items():
            section = dict(section or {})
            tune_result = self._tune_family(name, section, X_train, y_train, folds, cache)
            selection = select_best(tune_result)
            self.logger.info(
                f"{name}: selected config {selection.config_id} {selection.params} "
                f"(CV ROC-AUC {selection.mean:.4f} +/- {selection.std_err:.4f})"
            )
            evaluation = evaluator.evaluate(
                selection,
                X_train,
                y_train,
                X_test,
                y_test,
                recipe_params=cfg.preprocessing,
                model_options={k: v for k, v in section.items() if k not in TUNING_KEYS},
            )
            result.tune_results[name] = tune_result
            result.selections[name] = selection
            result.evaluations.append(evaluation)

        evaluator.save_metrics(result.evaluations, cfg.output["metrics_path"])

        writer = ReportWriter(report_dir)
        figures = {
            "attribute_proportions": writer.plot_attribute_proportions(df, target_col),
            "roc_curves": writer.plot_roc_curves(result.evaluations),
        }
        result.report_path = writer.write(
            n_loaded=n_loaded,
            cleaning=cleaner.report_,
            train=train,
            test=test,
            target_col=target_col,
            n_splits=n_splits,
            tune_results=result.tune_results,
            evaluations=result.evaluations,
            figures=figures,
        )
        self.logger.info("Pipeline finished")
        return result
