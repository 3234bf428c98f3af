"""
Mushroom Toxicity — Model Comparison Pipeline

This package loads the UCI mushroom records, cleans them and compares
four classifier families (logistic regression, elastic net, decision tree,
random forest) by cross-validated and held-out ROC-AUC.

Modules:
    config       — Load YAML configuration safely.
    schema       — Column layout of the raw file.
    data_loader  — Read, validate and sample the headerless file.
    cleaner      — Drop constant / mostly-missing attributes.
    splitter     — Stratified train/test split and folds.
    recipe       — One-hot, near-zero-variance filter, standardization.
    models       — Model families, grids and the fit/predict interface.
    tuner        — Grid x fold cross-validation with joblib / Optuna.
    selector     — Best configuration per family.
    evaluator    — Refit, test-set metrics, confusion matrix.
    cache        — joblib result cache.
    report       — Figures and Markdown report.
    pipeline     — Orchestrates all components.
    utils.logger — Unified timestamped console logger.
"""

from .config import Config
from .data_loader import DataLoader, fetch_dataset
from .cleaner import Cleaner, CleaningReport
from .splitter import stratified_folds, stratified_split
from .recipe import Recipe
from .models import FAMILIES, fit_model, get_family, predict_proba
from .tuner import GridTuner, TuneResult
from .selector import Selection, select_best, show_best
from .evaluator import EvaluationResult, Evaluator
from .cache import ResultCache
from .report import ReportWriter
from .pipeline import PipelineRunner

__all__ = [
    "Config",
    "DataLoader",
    "fetch_dataset",
    "Cleaner",
    "CleaningReport",
    "stratified_split",
    "stratified_folds",
    "Recipe",
    "FAMILIES",
    "fit_model",
    "get_family",
    "predict_proba",
    "GridTuner",
    "TuneResult",
    "Selection",
    "select_best",
    "show_best",
    "Evaluator",
    "EvaluationResult",
    "ResultCache",
    "ReportWriter",
    "PipelineRunner",
]
