"""04: split -> down-sample -> preprocess -> binomial GLM -> held-out evaluation (ROC, calibration, ORs)"""
import os
import sys

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from utils.paths import get_raw_path, get_main_figure_dir, get_main_table_dir, ensure_dirs
from utils.logger import log as _log, log_header
from utils.data_loader import load_analysis_cohort, prepare_modeling_cohort
from utils.outcome_utils import recode_outcome
from utils.split_utils import stratified_split, downsample_majority
from utils.preprocessing import ClinicalPreprocessor
from utils.modeling import fit_logistic_model
from utils.evaluation import (
    predict_test, classification_metrics, confusion_table, roc_analysis,
    auc_bootstrap_ci, brier_score, calibration_table,
)
from utils.exceptions import DataLoadError, ModelFitError
from utils.feature_formatter import FeatureFormatter
from utils.plot_utils import PlotUtils
from utils.plot_config import (
    apply_medical_style, save_fig_medical, FIG_WIDTH_DOUBLE, FOREST_FIGSIZE, PALETTE_MAIN,
    COLOR_REF_LINE, LABEL_FONT, TITLE_FONT, TICK_FONT, LEGEND_FONT,
    OR_POINT_COLOR, OR_CI_COLOR, OR_REF_LINE_COLOR, LOG_OR_TICKS, CAPSIZE,
)
from utils.study_config import (
    OUTCOME, PREDICTORS, POSITIVE_CLASS, SPLIT_SEED, RESAMPLE_SEED, TEST_SIZE, N_BOOTSTRAPS,
)

INPUT_PATH = get_raw_path()
FIGURE_DIR = get_main_figure_dir()
TABLE_DIR = get_main_table_dir()


def _class_counts(y) -> str:
    counts = pd.Series(y).value_counts().sort_index()
    return ", ".join(f"{k}={v}" for k, v in counts.items())


def run_model_pipeline(df: pd.DataFrame, split_seed: int = SPLIT_SEED, resample_seed: int = RESAMPLE_SEED,
                       test_size: float = TEST_SIZE, n_bootstraps: int = N_BOOTSTRAPS) -> dict:
    """
    Full evaluated pipeline on a selected cohort (15 columns, death14 as 0/1).
    Everything learned (down-sampling, preprocessing, coefficients) comes from the training split only.
    """
    cohort = recode_outcome(prepare_modeling_cohort(df))
    _log(f"Modelling cohort: N={len(cohort)} ({_class_counts(cohort[OUTCOME])})", "INFO")

    train, test = stratified_split(cohort, test_size=test_size, seed=split_seed)
    _log(f"Split: train N={len(train)} ({_class_counts(train[OUTCOME])}), "
         f"test N={len(test)} ({_class_counts(test[OUTCOME])}), seed={split_seed}", "OK")

    train_bal = downsample_majority(train, seed=resample_seed)
    _log(f"Down-sampled train: N={len(train_bal)} ({_class_counts(train_bal[OUTCOME])})", "OK")

    preprocessor = ClinicalPreprocessor().fit(train_bal[PREDICTORS])
    if preprocessor.dropped_correlated_:
        _log(f"Dropped (|r| > {preprocessor.corr_cutoff}): {', '.join(preprocessor.dropped_correlated_)}", "WARN")
    if preprocessor.dropped_nzv_:
        _log(f"Dropped (near-zero variance): {', '.join(preprocessor.dropped_nzv_)}", "WARN")
    X_train = preprocessor.transform(train_bal[PREDICTORS])
    X_test = preprocessor.transform(test[PREDICTORS])
    _log(f"Model features ({X_train.shape[1]}): {', '.join(X_train.columns)}", "INFO")

    model = fit_logistic_model(X_train, train_bal[OUTCOME], positive_class=POSITIVE_CLASS)

    predictions = predict_test(model, X_test)
    truth = test[OUTCOME].astype(str).to_numpy()
    prob = predictions['predicted_probability'].to_numpy()
    metrics = classification_metrics(truth, predictions['predicted_class'], positive=POSITIVE_CLASS)
    roc_df, auc = roc_analysis(truth, prob, positive=POSITIVE_CLASS)
    auc_lo, auc_hi = auc_bootstrap_ci(truth, prob, positive=POSITIVE_CLASS, n_bootstraps=n_bootstraps)
    metrics.update({
        'auroc': auc,
        'auroc_ci_lower': auc_lo,
        'auroc_ci_upper': auc_hi,
        'brier': brier_score(truth, prob, positive=POSITIVE_CLASS),
    })
    predictions['observed_class'] = pd.Categorical(truth, categories=test[OUTCOME].cat.categories)

    return {
        'train': train,
        'test': test,
        'train_balanced': train_bal,
        'preprocessor': preprocessor,
        'model': model,
        'predictions': predictions,
        'metrics': metrics,
        'roc': roc_df,
        'calibration': calibration_table(truth, prob, positive=POSITIVE_CLASS),
        'odds_ratios': model.odds_ratio_table(),
    }


def log_metrics(metrics: dict) -> None:
    print(confusion_table(metrics).to_string())
    _log(f"{'Metric':<22} | Value", "INFO")
    _log("-" * 40, "INFO")
    _log(f"{'Accuracy (95% CI)':<22} | {metrics['accuracy']:.3f} "
         f"({metrics['accuracy_ci_lower']:.3f}-{metrics['accuracy_ci_upper']:.3f})", "INFO")
    for key in ['no_information_rate', 'kappa', 'sensitivity', 'specificity', 'ppv', 'npv',
                'prevalence', 'balanced_accuracy', 'f1', 'brier']:
        _log(f"{key:<22} | {metrics[key]:.3f}", "INFO")
    _log(f"{'AUROC (95% CI)':<22} | {metrics['auroc']:.3f} "
         f"({metrics['auroc_ci_lower']:.3f}-{metrics['auroc_ci_upper']:.3f})", "OK")


def plot_roc(roc_df: pd.DataFrame, metrics: dict, save_base: str) -> str:
    apply_medical_style()
    fig, ax = plt.subplots(figsize=(FIG_WIDTH_DOUBLE * 0.75, 5.4), dpi=300, facecolor='white')
    label = (f"Logistic regression (AUC = {metrics['auroc']:.3f}, "
             f"95% CI: {metrics['auroc_ci_lower']:.3f}-{metrics['auroc_ci_upper']:.3f})")
    ax.plot(roc_df['fpr'], roc_df['tpr'], lw=2.5, color=PALETTE_MAIN[3], label=label)
    ax.plot([0, 1], [0, 1], color=COLOR_REF_LINE, linestyle='--', lw=1.2, alpha=0.8)
    ax.set_xlim([-0.01, 1.01])
    ax.set_ylim([-0.01, 1.01])
    ax.set_xlabel("False Positive Rate (1 - Specificity)", fontsize=LABEL_FONT, labelpad=10)
    ax.set_ylabel("True Positive Rate (Sensitivity)", fontsize=LABEL_FONT, labelpad=10)
    ax.set_title(f"ROC Analysis: P({metrics['positive_class']}) on held-out test set",
                 fontsize=TITLE_FONT, fontweight='bold', pad=15)
    ax.legend(loc="lower right", fontsize=LEGEND_FONT, frameon=False)
    fig.tight_layout()
    png = save_fig_medical(save_base)
    plt.close(fig)
    return png


def plot_calibration(cal: pd.DataFrame, positive: str, save_base: str) -> str:
    """Predicted vs observed per rounded-probability bin; marker area ~ bin count."""
    apply_medical_style()
    fig, ax = plt.subplots(figsize=(FIG_WIDTH_DOUBLE * 0.75, 5.4), dpi=300, facecolor='white')
    sns.scatterplot(data=cal, x='mean_predicted', y='observed_frequency', size='n', sizes=(20, 200),
                    color=PALETTE_MAIN[0], alpha=0.6, edgecolor='white', linewidth=0.5, ax=ax)
    ax.plot([0, 1], [0, 1], color=COLOR_REF_LINE, linestyle=':', lw=1.5, label='Perfectly Calibrated')
    ax.set_xlim([-0.02, 1.02])
    ax.set_ylim([-0.02, 1.02])
    ax.set_xlabel(f"Predicted Probability ({positive})", fontsize=LABEL_FONT, labelpad=10)
    ax.set_ylabel(f"Observed Frequency ({positive})", fontsize=LABEL_FONT, labelpad=10)
    ax.set_title("Calibration Analysis", fontsize=TITLE_FONT, fontweight='bold', pad=15)
    ax.legend(loc="upper left", fontsize=LEGEND_FONT, frameon=False, title="Bin n")
    sns.despine(ax=ax)
    fig.tight_layout()
    png = save_fig_medical(save_base)
    plt.close(fig)
    return png


def plot_forest(or_df: pd.DataFrame, save_base: str) -> str:
    """Log-scale OR forest plot, intercept excluded."""
    apply_medical_style()
    utils = PlotUtils(FeatureFormatter())
    df = or_df[or_df['term'] != 'const'].sort_values('OR').reset_index(drop=True)
    labels = utils.format_feature_labels(df['term'].tolist())
    left_err, right_err = utils.compute_or_error(df)
    y_pos = np.arange(len(df))

    fig, ax = plt.subplots(figsize=FOREST_FIGSIZE, dpi=300, facecolor='white')
    ax.errorbar(df['OR'], y_pos, xerr=[left_err, right_err], fmt='o', color=OR_POINT_COLOR,
                ecolor=OR_CI_COLOR, elinewidth=1.2, capsize=CAPSIZE, ms=5)
    ax.axvline(1.0, color=OR_REF_LINE_COLOR, linestyle='--', lw=1.2)
    ax.set_xscale('log')
    ax.set_xlim(*utils.compute_or_xlim(df))
    xmin, xmax = ax.get_xlim()
    ticks = [t for t in LOG_OR_TICKS if xmin <= t <= xmax]
    if ticks:
        ax.set_xticks(ticks)
        ax.set_xticklabels([f"{t:g}" for t in ticks])
    ax.set_yticks(y_pos)
    ax.set_yticklabels(labels, fontsize=TICK_FONT - 1)
    for y, (_, r) in zip(y_pos, df.iterrows()):
        ax.text(1.02, y, utils.format_or_ci(r['OR'], r['OR_Lower'], r['OR_Upper']),
                transform=ax.get_yaxis_transform(), va='center', fontsize=TICK_FONT - 2)
    ax.set_xlabel(f"Odds ratio for P({POSITIVE_CLASS}) per unit (95% CI)", fontsize=LABEL_FONT)
    ax.set_title("Logistic Regression Coefficients", fontsize=TITLE_FONT, fontweight='bold', pad=15)
    ax.grid(axis='x', color='whitesmoke')
    fig.tight_layout()
    png = save_fig_medical(save_base)
    plt.close(fig)
    return png


def save_outputs(results: dict, figure_dir: str = FIGURE_DIR, table_dir: str = TABLE_DIR) -> dict:
    ensure_dirs(figure_dir, table_dir)
    metrics = results['metrics']
    paths = {
        'metrics': os.path.join(table_dir, "Table2_test_metrics.csv"),
        'odds_ratios': os.path.join(table_dir, "Table3_odds_ratios.csv"),
        'calibration': os.path.join(table_dir, "Table4_calibration_bins.csv"),
        'predictions': os.path.join(table_dir, "test_predictions.csv"),
    }
    pd.DataFrame([metrics]).to_csv(paths['metrics'], index=False)
    results['odds_ratios'].to_csv(paths['odds_ratios'], index=False)
    results['calibration'].to_csv(paths['calibration'], index=False)
    results['predictions'].to_csv(paths['predictions'], index=False)

    paths['roc'] = plot_roc(results['roc'], metrics, os.path.join(figure_dir, "Fig1_ROC"))
    paths['calibration_fig'] = plot_calibration(results['calibration'], metrics['positive_class'],
                                                os.path.join(figure_dir, "Fig2_Calibration"))
    paths['forest'] = plot_forest(results['odds_ratios'], os.path.join(figure_dir, "Fig3_OR_forest"))
    return paths


def run_model_training_flow(input_path=INPUT_PATH):
    log_header("🚀 04_model_training_main: binomial GLM training and held-out evaluation")
    _log(f"Input: {os.path.abspath(input_path)}", "INFO")
    try:
        df = load_analysis_cohort(input_path)
    except DataLoadError as e:
        _log(f"Data load failed: {e}", "ERR")
        raise
    try:
        results = run_model_pipeline(df)
    except ModelFitError as e:
        _log(f"Model fit failed: {e}", "ERR")
        raise

    or_df = results['odds_ratios']
    _log("Coefficients (P(alive)):", "INFO")
    for _, r in or_df.iterrows():
        _log(f"  {r['term']:<18} beta={r['coef']:>8.4f}  OR={r['OR']:.3f} "
             f"({r['OR_Lower']:.3f}-{r['OR_Upper']:.3f})  p={r['p_value']:.4f}", "INFO")
    log_metrics(results['metrics'])

    paths = save_outputs(results)
    for name, path in paths.items():
        _log(f"{name:<16}: {os.path.abspath(path)}", "OK")
    _log("All steps complete.", "OK")
    return results


if __name__ == "__main__":
    run_model_training_flow()
