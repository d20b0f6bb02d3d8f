"""03: exploratory restricted-cubic-spline model (4 knots) on the full cohort.
Diagnostic only: looks at dose-response shapes, never scored and not part of the evaluated model."""
import os
import sys

import pandas as pd
import matplotlib.pyplot as plt

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from utils.paths import get_raw_path, get_supplementary_figure_dir, get_supplementary_table_dir, ensure_dirs
from utils.logger import log as _log, log_header
from utils.data_loader import load_analysis_cohort, prepare_modeling_cohort
from utils.modeling import fit_spline_model, spline_partial_effect
from utils.exceptions import DataLoadError, ModelFitError
from utils.feature_formatter import FeatureFormatter
from utils.plot_utils import PlotUtils
from utils.plot_config import (
    apply_medical_style, save_fig_medical, GRID_NCOLS, GRID_PANEL_SIZE, PANEL_FONT,
    COLOR_DEAD, LINE_WIDTH_THIN,
)
from utils.study_config import NUMERIC_PREDICTORS, SPLINE_KNOTS, OUTCOME_LABEL

INPUT_PATH = get_raw_path()
FIG_DIR = get_supplementary_figure_dir("S2_spline_exploration")
TABLE_DIR = get_supplementary_table_dir()


def plot_partial_effects(result, df: pd.DataFrame, save_base: str, predictors=NUMERIC_PREDICTORS) -> str:
    apply_medical_style()
    utils = PlotUtils(FeatureFormatter())
    labels = utils.format_feature_labels(predictors)
    nrows, ncols = utils.grid_shape(len(predictors), GRID_NCOLS)
    fig, axes = plt.subplots(nrows, ncols, figsize=(GRID_PANEL_SIZE[0] * ncols, GRID_PANEL_SIZE[1] * nrows),
                             squeeze=False, facecolor='white')
    for ax, col, label in zip(axes.flat, predictors, labels):
        effect = spline_partial_effect(result, df, col)
        ax.fill_between(effect[col], effect['lower'], effect['upper'], color=COLOR_DEAD, alpha=0.15, lw=0)
        ax.plot(effect[col], effect['prob'], color=COLOR_DEAD, lw=LINE_WIDTH_THIN + 0.3)
        ax.set_xlabel(label, fontsize=PANEL_FONT)
        ax.tick_params(labelsize=PANEL_FONT - 1)
    for ax in list(axes.flat)[len(predictors):]:
        ax.set_visible(False)
    for row in axes:
        row[0].set_ylabel(f"P({OUTCOME_LABEL})", fontsize=PANEL_FONT)
    fig.suptitle(f"Exploratory RCS model ({SPLINE_KNOTS} knots), adjusted partial effects",
                 fontsize=PANEL_FONT + 2, fontweight='bold')
    fig.tight_layout()
    png = save_fig_medical(save_base)
    plt.close(fig)
    return png


def main(input_path=INPUT_PATH, fig_dir=FIG_DIR, table_dir=TABLE_DIR):
    log_header("🚀 03_spline_exploration: RCS dose-response shapes (exploratory, not evaluated)")
    _log(f"Input: {os.path.abspath(input_path)}", "INFO")
    ensure_dirs(fig_dir, table_dir)

    try:
        df = prepare_modeling_cohort(load_analysis_cohort(input_path))
        result = fit_spline_model(df)
    except DataLoadError as e:
        _log(f"Data load failed: {e}", "ERR")
        raise
    except ModelFitError as e:
        _log(f"Spline model fit failed: {e}", "ERR")
        raise
    _log(f"Spline GLM: N={int(result.nobs)}, terms={len(result.params)}, deviance={result.deviance:.1f}, "
         f"AIC={result.aic:.1f}", "INFO")

    terms = pd.DataFrame({
        'term': result.params.index,
        'coef': result.params.values,
        'std_err': result.bse.values,
        'p_value': result.pvalues.values,
    })
    terms_path = os.path.join(table_dir, "TableS2_spline_terms.csv")
    terms.to_csv(terms_path, index=False)
    _log(f"Spline terms: {os.path.abspath(terms_path)}", "OK")

    png = plot_partial_effects(result, df, os.path.join(fig_dir, "FigS2_spline_partial_effects"))
    _log(f"Partial effects: {png}", "OK")
    _log("Next: 04_model_training_main.py", "INFO")


if __name__ == "__main__":
    main()
