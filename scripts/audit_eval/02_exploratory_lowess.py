"""02: exploratory LOWESS + spike-histogram grid, one panel per numeric predictor vs death14"""
import os
import sys

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from statsmodels.nonparametric.smoothers_lowess import lowess

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from utils.paths import get_raw_path, get_supplementary_figure_dir, ensure_dirs
from utils.logger import log as _log, log_header
from utils.data_loader import load_analysis_cohort
from utils.outcome_utils import drop_missing_outcome
from utils.exceptions import DataLoadError
from utils.feature_formatter import FeatureFormatter
from utils.plot_utils import PlotUtils, spike_heights
from utils.plot_config import (
    apply_medical_style, save_fig_medical, GRID_NCOLS, GRID_PANEL_SIZE, PANEL_FONT,
    COLOR_DEAD, COLOR_ALIVE, COLOR_SMOOTH, LINE_WIDTH_THIN,
)
from utils.study_config import NUMERIC_PREDICTORS, OUTCOME, OUTCOME_LABEL

INPUT_PATH = get_raw_path()
FIG_DIR = get_supplementary_figure_dir("S1_exploratory")
LOWESS_FRAC = 2 / 3
JITTER = 0.03


def plot_predictor_panel(ax, x, y, label, rng):
    """Jittered scatter, LOWESS trend, spikes for died (from the top) and survived (from the bottom)."""
    ax.scatter(x, y + rng.uniform(-JITTER, JITTER, size=len(y)), s=4, alpha=0.25,
               color='#7F8C8D', linewidths=0, rasterized=True)
    smooth = lowess(y, x, frac=LOWESS_FRAC, return_sorted=True)
    ax.plot(smooth[:, 0], smooth[:, 1], color=COLOR_SMOOTH, lw=LINE_WIDTH_THIN + 0.3)

    value_range = (float(np.min(x)), float(np.max(x)))
    for outcome_val, base, sign, color in [(1, 1.0, -1, COLOR_DEAD), (0, 0.0, 1, COLOR_ALIVE)]:
        sub = x[y == outcome_val]
        if len(sub) == 0:
            continue
        centres, heights = spike_heights(sub, value_range=value_range)
        ax.vlines(centres, base, base + sign * heights, color=color, lw=1.0)

    ax.set_ylim(-0.1, 1.1)
    ax.set_xlabel(label, fontsize=PANEL_FONT)
    ax.tick_params(labelsize=PANEL_FONT - 1)
    ax.grid(False)


def plot_lowess_grid(df: pd.DataFrame, save_base: str, predictors=NUMERIC_PREDICTORS, seed: int = 0) -> str:
    """Grid figure saved as <save_base>.pdf/.png; returns the PNG path."""
    apply_medical_style()
    formatter = FeatureFormatter()
    utils = PlotUtils(formatter)
    labels = utils.format_feature_labels(predictors)
    nrows, ncols = utils.grid_shape(len(predictors), GRID_NCOLS)
    fig, axes = plt.subplots(nrows, ncols, figsize=(GRID_PANEL_SIZE[0] * ncols, GRID_PANEL_SIZE[1] * nrows),
                             squeeze=False, facecolor='white')
    rng = np.random.default_rng(seed)
    y_all = df[OUTCOME].astype(float)
    for ax, col, label in zip(axes.flat, predictors, labels):
        mask = df[col].notna() & y_all.notna()
        plot_predictor_panel(ax, df.loc[mask, col].to_numpy(dtype=float),
                             y_all[mask].to_numpy(dtype=float), label, rng)
    for ax in list(axes.flat)[len(predictors):]:
        ax.set_visible(False)
    for row in axes:
        row[0].set_ylabel(OUTCOME_LABEL, fontsize=PANEL_FONT)
    fig.suptitle(f"Predictor vs {OUTCOME_LABEL} (LOWESS, spikes: red = died, blue = survived)",
                 fontsize=PANEL_FONT + 2, fontweight='bold')
    fig.tight_layout()
    png = save_fig_medical(save_base)
    plt.close(fig)
    return png


def main(input_path=INPUT_PATH, fig_dir=FIG_DIR):
    log_header("🚀 02_exploratory_lowess: predictor-outcome smoothing (diagnostic)")
    _log(f"Input: {os.path.abspath(input_path)}", "INFO")
    ensure_dirs(fig_dir)
    try:
        df = drop_missing_outcome(load_analysis_cohort(input_path))
    except DataLoadError as e:
        _log(f"Data load failed: {e}", "ERR")
        raise
    png = plot_lowess_grid(df, os.path.join(fig_dir, "FigS1_lowess_grid"))
    _log(f"LOWESS grid: {png}", "OK")
    _log("Next: 03_spline_exploration.py", "INFO")


if __name__ == "__main__":
    main()
