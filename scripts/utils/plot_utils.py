"""Plot helpers shared by the exploratory grids and the forest plot"""
import math

import numpy as np
import pandas as pd


class PlotUtils:
    """Label formatting, OR error bars, panel grids"""

    def __init__(self, formatter):
        self.formatter = formatter

    def format_feature_labels(self, feature_list, with_unit=True):
        return self.formatter.format_features(feature_list, with_unit=with_unit)

    @staticmethod
    def format_or_ci(or_val, lower, upper):
        return f"{or_val:.2f} ({lower:.2f}–{upper:.2f})"

    def compute_or_error(self, or_df):
        """OR error bars, clipped at zero for matplotlib xerr"""
        left_err = np.maximum(0, or_df['OR'] - or_df['OR_Lower'])
        right_err = np.maximum(0, or_df['OR_Upper'] - or_df['OR'])
        return left_err.values, right_err.values

    def compute_or_xlim(self, or_df):
        """x range for a log-scale forest plot"""
        vals = pd.concat([or_df['OR_Lower'], or_df['OR_Upper']])
        vmin, vmax = vals.min(), vals.max()
        margin = (np.log10(vmax) - np.log10(max(vmin, 0.01))) * 0.15
        return 10 ** (np.log10(max(vmin, 0.01)) - margin), 10 ** (np.log10(vmax) + margin)

    @staticmethod
    def grid_shape(n_panels, ncols):
        ncols = max(1, min(ncols, n_panels))
        return math.ceil(n_panels / ncols), ncols


def spike_heights(values, bins=30, max_height=0.15, value_range=None):
    """Histogram of `values` as (bin centres, spike heights scaled so the tallest is max_height)."""
    values = np.asarray(values, dtype=float)
    counts, edges = np.histogram(values, bins=bins, range=value_range)
    centres = (edges[:-1] + edges[1:]) / 2
    top = counts.max() if counts.size and counts.max() > 0 else 1
    return centres, counts / top * max_height
