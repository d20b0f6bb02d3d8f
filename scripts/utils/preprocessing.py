"""Train-fitted preprocessing: correlation filter -> centering -> near-zero-variance filter

All decisions (dropped columns, means) are learned in fit() and replayed unchanged by transform().
"""
import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.utils.validation import check_is_fitted

from .study_config import NUMERIC_PREDICTORS, CORR_CUTOFF, NZV_FREQ_CUT, NZV_UNIQUE_CUT


def find_correlated(df: pd.DataFrame, cutoff: float = CORR_CUTOFF) -> list:
    """
    Columns to drop so that no remaining pair has |r| > cutoff.

    Repeatedly takes the pair with the largest |r| and drops the member with the higher
    mean |r| against the other remaining columns; on a tie the later column is dropped.
    """
    corr = df.corr().abs()
    remaining = list(df.columns)
    dropped = []
    while len(remaining) > 1:
        sub = corr.loc[remaining, remaining].to_numpy(copy=True)
        np.fill_diagonal(sub, np.nan)
        if not np.any(sub > cutoff):
            break
        i, j = np.unravel_index(np.nanargmax(sub), sub.shape)
        i, j = min(i, j), max(i, j)
        mean_i = np.nanmean(sub[i])
        mean_j = np.nanmean(sub[j])
        victim = remaining[i] if mean_i > mean_j else remaining[j]
        dropped.append(victim)
        remaining.remove(victim)
    return dropped


def near_zero_var(df: pd.DataFrame, freq_cut: float = NZV_FREQ_CUT,
                  unique_cut: float = NZV_UNIQUE_CUT) -> list:
    """Columns with a single value, or a dominant value (freq ratio > freq_cut) and few distinct values."""
    flagged = []
    for col in df.columns:
        counts = df[col].dropna().value_counts()
        if len(counts) <= 1:
            flagged.append(col)
            continue
        freq_ratio = counts.iloc[0] / counts.iloc[1]
        percent_unique = 100.0 * len(counts) / counts.sum()
        if freq_ratio > freq_cut and percent_unique <= unique_cut:
            flagged.append(col)
    return flagged


class ClinicalPreprocessor(BaseEstimator, TransformerMixin):
    """
    Fitted preprocessing for the predictor table.

    Steps (fit on train only):
      1. drop one of each numeric pair with |r| > corr_cutoff (see find_correlated)
      2. subtract the train mean from the remaining numeric predictors
      3. drop near-zero-variance predictors
    """

    def __init__(self, numeric_cols=None, corr_cutoff=CORR_CUTOFF,
                 freq_cut=NZV_FREQ_CUT, unique_cut=NZV_UNIQUE_CUT):
        self.numeric_cols = numeric_cols
        self.corr_cutoff = corr_cutoff
        self.freq_cut = freq_cut
        self.unique_cut = unique_cut

    def fit(self, X: pd.DataFrame, y=None):
        numeric = self.numeric_cols if self.numeric_cols is not None else NUMERIC_PREDICTORS
        numeric = [c for c in numeric if c in X.columns]
        self.feature_names_in_ = np.array(X.columns, dtype=object)

        self.dropped_correlated_ = find_correlated(X[numeric].astype(float), self.corr_cutoff)
        self.centered_cols_ = [c for c in numeric if c not in self.dropped_correlated_]
        self.means_ = X[self.centered_cols_].astype(float).mean()

        kept = [c for c in X.columns if c not in self.dropped_correlated_]
        self.dropped_nzv_ = near_zero_var(X[kept], self.freq_cut, self.unique_cut)
        self.feature_names_out_ = [c for c in kept if c not in self.dropped_nzv_]
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        check_is_fitted(self, 'feature_names_out_')
        missing = [c for c in self.feature_names_out_ if c not in X.columns]
        if missing:
            raise KeyError(f"columns missing from input: {missing}")
        out = X[self.feature_names_out_].copy()
        centered = [c for c in self.centered_cols_ if c in self.feature_names_out_]
        out[centered] = out[centered].astype(float) - self.means_[centered]
        return out

    def get_feature_names_out(self, input_features=None):
        check_is_fitted(self, 'feature_names_out_')
        return np.array(self.feature_names_out_, dtype=object)
