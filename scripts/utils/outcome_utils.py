"""Outcome and sex coding: death14 -> alive/dead, sex -> 0/1, missing-outcome filtering"""
import numpy as np
import pandas as pd

from .exceptions import DataLoadError
from .logger import log as _log
from .study_config import OUTCOME, OUTCOME_LEVELS

_OUTCOME_TOKENS = {
    '1': 1.0, '1.0': 1.0, 'true': 1.0, 't': 1.0, 'yes': 1.0, 'dead': 1.0,
    '0': 0.0, '0.0': 0.0, 'false': 0.0, 'f': 0.0, 'no': 0.0, 'alive': 0.0,
}
_SEX_TOKENS = {
    'm': 1, 'male': 1, '1': 1, '1.0': 1,
    'f': 0, 'female': 0, '0': 0, '0.0': 0,
}


def _map_tokens(series: pd.Series, tokens: dict, column: str) -> pd.Series:
    keys = series.map(lambda v: str(v).strip().lower(), na_action='ignore')
    mapped = keys.map(tokens)
    bad = mapped.isna() & series.notna()
    if bad.any():
        examples = sorted(set(series[bad].astype(str)))[:5]
        raise DataLoadError(
            f"column '{column}' has {int(bad.sum())} unrecognised values: {examples}",
            columns=[column],
        )
    return mapped


def normalize_outcome(df: pd.DataFrame, column: str = OUTCOME) -> pd.DataFrame:
    """death14: 1/true/yes/dead -> 1.0, 0/false/no/alive -> 0.0, missing stays NaN"""
    df = df.copy()
    df[column] = _map_tokens(df[column], _OUTCOME_TOKENS, column).astype(float)
    return df


def normalize_sex(df: pd.DataFrame, column: str = 'sex') -> pd.DataFrame:
    """Sex indicator: M/Male/1 -> 1, F/Female/0 -> 0, missing stays NA"""
    if column not in df.columns:
        return df
    df = df.copy()
    df[column] = _map_tokens(df[column], _SEX_TOKENS, column).astype('Int64')
    return df


def drop_missing_outcome(df: pd.DataFrame, column: str = OUTCOME) -> pd.DataFrame:
    """Records without an outcome cannot be split or modelled."""
    kept = df.dropna(subset=[column])
    n_dropped = len(df) - len(kept)
    if n_dropped:
        _log(f"Excluded {n_dropped} records with missing {column}", "WARN")
    return kept


def drop_incomplete_records(df: pd.DataFrame, columns) -> pd.DataFrame:
    """Complete-case filter over the modelling predictors."""
    kept = df.dropna(subset=list(columns))
    n_dropped = len(df) - len(kept)
    if n_dropped:
        missing = df[list(columns)].isnull().sum()
        detail = ', '.join(f"{c}={n}" for c, n in missing[missing > 0].items())
        _log(f"Excluded {n_dropped} records with missing predictors ({detail})", "WARN")
    return kept


def recode_outcome(df: pd.DataFrame, column: str = OUTCOME) -> pd.DataFrame:
    """0/1 outcome -> categorical ['alive', 'dead']"""
    if df[column].isna().any():
        raise ValueError(f"{column} has missing values; call drop_missing_outcome first")
    df = df.copy()
    labels = np.where(df[column].astype(float) == 1.0, OUTCOME_LEVELS[1], OUTCOME_LEVELS[0])
    df[column] = pd.Categorical(labels, categories=OUTCOME_LEVELS)
    return df


def outcome_indicator(y, positive):
    """Binary 0/1 array marking the positive class."""
    return (np.asarray(y).astype(str) == str(positive)).astype(int)
