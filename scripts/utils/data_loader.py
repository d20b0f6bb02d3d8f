"""Trial CSV loading, schema checks and allow-list projection"""
import os

import pandas as pd

from .exceptions import DataLoadError
from .logger import log as _log
from .outcome_utils import (
    normalize_outcome, normalize_sex, drop_missing_outcome, drop_incomplete_records,
)
from .study_config import NUMERIC_PREDICTORS, PREDICTORS, SELECTED_COLUMNS, OUTCOME


def load_trial_data(path, required_columns=SELECTED_COLUMNS) -> pd.DataFrame:
    """
    Read the comma-separated trial export.
    Numeric columns are coerced to float, sex to a 0/1 indicator and death14 to 0/1 (NaN kept).
    Raises DataLoadError for a missing/unparseable file or a column that does not match the schema.
    """
    if not os.path.exists(path):
        raise DataLoadError(f"input file not found: {os.path.abspath(path)}")
    try:
        df = pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataLoadError(f"cannot parse {os.path.abspath(path)}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in required_columns if c not in df.columns]
    if missing:
        raise DataLoadError(f"missing required columns: {', '.join(missing)}", columns=missing)

    for col in NUMERIC_PREDICTORS:
        if col not in df.columns:
            continue
        converted = pd.to_numeric(df[col], errors='coerce')
        bad = converted.isna() & df[col].notna()
        if bad.any():
            raise DataLoadError(
                f"column '{col}' has {int(bad.sum())} non-numeric values", columns=[col]
            )
        df[col] = converted.astype(float)

    df = normalize_sex(df)
    if OUTCOME in df.columns:
        df = normalize_outcome(df)
    df.index = pd.RangeIndex(len(df), name='record_id')
    return df


def select_features(df: pd.DataFrame, columns=SELECTED_COLUMNS) -> pd.DataFrame:
    """Project onto the allow-list, in allow-list order."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise DataLoadError(f"missing selected columns: {', '.join(missing)}", columns=missing)
    return df[list(columns)].copy()


def load_analysis_cohort(path) -> pd.DataFrame:
    """load_trial_data + select_features, with a one-line summary"""
    df = select_features(load_trial_data(path))
    _log(f"Loaded {len(df)} records x {df.shape[1]} columns from {os.path.abspath(path)}", "OK")
    return df


def prepare_modeling_cohort(df: pd.DataFrame, predictors=PREDICTORS) -> pd.DataFrame:
    """Drop records without an outcome or with missing predictors; sex becomes a plain int."""
    df = drop_missing_outcome(df)
    df = drop_incomplete_records(df, predictors)
    df = df.copy()
    if 'sex' in df.columns:
        df['sex'] = df['sex'].astype('int64')
    return df
