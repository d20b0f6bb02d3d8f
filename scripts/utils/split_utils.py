"""Stratified train/test split and train-only majority down-sampling"""
import pandas as pd
from sklearn.model_selection import train_test_split
from sklearn.utils import resample

from .study_config import OUTCOME, SPLIT_SEED, RESAMPLE_SEED, TEST_SIZE


def stratified_split(df: pd.DataFrame, outcome: str = OUTCOME,
                     test_size: float = TEST_SIZE, seed: int = SPLIT_SEED):
    """Seeded split stratified on the outcome; returns (train, test) with the original index."""
    train_idx, test_idx = train_test_split(
        df.index,
        test_size=test_size,
        random_state=seed,
        stratify=df[outcome],
    )
    return df.loc[train_idx].copy(), df.loc[test_idx].copy()


def downsample_majority(df: pd.DataFrame, outcome: str = OUTCOME,
                        seed: int = RESAMPLE_SEED) -> pd.DataFrame:
    """
    Down-sample every outcome class to the minority count, without replacement.
    Apply to the training subset only.
    """
    counts = df[outcome].value_counts()
    if isinstance(df[outcome].dtype, pd.CategoricalDtype):
        absent = [c for c in df[outcome].cat.categories if counts.get(c, 0) == 0]
        if absent:
            raise ValueError(f"cannot down-sample: no records for class {absent}")
    if len(counts) < 2:
        raise ValueError("cannot down-sample: training data has a single outcome class")
    n_minority = int(counts.min())

    parts = []
    for level in sorted(counts.index, key=str):
        group = df[df[outcome] == level]
        parts.append(resample(group, replace=False, n_samples=n_minority, random_state=seed))
    return pd.concat(parts).sort_index()
