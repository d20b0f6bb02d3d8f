"""01: AKI trial data loading, column projection and descriptive audit"""
import os
import sys

import numpy as np
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from utils.paths import get_raw_path, get_supplementary_table_dir, ensure_dirs
from utils.logger import log as _log, log_header
from utils.data_loader import load_analysis_cohort
from utils.exceptions import DataLoadError
from utils.feature_formatter import FeatureFormatter
from utils.study_config import OUTCOME

INPUT_PATH = get_raw_path()
TABLE_DIR = get_supplementary_table_dir()


def audit_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Missing %, median, mean, min, max per column"""
    formatter = FeatureFormatter()
    rows = []
    for col in df.columns:
        series = df[col].dropna().astype(float)
        rows.append({
            'variable': col,
            'label': formatter.get_label(col, with_unit=True),
            'n': int(df[col].notna().sum()),
            'missing_pct': round(df[col].isnull().mean() * 100, 2),
            'median': series.median() if not series.empty else np.nan,
            'mean': series.mean() if not series.empty else np.nan,
            'min': series.min() if not series.empty else np.nan,
            'max': series.max() if not series.empty else np.nan,
        })
    return pd.DataFrame(rows)


def print_audit(audit: pd.DataFrame) -> None:
    print(f"  {'Feature':<18} | {'Miss%':>7} | {'Median':>9} | {'Mean':>9} | {'Min':>9} | {'Max':>9}")
    print("  " + "-" * 75)
    for _, r in audit.iterrows():
        print(f"  {r['variable']:<18} | {r['missing_pct']:>6.2f}% | {r['median']:>9.2f} | "
              f"{r['mean']:>9.2f} | {r['min']:>9.2f} | {r['max']:>9.2f}")


def run_data_audit(input_path=INPUT_PATH, table_dir=TABLE_DIR):
    log_header("🚀 01_aki_data_audit: loading and column audit (AKI trial)")
    _log(f"Input: {os.path.abspath(input_path)}", "INFO")
    ensure_dirs(table_dir)

    try:
        df = load_analysis_cohort(input_path)
    except DataLoadError as e:
        _log(f"Data load failed: {e}", "ERR")
        raise

    audit = audit_columns(df)
    print_audit(audit)

    outcome = df[OUTCOME]
    n_missing = int(outcome.isnull().sum())
    if n_missing:
        _log(f"{OUTCOME} missing for {n_missing} records; these are excluded before the split", "WARN")
    n_dead = int((outcome == 1).sum())
    n_known = int(outcome.notna().sum())
    prevalence = n_dead / n_known if n_known else float('nan')
    _log(f"{OUTCOME}: {n_dead}/{n_known} died ({prevalence:.1%})", "INFO")

    audit_path = os.path.join(table_dir, "TableS1_data_audit.csv")
    audit.to_csv(audit_path, index=False)
    _log(f"Audit table: {os.path.abspath(audit_path)}", "OK")
    _log("Next: 02_exploratory_lowess.py", "INFO")
    return audit


if __name__ == "__main__":
    run_data_audit()
