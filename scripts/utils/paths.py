"""Project path configuration: data, artifacts and results directories

Outputs:
  results/main/          main analysis
    tables/              metrics, odds ratios
    figures/             ROC, calibration, forest plot
  results/supplementary/ exploratory material
    tables/              data audit, spline model terms
    figures/             LOWESS grid, spline partial effects
"""
import os

# Project root (two levels above scripts/utils)
_PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), "../.."))


def get_project_root() -> str:
    return _PROJECT_ROOT


def get_data_dir() -> str:
    """data/ directory"""
    return os.path.join(_PROJECT_ROOT, "data")


def get_raw_path(name: str = "aki_trial") -> str:
    """Raw trial export under data/raw/"""
    return os.path.join(_PROJECT_ROOT, "data", "raw", f"{name}_data.csv")


def get_artifact_path(*parts: str) -> str:
    """Path under artifacts/"""
    return os.path.join(_PROJECT_ROOT, "artifacts", *parts)


def get_result_path(*parts: str) -> str:
    """Path under results/"""
    return os.path.join(_PROJECT_ROOT, "results", *parts)


def get_main_table_dir() -> str:
    return os.path.join(_PROJECT_ROOT, "results", "main", "tables")


def get_main_figure_dir() -> str:
    return os.path.join(_PROJECT_ROOT, "results", "main", "figures")


def get_supplementary_table_dir() -> str:
    return os.path.join(_PROJECT_ROOT, "results", "supplementary", "tables")


def get_supplementary_figure_dir(*subdirs: str) -> str:
    """results/supplementary/figures/ or a subdirectory of it"""
    base = os.path.join(_PROJECT_ROOT, "results", "supplementary", "figures")
    return os.path.join(base, *subdirs) if subdirs else base


def get_log_file() -> str:
    """Run log, logs/run.log by default (override with AKI_LOG_FILE)"""
    return os.environ.get("AKI_LOG_FILE", os.path.join(_PROJECT_ROOT, "logs", "run.log"))


def ensure_dirs(*paths: str) -> None:
    for p in paths:
        os.makedirs(p, exist_ok=True)
