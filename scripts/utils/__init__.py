# Shared utilities: study config, paths, logging, loading, preprocessing, modelling, evaluation
from .study_config import (
    OUTCOME, OUTCOME_LEVELS, POSITIVE_CLASS, PREDICTORS, NUMERIC_PREDICTORS,
    CATEGORICAL_PREDICTORS, SELECTED_COLUMNS, SPLIT_SEED, RESAMPLE_SEED, TEST_SIZE,
)
from .exceptions import DataLoadError, ModelFitError
from .feature_formatter import FeatureFormatter
from .logger import log as log_msg
from .paths import (
    get_project_root, get_raw_path, get_artifact_path, get_result_path, ensure_dirs,
    get_main_table_dir, get_main_figure_dir,
    get_supplementary_table_dir, get_supplementary_figure_dir,
)

__all__ = [
    'OUTCOME', 'OUTCOME_LEVELS', 'POSITIVE_CLASS', 'PREDICTORS', 'NUMERIC_PREDICTORS',
    'CATEGORICAL_PREDICTORS', 'SELECTED_COLUMNS', 'SPLIT_SEED', 'RESAMPLE_SEED', 'TEST_SIZE',
    'DataLoadError', 'ModelFitError',
    'FeatureFormatter', 'log_msg',
    'get_project_root', 'get_raw_path', 'get_artifact_path', 'get_result_path', 'ensure_dirs',
    'get_main_table_dir', 'get_main_figure_dir',
    'get_supplementary_table_dir', 'get_supplementary_figure_dir',
]
