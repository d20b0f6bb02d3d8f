"""Binomial GLMs: the evaluated logistic model and the exploratory spline model"""
import warnings
from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.tools.sm_exceptions import PerfectSeparationError, PerfectSeparationWarning

from .exceptions import ModelFitError
from .logger import log as _log
from .outcome_utils import outcome_indicator
from .study_config import POSITIVE_CLASS, NUMERIC_PREDICTORS, CATEGORICAL_PREDICTORS, OUTCOME, SPLINE_KNOTS


def _design(X: pd.DataFrame) -> pd.DataFrame:
    return sm.add_constant(X.astype(float), has_constant='add')


_FIT_ERRORS = (PerfectSeparationError, PerfectSeparationWarning, np.linalg.LinAlgError, ValueError)


def _fit_glm(model):
    # statsmodels only warns on perfect separation; escalate so it fails the fit
    with warnings.catch_warnings():
        warnings.simplefilter("error", PerfectSeparationWarning)
        return model.fit()


@dataclass
class LogisticModel:
    """Fitted P(positive_class) model; scoring only, never refit."""
    result: object
    feature_names: list
    positive_class: str = POSITIVE_CLASS

    def predict_proba(self, X: pd.DataFrame) -> np.ndarray:
        missing = [c for c in self.feature_names if c not in X.columns]
        if missing:
            raise KeyError(f"columns missing from input: {missing}")
        return np.asarray(self.result.predict(_design(X[self.feature_names])))

    @property
    def params(self) -> pd.Series:
        return self.result.params

    def odds_ratio_table(self, alpha: float = 0.05) -> pd.DataFrame:
        """Per-term beta, SE, OR and (1 - alpha) CI, p-value."""
        ci = self.result.conf_int(alpha=alpha)
        return pd.DataFrame({
            'term': self.result.params.index,
            'coef': self.result.params.values,
            'std_err': self.result.bse.values,
            'OR': np.exp(self.result.params.values),
            'OR_Lower': np.exp(ci.iloc[:, 0].values),
            'OR_Upper': np.exp(ci.iloc[:, 1].values),
            'p_value': self.result.pvalues.values,
        })


def fit_logistic_model(X: pd.DataFrame, y, positive_class: str = POSITIVE_CLASS) -> LogisticModel:
    """
    Maximum-likelihood binomial GLM (logit link, intercept added) for P(positive_class).
    Raises ModelFitError on missing values, a single outcome class, a rank-deficient
    design, perfect separation or a numerical failure inside statsmodels.
    """
    target = outcome_indicator(y, positive_class)
    if len(np.unique(target)) < 2:
        raise ModelFitError(f"training outcome has a single class (positive={positive_class!r})")

    design = _design(X)
    if design.isnull().any().any():
        cols = design.columns[design.isnull().any()].tolist()
        raise ModelFitError(f"design matrix has missing values in {cols}")
    rank = np.linalg.matrix_rank(design.to_numpy())
    if rank < design.shape[1]:
        raise ModelFitError(
            f"design matrix is rank deficient (rank {rank} < {design.shape[1]} columns); "
            "check for collinear or constant predictors"
        )

    try:
        result = _fit_glm(sm.GLM(target, design, family=sm.families.Binomial()))
    except _FIT_ERRORS as e:
        raise ModelFitError(f"binomial GLM failed: {e}") from e

    if not result.converged:
        _log("Binomial GLM did not converge; coefficients may be unreliable", "WARN")
    return LogisticModel(result=result, feature_names=list(X.columns), positive_class=positive_class)


def spline_formula(outcome='dead', numeric=NUMERIC_PREDICTORS,
                   categorical=CATEGORICAL_PREDICTORS, knots=SPLINE_KNOTS) -> str:
    """Natural (restricted) cubic spline with `knots` knots per numeric term, centred so it sits beside the intercept."""
    terms = [f"cr({c}, df={knots - 1}, constraints='center')" for c in numeric]
    terms += [f"C({c})" for c in categorical]
    return f"{outcome} ~ " + " + ".join(terms)


def fit_spline_model(df: pd.DataFrame, numeric=NUMERIC_PREDICTORS,
                     categorical=CATEGORICAL_PREDICTORS, knots=SPLINE_KNOTS):
    """
    Exploratory binomial GLM for P(death14 = 1) with splines on every numeric predictor.
    Fit on the whole cohort; used only to look at dose-response shapes.
    """
    data = df[list(numeric) + list(categorical)].copy()
    y = df[OUTCOME]
    if isinstance(y.dtype, pd.CategoricalDtype):
        data['dead'] = outcome_indicator(y, 'dead')
    else:
        data['dead'] = (y.astype(float) == 1.0).astype(int).to_numpy()
    formula = spline_formula('dead', numeric, categorical, knots)
    try:
        return _fit_glm(smf.glm(formula, data=data, family=sm.families.Binomial()))
    except _FIT_ERRORS as e:
        raise ModelFitError(f"spline model failed: {e}") from e


def spline_partial_effect(result, df: pd.DataFrame, predictor: str, numeric=NUMERIC_PREDICTORS,
                          categorical=CATEGORICAL_PREDICTORS, n_points: int = 100) -> pd.DataFrame:
    """
    Predicted P(death14 = 1) with 95% CI over the 1st-99th percentile of `predictor`,
    other numeric predictors at their median and categorical ones at their mode.
    """
    ref = {c: float(df[c].median()) for c in numeric}
    ref.update({c: df[c].mode().iloc[0] for c in categorical})
    lo, hi = df[predictor].quantile([0.01, 0.99])
    grid = pd.DataFrame([ref] * n_points)
    grid[predictor] = np.linspace(lo, hi, n_points)
    frame = result.get_prediction(grid).summary_frame(alpha=0.05)
    return pd.DataFrame({
        predictor: grid[predictor].to_numpy(),
        'prob': frame['mean'].to_numpy(),
        'lower': frame['mean_ci_lower'].to_numpy(),
        'upper': frame['mean_ci_upper'].to_numpy(),
    })
