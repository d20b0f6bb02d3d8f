"""Held-out evaluation: predictions, confusion-matrix metrics, ROC/AUROC, calibration bins"""
import numpy as np
import pandas as pd
from scipy import stats
from sklearn.metrics import roc_auc_score, roc_curve, confusion_matrix, cohen_kappa_score, brier_score_loss
from sklearn.utils import resample

from .outcome_utils import outcome_indicator
from .study_config import OUTCOME_LEVELS, POSITIVE_CLASS, CLASS_THRESHOLD, CALIBRATION_DECIMALS, N_BOOTSTRAPS


def _other_class(positive):
    return [c for c in OUTCOME_LEVELS if c != positive][0]


def _safe_div(num, den):
    return float(num) / den if den else float('nan')


def predict_test(model, X_test: pd.DataFrame, threshold: float = CLASS_THRESHOLD) -> pd.DataFrame:
    """One row per test record: record_id, predicted_class, predicted_probability (of model.positive_class)."""
    prob = model.predict_proba(X_test)
    positive = model.positive_class
    labels = np.where(prob >= threshold, positive, _other_class(positive))
    return pd.DataFrame({
        'record_id': X_test.index.to_numpy(),
        'predicted_class': pd.Categorical(labels, categories=OUTCOME_LEVELS),
        'predicted_probability': prob,
    })


def accuracy_ci(correct: int, n: int, alpha: float = 0.05):
    """Exact (Clopper-Pearson) interval for a proportion."""
    lower = stats.beta.ppf(alpha / 2, correct, n - correct + 1) if correct > 0 else 0.0
    upper = stats.beta.ppf(1 - alpha / 2, correct + 1, n - correct) if correct < n else 1.0
    return float(lower), float(upper)


def classification_metrics(truth, predicted, positive: str = POSITIVE_CLASS) -> dict:
    """Confusion-matrix summary with `positive` as the event class."""
    truth = np.asarray(truth).astype(str)
    predicted = np.asarray(predicted).astype(str)
    negative = _other_class(positive)
    cm = confusion_matrix(truth, predicted, labels=[positive, negative])
    tp, fn, fp, tn = (int(v) for v in cm.ravel())
    n = tp + fn + fp + tn
    acc_lo, acc_hi = accuracy_ci(tp + tn, n)
    sens = _safe_div(tp, tp + fn)
    spec = _safe_div(tn, tn + fp)
    return {
        'n': n,
        'tp': tp, 'fn': fn, 'fp': fp, 'tn': tn,
        'accuracy': _safe_div(tp + tn, n),
        'accuracy_ci_lower': acc_lo,
        'accuracy_ci_upper': acc_hi,
        'no_information_rate': _safe_div(max(tp + fn, fp + tn), n),
        'kappa': float(cohen_kappa_score(truth, predicted, labels=[positive, negative])),
        'sensitivity': sens,
        'specificity': spec,
        'ppv': _safe_div(tp, tp + fp),
        'npv': _safe_div(tn, tn + fn),
        'prevalence': _safe_div(tp + fn, n),
        'balanced_accuracy': (sens + spec) / 2,
        'f1': _safe_div(2 * tp, 2 * tp + fp + fn),
        'positive_class': positive,
    }


def confusion_table(metrics: dict) -> pd.DataFrame:
    positive = metrics['positive_class']
    negative = _other_class(positive)
    return pd.DataFrame(
        [[metrics['tp'], metrics['fp']], [metrics['fn'], metrics['tn']]],
        index=pd.Index([positive, negative], name='Prediction'),
        columns=pd.Index([positive, negative], name='Reference'),
    )


def roc_analysis(truth, prob, positive: str = POSITIVE_CLASS):
    """ROC curve (fpr, tpr, threshold) and AUROC for P(positive)."""
    y = outcome_indicator(truth, positive)
    fpr, tpr, thresholds = roc_curve(y, prob)
    auc = roc_auc_score(y, prob)
    return pd.DataFrame({'fpr': fpr, 'tpr': tpr, 'threshold': thresholds}), float(auc)


def auc_bootstrap_ci(truth, prob, positive: str = POSITIVE_CLASS, n_bootstraps: int = N_BOOTSTRAPS):
    """Percentile bootstrap 95% CI for AUROC; single-class resamples are skipped."""
    y_arr = outcome_indicator(truth, positive)
    p_arr = np.asarray(prob)
    indices = np.arange(len(y_arr))
    scores = []
    for i in range(n_bootstraps):
        idx = resample(indices, random_state=i)
        if len(np.unique(y_arr[idx])) < 2:
            continue
        scores.append(roc_auc_score(y_arr[idx], p_arr[idx]))
    if not scores:
        return float('nan'), float('nan')
    sorted_scores = np.sort(scores)
    return (float(sorted_scores[int(0.025 * len(sorted_scores))]),
            float(sorted_scores[int(0.975 * len(sorted_scores))]))


def brier_score(truth, prob, positive: str = POSITIVE_CLASS) -> float:
    return float(brier_score_loss(outcome_indicator(truth, positive), prob))


def calibration_table(truth, prob, positive: str = POSITIVE_CLASS,
                      decimals: int = CALIBRATION_DECIMALS) -> pd.DataFrame:
    """Bins = predicted probability rounded to `decimals`; mean prediction, observed event rate and count per bin."""
    df = pd.DataFrame({
        'bin': np.round(np.asarray(prob, dtype=float), decimals),
        'prob': np.asarray(prob, dtype=float),
        'event': outcome_indicator(truth, positive),
    })
    table = df.groupby('bin', sort=True).agg(
        mean_predicted=('prob', 'mean'),
        observed_frequency=('event', 'mean'),
        n=('event', 'size'),
    ).reset_index()
    return table
