import os
import sys
import tempfile
import unittest
from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.exceptions import NotFittedError

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "scripts"))
sys.path.insert(0, str(Path(__file__).resolve().parent))
os.environ.setdefault("AKI_LOG_FILE", os.path.join(tempfile.gettempdir(), "aki_tests_run.log"))

from synthetic import make_cohort  # noqa: E402
from utils.data_loader import prepare_modeling_cohort  # noqa: E402
from utils.outcome_utils import recode_outcome  # noqa: E402
from utils.preprocessing import ClinicalPreprocessor, find_correlated, near_zero_var  # noqa: E402
from utils.split_utils import stratified_split, downsample_majority  # noqa: E402
from utils.study_config import PREDICTORS, NUMERIC_PREDICTORS  # noqa: E402


class CorrelationFilterTests(unittest.TestCase):
    def test_drops_member_with_higher_mean_correlation(self) -> None:
        rng = np.random.default_rng(0)
        u, v, w = rng.normal(size=(3, 2000))
        df = pd.DataFrame({'a': u, 'b': u + 0.25 * v, 'c': v + 0.5 * w})
        # |r(a,b)| ~ 0.97; b also correlates with c, a does not
        self.assertEqual(find_correlated(df, cutoff=0.7), ['b'])

    def test_tie_drops_later_column(self) -> None:
        x = np.arange(50, dtype=float)
        df = pd.DataFrame({'first': x, 'second': 2 * x + 1})
        self.assertEqual(find_correlated(df, cutoff=0.7), ['second'])

    def test_nothing_dropped_below_cutoff(self) -> None:
        rng = np.random.default_rng(1)
        df = pd.DataFrame(rng.normal(size=(500, 4)), columns=list('wxyz'))
        self.assertEqual(find_correlated(df, cutoff=0.7), [])


class NearZeroVarianceTests(unittest.TestCase):
    def test_flags_constant_and_dominant_columns(self) -> None:
        rng = np.random.default_rng(2)
        df = pd.DataFrame({
            'constant': np.ones(1000),
            'rare_flag': np.r_[np.zeros(990), np.ones(10)],
            'balanced_flag': np.r_[np.zeros(500), np.ones(500)],
            'continuous': rng.normal(size=1000),
        })
        self.assertEqual(near_zero_var(df), ['constant', 'rare_flag'])


class ClinicalPreprocessorTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cohort = recode_outcome(prepare_modeling_cohort(make_cohort(n=1000, seed=21)))
        train, test = stratified_split(cohort)
        cls.train = downsample_majority(train)[PREDICTORS]
        cls.test = test[PREDICTORS]

    def test_transform_before_fit_raises(self) -> None:
        with self.assertRaises(NotFittedError):
            ClinicalPreprocessor().transform(self.test)

    def test_centering_gives_zero_train_means(self) -> None:
        pre = ClinicalPreprocessor().fit(self.train)
        out = pre.transform(self.train)
        np.testing.assert_allclose(out[pre.centered_cols_].mean().values, 0.0, atol=1e-9)
        pd.testing.assert_series_equal(out['sex'], self.train['sex'])
        np.testing.assert_allclose(pre.means_.values, self.train[pre.centered_cols_].mean().values)

    def test_independent_noise_keeps_every_predictor(self) -> None:
        pre = ClinicalPreprocessor().fit(self.train)
        self.assertEqual(pre.dropped_correlated_, [])
        self.assertEqual(pre.dropped_nzv_, [])
        self.assertEqual(pre.feature_names_out_, PREDICTORS)
        self.assertEqual(pre.centered_cols_, NUMERIC_PREDICTORS)

    def test_transform_is_row_wise_and_order_independent(self) -> None:
        pre = ClinicalPreprocessor().fit(self.train)
        means_before = pre.means_.copy()
        reference = pre.transform(self.test)

        shuffled = self.test.sample(frac=1.0, random_state=3)
        out = pre.transform(shuffled)
        pd.testing.assert_frame_equal(out, reference.loc[shuffled.index])
        pd.testing.assert_series_equal(pre.means_, means_before)

        single = pre.transform(self.test.iloc[[7]])
        pd.testing.assert_frame_equal(single, reference.iloc[[7]])

    def test_fit_drops_correlated_and_near_zero_variance_columns(self) -> None:
        train = self.train.copy()
        # r(systolic, diastolic) ~ 0.85; systolic also tracks pulse, so it has the higher mean |r|
        train['systolic_bp'] = train['diastolic_bp'] * 1.6 + train['pulse'] * 0.8
        train['potassium'] = np.r_[np.full(len(train) - 2, 4.0), [5.5, 6.0]]
        pre = ClinicalPreprocessor().fit(train)

        self.assertEqual(pre.dropped_correlated_, ['systolic_bp'])
        self.assertEqual(pre.dropped_nzv_, ['potassium'])
        out = pre.transform(self.test)
        self.assertNotIn('systolic_bp', out.columns)
        self.assertNotIn('potassium', out.columns)
        self.assertIn('diastolic_bp', out.columns)

    def test_missing_column_raises(self) -> None:
        pre = ClinicalPreprocessor().fit(self.train)
        with self.assertRaises(KeyError):
            pre.transform(self.test.drop(columns=['wbcc']))


if __name__ == "__main__":
    unittest.main()
