import importlib.util
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import matplotlib

matplotlib.use("Agg")

import pandas as pd  # noqa: E402

REPO_ROOT = Path(__file__).resolve().parents[1]
SCRIPTS_DIR = REPO_ROOT / "scripts"
sys.path.insert(0, str(SCRIPTS_DIR))
sys.path.insert(0, str(Path(__file__).resolve().parent))
os.environ.setdefault("AKI_LOG_FILE", os.path.join(tempfile.gettempdir(), "aki_tests_run.log"))

from synthetic import make_cohort, make_raw_cohort  # noqa: E402
from utils.data_loader import prepare_modeling_cohort  # noqa: E402
from utils.exceptions import DataLoadError, ModelFitError  # noqa: E402


def _load_script(name: str, relpath: str):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / relpath)
    module = importlib.util.module_from_spec(spec)
    assert spec and spec.loader
    spec.loader.exec_module(module)
    return module


model_training = _load_script("model_training_main", "modeling/04_model_training_main.py")
data_audit = _load_script("aki_data_audit", "preprocess/01_aki_data_audit.py")
exploratory_lowess = _load_script("exploratory_lowess", "audit_eval/02_exploratory_lowess.py")
spline_exploration = _load_script("spline_exploration", "audit_eval/03_spline_exploration.py")


class ModelPipelineTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.df = make_cohort(n=1000, seed=7)
        cls.results = model_training.run_model_pipeline(cls.df, n_bootstraps=100)

    def test_recovers_signal_direction_and_discriminates(self) -> None:
        params = self.results['model'].params
        # higher creatinine lowers the odds of being alive at day 14
        self.assertLess(params['creatinine'], 0)
        self.assertGreater(self.results['metrics']['auroc'], 0.6)
        self.assertLessEqual(self.results['metrics']['auroc'], 1.0)

    def test_split_covers_modelling_cohort(self) -> None:
        train, test = self.results['train'], self.results['test']
        cohort_idx = set(prepare_modeling_cohort(self.df).index)
        self.assertEqual(set(train.index) & set(test.index), set())
        self.assertEqual(set(train.index) | set(test.index), cohort_idx)

    def test_train_is_balanced_and_test_keeps_prevalence(self) -> None:
        counts = self.results['train_balanced']['death14'].value_counts()
        self.assertEqual(counts['alive'], counts['dead'])
        test_dead = (self.results['test']['death14'] == 'dead').mean()
        train_dead = (self.results['train']['death14'] == 'dead').mean()
        self.assertAlmostEqual(test_dead, train_dead, delta=0.01)

    def test_predictions_and_calibration_cover_test_set(self) -> None:
        preds = self.results['predictions']
        test = self.results['test']
        self.assertEqual(len(preds), len(test))
        self.assertEqual(list(preds['record_id']), list(test.index))
        self.assertEqual(int(self.results['calibration']['n'].sum()), len(test))
        self.assertEqual(self.results['metrics']['n'], len(test))

    def test_same_seed_reproduces_partition_and_fit(self) -> None:
        again = model_training.run_model_pipeline(self.df, n_bootstraps=10)
        self.assertEqual(list(again['train'].index), list(self.results['train'].index))
        self.assertEqual(list(again['train_balanced'].index), list(self.results['train_balanced'].index))
        pd.testing.assert_series_equal(again['model'].params, self.results['model'].params)

    def test_outputs_written(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = model_training.save_outputs(self.results, figure_dir=tmp, table_dir=tmp)
            for key in ['metrics', 'odds_ratios', 'calibration', 'predictions', 'roc', 'calibration_fig', 'forest']:
                self.assertTrue(os.path.exists(paths[key]), key)
            metrics = pd.read_csv(paths['metrics'])
            self.assertIn('auroc', metrics.columns)


class NoSignalTests(unittest.TestCase):
    def test_outcome_independent_of_predictors(self) -> None:
        df = make_cohort(n=4000, seed=8, noise_outcome=True)
        results = model_training.run_model_pipeline(df, n_bootstraps=10)
        self.assertAlmostEqual(results['metrics']['auroc'], 0.5, delta=0.1)


class ExploratoryScriptTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.cohort = prepare_modeling_cohort(make_cohort(n=600, seed=9))

    def test_data_audit(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            csv_path = os.path.join(tmp, "trial.csv")
            make_raw_cohort(n=50, seed=2).to_csv(csv_path, index=False)
            audit = data_audit.run_data_audit(csv_path, table_dir=tmp)
            self.assertEqual(len(audit), 15)
            self.assertTrue(os.path.exists(os.path.join(tmp, "TableS1_data_audit.csv")))
            self.assertTrue((audit['missing_pct'] == 0).all())

    def test_lowess_grid(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            png = exploratory_lowess.plot_lowess_grid(self.cohort, os.path.join(tmp, "lowess"))
            self.assertTrue(os.path.exists(png))
            self.assertTrue(os.path.exists(os.path.join(tmp, "lowess.pdf")))

    def test_spline_partial_effects(self) -> None:
        result = spline_exploration.fit_spline_model(self.cohort)
        with tempfile.TemporaryDirectory() as tmp:
            png = spline_exploration.plot_partial_effects(result, self.cohort, os.path.join(tmp, "spline"))
            self.assertTrue(os.path.exists(png))


class ScriptFailureLoggingTests(unittest.TestCase):
    """Load and fit failures are written to the run log at ERR level, then re-raised."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name
        self.log_path = os.path.join(self.tmp, "run.log")
        env = mock.patch.dict(os.environ, {"AKI_LOG_FILE": self.log_path})
        env.start()
        self.addCleanup(env.stop)
        self.addCleanup(self._tmp.cleanup)
        self.missing = os.path.join(self.tmp, "absent.csv")

    def _log_text(self) -> str:
        with open(self.log_path, encoding="utf-8") as fh:
            return fh.read()

    def _assert_err_logged(self, fragment: str) -> None:
        err_lines = [line for line in self._log_text().splitlines() if line.startswith("❌")]
        self.assertTrue(any(fragment in line for line in err_lines), err_lines)

    def test_missing_input_logged_by_every_step(self) -> None:
        entries = [
            lambda: data_audit.run_data_audit(self.missing, table_dir=self.tmp),
            lambda: exploratory_lowess.main(self.missing, fig_dir=self.tmp),
            lambda: spline_exploration.main(self.missing, fig_dir=self.tmp, table_dir=self.tmp),
            lambda: model_training.run_model_training_flow(self.missing),
        ]
        for entry in entries:
            with self.assertRaises(DataLoadError):
                entry()
        err_lines = [line for line in self._log_text().splitlines() if "Data load failed" in line]
        self.assertEqual(len(err_lines), 4)
        self.assertTrue(all(line.startswith("❌") for line in err_lines))
        self.assertTrue(all("absent.csv" in line for line in err_lines))

    def test_separated_spline_fit_logged(self) -> None:
        raw = make_raw_cohort(n=300, seed=5)
        raw['death14'] = (raw['creatinine'] > raw['creatinine'].median()).astype(int)
        csv_path = os.path.join(self.tmp, "separated.csv")
        raw.to_csv(csv_path, index=False)
        with self.assertRaises(ModelFitError):
            spline_exploration.main(csv_path, fig_dir=self.tmp, table_dir=self.tmp)
        self._assert_err_logged("Spline model fit failed")


if __name__ == "__main__":
    unittest.main()
