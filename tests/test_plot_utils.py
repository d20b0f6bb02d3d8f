import os
import sys
import tempfile
import unittest
from pathlib import Path

import numpy as np

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "scripts"))
os.environ.setdefault("AKI_LOG_FILE", os.path.join(tempfile.gettempdir(), "aki_tests_run.log"))

from utils.plot_utils import PlotUtils, spike_heights  # noqa: E402


class SpikeHeightTests(unittest.TestCase):
    def test_tallest_spike_equals_max_height(self) -> None:
        values = [0.1, 0.15, 0.15, 0.15, 0.9]
        centres, heights = spike_heights(values, bins=5, max_height=0.15, value_range=(0, 1))
        np.testing.assert_allclose(centres, [0.1, 0.3, 0.5, 0.7, 0.9])
        np.testing.assert_allclose(heights, [0.15, 0.0, 0.0, 0.0, 0.0375])
        self.assertAlmostEqual(heights.max(), 0.15)

    def test_shared_range_aligns_bins_across_groups(self) -> None:
        died = [1.0, 2.0, 2.5]
        survived = [7.0, 9.5]
        c_died, h_died = spike_heights(died, bins=10, value_range=(0, 10))
        c_surv, h_surv = spike_heights(survived, bins=10, value_range=(0, 10))
        np.testing.assert_allclose(c_died, c_surv)
        self.assertEqual(int((h_died > 0).sum()), 2)
        self.assertEqual(int((h_surv > 0).sum()), 2)
        self.assertTrue((h_died[5:] == 0).all())
        self.assertTrue((h_surv[:5] == 0).all())

    def test_empty_group_gives_flat_spikes(self) -> None:
        centres, heights = spike_heights([], bins=4, value_range=(0, 4))
        self.assertEqual(len(centres), 4)
        self.assertTrue((heights == 0).all())


class GridShapeTests(unittest.TestCase):
    def test_grid_covers_all_panels(self) -> None:
        self.assertEqual(PlotUtils.grid_shape(13, 4), (4, 4))
        self.assertEqual(PlotUtils.grid_shape(2, 4), (1, 2))


if __name__ == "__main__":
    unittest.main()
