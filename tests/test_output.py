"""
Tests for truncating simulation time series.
"""

import unittest

import pandas as pd

from pop_net_simulator.output import (
    OutputControl,
    SimulationOutput,
    truncate_sim
)


def _series(values):
    return pd.DataFrame(
        {"sim1": values},
        index=pd.RangeIndex(1, len(values) + 1, name="time"),
    )


class TestTruncateSim(unittest.TestCase):
    """Test cases for truncate_sim."""

    def setUp(self):
        """Set up a five-step output."""
        self.out = SimulationOutput(
            epi={"num": _series([10, 11, 12, 13, 14]),
                 "i.num": _series([0, 1, 1, 2, 3])},
            control=OutputControl(nsteps=5),
            network_stats={"edges": _series([4, 5, 5, 6, 6])},
        )

    def test_truncate(self):
        """Test that early steps are dropped and steps relabelled."""
        res = truncate_sim(self.out, at=3)

        self.assertEqual(res.epi["num"]["sim1"].tolist(), [12, 13, 14])
        self.assertEqual(res.epi["num"].index.tolist(), [1, 2, 3])
        self.assertEqual(res.epi["i.num"]["sim1"].tolist(), [1, 2, 3])
        self.assertEqual(res.network_stats["edges"]["sim1"].tolist(),
                         [5, 6, 6])
        self.assertEqual(res.control.nsteps, 3)
        self.assertEqual(res.control.start, 1)

    def test_input_not_modified(self):
        """Test that the original output is left intact."""
        truncate_sim(self.out, at=4)
        self.assertEqual(self.out.control.nsteps, 5)
        self.assertEqual(len(self.out.epi["num"]), 5)

    def test_truncate_at_start(self):
        """Test that truncating at step 1 keeps everything."""
        res = truncate_sim(self.out, at=1)
        pd.testing.assert_frame_equal(res.epi["num"], self.out.epi["num"])

    def test_truncate_at_end(self):
        """Test that truncating at the last step keeps one step."""
        res = truncate_sim(self.out, at=5)
        self.assertEqual(res.epi["num"]["sim1"].tolist(), [14])

    def test_out_of_range(self):
        """Test that steps outside the run are rejected."""
        with self.assertRaises(ValueError):
            truncate_sim(self.out, at=6)
        with self.assertRaises(ValueError):
            truncate_sim(self.out, at=0)

    def test_wrong_type(self):
        """Test that only simulation outputs can be truncated."""
        with self.assertRaises(TypeError):
            truncate_sim({"epi": {}}, at=2)


if __name__ == '__main__':
    unittest.main()
