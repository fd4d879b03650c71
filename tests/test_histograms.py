"""Unit tests for histogram creation, filling and merging utilities."""

import hist as hist_mod
import numpy as np
import pytest

from wmunu.analysis_config import CUTFLOW_STEPS, HIST_BINNING, HIST_NAME
from wmunu.histograms import (
    add,
    create_cutflow_hist,
    create_hist,
    cutflow_to_dict,
    fill_cutflow,
    stack_order,
    sum_hists,
)


class TestCreateHist:
    def test_fixed_binning(self):
        h = create_hist()
        assert isinstance(h, hist_mod.Hist)
        assert len(h.axes) == 1
        ax = h.axes[HIST_NAME]
        assert ax.size == HIST_BINNING[0]
        assert ax.edges[0] == HIST_BINNING[1]
        assert ax.edges[-1] == HIST_BINNING[2]

    def test_weighted_storage(self):
        h = create_hist()
        add(h, 55.0, 2.0)
        add(h, 55.0, 3.0)
        assert h.values()[5] == pytest.approx(5.0)
        assert h.variances()[5] == pytest.approx(13.0)

    def test_add_default_weight(self):
        h = create_hist()
        add(h, 1.0)
        assert h.sum().value == pytest.approx(1.0)


class TestCutflow:
    def test_labels_in_order(self):
        h = create_cutflow_hist()
        assert list(h.axes["cut"]) == list(CUTFLOW_STEPS)

    def test_fill_cumulative_steps(self):
        h = create_cutflow_hist()
        fill_cutflow(h, CUTFLOW_STEPS[:2], 0.5)
        fill_cutflow(h, CUTFLOW_STEPS, 1.0)
        counts = cutflow_to_dict(h)
        assert counts[CUTFLOW_STEPS[0]] == pytest.approx(1.5)
        assert counts[CUTFLOW_STEPS[1]] == pytest.approx(1.5)
        assert counts[CUTFLOW_STEPS[-1]] == pytest.approx(1.0)

    def test_empty_steps_noop(self):
        h = create_cutflow_hist()
        fill_cutflow(h, (), 1.0)
        assert h.sum().value == 0.0


class TestSumHists:
    def test_bin_wise_sum(self):
        h1, h2 = create_hist(), create_hist()
        add(h1, 45.0, 2.0)
        add(h2, 45.0, 3.0)
        add(h2, 95.0, 1.0)
        total = sum_hists([h1, h2])
        assert total.values()[4] == pytest.approx(5.0)
        assert total.values()[9] == pytest.approx(1.0)

    def test_inputs_untouched(self):
        h1 = create_hist()
        add(h1, 45.0, 2.0)
        sum_hists([h1, h1])
        assert h1.sum().value == pytest.approx(2.0)

    def test_shards_merge_to_full(self):
        rng = np.random.default_rng(1)
        values = rng.uniform(0, 200, 100)
        weights = rng.uniform(0.5, 1.5, 100)

        full = create_hist()
        shards = [create_hist(), create_hist(), create_hist()]
        for i, (v, w) in enumerate(zip(values, weights)):
            add(full, v, w)
            add(shards[i % 3], v, w)

        np.testing.assert_allclose(sum_hists(shards).values(), full.values())

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            sum_hists([])


class TestStackOrder:
    def test_follows_configured_order(self):
        assert stack_order(["wmunu", "ttbar", "diboson"], ["diboson", "ttbar", "wmunu"]) == [
            "diboson", "ttbar", "wmunu",
        ]

    def test_unlisted_appended_in_input_order(self):
        assert stack_order(["b", "x", "a", "y"], ["a", "b"]) == ["a", "b", "x", "y"]
