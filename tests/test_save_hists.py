"""Tests for wmunu.save_hists: ROOT layout of the per-dataset outputs."""

import pytest
import uproot

from conftest import make_event
from wmunu.analyzer import WmunuAnalysis
from wmunu.datasets import Dataset
from wmunu.save_hists import save_histograms, simulated_names


@pytest.fixture
def outputs_and_datasets():
    datasets = [
        Dataset("memory://data", is_simulated=False, luminosity_weight=1.0, name="data"),
        Dataset("memory://w", is_simulated=True, luminosity_weight=0.5, name="wmunu"),
        Dataset("memory://z", is_simulated=True, luminosity_weight=0.25, name="zmumu"),
    ]
    analysis = WmunuAnalysis()
    events = [make_event([{"pt": 45000.0}]), make_event([])]
    outputs = {ds.name: analysis.process(events, ds) for ds in datasets}
    return outputs, datasets


def test_simulated_names(outputs_and_datasets):
    outputs, datasets = outputs_and_datasets
    assert simulated_names(outputs, datasets) == ["wmunu", "zmumu"]


def test_save_histograms_layout(tmp_path, outputs_and_datasets):
    outputs, datasets = outputs_and_datasets
    out_file = save_histograms(outputs, datasets, tmp_path / "sub" / "out.root")

    with uproot.open(out_file) as f:
        assert f["data/lep_pt"].values()[4] == pytest.approx(1.0)
        assert f["wmunu/lep_pt"].values()[4] == pytest.approx(0.5)
        assert f["stack/lep_pt_mc"].values()[4] == pytest.approx(0.75)
        assert f["cutflow/zmumu/unweighted"].values()[0] == pytest.approx(2.0)


def test_save_histograms_no_simulation(tmp_path, outputs_and_datasets):
    outputs, datasets = outputs_and_datasets
    out_file = save_histograms({"data": outputs["data"]}, datasets, tmp_path / "data_only.root")
    with uproot.open(out_file) as f:
        assert "stack" not in [k.split(";")[0] for k in f.keys(recursive=False)]


def test_save_histograms_empty(tmp_path):
    with pytest.raises(ValueError):
        save_histograms({}, [], tmp_path / "x.root")
