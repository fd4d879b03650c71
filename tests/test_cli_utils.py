"""Tests for wmunu.cli_utils: sample lists, composite expansion, argument checks."""

from types import SimpleNamespace

import pytest

from wmunu.analysis_config import SAMPLES, STACK_ORDER
from wmunu.cli_utils import COMPOSITE_SAMPLES, list_samples, resolve_samples, validate_arguments


def _args(**overrides):
    base = dict(fraction=0.1, workers=None, threads_per_worker=None, lumi=1.0)
    base.update(overrides)
    return SimpleNamespace(**base)


class TestListSamples:
    def test_matches_sample_table(self):
        assert list_samples() == list(SAMPLES)


class TestResolveSamples:
    def test_single_sample(self):
        assert resolve_samples("ttbar") == ["ttbar"]

    def test_composite_all(self):
        assert resolve_samples("all") == ["data"] + STACK_ORDER

    def test_composite_mc_excludes_data(self):
        assert "data" not in resolve_samples("mc")

    def test_deduplicates_preserving_order(self):
        assert resolve_samples(["zmumu", "mc", "data"]) == ["zmumu"] + [
            n for n in COMPOSITE_SAMPLES["mc"] if n != "zmumu"
        ] + ["data"]

    def test_unknown_sample(self):
        with pytest.raises(ValueError, match="Unknown sample"):
            resolve_samples(["data", "bogus"])


class TestValidateArguments:
    def test_defaults_ok(self):
        validate_arguments(_args())

    @pytest.mark.parametrize("fraction", [0.0, 1.01, -1.0])
    def test_bad_fraction(self, fraction):
        with pytest.raises(ValueError, match="--fraction"):
            validate_arguments(_args(fraction=fraction))

    def test_bad_workers(self):
        with pytest.raises(ValueError, match="--workers"):
            validate_arguments(_args(workers=0))

    def test_bad_threads(self):
        with pytest.raises(ValueError, match="--threads-per-worker"):
            validate_arguments(_args(threads_per_worker=0))

    def test_bad_lumi(self):
        with pytest.raises(ValueError, match="--lumi"):
            validate_arguments(_args(lumi=0.0))
