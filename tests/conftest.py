"""Shared builders for synthetic ntuple events."""

import math

import pytest

from wmunu.analysis_config import LEPTON_CAPACITY
from wmunu.datasets import Dataset
from wmunu.event_reader import EventRecord

# A lepton passing every quality requirement (native MeV units).
GOOD_MUON = {
    "pt": 40000.0,
    "eta": 0.5,
    "phi": 0.0,
    "energy": 50000.0,
    "particle_type": 13,
    "quality_flag": 512,
    "isolation_cone20": 0.0,
    "isolation_cone30": 0.0,
    "charge": -1,
    "z0": 0.0,
    "d0": 0.0,
}

_ZERO = {k: (0 if isinstance(v, int) else 0.0) for k, v in GOOD_MUON.items()}


def make_event(leptons=(), *, met=40000.0, met_phi=math.pi, mc_weight=1.0,
               pileup_scale_factor=1.0, lepton_count=None):
    """Build an ``EventRecord`` from a list of per-lepton overrides of ``GOOD_MUON``.

    Arrays are padded with zeros to ``LEPTON_CAPACITY``. ``lepton_count``
    defaults to the number of leptons given.
    """
    leptons = [{**GOOD_MUON, **lep} for lep in leptons]
    padded = leptons + [_ZERO] * (LEPTON_CAPACITY - len(leptons))
    arrays = {k: tuple(lep[k] for lep in padded) for k in GOOD_MUON}
    return EventRecord(
        lepton_count=len(leptons) if lepton_count is None else lepton_count,
        missing_et=met,
        missing_phi=met_phi,
        mc_weight=mc_weight,
        pileup_scale_factor=pileup_scale_factor,
        **arrays,
    )


class FakeReader:
    """In-memory stand-in for ``EventReader``."""

    def __init__(self, events):
        self.events = list(events)
        self.opened_with = None
        self.closed = False

    def __call__(self, location, *, is_simulated):
        self.opened_with = (location, is_simulated)
        return self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    @property
    def num_entries(self):
        return len(self.events)

    def iter_events(self, entry_stop=None):
        yield from self.events[:entry_stop]


@pytest.fixture
def data_dataset():
    return Dataset(source_location="memory://data", is_simulated=False, luminosity_weight=2.0, name="data")


@pytest.fixture
def mc_dataset():
    return Dataset(source_location="memory://mc", is_simulated=True, luminosity_weight=0.5, name="wmunu")
