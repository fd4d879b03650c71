"""Histogram booking, filling and merging for the W→μν analysis.

Canonical naming choice:
  - Histogram key in the output dict == numeric axis name == ROOT stem

Binning is fixed (``HIST_BINNING``); there is no per-run override.
"""

import logging
from typing import Iterable

import hist
from hist import Hist

from wmunu.analysis_config import CUTFLOW_STEPS, HIST_BINNING, HIST_LABEL, HIST_NAME

logger = logging.getLogger(__name__)


def create_hist(name=HIST_NAME, bins=HIST_BINNING, label=HIST_LABEL):
    """Create the weighted 1D observable histogram."""
    return (
        hist.Hist.new
        .Reg(*bins, name=name, label=label)
        .Weight()
    )


def add(h, value, weight=1.0):
    """Add one weighted entry at ``value`` on the histogram's single axis."""
    h.fill(**{h.axes[0].name: value}, weight=weight)


def create_cutflow_hist(cut_names=CUTFLOW_STEPS):
    """Cutflow histogram with the cut names as bin labels.

    The labels end up in the ROOT file, so the cutflow is self-documenting
    and robust against ordering changes.
    """
    return hist.Hist(
        hist.axis.StrCategory(list(cut_names), name="cut"),
        storage=hist.storage.Weight(),
    )


def fill_cutflow(h, passed_steps, weight=1.0):
    """Count one event in every cumulative step it reached."""
    steps = list(passed_steps)
    if steps:
        h.fill(cut=steps, weight=[weight] * len(steps))


def cutflow_to_dict(h):
    """``{cut_name: sum_of_weights}`` in axis order."""
    ax = h.axes["cut"]
    values = h.values()
    return {ax.value(i): float(values[i]) for i in range(ax.size)}


def sum_hists(hists: Iterable[Hist]) -> Hist:
    """Bin-wise sum of compatible histograms (datasets or event shards).

    Returns a new histogram; inputs are left untouched.
    """
    hists = list(hists)
    if not hists:
        raise ValueError("No histogram data provided.")

    total = Hist(*hists[0].axes, storage=hists[0].storage_type())
    for h in hists:
        total += h
    return total


def stack_order(names: Iterable[str], order: Iterable[str]) -> list[str]:
    """Order ``names`` by ``order``; names not listed keep their input order at the end."""
    names = list(names)
    rank = {name: i for i, name in enumerate(order)}
    listed = sorted((n for n in names if n in rank), key=rank.__getitem__)
    unlisted = [n for n in names if n not in rank]
    if unlisted:
        logger.warning("No stacking position configured for %s; appending on top.", unlisted)
    return listed + unlisted
