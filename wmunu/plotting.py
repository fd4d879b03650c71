"""Overlay of the per-dataset histograms: stacked simulation, data on top."""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import mplhep as hep

from wmunu.analysis_config import HIST_LABEL, LUMI, STACK_ORDER
from wmunu.histograms import stack_order as _stack_order

logger = logging.getLogger(__name__)


def plot_overlay(histograms, datasets, output_path, *, stack_order=None, lumi=LUMI, logy=False):
    """Render simulated histograms as a filled stack and data as error bars.

    ``histograms`` maps dataset name -> ``hist.Hist``; ``datasets`` supplies
    the simulated flag, legend label and colour for each name. Simulated
    samples are stacked bottom-to-top following ``stack_order`` (defaults to
    ``STACK_ORDER``). Returns the written path.
    """
    if not histograms:
        raise ValueError("No histograms to plot.")

    by_name = {ds.name: ds for ds in datasets}
    missing = [n for n in histograms if n not in by_name]
    if missing:
        raise ValueError(f"No dataset description for histograms {missing}")

    mc_names = _stack_order(
        [n for n in histograms if by_name[n].is_simulated],
        STACK_ORDER if stack_order is None else stack_order,
    )
    data_names = [n for n in histograms if not by_name[n].is_simulated]

    hep.style.use(hep.style.ATLAS)
    fig, ax = plt.subplots(figsize=(10, 8))

    if mc_names:
        hep.histplot(
            [histograms[n] for n in mc_names],
            ax=ax,
            stack=True,
            histtype="fill",
            label=[by_name[n].display_label for n in mc_names],
            color=[by_name[n].color for n in mc_names] if all(by_name[n].color for n in mc_names) else None,
        )

    for name in data_names:
        hep.histplot(
            histograms[name],
            ax=ax,
            histtype="errorbar",
            color="black",
            label=by_name[name].display_label,
        )

    hep.atlas.label(ax=ax, text="Open Data", data=bool(data_names), lumi=lumi, com=8)
    ax.set_xlabel(HIST_LABEL)
    ax.set_ylabel("Events / bin")
    if logy:
        ax.set_yscale("log")
    ax.legend(frameon=False)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path)
    plt.close(fig)

    logger.info("Overlay plot written to %s", output_path)
    return output_path
