"""W→μν event selection and accumulation.

High-level flow per dataset:
    1) Open the ntuple and take the first ``floor(N * sample_fraction)`` events.
    2) Run the per-event selection chain (``wmunu.selection``).
    3) Fill the muon-pT histogram and the cutflows with the event weight.

Output conventions:
    - One fresh histogram per dataset, owned by the caller once returned.
    - Cutflows are ``StrCategory`` histograms labelled with the step names,
      in weighted and unweighted flavours.

Datasets share no writable state, so they can run in parallel (see
``run_datasets``); partial histograms merge by bin-wise summation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from hist import Hist

from wmunu.analysis_config import CUTFLOW_STEPS, DEFAULT_SAMPLE_FRACTION
from wmunu.event_reader import EventReader
from wmunu.histograms import add, create_cutflow_hist, create_hist, cutflow_to_dict, fill_cutflow
from wmunu.selection import evaluate_event, event_weight

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOutput:
    """Everything accumulated for one dataset."""

    histogram: Hist
    cutflow: Hist
    cutflow_unweighted: Hist
    n_processed: int = 0
    n_passed: int = 0
    sumw_passed: float = 0.0
    dataset_name: str = ""


def n_events_to_process(total, sample_fraction=DEFAULT_SAMPLE_FRACTION) -> int:
    """``floor(total * sample_fraction)`` with ``sample_fraction`` in (0, 1]."""
    if not 0.0 < sample_fraction <= 1.0:
        raise ValueError(f"sample_fraction must be in (0, 1], got {sample_fraction}")
    if total < 0:
        raise ValueError(f"total must be >= 0, got {total}")
    return int(math.floor(total * sample_fraction))


class WmunuAnalysis:
    """Selector/accumulator for the single-muon + MET selection.

    Stateless between calls: every ``process`` books fresh histograms, so one
    instance can be reused for many datasets.
    """

    def __init__(self, cut_names=CUTFLOW_STEPS):
        self._cut_names = tuple(cut_names)
        self.make_output = lambda: AnalysisOutput(
            histogram=create_hist(),
            cutflow=create_cutflow_hist(self._cut_names),
            cutflow_unweighted=create_cutflow_hist(self._cut_names),
        )

    def process(self, events, dataset) -> AnalysisOutput:
        """Apply the selection to ``events`` and fill a fresh output.

        ``events`` is any iterable of ``EventRecord``. A malformed record
        raises ``MalformedEventError`` and aborts the whole dataset.
        """
        output = self.make_output()
        output.dataset_name = dataset.name

        for event in events:
            output.n_processed += 1
            weight = event_weight(event, dataset)
            steps, candidate = evaluate_event(event)

            fill_cutflow(output.cutflow, steps, weight)
            fill_cutflow(output.cutflow_unweighted, steps, 1.0)

            if candidate is None:
                continue

            output.n_passed += 1
            output.sumw_passed += weight
            add(output.histogram, candidate.lepton_pt, weight)

        return output


def run_analysis_with_output(dataset, sample_fraction=DEFAULT_SAMPLE_FRACTION, *,
                             reader_factory=EventReader, analysis=None) -> AnalysisOutput:
    """Process one dataset and return the full :class:`AnalysisOutput`."""
    analysis = analysis or WmunuAnalysis()

    with reader_factory(dataset.source_location, is_simulated=dataset.is_simulated) as reader:
        total = reader.num_entries
        n_events = n_events_to_process(total, sample_fraction)
        logger.info(
            "Processing %s: %d of %d events (fraction %.3g)",
            dataset.name or dataset.source_location, n_events, total, sample_fraction,
        )
        output = analysis.process(reader.iter_events(entry_stop=n_events), dataset)

    logger.info(
        "%s: %d/%d events passed, sum of weights %.6g",
        dataset.name or dataset.source_location,
        output.n_passed, output.n_processed, output.sumw_passed,
    )
    logger.debug("%s cutflow: %s", dataset.name, cutflow_to_dict(output.cutflow_unweighted))
    return output


def run_analysis(dataset, sample_fraction=DEFAULT_SAMPLE_FRACTION, *, reader_factory=EventReader) -> Hist:
    """Process one dataset and return its filled lepton-pT histogram."""
    return run_analysis_with_output(
        dataset, sample_fraction, reader_factory=reader_factory,
    ).histogram


def run_datasets(datasets, sample_fraction=DEFAULT_SAMPLE_FRACTION, *, client=None,
                 reader_factory=EventReader) -> dict[str, AnalysisOutput]:
    """Process several datasets; return outputs keyed by dataset name, in input order.

    With a ``dask.distributed`` client each dataset runs as one task;
    otherwise they run one after the other in this process.
    """
    names = [ds.name or ds.source_location for ds in datasets]
    if len(set(names)) != len(names):
        raise ValueError(f"Dataset names must be unique, got {names}")

    if client is None:
        outputs = [
            run_analysis_with_output(ds, sample_fraction, reader_factory=reader_factory)
            for ds in datasets
        ]
    else:
        futures = [
            client.submit(
                run_analysis_with_output, ds, sample_fraction,
                reader_factory=reader_factory, key=f"wmunu-{name}",
            )
            for ds, name in zip(datasets, names)
        ]
        outputs = client.gather(futures)

    return dict(zip(names, outputs))
