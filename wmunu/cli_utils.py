from __future__ import annotations

import logging

from wmunu.analysis_config import SAMPLES, STACK_ORDER

logger = logging.getLogger(__name__)

COMPOSITE_SAMPLES: dict[str, list[str]] = {
    "all":  ["data"] + STACK_ORDER,
    "data": ["data"],
    "mc":   list(STACK_ORDER),
}


def list_samples() -> list[str]:
    """Return supported single-sample choices for the CLI."""

    # Curated order from analysis_config.
    return list(SAMPLES.keys())


def resolve_samples(selection: list[str] | str) -> list[str]:
    """Expand sample and composite names into an ordered, de-duplicated list."""

    if isinstance(selection, str):
        selection = [selection]

    names: list[str] = []
    for item in selection:
        expanded = COMPOSITE_SAMPLES.get(item, [item])
        for name in expanded:
            if name not in SAMPLES:
                raise ValueError(f"Unknown sample: {name}. Valid samples: {list_samples()}")
            if name not in names:
                names.append(name)
    return names


def validate_arguments(args):
    """Check CLI argument values before running."""
    if not 0.0 < args.fraction <= 1.0:
        raise ValueError("--fraction must be in (0, 1]")
    if args.workers is not None and args.workers < 1:
        raise ValueError("--workers must be a positive integer")
    if args.threads_per_worker is not None and args.threads_per_worker < 1:
        raise ValueError("--threads-per-worker must be a positive integer")
    if args.lumi is not None and args.lumi <= 0:
        raise ValueError("--lumi must be positive")
