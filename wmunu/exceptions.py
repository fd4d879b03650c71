"""Exceptions raised by the W→μν analysis.

Everything derives from :class:`AnalysisError` so callers can catch all
analysis-specific failures with a single clause.
"""


class AnalysisError(Exception):
    """Base exception for all analysis errors."""


class DatasetAccessError(AnalysisError):
    """Raised when a dataset cannot be opened or read.

    Covers unreachable remote locations, missing files, a missing tree and
    missing branches. Fatal: there is no retry.
    """

    def __init__(self, location, reason):
        self.location = location
        self.reason = reason
        super().__init__(f"Cannot read dataset '{location}': {reason}")


class MalformedEventError(AnalysisError, ValueError):
    """Raised when an event record violates the fixed ntuple layout.

    The only check is the lepton multiplicity against the per-lepton array
    capacity; indexing past it would read garbage.
    """

    def __init__(self, lepton_count, capacity):
        self.lepton_count = lepton_count
        self.capacity = capacity
        super().__init__(
            f"lepton_count={lepton_count} outside supported range [0, {capacity}]"
        )
