"""Read per-event records from the flat ``mini`` ntuples with uproot.

The reader hides the storage layout from the selection: every event comes out
as an immutable :class:`EventRecord` whose per-lepton arrays always have
``LEPTON_CAPACITY`` entries, whether the file stores them as fixed-size
C arrays or as jagged vectors. Simulation-only branches are never requested
for collision data and read as 1.0 there.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import awkward as ak
import numpy as np
import uproot

from wmunu.analysis_config import (
    BRANCHES,
    INTEGER_ARRAY_FIELDS,
    LEPTON_ARRAY_FIELDS,
    LEPTON_CAPACITY,
    MC_ONLY_FIELDS,
    TREE_NAME,
)
from wmunu.exceptions import DatasetAccessError, MalformedEventError

logger = logging.getLogger(__name__)

DEFAULT_STEP_SIZE = 100_000

# Errors uproot raises for unreachable/corrupt files, missing trees or branches.
_READ_ERRORS = (OSError, KeyError, ValueError)


@dataclass(frozen=True)
class EventRecord:
    """One event of the ntuple, in native (MeV) units."""

    lepton_count: int
    pt: tuple
    eta: tuple
    phi: tuple
    energy: tuple
    particle_type: tuple
    quality_flag: tuple
    isolation_cone20: tuple
    isolation_cone30: tuple
    charge: tuple
    z0: tuple
    d0: tuple
    missing_et: float
    missing_phi: float
    mc_weight: float = 1.0
    pileup_scale_factor: float = 1.0


def record_fields(is_simulated):
    """Event-record fields to read for a data or simulated sample."""
    return [f for f in BRANCHES if is_simulated or f not in MC_ONLY_FIELDS]


def _column_to_list(field, values):
    """Convert one awkward column into a list of python values."""
    if field in LEPTON_ARRAY_FIELDS:
        values = ak.fill_none(ak.pad_none(values, LEPTON_CAPACITY, axis=1, clip=True), 0)
        arr = ak.to_numpy(values)
        if field in INTEGER_ARRAY_FIELDS:
            arr = arr.astype(np.int64)
        else:
            arr = arr.astype(np.float64)
        return [tuple(row) for row in arr.tolist()]

    arr = ak.to_numpy(values)
    if field == "lepton_count":
        return arr.astype(np.int64).tolist()
    return arr.astype(np.float64).tolist()


def check_stored_leptons(arrays, fields):
    """Reject records whose ``lep_n`` exceeds the leptons actually stored.

    Padding to ``LEPTON_CAPACITY`` would otherwise hide a short jagged vector.
    """
    counts = ak.to_numpy(arrays[BRANCHES["lepton_count"]]).astype(np.int64)
    stored = np.full(len(counts), LEPTON_CAPACITY, dtype=np.int64)
    for f in fields:
        if f in LEPTON_ARRAY_FIELDS:
            stored = np.minimum(stored, ak.to_numpy(ak.num(arrays[BRANCHES[f]], axis=1)))
    bad = np.flatnonzero((counts < 0) | (counts > stored))
    if len(bad):
        i = bad[0]
        raise MalformedEventError(int(counts[i]), int(stored[i]))


def records_from_arrays(arrays, fields):
    """Turn a chunk of branch arrays into a list of :class:`EventRecord`.

    ``arrays`` is indexable by branch name (an awkward record array or a
    plain mapping of arrays). Raises :class:`~wmunu.exceptions.MalformedEventError`
    if any record claims more leptons than it stores.
    """
    check_stored_leptons(arrays, fields)
    columns = {f: _column_to_list(f, arrays[BRANCHES[f]]) for f in fields}
    n = len(columns["lepton_count"])
    return [EventRecord(**{f: columns[f][i] for f in fields}) for i in range(n)]


class EventReader:
    """Sequential and random access to the events of one dataset.

    Usage::

        with EventReader(location, is_simulated=True) as reader:
            for event in reader.iter_events(entry_stop=reader.num_entries // 10):
                ...

    Every failure to open or read the dataset raises
    :class:`~wmunu.exceptions.DatasetAccessError`.
    """

    def __init__(self, location, *, is_simulated, tree_name=TREE_NAME, step_size=DEFAULT_STEP_SIZE):
        self.location = location
        self.is_simulated = bool(is_simulated)
        self.tree_name = tree_name
        self.step_size = step_size
        self._fields = record_fields(self.is_simulated)
        self._branches = [BRANCHES[f] for f in self._fields]
        self._file = None
        self._tree = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        """Open the file and look up the tree (idempotent)."""
        if self._tree is not None:
            return self._tree
        try:
            self._file = uproot.open(self.location)
            tree = self._file[self.tree_name]
            missing = [b for b in self._branches if b not in tree]
        except _READ_ERRORS as e:
            self.close()
            raise DatasetAccessError(self.location, f"{type(e).__name__}: {e}") from e
        if missing:
            self.close()
            raise DatasetAccessError(self.location, f"missing branches {missing}")
        self._tree = tree
        logger.debug("Opened %s:%s (%d entries)", self.location, self.tree_name, tree.num_entries)
        return tree

    def close(self):
        if self._file is not None:
            self._file.close()
        self._file = None
        self._tree = None

    @property
    def num_entries(self) -> int:
        return int(self.open().num_entries)

    def iter_events(self, entry_stop=None):
        """Yield events ``0 .. entry_stop-1`` (all events if ``entry_stop`` is None)."""
        tree = self.open()
        try:
            for chunk in tree.iterate(
                self._branches,
                entry_stop=entry_stop,
                step_size=self.step_size,
                library="ak",
            ):
                yield from records_from_arrays(chunk, self._fields)
        except MalformedEventError:
            raise
        except _READ_ERRORS as e:
            raise DatasetAccessError(self.location, f"{type(e).__name__}: {e}") from e

    def read_event(self, index) -> EventRecord:
        """Random access to a single event."""
        n = self.num_entries
        if index < 0 or index >= n:
            raise IndexError(f"Event index {index} out of range for {n} entries")
        try:
            arrays = self._tree.arrays(
                self._branches,
                entry_start=index,
                entry_stop=index + 1,
                library="ak",
            )
        except _READ_ERRORS as e:
            raise DatasetAccessError(self.location, f"{type(e).__name__}: {e}") from e
        return records_from_arrays(arrays, self._fields)[0]
