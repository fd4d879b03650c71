"""Per-event selection for the single-muon + missing-momentum topology.

Chain applied to every event, in order:
    1) Lepton quality: muon, well-measured flag, pT >= 25 GeV, eta <= 2.5
       (one-sided), relative calorimeter and track isolation <= 0.1.
    2) Multiplicity veto: exactly one good lepton.
    3) Kinematics: lepton and MET 4-vectors (GeV), transverse mass.
    4) Value cuts: mT >= 30 GeV and MET >= 30 GeV (both inclusive).

All helpers are pure functions of one :class:`~wmunu.event_reader.EventRecord`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import vector

from wmunu.analysis_config import (
    CUTS,
    MEV_TO_GEV,
    SEL_MET_GE30,
    SEL_MT_GE30,
    SEL_NO_CUTS,
    SEL_ONE_GOOD_MUON,
)
from wmunu.exceptions import MalformedEventError


@dataclass(frozen=True)
class SelectedEvent:
    """Kinematics of an event that passed the full selection (GeV)."""

    lepton_index: int
    lepton_pt: float
    transverse_mass: float
    met: float


def check_lepton_count(event):
    """Return ``event.lepton_count``, failing fast if it overruns the arrays."""
    n = event.lepton_count
    capacity = min(
        len(event.pt), len(event.eta), len(event.phi), len(event.energy),
        len(event.particle_type), len(event.quality_flag),
        len(event.isolation_cone20), len(event.isolation_cone30),
    )
    if n < 0 or n > capacity:
        raise MalformedEventError(n, capacity)
    return n


def is_good_lepton(event, j) -> bool:
    """True if lepton ``j`` passes all six quality requirements.

    The eta requirement is ``eta <= 2.5`` with no lower bound.
    """
    pt = event.pt[j]
    return (
        event.particle_type[j] == CUTS["muon_type"]
        and bool(event.quality_flag[j] & CUTS["quality_bit"])
        and pt >= CUTS["lepton_pt_min"]
        and event.eta[j] <= CUTS["lepton_eta_max"]
        and event.isolation_cone20[j] / pt <= CUTS["iso_cone20_rel_max"]
        and event.isolation_cone30[j] / pt <= CUTS["iso_cone30_rel_max"]
    )


def find_good_leptons(event):
    """Count good leptons; return ``(count, index_of_last_good_lepton)``.

    The index is -1 when no lepton passes. With more than one good lepton the
    event is vetoed anyway, so which index is kept does not matter.
    """
    count = 0
    index = -1
    for j in range(check_lepton_count(event)):
        if is_good_lepton(event, j):
            count += 1
            index = j
    return count, index


def lepton_vector(event, j):
    """Lepton 4-vector in GeV from (pt, eta, phi, E)."""
    return vector.obj(
        pt=event.pt[j] * MEV_TO_GEV,
        eta=event.eta[j],
        phi=event.phi[j],
        E=event.energy[j] * MEV_TO_GEV,
    )


def met_vector(event):
    """Massless transverse pseudo-vector for the missing momentum, in GeV."""
    met = event.missing_et * MEV_TO_GEV
    return vector.obj(pt=met, eta=0.0, phi=event.missing_phi, E=met)


def _to_half_open(dphi):
    # vector returns [-pi, pi); report the edge as +pi.
    return math.pi if dphi <= -math.pi else dphi


def delta_phi(phi1, phi2) -> float:
    """Azimuthal difference ``phi1 - phi2`` wrapped into (-pi, pi]."""
    return _to_half_open(vector.obj(rho=1.0, phi=phi1).deltaphi(vector.obj(rho=1.0, phi=phi2)))


def transverse_mass(lepton, met) -> float:
    """``sqrt(2 pT(l) pT(miss) (1 - cos dphi))`` for two vector objects."""
    dphi = _to_half_open(lepton.deltaphi(met))
    mt2 = 2.0 * lepton.pt * met.pt * (1.0 - math.cos(dphi))
    return math.sqrt(max(mt2, 0.0))


def value_cut_steps(mt, met):
    """Cutflow steps reached by the value cuts, mT first then MET (GeV)."""
    steps = []
    if mt < CUTS["mt_min"]:
        return steps
    steps.append(SEL_MT_GE30)
    if met < CUTS["met_min"]:
        return steps
    steps.append(SEL_MET_GE30)
    return steps


def passes_value_cuts(mt, met) -> bool:
    """Inclusive lower bounds on transverse mass and MET (GeV)."""
    return SEL_MET_GE30 in value_cut_steps(mt, met)


def evaluate_event(event):
    """Run the selection chain on one event.

    Returns ``(passed_steps, candidate)``: the cumulative cutflow steps the
    event reached (always starting with ``no_cuts``) and a
    :class:`SelectedEvent` if it passed everything, else ``None``.
    """
    steps = [SEL_NO_CUTS]

    n_good, index = find_good_leptons(event)
    if n_good != CUTS["n_good_leptons"]:
        return tuple(steps), None
    steps.append(SEL_ONE_GOOD_MUON)

    lepton = lepton_vector(event, index)
    met = met_vector(event)
    mt = transverse_mass(lepton, met)

    steps.extend(value_cut_steps(mt, met.pt))
    if steps[-1] != SEL_MET_GE30:
        return tuple(steps), None

    return tuple(steps), SelectedEvent(
        lepton_index=index,
        lepton_pt=lepton.pt,
        transverse_mass=mt,
        met=met.pt,
    )


def select_event(event):
    """Return the :class:`SelectedEvent` for a passing event, else ``None``."""
    _, candidate = evaluate_event(event)
    return candidate


def event_weight(event, dataset) -> float:
    """Fill weight: ``mcWeight * lumi weight * pileup SF`` for simulation.

    Collision data gets exactly the luminosity weight, whatever MC fields the
    record happens to carry.
    """
    if not dataset.is_simulated:
        return dataset.luminosity_weight
    return event.mc_weight * dataset.luminosity_weight * event.pileup_scale_factor
