"""Lightweight configuration for the W→μν single-muon analysis.

Keep this module dependency-free so it can be shipped to Dask workers cheaply.
All thresholds are fixed; there is no runtime override for cuts
or binning.
"""

import os

# Ntuple layout ----------------------------------------------------------------

TREE_NAME = "mini"

# Fixed capacity of the per-lepton arrays in the ntuple.
LEPTON_CAPACITY = 5

# Ntuple momenta/energies are stored in MeV; the analysis works in GeV.
MEV_TO_GEV = 0.001

# Event-record field -> ntuple branch name.
BRANCHES = {
    "lepton_count": "lep_n",
    "pt": "lep_pt",
    "eta": "lep_eta",
    "phi": "lep_phi",
    "energy": "lep_E",
    "particle_type": "lep_type",
    "quality_flag": "lep_flag",
    "isolation_cone20": "lep_etcone20",
    "isolation_cone30": "lep_ptcone30",
    "charge": "lep_charge",
    "z0": "lep_z0",
    "d0": "lep_trackd0pvunbiased",
    "missing_et": "met_et",
    "missing_phi": "met_phi",
    "mc_weight": "mcWeight",
    "pileup_scale_factor": "scaleFactor_PILEUP",
}

LEPTON_ARRAY_FIELDS = (
    "pt", "eta", "phi", "energy",
    "particle_type", "quality_flag",
    "isolation_cone20", "isolation_cone30",
    "charge", "z0", "d0",
)
INTEGER_ARRAY_FIELDS = ("particle_type", "quality_flag", "charge")

# Only read for simulated samples; defined as 1.0 for collision data.
MC_ONLY_FIELDS = ("mc_weight", "pileup_scale_factor")

# Selection ----------------------------------------------------------------------

CUTS = {
    "muon_type": 13,            # lep_type code (11 = electron)
    "quality_bit": 512,         # well-measured flag in lep_flag
    "lepton_pt_min": 25000.0,   # MeV
    "lepton_eta_max": 2.5,      # one-sided, no lower bound
    "iso_cone20_rel_max": 0.1,  # etcone20 / pt
    "iso_cone30_rel_max": 0.1,  # ptcone30 / pt
    "n_good_leptons": 1,
    "mt_min": 30.0,             # GeV
    "met_min": 30.0,            # GeV
}

# --- Selection name constants (single source of truth for cutflow labels) ------
SEL_NO_CUTS = "no_cuts"
SEL_ONE_GOOD_MUON = "one_good_muon"
SEL_MT_GE30 = "mt_ge30"
SEL_MET_GE30 = "met_ge30"

CUTFLOW_STEPS = (SEL_NO_CUTS, SEL_ONE_GOOD_MUON, SEL_MT_GE30, SEL_MET_GE30)

# Histogram ----------------------------------------------------------------------

HIST_NAME = "lep_pt"
HIST_BINNING = (20, 0.0, 200.0)
HIST_LABEL = r"$p_{T}$ of the selected muon [GeV]"

# Samples ------------------------------------------------------------------------

# Integrated luminosity of the collision data (fb^-1)
LUMI = 1.0

DEFAULT_SAMPLE_FRACTION = 0.1

DEFAULT_SAMPLE_BASE = "http://opendata.atlas.cern/release/samples"


def sample_base():
    """Base location for sample files, overridable via ``WMUNU_SAMPLE_BASE``."""
    return os.environ.get("WMUNU_SAMPLE_BASE") or DEFAULT_SAMPLE_BASE


def lumi_weight(xsec_pb, sumw, lumi_fb=LUMI):
    """Per-sample normalisation: ``xsec * lumi * 1000 / sumw`` (pb, fb^-1)."""
    if sumw <= 0:
        raise ValueError(f"Sum of weights must be positive, got {sumw}")
    return xsec_pb * lumi_fb * 1000.0 / sumw


# Ordered sample table. Data entries carry an explicit weight; simulated
# entries are normalised from cross-section (pb) and sum of generator weights.
SAMPLES = {
    "data": {
        "path": "Data/DataMuons.root",
        "is_simulated": False,
        "weight": 1.0,
        "label": "Data",
        "color": "black",
    },
    "wmunu": {
        "path": "MC/mc_167745.WmunuNoJetsBVeto.root",
        "is_simulated": True,
        "xsec": 10310.0,
        "sumw": 4.7e7,
        "label": r"$W \rightarrow \mu\nu$",
        "color": "#f4a582",
    },
    "zmumu": {
        "path": "MC/mc_147771.Zmumu.root",
        "is_simulated": True,
        "xsec": 1109.3,
        "sumw": 2.4e7,
        "label": r"$Z \rightarrow \mu\mu$",
        "color": "#4393c3",
    },
    "ttbar": {
        "path": "MC/mc_117050.ttbar_lep.root",
        "is_simulated": True,
        "xsec": 137.3,
        "sumw": 5.0e6,
        "label": r"$t\bar{t}$",
        "color": "#92c5de",
    },
    "diboson": {
        "path": "MC/mc_105985.WW.root",
        "is_simulated": True,
        "xsec": 12.4,
        "sumw": 2.5e6,
        "label": "Diboson",
        "color": "#d6604d",
    },
}

# Bottom-to-top stacking order for simulated samples in the overlay plot.
STACK_ORDER = ["diboson", "ttbar", "zmumu", "wmunu"]
