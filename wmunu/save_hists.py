import logging
from pathlib import Path

import uproot

from wmunu.analysis_config import HIST_NAME
from wmunu.histograms import sum_hists

logger = logging.getLogger(__name__)


def _hist_path(dataset_name, hist_stem=HIST_NAME):
    return f"/{dataset_name}/{hist_stem}"


def simulated_names(outputs, datasets):
    """Names of the simulated datasets present in ``outputs``, in output order."""
    is_sim = {ds.name: ds.is_simulated for ds in datasets}
    return [name for name in outputs if is_sim.get(name, False)]


def save_histograms(outputs, datasets, output_file):
    """Write per-dataset histograms, cutflows and the summed simulation.

    Layout:
        /<dataset>/lep_pt
        /cutflow/<dataset>/weighted, /cutflow/<dataset>/unweighted
        /stack/lep_pt_mc    (sum over simulated datasets, if any)
    """
    if not outputs:
        raise ValueError("No histogram data provided.")

    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    mc_names = simulated_names(outputs, datasets)

    with uproot.recreate(output_file) as root_file:
        for name, out in outputs.items():
            root_file[_hist_path(name)] = out.histogram
            root_file[f"/cutflow/{name}/weighted"] = out.cutflow
            root_file[f"/cutflow/{name}/unweighted"] = out.cutflow_unweighted

        if mc_names:
            root_file[f"/stack/{HIST_NAME}_mc"] = sum_hists(outputs[n].histogram for n in mc_names)

    logger.info("Histograms saved to %s.", output_file)
    return output_file
