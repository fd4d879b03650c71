import argparse
import logging
import time
from contextlib import contextmanager
from pathlib import Path

from wmunu.analysis_config import DEFAULT_SAMPLE_FRACTION, LUMI, STACK_ORDER
from wmunu.cli_utils import COMPOSITE_SAMPLES, list_samples, resolve_samples, validate_arguments
from wmunu.datasets import build_datasets

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


# ---------------------------------------------------------------------------
# Cluster context manager
# ---------------------------------------------------------------------------

@contextmanager
def _local_cluster(*, n_workers, threads_per_worker):
    """Set up a local Dask cluster, yield client, clean up on exit."""
    from dask.distributed import Client, LocalCluster

    cluster = LocalCluster(n_workers=n_workers, threads_per_worker=threads_per_worker)
    client = Client(cluster)
    try:
        yield client
    finally:
        client.close()
        cluster.close()


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------

def _process_datasets(args, datasets, *, client=None):
    """Run the selection over all datasets, return outputs keyed by name."""
    from wmunu.analyzer import run_datasets

    logging.info("***PROCESSING***")
    outputs = run_datasets(datasets, args.fraction, client=client)
    logging.info("Processing completed")
    return outputs


def _write_outputs(args, datasets, outputs):
    from wmunu.save_hists import save_histograms

    output_dir = Path(args.output_dir)
    stem = f"WmunuAnalyzer_{args.name}" if args.name else "WmunuAnalyzer"
    save_histograms(outputs, datasets, output_dir / f"{stem}.root")

    if args.plot:
        from wmunu.plotting import plot_overlay

        plot_overlay(
            {name: out.histogram for name, out in outputs.items()},
            datasets,
            output_dir / f"{stem}_lep_pt.png",
            stack_order=STACK_ORDER,
            lumi=args.lumi,
            logy=args.logy,
        )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser():
    sample_choices = list_samples() + list(COMPOSITE_SAMPLES.keys())

    parser = argparse.ArgumentParser(description="Processing script for the W->munu analysis.")
    parser.add_argument("samples", nargs="*", default=None, help=f"Samples to analyze or composite mode. Choices: {', '.join(sample_choices)}. Default: all.")
    optional = parser.add_argument_group("Optional arguments")
    optional.add_argument("--fraction", type=float, default=DEFAULT_SAMPLE_FRACTION, help=f"Fraction of events to process per dataset (default: {DEFAULT_SAMPLE_FRACTION}).")
    optional.add_argument("--base", type=str, default=None, help="Override the sample base location (default: $WMUNU_SAMPLE_BASE or the open-data server).")
    optional.add_argument("--lumi", type=float, default=LUMI, help=f"Integrated luminosity in fb^-1 used to normalise simulation (default: {LUMI}).")
    optional.add_argument("--output-dir", type=Path, default=Path("wmunu_output"), help="Directory for the ROOT file and plot.")
    optional.add_argument("--name", type=str, default=None, help="Append to the output filenames.")
    optional.add_argument("--no-plot", dest="plot", action="store_false", help="Skip the overlay plot.")
    optional.add_argument("--logy", action="store_true", help="Log-scale y axis in the overlay plot.")
    optional.add_argument("--workers", type=int, default=None, help="Number of local Dask workers; datasets run sequentially when omitted.")
    optional.add_argument("--threads-per-worker", type=int, default=None, help="Threads per Dask worker (LocalCluster threads_per_worker).")
    optional.add_argument("--list-samples", action="store_true", help="Print available samples and exit.")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_samples:
        print("\n".join(list_samples()))
        return 0

    validate_arguments(args)

    names = resolve_samples(args.samples or ["all"])
    datasets = build_datasets(names, base=args.base, lumi_fb=args.lumi)
    logging.info("Analyzing %s (fraction %.3g)", ", ".join(names), args.fraction)

    t0 = time.monotonic()

    if args.workers:
        with _local_cluster(n_workers=args.workers, threads_per_worker=args.threads_per_worker or 1) as client:
            outputs = _process_datasets(args, datasets, client=client)
    else:
        outputs = _process_datasets(args, datasets)

    _write_outputs(args, datasets, outputs)

    exec_time = time.monotonic() - t0
    logging.info(f"Execution took {exec_time/60:.2f} minutes")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
