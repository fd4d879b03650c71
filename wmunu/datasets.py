"""Dataset descriptors and the sample-table lookup that builds them."""

from __future__ import annotations

from dataclasses import dataclass

from wmunu.analysis_config import LUMI, SAMPLES, lumi_weight, sample_base


@dataclass(frozen=True)
class Dataset:
    """One input dataset of the analysis.

    ``source_location``, ``is_simulated`` and ``luminosity_weight`` drive the
    selection. ``name``, ``label`` and ``color`` only matter for bookkeeping
    and the overlay plot.
    """

    source_location: str
    is_simulated: bool
    luminosity_weight: float
    name: str = ""
    label: str | None = None
    color: str | None = None

    @property
    def display_label(self) -> str:
        return self.label or self.name or self.source_location


def build_dataset_location(path: str, base: str | None = None) -> str:
    """Join a sample's relative path onto the sample base location."""
    if "://" in path or path.startswith("/"):
        return path
    root = base if base is not None else sample_base()
    return f"{root.rstrip('/')}/{path.lstrip('/')}"


def build_dataset(name: str, *, base: str | None = None, lumi_fb: float = LUMI) -> Dataset:
    """Build a :class:`Dataset` from the ``SAMPLES`` table entry ``name``."""
    try:
        info = SAMPLES[name]
    except KeyError:
        raise ValueError(f"Unknown sample: {name}. Valid samples: {list(SAMPLES)}") from None

    if info["is_simulated"]:
        weight = lumi_weight(info["xsec"], info["sumw"], lumi_fb)
    else:
        weight = float(info.get("weight", 1.0))

    return Dataset(
        source_location=build_dataset_location(info["path"], base),
        is_simulated=bool(info["is_simulated"]),
        luminosity_weight=weight,
        name=name,
        label=info.get("label"),
        color=info.get("color"),
    )


def build_datasets(names, *, base: str | None = None, lumi_fb: float = LUMI) -> list[Dataset]:
    """Build datasets for ``names`` in the given order."""
    return [build_dataset(name, base=base, lumi_fb=lumi_fb) for name in names]
