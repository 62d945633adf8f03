from typing import TYPE_CHECKING, Any, Dict

import numpy as np
import xarray as xr

from ..convention import (
    CHANNEL,
    DEFAULT_COORD_ATTRS,
    DEFAULT_VAR_ATTRS,
    DEPTH,
    SOURCE_VERSION,
)
from ..utils.log import _init_logger
from ..utils.prov import add_processing_level, echomerge_prov_attrs
from .bounds import get_bounds
from .qc import add_quality_flags

if TYPE_CHECKING:
    from ..merge.grid import SurveyGrid

logger = _init_logger(__name__)


def prune_depth(ds: xr.Dataset) -> xr.Dataset:
    """Drop DEPTH positions whose layer midpoint was never resolved."""
    resolved = np.flatnonzero(~np.isnan(ds[DEPTH].values))
    n_dropped = ds.sizes[DEPTH] - len(resolved)
    if n_dropped:
        logger.info(f"Dropping {n_dropped} layers without a depth")
    return ds.isel({DEPTH: resolved})


def collapse_version(ds: xr.Dataset) -> xr.Dataset:
    """Demote a single-valued SOURCE_VERSION to the ``source_version`` attribute."""
    if ds.sizes.get(SOURCE_VERSION, 0) != 1:
        return ds
    version = str(ds[SOURCE_VERSION].values[0])
    return ds.drop_vars(SOURCE_VERSION).assign_attrs(source_version=version)


def collapse_channel(ds: xr.Dataset) -> xr.Dataset:
    """Demote a single CHANNEL to the ``channel`` and ``frequency`` attributes."""
    if ds.sizes[CHANNEL] != 1:
        return ds
    channel = str(ds[CHANNEL].values[0])
    frequency = float(ds["frequency"].values[0])
    ds = ds.drop_vars("frequency").isel({CHANNEL: 0}, drop=True)
    return ds.assign_attrs(channel=channel, frequency=frequency)


def _set_attrs(ds: xr.Dataset) -> xr.Dataset:
    for name, attrs in {**DEFAULT_COORD_ATTRS, **DEFAULT_VAR_ATTRS}.items():
        if name in ds.variables:
            ds[name].attrs.update(attrs)
    return ds


@add_processing_level("L2")
def finalize_grid(grid: "SurveyGrid", config: Dict[str, Any]) -> xr.Dataset:
    """
    Turn the merged survey grid into the output dataset.

    Layers without a depth are pruned, single-valued SOURCE_VERSION and
    (with ``single_channel_output``) CHANNEL dimensions are demoted to
    attributes, quality flags are added and the spatial and temporal extents
    are stored as global attributes.

    Parameters
    ----------
    grid : SurveyGrid
        The accumulated survey; it is not modified
    config : dict
        Sanitized settings

    Returns
    -------
    xr.Dataset

    Raises
    ------
    NoPositionDataError
        If no interval with a valid position was merged
    """
    ds = grid.to_dataset()
    ds = prune_depth(ds)
    ds = collapse_version(ds)
    if config["single_channel_output"]:
        ds = collapse_channel(ds)

    ds = _set_attrs(ds)
    ds = add_quality_flags(ds, config["accept_good"])

    attrs: Dict[str, Any] = dict(config["global_attrs"])
    attrs.update(echomerge_prov_attrs("merge"))
    attrs.update(get_bounds(ds))
    return ds.assign_attrs(attrs)
