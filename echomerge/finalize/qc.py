import numpy as np
import xarray as xr

from ..convention import DEPTH, FLAG_GOOD, FLAG_NO_QC, QC_FLAG_ATTRS, TIME


def _flag_da(like: xr.DataArray, values: np.ndarray, name: str) -> xr.DataArray:
    return xr.DataArray(
        values.astype(np.int8),
        dims=like.dims,
        coords=like.coords,
        attrs={**QC_FLAG_ATTRS, "long_name": f"Quality control flag for {name}"},
    )


def add_quality_flags(ds: xr.Dataset, accept_good: float) -> xr.Dataset:
    """
    Add quality control flags to a merged survey.

    ``Sv_quality_control`` is 2 (good data) where linear Sv is below 1 and
    the percent good exceeds ``accept_good``, and 1 (no QC performed)
    elsewhere. Coordinates and positions are flagged 1 throughout.
    """
    good = (ds["Sv"] < 1) & (ds["Sv_percent_good"] > accept_good)
    sv_flags = np.where(good.values, FLAG_GOOD, FLAG_NO_QC)

    flags = {"Sv_quality_control": _flag_da(ds["Sv"], sv_flags, "Sv")}
    for name in (TIME, DEPTH, "latitude", "longitude"):
        flags[f"{name}_quality_control"] = _flag_da(
            ds[name], np.full(ds[name].shape, FLAG_NO_QC), name
        )
    ds = ds.assign(flags)

    for name in ("Sv", TIME, DEPTH, "latitude", "longitude"):
        ds[name].attrs["ancillary_variables"] = f"{name}_quality_control"
    return ds
