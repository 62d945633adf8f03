import functools
import re
from datetime import datetime as dt
from datetime import timezone
from typing import Any, Dict

import xarray as xr
from typing_extensions import Literal

from ..version import __version__ as ECHOMERGE_VERSION
from .log import _init_logger

ProcessType = Literal["merge"]

logger = _init_logger(__name__)


def echomerge_prov_attrs(process_type: ProcessType) -> Dict[str, str]:
    """
    Standard echomerge software attributes for provenance

    Parameters
    ----------
    process_type : ProcessType
        echomerge processing step
    """

    prov_dict = {
        f"{process_type}_software_name": "echomerge",
        f"{process_type}_software_version": ECHOMERGE_VERSION,
        f"{process_type}_time": dt.now(timezone.utc).replace(tzinfo=None).isoformat(
            timespec="seconds"
        )
        + "Z",
    }

    return prov_dict


def _check_valid_latlon(ds: xr.Dataset) -> bool:
    """Verify that the dataset contains valid latitude and longitude variables"""
    return (
        "longitude" in ds
        and not ds["longitude"].isnull().all()
        and "latitude" in ds
        and not ds["latitude"].isnull().all()
    )


# IMOS data processing levels
PROCESSING_LEVELS = dict(
    L0="Level 0",
    L1="Level 1",
    L2="Level 2",
    L3="Level 3",
    L4="Level 4",
)


def add_processing_level(processing_level_code: str) -> Any:
    """
    Wraps module functions that return an xr.Dataset and stamps the
    processing level attributes onto the result.

    Parameters
    ----------
    processing_level_code : str
        Data processing level code, one of the keys of ``PROCESSING_LEVELS``.

    Returns
    -------
    The xr.Dataset with processing level attributes inserted if it holds
    valid positions, or unchanged otherwise.
    """
    if not re.fullmatch(r"L[0-4]", processing_level_code):
        raise ValueError(f"Processing level code {processing_level_code} is invalid.")

    def wrapper(func):
        @functools.wraps(func)
        def inner(*args, **kwargs):
            ds = func(*args, **kwargs)
            if not isinstance(ds, xr.Dataset):
                raise RuntimeError(
                    f"{func.__qualname__} is decorated with add_processing_level "
                    "but does not return an xr.Dataset."
                )
            if _check_valid_latlon(ds):
                return ds.assign_attrs(
                    {
                        "processing_level": PROCESSING_LEVELS[processing_level_code],
                        "level": int(processing_level_code[1]),
                    }
                )
            logger.info(
                "Dataset does not contain valid location data. "
                "Processing level attributes will not be added."
            )
            return ds

        return inner

    return wrapper
