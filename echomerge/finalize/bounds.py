from typing import Any, Dict

import numpy as np
import pandas as pd
import xarray as xr

from ..convention import DEPTH, TIME
from ..exceptions import NoPositionDataError

# A longitude span wider than this is taken as a track crossing the antimeridian
DATELINE_SPAN = 350

TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def wrap_longitude(lon: np.ndarray) -> np.ndarray:
    """Keep longitudes in [-360, 360] and wrap them into [-180, 180]."""
    lon = np.asarray(lon, dtype=np.float64)
    lon = lon[(lon >= -360) & (lon <= 360)]
    lon = np.where(lon < -180, lon + 360, lon)
    return np.where(lon > 180, lon - 360, lon)


def longitude_limits(lon: np.ndarray):
    """
    East and west limits of a set of longitudes.

    When the longitudes span more than 350 degrees the track is assumed to
    cross the antimeridian: the east limit is the largest positive longitude
    and the west limit the smallest negative one.

    Returns
    -------
    tuple of float
        (westlimit, eastlimit), both NaN if there is no valid longitude
    """
    lon = wrap_longitude(lon)
    if len(lon) == 0:
        return np.nan, np.nan
    west, east = lon.min(), lon.max()
    if east - west > DATELINE_SPAN:
        east = lon[lon > 0].max()
        west = lon[lon < 0].min()
    return float(west), float(east)


def get_bounds(ds: xr.Dataset) -> Dict[str, Any]:
    """
    Temporal, horizontal and vertical extents of a merged survey
    as global attributes.

    Raises
    ------
    NoPositionDataError
        If the survey holds no interval or no valid position
    """
    if ds.sizes.get(TIME, 0) == 0:
        raise NoPositionDataError("No usable GPS data found in CSV files")

    lat = ds["latitude"].values
    lat = lat[(lat >= -90) & (lat <= 90)]
    west, east = longitude_limits(ds["longitude"].values)
    if len(lat) == 0 or np.isnan(west):
        raise NoPositionDataError("No usable GPS data found in CSV files")

    attrs = {}

    time = pd.DatetimeIndex(ds[TIME].values).dropna()
    if len(time):
        attrs["time_coverage_start"] = time.min().strftime(TIME_FORMAT)
        attrs["time_coverage_end"] = time.max().strftime(TIME_FORMAT)

    attrs.update(
        geospatial_lat_min=float(lat.min()),
        geospatial_lat_max=float(lat.max()),
        northlimit=float(lat.max()),
        southlimit=float(lat.min()),
        geospatial_lon_min=west,
        geospatial_lon_max=east,
        eastlimit=east,
        westlimit=west,
    )

    depth = ds[DEPTH].values
    if len(depth) and not np.isnan(depth).all():
        attrs.update(
            geospatial_vertical_min=float(np.nanmin(depth)),
            geospatial_vertical_max=float(np.nanmax(depth)),
            downlimit=float(np.nanmin(depth)),
            uplimit=float(np.nanmax(depth)),
        )
    return attrs
