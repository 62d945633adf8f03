"""
Splice the timeline of one worksheet onto the accumulated survey.
"""

import warnings
from typing import TYPE_CHECKING

import numpy as np

from ..exceptions import NoPositionWarning
from ..utils.log import _init_logger

if TYPE_CHECKING:
    from .grid import SurveyGrid

logger = _init_logger(__name__)


def stitch_segment(accumulated: "SurveyGrid", segment: "SurveyGrid") -> "SurveyGrid":
    """
    Append the positioned intervals of a worksheet to the accumulated survey.

    Intervals of ``segment`` without a position fix or timestamp are dropped. Accumulated
    intervals at or after the first kept interval of ``segment`` are replaced,
    so a later worksheet wins where two worksheets overlap.

    Parameters
    ----------
    accumulated : SurveyGrid
        The survey merged so far
    segment : SurveyGrid
        The timeline of the worksheet just merged, with the same DEPTH
        and CHANNEL layout as ``accumulated``

    Returns
    -------
    SurveyGrid
        A new grid; neither input is modified
    """
    keep = ~np.isnan(segment["latitude"]) & ~np.isnat(segment.time)
    if not keep.any():
        msg = "No GPS positions in worksheet, its data is skipped"
        logger.warning(msg)
        warnings.warn(msg, NoPositionWarning)
        return accumulated

    kept = segment.isel_time(keep)
    first = kept.interval[0]

    # accumulated intervals are increasing
    overlap = int(np.searchsorted(accumulated.interval, first, side="left"))
    n_replaced = len(accumulated.interval) - overlap
    if n_replaced:
        logger.info(
            f"Replacing {n_replaced} merged intervals from interval {first} "
            "with the overlapping worksheet"
        )

    out = accumulated.isel_time(slice(0, overlap))
    out.interval = np.concatenate([out.interval, kept.interval])
    out.time = np.concatenate([out.time, kept.time])
    for name in out.dims:
        out.data[name] = np.concatenate([out.data[name], kept.data[name]], axis=0)
    return out
