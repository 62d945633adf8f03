"""
Join the exports of one channel on their (interval, layer) key and write the
resulting cells into the worksheet timeline.
"""

import warnings
from typing import TYPE_CHECKING, Dict, Optional, Sequence

import numpy as np

from ..convention import DEPTH
from ..exceptions import MissingRawDataWarning, MissingRejectDataWarning
from ..parse.rows import SourceTable
from ..utils.compute import percent_good
from ..utils.log import _init_logger

if TYPE_CHECKING:
    from .grid import GridBuilder

logger = _init_logger(__name__)

SORT_KEY = ["interval", "layer"]

# Latitudes above this mark an interval without a GPS fix
NO_FIX_LATITUDE = 99

# Cell variable -> (source kind, column), written for every kept cell
CELL_SOURCES = {
    "mean_height": ("clean", "mean_height"),
    "mean_depth": ("clean", "mean_depth"),
    "Sv": ("clean", "sv"),
    "Sv_unfiltered": ("raw", "sv"),
    "signal_to_noise": ("signal_noise", "value"),
    "motion_correction_factor": ("motion_correction", "value"),
}

EXTENDED_CELL_SOURCES = {
    "Sv_sd": ("clean", "sd"),
    "Sv_skew": ("clean", "skew"),
    "Sv_kurt": ("clean", "kurt"),
    "Sv_unfiltered_sd": ("raw", "sd"),
    "Sv_unfiltered_skew": ("raw", "skew"),
    "Sv_unfiltered_kurt": ("raw", "kurt"),
}


def sort_rows(table: Optional[SourceTable]) -> Optional[SourceTable]:
    """Stable sort of a table by (interval, layer)."""
    if table is None:
        return None
    table.data = table.data.sort_values(SORT_KEY, kind="mergesort", ignore_index=True)
    return table


def sort_tables(tables: Dict[str, Optional[SourceTable]]) -> Dict[str, Optional[SourceTable]]:
    return {kind: sort_rows(table) for kind, table in tables.items()}


def align(driver_keys: Sequence, source_keys: Sequence) -> np.ndarray:
    """
    Match sorted driver keys against sorted source keys.

    A single cursor walks ``source_keys`` forward only, so each table is
    scanned once.

    Returns
    -------
    np.ndarray
        For each driver key, the row of ``source_keys`` with an equal key,
        or -1 if there is none
    """
    out = np.full(len(driver_keys), -1, dtype=np.int64)
    n_source = len(source_keys)
    cursor = 0
    for row, key in enumerate(driver_keys):
        while cursor < n_source and source_keys[cursor] < key:
            cursor += 1
        if cursor < n_source and source_keys[cursor] == key:
            out[row] = cursor
    return out


def _cell_keys(table: SourceTable):
    return list(zip(table.data["interval"].tolist(), table.data["layer"].tolist()))


def _take(values: np.ndarray, rows: np.ndarray, fill=np.nan) -> np.ndarray:
    """Values at ``rows``, ``fill`` where the row is -1."""
    out = np.full(len(rows), fill, dtype=np.float64)
    found = rows >= 0
    out[found] = values[rows[found]]
    return out


def _warn_missing(table_kind: str, path: str, missing: np.ndarray, clean, category):
    n_missing = int(missing.sum())
    first = np.flatnonzero(missing)[0]
    msg = (
        f"No {table_kind} data in {path} for interval {clean['interval'].iloc[first]} "
        f"layer {clean['layer'].iloc[first]}"
        + (f" and {n_missing - 1} more cells" if n_missing > 1 else "")
    )
    logger.warning(msg)
    warnings.warn(msg, category, stacklevel=3)


def join_channel(
    tables: Dict[str, Optional[SourceTable]], builder: "GridBuilder", channel_idx: int
) -> int:
    """
    Merge the sorted exports of one channel into the worksheet timeline.

    Cells are driven by the clean export. Cells without a GPS fix, outside
    the worksheet intervals or below the DEPTH extent are skipped; cells whose
    percent good is under ``min_good`` or whose layer is deeper than the
    channel ``max_depth`` are dropped.

    Parameters
    ----------
    tables : dict
        Source kind -> sorted ``SourceTable`` (``None`` for absent optional exports)
    builder : GridBuilder
        Holds the worksheet timeline being written
    channel_idx : int
        Position of the channel along CHANNEL

    Returns
    -------
    int
        The number of cells written
    """
    config = builder.config
    segment = builder.segment
    clean_table = tables["clean"]
    clean = clean_table.data

    interval = clean["interval"].to_numpy()
    layer = clean["layer"].to_numpy()
    latitude = clean["latitude"].to_numpy()
    pos = builder.index.positions(interval)

    time = clean["time"].to_numpy(dtype="datetime64[ns]")
    no_time = (pos >= 0) & np.isnat(time)
    if no_time.any():
        logger.warning(
            f"Skipping {int(no_time.sum())} rows of {clean_table.path} "
            "without a valid Date_M/Time_M"
        )

    # NaN latitudes and unparseable timestamps count as no fix
    positioned = (pos >= 0) & (latitude <= NO_FIX_LATITUDE) & ~np.isnat(time)

    # Position and time come from the first positioned row of each interval
    first_rows = positioned & ~clean["interval"].where(positioned).duplicated().to_numpy()
    fix_pos = pos[first_rows]
    segment["latitude"][fix_pos] = latitude[first_rows]
    segment["longitude"][fix_pos] = clean["longitude"].to_numpy()[first_rows]
    times = time[first_rows]
    unset = np.isnat(segment.time[fix_pos])
    segment.time[fix_pos[unset]] = times[unset]

    clean_keys = list(zip(interval.tolist(), layer.tolist()))
    matched = {}
    for kind in ("raw", "reject_count", "signal_noise", "motion_correction"):
        table = tables.get(kind)
        if table is None:
            matched[kind] = np.full(len(clean), -1, dtype=np.int64)
        else:
            matched[kind] = align(clean_keys, _cell_keys(table))

    rows = positioned & (layer >= 1) & (layer <= segment.sizes[DEPTH])

    missing = rows & (matched["raw"] < 0)
    if missing.any():
        _warn_missing("raw", tables["raw"].path, missing, clean, MissingRawDataWarning)
    missing = rows & (matched["reject_count"] < 0)
    if missing.any():
        _warn_missing(
            "reject", tables["reject_count"].path, missing, clean, MissingRejectDataWarning
        )

    raw_samples = _take(tables["raw"].data["samples"].to_numpy(), matched["raw"], fill=0)
    good_samples = _take(
        tables["reject_count"].data["samples"].to_numpy(), matched["reject_count"], fill=0
    )
    pct = percent_good(good_samples, raw_samples)

    depth = builder.depth_of(layer)
    max_depth = config["max_depth"][channel_idx]
    keep = rows & (pct >= config["min_good"]) & ~(depth > max_depth)
    logger.debug(
        f"{clean_table.path}: writing {int(keep.sum())} of {len(clean)} cells, "
        f"{int((rows & ~keep).sum())} filtered"
    )

    cell = (pos[keep], layer[keep] - 1, channel_idx)
    sources = dict(CELL_SOURCES)
    if config["extended"]:
        sources.update(EXTENDED_CELL_SOURCES)
    for name, (kind, column) in sources.items():
        if kind == "clean":
            values = clean[column].to_numpy(dtype=np.float64)[keep]
        elif tables.get(kind) is None:
            continue
        else:
            values = _take(tables[kind].data[column].to_numpy(), matched[kind][keep])
        segment[name][cell] = values
    segment["Sv_percent_good"][cell] = pct[keep]

    background = tables.get("background")
    if background is not None:
        bg_rows = align(interval[first_rows].tolist(), background.data["interval"].tolist())
        found = bg_rows >= 0
        segment["background_noise"][fix_pos[found], channel_idx] = background.data[
            "value"
        ].to_numpy()[bg_rows[found]]

    return int(keep.sum())
