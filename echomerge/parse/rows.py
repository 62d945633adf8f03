"""
Decode the data rows of an Echoview CSV export into a typed table.
"""

import csv
import io
from typing import IO, Dict, Optional

import numpy as np
import pandas as pd

from ..core import PROVENANCE_COLUMNS, SOURCE_KINDS
from ..utils.compute import (
    SENTINEL_THRESHOLD,
    decode_motion_correction,
    decode_signal_noise,
    decode_sv,
)
from ..utils.log import _init_logger
from .columns import SAMPLES, ColumnMap

logger = _init_logger(__name__)

DATETIME_FORMAT = "%Y%m%d %H:%M:%S.%f"

# Echoview column -> decoded table column
FIELD_NAMES = {
    "Lat_M": "latitude",
    "Lon_M": "longitude",
    "Height_mean": "mean_height",
    "Depth_mean": "mean_depth",
    "Layer_depth_min": "layer_depth_min",
    "Layer_depth_max": "layer_depth_max",
    "Standard_deviation": "sd",
    "Skewness": "skew",
    "Kurtosis": "kurt",
}

# Decoder for the Sv_mean column of each source kind, and the name it decodes to
VALUE_DECODERS = {
    "clean": ("sv", decode_sv),
    "raw": ("sv", decode_sv),
    "signal_noise": ("value", decode_signal_noise),
    "background": ("value", None),
    "motion_correction": ("value", decode_motion_correction),
}


class SourceTable:
    """
    Decoded rows of one source kind for one channel of one worksheet.

    Attributes
    ----------
    kind : str
        The source kind
    path : str
        Path of the CSV export
    header : str
        The header line, used to compare clean and raw exports
    data : pd.DataFrame
        One row per (interval, layer) cell with one-based ``interval``
    ev_filename, program_version : str or None
        Provenance taken from the first data row
    """

    def __init__(
        self,
        kind: str,
        path: str,
        header: str,
        data: pd.DataFrame,
        ev_filename: Optional[str] = None,
        program_version: Optional[str] = None,
    ):
        self.kind = kind
        self.path = path
        self.header = header
        self.data = data
        self.ev_filename = ev_filename
        self.program_version = program_version

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"SourceTable(kind={self.kind!r}, path={self.path!r}, rows={len(self)})"


def _to_numeric(series: pd.Series) -> np.ndarray:
    return pd.to_numeric(series.str.strip(), errors="coerce").to_numpy(dtype=np.float64)


def _read_provenance(first_line: str, column_map: ColumnMap) -> Dict[str, Optional[str]]:
    """Read provenance fields from the first data row, unquoted."""
    provenance: Dict[str, Optional[str]] = {col: None for col in PROVENANCE_COLUMNS}
    if not first_line.strip():
        return provenance
    fields = next(csv.reader([first_line], skipinitialspace=True))
    for col in PROVENANCE_COLUMNS:
        if col in column_map and column_map[col] < len(fields):
            provenance[col] = fields[column_map[col]].strip().strip('"').strip()
    return provenance


def _scan(body: str, column_map: ColumnMap) -> pd.DataFrame:
    """Read only the planned columns, as strings, with their logical names."""
    plan = column_map.scan_plan
    if not body.strip():
        return pd.DataFrame({name: pd.Series([], dtype=str) for name in plan.names})
    frame = pd.read_csv(
        io.StringIO(body),
        header=None,
        usecols=plan.positions,
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        skip_blank_lines=True,
        index_col=False,
    )
    return frame.rename(columns=plan.rename)


def decode_rows(fid: IO[str], column_map: ColumnMap, source_file: str) -> SourceTable:
    """
    Decode the remaining lines of an open export into a ``SourceTable``.

    The header line must already have been consumed from ``fid``.

    Parameters
    ----------
    fid : file-like
        Text stream positioned at the first data row
    column_map : ColumnMap
        The column positions for this export's header
    source_file : str
        Path of the export, for messages

    Returns
    -------
    SourceTable
        Rows with an unparseable interval or layer are discarded, as are
        layer 0 rows of layer-resolved kinds and sentinel background rows.
        Intervals are converted from zero-based to one-based.
    """
    kind = column_map.kind
    kind_info = SOURCE_KINDS[kind]

    first_line = fid.readline()
    provenance = _read_provenance(first_line, column_map)
    frame = _scan(first_line + fid.read(), column_map)

    interval = _to_numeric(frame["Interval"])
    layer = _to_numeric(frame["Layer"])
    valid = ~np.isnan(interval) & ~np.isnan(layer)
    if kind_info["layer_resolved"]:
        # layer 0 rows are an Echoview export artifact
        valid &= layer != 0
    n_dropped = int((~valid).sum())
    if n_dropped:
        logger.debug(f"Discarding {n_dropped} rows from {source_file}")

    frame = frame.loc[valid].reset_index(drop=True)
    data = pd.DataFrame(
        {
            "interval": interval[valid].astype(np.int64) + 1,
            "layer": layer[valid].astype(np.int64),
        }
    )

    for column, field in FIELD_NAMES.items():
        if column in column_map:
            data[field] = _to_numeric(frame[column])

    if "Date_M" in column_map and "Time_M" in column_map:
        stamp = frame["Date_M"].str.strip() + " " + frame["Time_M"].str.strip()
        data["time"] = pd.to_datetime(stamp, format=DATETIME_FORMAT, errors="coerce")

    if SAMPLES in column_map:
        samples = _to_numeric(frame[SAMPLES])
        data["samples"] = np.nan_to_num(samples, nan=0).astype(np.int64)

    if kind in VALUE_DECODERS:
        field, decoder = VALUE_DECODERS[kind]
        value = _to_numeric(frame["Sv_mean"])
        data[field] = decoder(value) if decoder is not None else value

    if kind == "background":
        # 9999 or 9.9e37 marks an interval without a background estimate
        data = data.loc[data["value"] <= SENTINEL_THRESHOLD].reset_index(drop=True)

    return SourceTable(
        kind=kind,
        path=source_file,
        header=column_map.header,
        data=data,
        ev_filename=provenance["EV_filename"],
        program_version=provenance["Program_version"],
    )
