import csv
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG
from .core import source_kinds
from .parse.rows import SourceTable
from .parse.worksheet import variable_name

# Header of a typical Echoview "Export by cells" CSV, with columns
# the merge engine does not use mixed in
ECHOVIEW_COLUMNS = [
    "Process_ID",
    "Interval",
    "Layer",
    "Sv_mean",
    "NASC",
    "Height_mean",
    "Depth_mean",
    "Samples",
    "Layer_depth_min",
    "Layer_depth_max",
    "Ping_M",
    "Date_M",
    "Time_M",
    "Lat_M",
    "Lon_M",
    "EV_filename",
    "Program_version",
    "Standard_deviation",
    "Skewness",
    "Kurtosis",
]

ArrayLike = Union[float, int, Sequence, np.ndarray]


def _gen_export_rows(
    intervals: Sequence[int],
    layers: Sequence[int],
    start: str = "2018-08-18 08:00:00",
    interval_seconds: int = 60,
    layer_thickness: float = 10.0,
    latitude: ArrayLike = -42.5,
    longitude: ArrayLike = 148.3,
    ev_filename: str = r"D:\survey\worksheet.EV",
    program_version: str = "13.1.152.45387",
) -> pd.DataFrame:
    """
    Generate the cells of one export, interval-major.

    ``intervals`` are Echoview (zero-based) interval numbers.
    ``latitude`` and ``longitude`` are scalars or one value per interval.
    """
    cells = pd.MultiIndex.from_product(
        [list(intervals), list(layers)], names=["Interval", "Layer"]
    ).to_frame(index=False)
    n_layers = len(layers)

    times = pd.Timestamp(start) + pd.to_timedelta(cells["Interval"] * interval_seconds, unit="s")
    depth_min = (cells["Layer"] - 1) * layer_thickness

    rows = pd.DataFrame(
        {
            "Process_ID": 1234,
            "Interval": cells["Interval"],
            "Layer": cells["Layer"],
            "Sv_mean": -70.0,
            "NASC": 0.0,
            "Height_mean": layer_thickness,
            "Depth_mean": depth_min + layer_thickness / 2,
            "Samples": 100,
            "Layer_depth_min": depth_min,
            "Layer_depth_max": depth_min + layer_thickness,
            "Ping_M": cells["Interval"] * 10,
            "Date_M": times.dt.strftime("%Y%m%d"),
            "Time_M": times.dt.strftime("%H:%M:%S.%f").str[:-2],
            "Lat_M": np.repeat(np.broadcast_to(latitude, len(intervals)), n_layers),
            "Lon_M": np.repeat(np.broadcast_to(longitude, len(intervals)), n_layers),
            "EV_filename": ev_filename,
            "Program_version": program_version,
            "Standard_deviation": 2.5,
            "Skewness": 0.5,
            "Kurtosis": 3.0,
        }
    )
    return rows


def write_export(
    path: Union[str, Path],
    rows: pd.DataFrame,
    columns: Optional[Sequence[str]] = None,
    bom: bool = False,
) -> Path:
    """Write cells to a CSV quoted the way Echoview quotes its exports."""
    columns = ECHOVIEW_COLUMNS if columns is None else list(columns)
    rows[columns].to_csv(
        path,
        index=False,
        quoting=csv.QUOTE_NONNUMERIC,
        encoding="utf-8-sig" if bom else "utf-8",
    )
    return Path(path)


def write_worksheet(
    directory: Union[str, Path],
    worksheet: str,
    intervals: Sequence[int],
    layers: Sequence[int],
    channel: str = "38kHz",
    config: Optional[Dict[str, Any]] = None,
    clean_sv: ArrayLike = -70.0,
    raw_sv: ArrayLike = -65.0,
    raw_samples: ArrayLike = 100,
    good_samples: ArrayLike = 80,
    signal_noise: ArrayLike = 25.0,
    background: ArrayLike = -140.0,
    motion_correction: ArrayLike = 0.2,
    kinds: Optional[Sequence[str]] = None,
    columns: Optional[Sequence[str]] = None,
    bom: bool = False,
    **row_kwargs,
) -> Dict[str, Path]:
    """
    Write the exports of one channel of a worksheet as Echoview would.

    Cell values are scalars or one value per (interval, layer) cell,
    interval-major. ``background`` is a scalar or one value per interval.

    Parameters
    ----------
    directory : str or Path
        Export directory
    worksheet : str
        Worksheet name, the prefix of every file name
    intervals : sequence of int
        Echoview (zero-based) interval numbers
    layers : sequence of int
        Layer numbers
    kinds : sequence of str, optional
        Source kinds to write, all by default
    columns : sequence of str, optional
        Header columns, ``ECHOVIEW_COLUMNS`` by default
    **row_kwargs
        Passed on to ``_gen_export_rows``

    Returns
    -------
    dict
        Source kind -> path of the written export
    """
    config = DEFAULT_CONFIG if config is None else config
    kinds = source_kinds() if kinds is None else kinds
    rows = _gen_export_rows(intervals, layers, **row_kwargs)

    values = {
        "clean": {"Sv_mean": clean_sv, "Samples": good_samples},
        "raw": {"Sv_mean": raw_sv, "Samples": raw_samples},
        "reject_count": {"Sv_mean": clean_sv, "Samples": good_samples},
        "signal_noise": {"Sv_mean": signal_noise},
        "motion_correction": {"Sv_mean": motion_correction},
    }

    paths = {}
    for kind in kinds:
        path = Path(directory) / f"{worksheet}_{variable_name(config, kind, channel)}.csv"
        if kind == "background":
            # One row per interval, not layer-resolved
            kind_rows = rows.drop_duplicates("Interval").reset_index(drop=True)
            kind_rows["Layer"] = 0
            kind_rows["Sv_mean"] = np.broadcast_to(background, len(kind_rows))
        else:
            kind_rows = rows.copy()
            for column, value in values[kind].items():
                kind_rows[column] = np.broadcast_to(value, len(kind_rows))
        paths[kind] = write_export(path, kind_rows, columns=columns, bom=bom)
    return paths


def _gen_source_table(
    kind: str,
    intervals: Sequence[int],
    layers: Sequence[int],
    path: Optional[str] = None,
    ev_filename: Optional[str] = "worksheet.EV",
    program_version: Optional[str] = "13.1.152.45387",
    layer_thickness: float = 10.0,
    **columns,
) -> SourceTable:
    """
    Generate decoded cells of one source kind, as the row decoder returns them.

    ``intervals`` are one-based. Keyword arguments override a decoded column
    with a scalar or one value per cell; ``None`` removes the column.
    """
    if kind == "background":
        layers = [0]
    cells = pd.MultiIndex.from_product(
        [list(intervals), list(layers)], names=["interval", "layer"]
    ).to_frame(index=False)

    if kind == "clean":
        depth_min = (cells["layer"] - 1) * layer_thickness
        defaults = {
            "latitude": -42.5,
            "longitude": 148.3,
            "time": pd.Timestamp("2018-08-18") + pd.to_timedelta(cells["interval"], unit="min"),
            "mean_height": layer_thickness,
            "mean_depth": depth_min + layer_thickness / 2,
            "sv": 1e-7,
            "layer_depth_min": depth_min,
            "layer_depth_max": depth_min + layer_thickness,
            "sd": 2.5,
            "skew": 0.5,
            "kurt": 3.0,
        }
    elif kind == "raw":
        defaults = {"sv": 10 ** -6.5, "samples": 100, "sd": 3.5, "skew": 0.7, "kurt": 4.0}
    elif kind == "reject_count":
        defaults = {"samples": 80}
    else:
        defaults = {"value": {"signal_noise": 25.0, "background": -140.0}.get(kind, 4.7)}

    for name, value in {**defaults, **columns}.items():
        if value is None:
            continue
        if isinstance(value, pd.Series):
            cells[name] = value.to_numpy()
        else:
            cells[name] = np.broadcast_to(value, len(cells)).copy()

    return SourceTable(
        kind=kind,
        path=path or f"w_{kind}.csv",
        header=",".join(ECHOVIEW_COLUMNS),
        data=cells,
        ev_filename=ev_filename if kind in ("clean", "raw") else None,
        program_version=program_version if kind in ("clean", "raw") else None,
    )
