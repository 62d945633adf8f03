"""
The survey grid and the allocator that grows it as worksheets and channels
are merged.

Growth only ever appends along TIME or DEPTH; cells that were written before
keep their values and new cells hold NaN.
"""

import warnings
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import xarray as xr

from ..convention import (
    CHANNEL,
    DEPTH,
    SOURCE_FILE,
    SOURCE_VERSION,
    TIME,
    grid_variables,
)
from ..exceptions import (
    ChannelExtentWarning,
    IntervalGapWarning,
    IntervalOrderError,
    LayerDepthWarning,
)
from ..parse.rows import SourceTable
from ..utils.log import _init_logger
from .stitch import stitch_segment

logger = _init_logger(__name__)

NAT = np.datetime64("NaT", "ns")


def extend_array(data: np.ndarray, axis: int, deficit: int, fill: Any = np.nan) -> np.ndarray:
    """
    Grow an array by ``deficit`` entries along ``axis``.

    Returns a new array holding ``data`` followed by ``fill``;
    ``data`` itself is not modified.
    """
    if deficit <= 0:
        return data
    pad_shape = list(data.shape)
    pad_shape[axis] = deficit
    return np.concatenate([data, np.full(pad_shape, fill, dtype=data.dtype)], axis=axis)


class SurveyGrid:
    """
    Arrays of the merged survey, laid out over TIME, DEPTH and CHANNEL.

    The same class holds the accumulated survey and the timeline of the
    worksheet being merged.
    """

    def __init__(
        self,
        channel: Sequence[str],
        frequency: Sequence[float],
        variables: Dict[str, Tuple[str, ...]],
        depth: Optional[np.ndarray] = None,
        intervals: Optional[np.ndarray] = None,
    ):
        self.channel = list(channel)
        self.frequency = np.asarray(frequency, dtype=np.float64)
        self.dims = dict(variables)
        self.depth = np.empty(0) if depth is None else np.array(depth, dtype=np.float64)
        if intervals is None:
            intervals = []
        self.interval = np.array(intervals, dtype=np.int64)
        self.time = np.full(len(self.interval), NAT)
        self.source_file: List[str] = []
        self.source_version: List[str] = []
        self.data = {name: np.full(self.shape(dims), np.nan) for name, dims in self.dims.items()}

    @property
    def sizes(self) -> Dict[str, int]:
        return {
            TIME: len(self.interval),
            DEPTH: len(self.depth),
            CHANNEL: len(self.channel),
        }

    def shape(self, dims: Sequence[str]) -> Tuple[int, ...]:
        sizes = self.sizes
        return tuple(sizes[d] for d in dims)

    def __getitem__(self, name: str) -> np.ndarray:
        return self.data[name]

    def __setitem__(self, name: str, value: np.ndarray):
        if value.shape != self.shape(self.dims[name]):
            raise ValueError(f"Shape {value.shape} of {name} does not match the grid")
        self.data[name] = value

    def grow_time(self, intervals: np.ndarray):
        """Append TIME positions for the given absolute intervals."""
        deficit = len(intervals)
        self.interval = np.concatenate([self.interval, np.asarray(intervals, dtype=np.int64)])
        self.time = extend_array(self.time, 0, deficit, NAT)
        for name, dims in self.dims.items():
            if TIME in dims:
                self.data[name] = extend_array(self.data[name], dims.index(TIME), deficit)

    def grow_depth(self, depths: np.ndarray):
        """Append DEPTH positions with the given midpoints (NaN if unknown)."""
        deficit = len(depths)
        self.depth = np.concatenate([self.depth, np.asarray(depths, dtype=np.float64)])
        for name, dims in self.dims.items():
            if DEPTH in dims:
                self.data[name] = extend_array(self.data[name], dims.index(DEPTH), deficit)

    def new_segment(self, intervals: np.ndarray) -> "SurveyGrid":
        """An empty grid sharing this grid's layout, over the given intervals."""
        return SurveyGrid(self.channel, self.frequency, self.dims, self.depth, intervals)

    def isel_time(self, index) -> "SurveyGrid":
        """A new grid holding the selected TIME positions."""
        out = SurveyGrid(self.channel, self.frequency, self.dims, self.depth, self.interval[index])
        out.time = self.time[index]
        out.source_file = list(self.source_file)
        out.source_version = list(self.source_version)
        for name, dims in self.dims.items():
            out.data[name] = np.take(self.data[name], np.arange(len(self.interval))[index], axis=0)
        return out

    def to_dataset(self) -> xr.Dataset:
        """The grid as an ``xr.Dataset``, including the absolute intervals."""
        data_vars = {name: (dims, self.data[name]) for name, dims in self.dims.items()}
        data_vars["interval"] = ((TIME,), self.interval)
        data_vars["frequency"] = ((CHANNEL,), self.frequency)
        return xr.Dataset(
            data_vars=data_vars,
            coords={
                TIME: (TIME, self.time),
                DEPTH: (DEPTH, self.depth),
                CHANNEL: (CHANNEL, self.channel),
                SOURCE_FILE: (SOURCE_FILE, list(self.source_file)),
                SOURCE_VERSION: (SOURCE_VERSION, list(self.source_version)),
            },
        )

    def __repr__(self) -> str:
        sizes = ", ".join(f"{k}: {v}" for k, v in self.sizes.items())
        return f"SurveyGrid({sizes})"


class IntervalIndex:
    """Dense map from absolute interval numbers to file-local TIME positions."""

    def __init__(self, first: int, last: int):
        self.first = first
        self.last = last

    def __len__(self) -> int:
        return self.last - self.first + 1

    @property
    def intervals(self) -> np.ndarray:
        return np.arange(self.first, self.last + 1, dtype=np.int64)

    def positions(self, intervals: np.ndarray) -> np.ndarray:
        """File-local TIME position of each interval, -1 where unmapped."""
        intervals = np.asarray(intervals, dtype=np.int64)
        pos = intervals - self.first
        pos[(intervals < self.first) | (intervals > self.last)] = -1
        return pos

    def extend(self, last: int) -> np.ndarray:
        """Map intervals up to ``last``; returns the newly mapped intervals."""
        added = np.arange(self.last + 1, last + 1, dtype=np.int64)
        self.last = max(self.last, last)
        return added


def _warn(msg: str, category):
    logger.warning(msg)
    warnings.warn(msg, category, stacklevel=3)


class GridBuilder:
    """
    Owns the accumulated ``SurveyGrid`` and the timeline of the worksheet
    currently being merged.

    Parameters
    ----------
    config : dict
        Sanitized settings, see ``echomerge.config.sanitize_config``
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.grid = SurveyGrid(
            config["channel"], config["frequency"], grid_variables(config["extended"])
        )
        self.segment: Optional[SurveyGrid] = None
        self.index: Optional[IntervalIndex] = None
        self.worksheet: Optional[str] = None
        # Resolved depth of every layer seen so far, beyond the DEPTH extent too
        self.layer_depth = np.empty(0)
        # Provenance of the worksheet being merged, kept only if it contributes data
        self.source_file: List[str] = []
        self.source_version: List[str] = []

    @property
    def last_interval(self) -> Optional[int]:
        """Last absolute interval of the accumulated survey."""
        if len(self.grid.interval) == 0:
            return None
        return int(self.grid.interval[-1])

    def start_file(self, worksheet: str, clean: SourceTable):
        """
        Build the interval index of a worksheet from the clean export of
        its first channel and allocate its timeline.
        """
        intervals = clean.data["interval"].to_numpy()
        first, last = int(intervals.min()), int(intervals.max())
        if first < 1:
            raise IntervalOrderError(
                f"Interval index < 0 in {clean.path}. "
                "This may mean the GPS data starts after the acoustic data"
            )

        previous = self.last_interval
        if previous is not None:
            if previous > last:
                raise IntervalOrderError(
                    f"Intervals of {worksheet} ({first} to {last}) run backwards "
                    f"from the last merged interval {previous}"
                )
            if first > previous + 1:
                _warn(
                    f"Gap in intervals between {previous} and {first} at {worksheet}",
                    IntervalGapWarning,
                )

        self.worksheet = worksheet
        self.source_file = []
        self.source_version = []
        self.index = IntervalIndex(first, last)
        self.segment = self.grid.new_segment(self.index.intervals)
        logger.debug(f"{worksheet}: intervals {first} to {last}")

    def fit_channel(
        self, channel_idx: int, clean: SourceTable, raw: Optional[SourceTable] = None
    ):
        """
        Fit the worksheet timeline and DEPTH to the clean export of one channel.

        ``clean`` must be sorted by (interval, layer). The provenance of
        ``clean`` and ``raw`` is recorded for the worksheet.
        """
        intervals = clean.data["interval"].to_numpy()
        last = int(intervals.max())
        if last > self.index.last:
            added = self.index.extend(last)
            self.segment.grow_time(added)
            _warn(
                f"Channel {self.config['channel'][channel_idx]} of {self.worksheet} "
                f"extends the timeline by {len(added)} intervals",
                ChannelExtentWarning,
            )
        n_below = int((intervals < self.index.first).sum())
        if n_below:
            logger.warning(
                f"Dropping {n_below} rows of {clean.path} "
                f"before the first interval {self.index.first} of {self.worksheet}"
            )

        self._resolve_layer_depth(clean)
        self._fit_depth(channel_idx)
        for table in (clean, raw):
            if table is not None:
                self._add_provenance(table)

    def _resolve_layer_depth(self, clean: SourceTable):
        data = clean.data
        firsts = data.drop_duplicates("layer", keep="first")
        firsts = firsts.loc[firsts["layer"] >= 1]
        layers = firsts["layer"].to_numpy()
        if len(layers) == 0:
            return
        self.layer_depth = extend_array(
            self.layer_depth, 0, int(layers.max()) - len(self.layer_depth)
        )

        if "layer_depth_min" in data and "layer_depth_max" in data:
            mids = (
                firsts["layer_depth_min"].to_numpy() + firsts["layer_depth_max"].to_numpy()
            ) / 2
        else:
            mids = layers * 10.0 - 5
            if np.isnan(self.layer_depth[layers - 1]).any():
                _warn(
                    f"No Layer_depth_min/Layer_depth_max columns in {clean.path}, "
                    "assuming 10 m layers",
                    LayerDepthWarning,
                )

        unknown = np.isnan(self.layer_depth[layers - 1])
        self.layer_depth[layers[unknown] - 1] = mids[unknown]

    def _fit_depth(self, channel_idx: int):
        max_depth = self.config["max_depth"][channel_idx]
        within = np.flatnonzero(self.layer_depth < max_depth)
        n_layers = int(within[-1]) + 1 if len(within) else 0

        deficit = n_layers - self.grid.sizes[DEPTH]
        if deficit > 0:
            if channel_idx > 0:
                _warn(
                    f"Channel {self.config['channel'][channel_idx]} of {self.worksheet} "
                    f"extends DEPTH to {n_layers} layers",
                    ChannelExtentWarning,
                )
            else:
                logger.info(f"Growing DEPTH by {deficit} layers")
            new_depths = self.layer_depth[self.grid.sizes[DEPTH] : n_layers]
            self.grid.grow_depth(new_depths)
            self.segment.grow_depth(new_depths)

        # Fill midpoints resolved after their DEPTH position was allocated
        for grid in (self.grid, self.segment):
            n = grid.sizes[DEPTH]
            unset = np.isnan(grid.depth)
            grid.depth[unset] = self.layer_depth[:n][unset]

    def _add_provenance(self, table: SourceTable):
        source_file = table.ev_filename
        if not source_file and table.kind == "clean":
            source_file = self.worksheet
        if source_file and source_file not in self.source_file:
            self.source_file.append(source_file)
        version = table.program_version
        if version and version not in self.source_version:
            self.source_version.append(version)

    def depth_of(self, layers: np.ndarray) -> np.ndarray:
        """Resolved depth of one-based layer numbers, NaN if unknown."""
        layers = np.asarray(layers, dtype=np.int64)
        out = np.full(len(layers), np.nan)
        known = (layers >= 1) & (layers <= len(self.layer_depth))
        out[known] = self.layer_depth[layers[known] - 1]
        return out

    def finish_file(self) -> SurveyGrid:
        """
        Stitch the worksheet timeline onto the accumulated survey.

        The worksheet provenance is added to the survey only when the
        worksheet contributes data.
        """
        stitched = stitch_segment(self.grid, self.segment)
        if stitched is not self.grid:
            stitched.source_file += [f for f in self.source_file if f not in stitched.source_file]
            stitched.source_version += [
                v for v in self.source_version if v not in stitched.source_version
            ]
        self.grid = stitched
        self.segment = None
        self.index = None
        return self.grid
