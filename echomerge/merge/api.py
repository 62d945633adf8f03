from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import xarray as xr

from ..config import load_config, sanitize_config
from ..finalize.api import finalize_grid
from ..parse.columns import HeaderCache
from ..parse.worksheet import find_worksheets, get_export_fs, read_channel
from ..utils.log import _init_logger
from .grid import GridBuilder
from .join import join_channel, sort_tables

logger = _init_logger(__name__)


def _get_config(config: Union[None, str, Path, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(config, (str, Path)):
        return load_config(config)
    return sanitize_config(config)


def merge_worksheets(
    directory: Union[str, Path],
    config: Union[None, str, Path, Dict[str, Any]] = None,
    worksheets: Optional[List[str]] = None,
    writer: Optional[Callable[[xr.Dataset], Any]] = None,
    storage_options: Optional[Dict[str, Any]] = None,
) -> xr.Dataset:
    """
    Merge the echo-integration exports of a survey into one gridded dataset.

    Each worksheet is merged channel by channel into its own timeline, which
    is then stitched onto the survey merged so far. Once all worksheets are
    merged the grid is finalized.

    Parameters
    ----------
    directory : str or Path
        Directory holding the ``{worksheet}_{variable}.csv`` exports
    config : dict, str or Path, optional
        Settings dict or path of a YAML settings file.
        Defaults to ``echomerge.config.DEFAULT_CONFIG``.
    worksheets : list of str, optional
        Worksheets to merge, in order. Defaults to every worksheet found
        in ``directory``, sorted by name.
    writer : callable, optional
        Called once with the finalized dataset, e.g. to write it to disk
    storage_options : dict, optional
        Options passed to ``fsspec`` for opening the exports

    Returns
    -------
    xr.Dataset
        The finalized survey grid

    Raises
    ------
    EchoMergeError
        If an export is missing or malformed, intervals run backwards,
        or no position data is found
    """
    config = _get_config(config)
    fs, root = get_export_fs(directory, storage_options)
    if worksheets is None:
        worksheets = find_worksheets(fs, root, config)

    builder = GridBuilder(config)
    cache = HeaderCache(extended=config["extended"])
    for file_idx, worksheet in enumerate(worksheets):
        logger.info(f"Merging worksheet {file_idx + 1}/{len(worksheets)}: {worksheet}")
        for channel_idx, channel in enumerate(config["channel"]):
            tables = sort_tables(read_channel(fs, root, worksheet, channel, config, cache))
            if channel_idx == 0:
                builder.start_file(worksheet, tables["clean"])
            builder.fit_channel(channel_idx, tables["clean"], tables["raw"])
            n_cells = join_channel(tables, builder, channel_idx)
            logger.debug(f"{worksheet} {channel}: {n_cells} cells merged")
        builder.finish_file()

    ds = finalize_grid(builder.grid, config)
    if writer is not None:
        writer(ds)
    return ds
