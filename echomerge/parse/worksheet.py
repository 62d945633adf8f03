"""
Discover worksheets in an export directory and open their CSV exports.
"""

import warnings
from typing import Any, Dict, List, Optional

import fsspec
from fsspec import AbstractFileSystem

from ..core import SOURCE_KINDS, source_kinds
from ..exceptions import (
    EmptySourceError,
    HeaderMismatchWarning,
    MissingHeaderError,
    MissingSourceError,
)
from ..utils.log import _init_logger
from .columns import HeaderCache
from .rows import SourceTable, decode_rows

logger = _init_logger(__name__)

CSV_EXT = ".csv"


def variable_name(config: Dict[str, Any], kind: str, channel: str) -> str:
    """Exported variable name of a source kind for one channel."""
    return config[SOURCE_KINDS[kind]["config_key"]].format(channel=channel)


def source_path(root: str, worksheet: str, config: Dict[str, Any], kind: str, channel: str) -> str:
    """Path of the ``{worksheet}_{variable}.csv`` export."""
    return f"{root.rstrip('/')}/{worksheet}_{variable_name(config, kind, channel)}{CSV_EXT}"


def get_export_fs(directory: str, storage_options: Optional[Dict[str, Any]] = None):
    """Filesystem and root path of an export directory."""
    fsmap = fsspec.get_mapper(str(directory), **(storage_options or {}))
    return fsmap.fs, fsmap.root


def find_worksheets(fs: AbstractFileSystem, root: str, config: Dict[str, Any]) -> List[str]:
    """
    List the worksheets exported to a directory.

    A worksheet is recognized by the clean export of the first configured
    channel; the worksheet name is the file name with the
    ``_{variable}.csv`` suffix removed.

    Returns
    -------
    list of str
        Worksheet names sorted by name
    """
    suffix = f"_{variable_name(config, 'clean', config['channel'][0])}{CSV_EXT}"
    files = fs.glob(f"{root.rstrip('/')}/*{suffix}")
    worksheets = sorted(f.rsplit("/", 1)[-1][: -len(suffix)] for f in files)
    if not worksheets:
        raise MissingSourceError(f"No *{suffix} file found in {root}")

    logger.info(f"Found {len(worksheets)} worksheets in {root}")
    return worksheets


def read_source(
    fs: AbstractFileSystem, path: str, kind: str, cache: HeaderCache
) -> Optional[SourceTable]:
    """
    Open one CSV export and decode it.

    Returns ``None`` for a missing export of an optional source kind.

    Raises
    ------
    MissingSourceError
        If the export of a mandatory source kind does not exist
    EmptySourceError
        If the export is empty, or a clean export has no data rows
    MissingHeaderError
        If the header line is blank
    """
    if not fs.exists(path):
        if SOURCE_KINDS[kind]["mandatory"]:
            raise MissingSourceError(f"CSV file does not exist: {path}")
        logger.info(f"No {kind} export at {path}")
        return None

    # utf-8-sig drops the byte order mark Echoview may write
    with fs.open(path, mode="rt", encoding="utf-8-sig") as fid:
        header = fid.readline()
        if header == "":
            raise EmptySourceError(f"CSV file empty: {path}")
        header = header.strip()
        if not header:
            raise MissingHeaderError(f"CSV file header missing: {path}")
        column_map = cache.get(kind, header, path)
        table = decode_rows(fid, column_map, path)

    if kind == "clean" and len(table) == 0:
        raise EmptySourceError(f"CSV file has no data rows: {path}")
    return table


def read_channel(
    fs: AbstractFileSystem,
    root: str,
    worksheet: str,
    channel: str,
    config: Dict[str, Any],
    cache: HeaderCache,
) -> Dict[str, Optional[SourceTable]]:
    """
    Read the exports of every source kind for one channel of a worksheet.

    Returns
    -------
    dict
        Source kind -> ``SourceTable``, or ``None`` for a missing optional export
    """
    tables = {}
    for kind in source_kinds():
        path = source_path(root, worksheet, config, kind, channel)
        tables[kind] = read_source(fs, path, kind, cache)

    if tables["raw"].header != tables["clean"].header:
        msg = f"Header line mismatch between {tables['clean'].path} and {tables['raw'].path}"
        logger.warning(msg)
        warnings.warn(msg, HeaderMismatchWarning)
    return tables
