"""
Map Echoview CSV header lines to the columns each source kind needs.
"""

import csv
import warnings
from typing import Dict, List, Optional

from ..core import INT, PROVENANCE_COLUMNS, SAMPLE_COLUMNS, SOURCE_KINDS, STR
from ..exceptions import HeaderMismatchWarning, MissingColumnError
from ..utils.log import _init_logger

logger = _init_logger(__name__)

# Logical name the sample count column decodes to, whichever Echoview name it has
SAMPLES = "Samples"


def split_header(header: str) -> List[str]:
    """
    Split a header line into column names.

    A leading byte order mark, surrounding whitespace and quotes are removed
    from the names.
    """
    header = header.lstrip("\ufeff").strip()
    if not header:
        return []
    names = next(csv.reader([header], skipinitialspace=True))
    return [name.strip().strip('"').strip() for name in names]


class ScanPlan:
    """
    Columns to keep when scanning the data rows of one source,
    in file order. All other columns are skipped.
    """

    def __init__(self, positions: List[int], names: List[str], dtypes: Dict[str, str]):
        self.positions = positions
        self.names = names
        self.dtypes = dtypes

    @property
    def rename(self) -> Dict[int, str]:
        """Physical position -> logical column name."""
        return dict(zip(self.positions, self.names))

    def __repr__(self) -> str:
        cols = ", ".join(f"{n}@{p}" for p, n in zip(self.positions, self.names))
        return f"ScanPlan({cols})"


class ColumnMap:
    """Logical column name -> zero-based physical position for one header."""

    def __init__(self, kind: str, header: str, positions: Dict[str, int], dtypes: Dict[str, str]):
        self.kind = kind
        self.header = header
        self.positions = positions
        self.dtypes = dtypes

    def __contains__(self, name: str) -> bool:
        return name in self.positions

    def __getitem__(self, name: str) -> int:
        return self.positions[name]

    @property
    def scan_plan(self) -> ScanPlan:
        ordered = sorted(self.positions.items(), key=lambda item: item[1])
        return ScanPlan(
            positions=[pos for _, pos in ordered],
            names=[name for name, _ in ordered],
            dtypes={name: self.dtypes[name] for name, _ in ordered},
        )

    def __repr__(self) -> str:
        return f"ColumnMap(kind={self.kind!r}, columns={sorted(self.positions)})"


def map_columns(header: str, kind: str, source_file: str, extended: bool = False) -> ColumnMap:
    """
    Locate the columns needed by a source kind in a header line.

    Parameters
    ----------
    header : str
        The header line of the CSV export
    kind : str
        One of the keys of ``SOURCE_KINDS``
    source_file : str
        Path of the export, used in error messages
    extended : bool
        Whether the higher moments of Sv are required

    Returns
    -------
    ColumnMap

    Raises
    ------
    MissingColumnError
        If a mandatory column is not in the header
    """
    if kind not in SOURCE_KINDS:
        raise ValueError(f"Unknown source kind: {kind}")
    kind_info = SOURCE_KINDS[kind]
    names = split_header(header)

    # The first occurrence of a name wins
    lookup: Dict[str, int] = {}
    for pos, name in enumerate(names):
        lookup.setdefault(name, pos)

    positions: Dict[str, int] = {}
    dtypes: Dict[str, str] = {}

    required = dict(kind_info["required"])
    if extended:
        required.update(kind_info["extended"])
    for column, dtype in required.items():
        if column not in lookup:
            raise MissingColumnError(column, source_file)
        positions[column] = lookup[column]
        dtypes[column] = dtype

    for column, dtype in kind_info["optional"].items():
        if column in lookup:
            positions[column] = lookup[column]
            dtypes[column] = dtype

    if kind_info["samples"]:
        found = [lookup[col] for col in SAMPLE_COLUMNS if col in lookup]
        if not found:
            raise MissingColumnError(SAMPLES, source_file)
        positions[SAMPLES] = min(found)
        dtypes[SAMPLES] = INT

    if kind_info["provenance"] is not None:
        for column in PROVENANCE_COLUMNS:
            if column in lookup:
                positions[column] = lookup[column]
                dtypes[column] = STR
            elif kind_info["provenance"] == "required":
                raise MissingColumnError(column, source_file)

    return ColumnMap(kind, header, positions, dtypes)


class HeaderCache:
    """
    Remembers the last header seen for each source kind and its mapping.

    An unchanged header reuses the cached mapping; a changed one is re-parsed
    after emitting a ``HeaderMismatchWarning``.
    """

    def __init__(self, extended: bool = False):
        self.extended = extended
        self._maps: Dict[str, ColumnMap] = {}

    def last_header(self, kind: str) -> Optional[str]:
        cached = self._maps.get(kind)
        return cached.header if cached is not None else None

    def get(self, kind: str, header: str, source_file: str) -> ColumnMap:
        cached = self._maps.get(kind)
        if cached is not None:
            if cached.header == header:
                return cached
            msg = f"Header line change in {source_file}"
            logger.warning(msg)
            warnings.warn(msg, HeaderMismatchWarning)
        column_map = map_columns(header, kind, source_file, extended=self.extended)
        self._maps[kind] = column_map
        return column_map
