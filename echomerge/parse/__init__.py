from .columns import ColumnMap, HeaderCache, ScanPlan, map_columns
from .rows import SourceTable, decode_rows
from .worksheet import find_worksheets, read_channel, read_source

__all__ = [
    "ColumnMap",
    "HeaderCache",
    "ScanPlan",
    "SourceTable",
    "decode_rows",
    "find_worksheets",
    "map_columns",
    "read_channel",
    "read_source",
]
