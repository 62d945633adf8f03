"""
Errors and warning categories raised while merging echo-integration exports.

Errors abort the whole run. Warnings are issued through ``warnings.warn``
under their own category so that callers can filter or escalate them,
e.g. ``warnings.simplefilter("error", IntervalGapWarning)``.
"""


class EchoMergeError(Exception):
    """Base class for fatal merge errors."""


class MissingSourceError(EchoMergeError, FileNotFoundError):
    """A mandatory CSV export (clean, raw or reject count) does not exist."""


class EmptySourceError(EchoMergeError):
    """A CSV export is empty or holds no usable data rows."""


class MissingHeaderError(EchoMergeError):
    """The first line of a CSV export is blank."""


class MissingColumnError(EchoMergeError, KeyError):
    """A mandatory column is absent from a CSV header."""

    def __init__(self, column: str, source_file: str):
        self.column = column
        self.source_file = source_file
        super().__init__(column, source_file)

    def __str__(self):
        return f"{self.column} column not found in {self.source_file}"


class IntervalOrderError(EchoMergeError):
    """The interval sequence runs backwards between worksheets."""


class NoPositionDataError(EchoMergeError):
    """No usable GPS position was found in any worksheet."""


class EchoMergeWarning(UserWarning):
    """Base class for recoverable merge conditions."""


class HeaderMismatchWarning(EchoMergeWarning):
    """A header line changed between files or differs between clean and raw exports."""


class MissingRawDataWarning(EchoMergeWarning):
    """A clean (interval, layer) cell has no counterpart in the raw export."""


class MissingRejectDataWarning(EchoMergeWarning):
    """A clean (interval, layer) cell has no counterpart in the reject count export."""


class IntervalGapWarning(EchoMergeWarning):
    """Interval numbers skip between consecutive worksheets."""


class ChannelExtentWarning(EchoMergeWarning):
    """A later channel covers more intervals or layers than the earlier channels."""


class LayerDepthWarning(EchoMergeWarning):
    """Layer depths were synthesized because the layer depth columns are absent."""


class NoPositionWarning(EchoMergeWarning):
    """A worksheet holds no interval with a GPS fix."""
