from .version import __version__  # noqa

from . import finalize, merge, parse, utils
from .config import DEFAULT_CONFIG, load_config, sanitize_config
from .finalize import finalize_grid
from .merge import merge_worksheets
from .utils.log import verbose

# Turn off verbosity for echomerge
verbose(override=True)

__all__ = [
    "DEFAULT_CONFIG",
    "finalize",
    "finalize_grid",
    "load_config",
    "merge",
    "merge_worksheets",
    "parse",
    "sanitize_config",
    "utils",
    "verbose",
]
