from .api import finalize_grid
from .bounds import get_bounds

__all__ = [
    "finalize_grid",
    "get_bounds",
]
