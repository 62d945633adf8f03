from .api import merge_worksheets
from .grid import GridBuilder, SurveyGrid

__all__ = [
    "GridBuilder",
    "SurveyGrid",
    "merge_worksheets",
]
