"""
Define dimensions, variables and their attributes
in one place for consistent reuse
"""

from typing import Dict, Tuple

TIME = "TIME"
DEPTH = "DEPTH"
CHANNEL = "CHANNEL"
SOURCE_FILE = "SOURCE_FILE"
SOURCE_VERSION = "SOURCE_VERSION"

CELL_DIMS = (TIME, DEPTH, CHANNEL)

# Variables written for every run, name -> dimensions
BASE_VARIABLES: Dict[str, Tuple[str, ...]] = {
    "latitude": (TIME,),
    "longitude": (TIME,),
    "mean_height": CELL_DIMS,
    "mean_depth": CELL_DIMS,
    "Sv": CELL_DIMS,
    "Sv_unfiltered": CELL_DIMS,
    "Sv_percent_good": CELL_DIMS,
    "signal_to_noise": CELL_DIMS,
    "background_noise": (TIME, CHANNEL),
    "motion_correction_factor": CELL_DIMS,
}

# Higher moments, written in extended mode only
EXTENDED_VARIABLES: Dict[str, Tuple[str, ...]] = {
    "Sv_sd": CELL_DIMS,
    "Sv_skew": CELL_DIMS,
    "Sv_kurt": CELL_DIMS,
    "Sv_unfiltered_sd": CELL_DIMS,
    "Sv_unfiltered_skew": CELL_DIMS,
    "Sv_unfiltered_kurt": CELL_DIMS,
}


def grid_variables(extended: bool) -> Dict[str, Tuple[str, ...]]:
    """Variables held by the grid for the given mode."""
    if extended:
        return {**BASE_VARIABLES, **EXTENDED_VARIABLES}
    return dict(BASE_VARIABLES)


DEFAULT_COORD_ATTRS = {
    TIME: {
        "long_name": "Timestamp of the middle of each integration interval",
        "standard_name": "time",
        "axis": "T",
    },
    DEPTH: {
        "long_name": "Depth of the middle of each integration layer",
        "standard_name": "depth",
        "units": "m",
        "positive": "down",
        "axis": "Z",
    },
    CHANNEL: {"long_name": "Echoview channel identifier"},
    SOURCE_FILE: {"long_name": "Echoview worksheet the data was exported from"},
    SOURCE_VERSION: {"long_name": "Echoview version used for the export"},
}

DEFAULT_VAR_ATTRS = {
    "interval": {"long_name": "Echoview integration interval number, base 1"},
    "frequency": {
        "long_name": "Transducer frequency",
        "standard_name": "sound_frequency",
        "units": "kHz",
    },
    "latitude": {
        "long_name": "Latitude of the middle of each integration interval",
        "standard_name": "latitude",
        "units": "degrees_north",
        "valid_range": (-90.0, 90.0),
    },
    "longitude": {
        "long_name": "Longitude of the middle of each integration interval",
        "standard_name": "longitude",
        "units": "degrees_east",
        "valid_range": (-180.0, 180.0),
    },
    "mean_height": {"long_name": "Mean height of the good samples in each cell", "units": "m"},
    "mean_depth": {"long_name": "Mean depth of the good samples in each cell", "units": "m"},
    "Sv": {
        "long_name": "Mean volume backscattering coefficient (cleaned)",
        "units": "m-1",
    },
    "Sv_unfiltered": {
        "long_name": "Mean volume backscattering coefficient (raw)",
        "units": "m-1",
    },
    "Sv_percent_good": {
        "long_name": "Percentage of raw samples retained after cleaning",
        "units": "percent",
        "valid_range": (0, 100),
    },
    "Sv_sd": {"long_name": "Standard deviation of cleaned Sv", "units": "dB re 1 m-1"},
    "Sv_skew": {"long_name": "Skewness of cleaned Sv"},
    "Sv_kurt": {"long_name": "Kurtosis of cleaned Sv"},
    "Sv_unfiltered_sd": {"long_name": "Standard deviation of raw Sv", "units": "dB re 1 m-1"},
    "Sv_unfiltered_skew": {"long_name": "Skewness of raw Sv"},
    "Sv_unfiltered_kurt": {"long_name": "Kurtosis of raw Sv"},
    "signal_to_noise": {"long_name": "Signal to noise ratio", "units": "dB"},
    "background_noise": {"long_name": "Background noise level", "units": "dB re 1 W"},
    "motion_correction_factor": {
        "long_name": "Correction applied for transducer motion",
        "units": "percent",
    },
}

# Flag values used by the finalizer
FLAG_NO_QC = 1
FLAG_GOOD = 2

QC_FLAG_ATTRS = {
    "long_name": "Quality control flag",
    "flag_values": (FLAG_NO_QC, FLAG_GOOD),
    "flag_meanings": "No_QC_performed Good_data",
}
