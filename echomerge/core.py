from typing import TYPE_CHECKING, Any, Dict, Tuple

from typing_extensions import Literal

if TYPE_CHECKING:
    # Please keep SourceKindHint updated with the keys of the SOURCE_KINDS dict
    SourceKindHint = Literal[
        "clean", "raw", "reject_count", "signal_noise", "background", "motion_correction"
    ]

# Column decode types
INT = "int"
FLOAT = "float"
STR = "str"

# Echoview names of the sample count column, in no particular order;
# whichever comes first in the header is used
SAMPLE_COLUMNS = ("Samples", "Good_samples")

MOMENT_COLUMNS = {
    "Standard_deviation": FLOAT,
    "Skewness": FLOAT,
    "Kurtosis": FLOAT,
}

# Per-row provenance, read from the first data row only
PROVENANCE_COLUMNS = ("EV_filename", "Program_version")

SOURCE_KINDS: Dict["SourceKindHint", Dict[str, Any]] = {
    "clean": {
        "config_key": "export_final_variable_name",
        "mandatory": True,
        "layer_resolved": True,
        "required": {
            "Interval": INT,
            "Layer": INT,
            "Lat_M": FLOAT,
            "Lon_M": FLOAT,
            "Date_M": STR,
            "Time_M": STR,
            "Height_mean": FLOAT,
            "Depth_mean": FLOAT,
            "Sv_mean": FLOAT,
        },
        "optional": {
            "Layer_depth_min": FLOAT,
            "Layer_depth_max": FLOAT,
        },
        "samples": False,
        "extended": MOMENT_COLUMNS,
        "provenance": "required",
    },
    "raw": {
        "config_key": "export_reference_variable_name",
        "mandatory": True,
        "layer_resolved": True,
        "required": {"Interval": INT, "Layer": INT, "Sv_mean": FLOAT},
        "optional": {},
        "samples": True,
        "extended": MOMENT_COLUMNS,
        "provenance": "optional",
    },
    "reject_count": {
        "config_key": "export_rejectdata_variable_name",
        "mandatory": True,
        "layer_resolved": True,
        "required": {"Interval": INT, "Layer": INT},
        "optional": {},
        "samples": True,
        "extended": {},
        "provenance": None,
    },
    "signal_noise": {
        "config_key": "export_noise_variable_name",
        "mandatory": False,
        "layer_resolved": True,
        "required": {"Interval": INT, "Layer": INT, "Sv_mean": FLOAT},
        "optional": {},
        "samples": False,
        "extended": {},
        "provenance": None,
    },
    "background": {
        "config_key": "export_background_variable_name",
        "mandatory": False,
        "layer_resolved": False,
        "required": {"Interval": INT, "Layer": INT, "Sv_mean": FLOAT},
        "optional": {},
        "samples": False,
        "extended": {},
        "provenance": None,
    },
    "motion_correction": {
        "config_key": "export_motion_correction_factor_variable_name",
        "mandatory": False,
        "layer_resolved": True,
        "required": {"Interval": INT, "Layer": INT, "Sv_mean": FLOAT},
        "optional": {},
        "samples": False,
        "extended": {},
        "provenance": None,
    },
}


def source_kinds() -> Tuple["SourceKindHint", ...]:
    """Source kinds in the order they are opened for each channel."""
    return tuple(SOURCE_KINDS)
