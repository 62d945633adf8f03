"""
Settings consumed by the merge engine.

Settings come from the survey processing settings (a dict, or a YAML file
holding one) and are validated into a normalized dict with one entry per
channel for every per-channel parameter.
"""

from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

# Export variable name templates, one per source kind.
# "{channel}" is replaced by the channel identifier, e.g. "38kHz".
VARIABLE_NAME_KEYS = (
    "export_final_variable_name",
    "export_reference_variable_name",
    "export_rejectdata_variable_name",
    "export_noise_variable_name",
    "export_background_variable_name",
    "export_motion_correction_factor_variable_name",
)

DEFAULT_CONFIG = {
    "channel": ["38kHz"],
    "frequency": [38.0],
    "max_depth": 1200.0,
    "extended": False,
    "min_good": 10,
    "accept_good": 80,
    "single_channel_output": True,
    "export_final_variable_name": "Final_{channel}_cleaned",
    "export_reference_variable_name": "Reference_{channel}_raw",
    "export_rejectdata_variable_name": "Reject_{channel}_number_samples",
    "export_noise_variable_name": "Noise_{channel}_signal_to_noise",
    "export_background_variable_name": "Background_{channel}_noise",
    "export_motion_correction_factor_variable_name": "Motion_{channel}_correction_factor",
    "global_attrs": {},
}

_BOOL_KEYS = ("extended", "single_channel_output")
_PERCENT_KEYS = ("min_good", "accept_good")


def param2list(p_val: Union[int, float, list], channel: List[str]) -> List[float]:
    """
    Organize a per-channel parameter given as a scalar or list into a list
    with one value per channel.

    Parameters
    ----------
    p_val : int, float, or list
        A scalar applying to all channels or a list with one value per channel
    channel : list
        The configured channels

    Returns
    -------
    list of float
    """
    if isinstance(p_val, bool) or not isinstance(p_val, (int, float, list, tuple)):
        raise ValueError("'p_val' needs to be one of type int, float, or list")

    if isinstance(p_val, (list, tuple)):
        if len(p_val) != len(channel):
            raise ValueError("The lengths of 'p_val' and 'channel' should be identical")
        return [float(v) for v in p_val]
    return [float(p_val)] * len(channel)


def sanitize_config(user_dict: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Creates a complete settings dictionary from defaults
    and checks the format of user-provided settings.

    Parameters
    ----------
    user_dict : dict, optional
        Settings overriding ``DEFAULT_CONFIG``.
        Unknown keys raise a ``ValueError``.

    Returns
    -------
    dict
        Settings with ``channel`` and ``frequency`` as lists of equal length
        and ``max_depth`` as a list with one value per channel.
    """
    if user_dict is None:
        user_dict = {}
    if not isinstance(user_dict, dict):
        raise TypeError("The settings must be a dict!")

    unknown = set(user_dict) - set(DEFAULT_CONFIG)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

    config = {**DEFAULT_CONFIG, **user_dict}

    # A lone channel id is accepted as a one-element list
    channel = config["channel"]
    if isinstance(channel, str):
        channel = [channel]
    if not isinstance(channel, (list, tuple)) or len(channel) == 0:
        raise ValueError("'channel' has to be a non-empty list of channel identifiers")
    if not all(isinstance(ch, str) for ch in channel):
        raise TypeError("Each element of 'channel' must be a string!")
    if len(set(channel)) != len(channel):
        raise ValueError("'channel' contains duplicated channel identifiers")
    config["channel"] = list(channel)

    config["frequency"] = param2list(config["frequency"], config["channel"])
    config["max_depth"] = param2list(config["max_depth"], config["channel"])

    for key in _BOOL_KEYS:
        if not isinstance(config[key], bool):
            raise TypeError(f"'{key}' must be a boolean!")

    for key in _PERCENT_KEYS:
        val = config[key]
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            raise TypeError(f"'{key}' must be a number!")
        if not 0 <= val <= 100:
            raise ValueError(f"'{key}' must be a percentage between 0 and 100")

    for key in VARIABLE_NAME_KEYS:
        template = config[key]
        if not isinstance(template, str) or "{channel}" not in template:
            raise ValueError(f"'{key}' must be a string containing '{{channel}}'")

    if not isinstance(config["global_attrs"], dict):
        raise TypeError("'global_attrs' must be a dict!")

    return config


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Read settings from a YAML file and sanitize them."""
    with open(path, encoding="utf-8") as fid:
        user_dict = yaml.load(fid, Loader=yaml.SafeLoader)
    return sanitize_config(user_dict or {})
