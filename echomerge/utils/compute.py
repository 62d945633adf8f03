"""compute.py

Module containing the numeric transforms applied to
Echoview export values within echomerge.
"""

from typing import Union

import numpy as np

# Echoview writes 9999 (or 9.9e37) where a cell holds no data
NO_DATA_SENTINEL = 9999
SENTINEL_THRESHOLD = 999


def _log2lin(data: Union[np.ndarray, float]) -> Union[np.ndarray, float]:
    """Perform log to linear transform on data

    Parameters
    ----------
    data : np.ndarray or float
         The data to be transformed

    Returns
    -------
    np.ndarray or float
        The transformed data
    """
    return 10 ** (data / 10)


def decode_sv(sv_db: Union[np.ndarray, float]) -> np.ndarray:
    """
    Convert exported ``Sv_mean`` values [dB] to linear Sv.

    A value of exactly 0 is Echoview's empty-cell marker and is treated as the
    no-data sentinel, as is anything above 999. Both decode to NaN.

    Parameters
    ----------
    sv_db : np.ndarray or float
        Sv values in dB as read from the export

    Returns
    -------
    np.ndarray
        Linear Sv, NaN where there is no data
    """
    sv = np.array(sv_db, dtype=np.float64, copy=True)
    sv[sv == 0] = NO_DATA_SENTINEL
    no_data = sv > SENTINEL_THRESHOLD
    sv[no_data] = np.nan
    return _log2lin(sv)


def decode_signal_noise(snr_db: Union[np.ndarray, float]) -> np.ndarray:
    """Keep signal to noise values [dB], replacing the 9999 marker with NaN."""
    snr = np.array(snr_db, dtype=np.float64, copy=True)
    snr[snr == NO_DATA_SENTINEL] = np.nan
    return snr


def decode_motion_correction(mc_db: Union[np.ndarray, float]) -> np.ndarray:
    """
    Convert the exported motion correction factor [dB] to a percentage.

    Zero means no correction was applied (the transducer orientation did not
    change), which is not the same as a 0 % correction, so it is stored as NaN
    together with the 9999 marker.
    """
    mc = np.array(mc_db, dtype=np.float64, copy=True)
    mc[(mc == 0) | (mc == NO_DATA_SENTINEL)] = np.nan
    return 100 * _log2lin(mc) - 100


def percent_good(good_samples: np.ndarray, raw_samples: np.ndarray) -> np.ndarray:
    """
    Percentage of raw samples that survived rejection, floored to an integer.

    Cells without raw samples are 0 % good regardless of the good sample count.
    """
    good = np.asarray(good_samples, dtype=np.float64)
    raw = np.asarray(raw_samples, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        pct = np.floor(100 * good / raw)
    return np.where(raw > 0, pct, 0).astype(np.int64)
