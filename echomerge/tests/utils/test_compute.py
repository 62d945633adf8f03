import numpy as np
import pytest

from echomerge.utils.compute import (
    _log2lin,
    decode_motion_correction,
    decode_signal_noise,
    decode_sv,
    percent_good,
)


@pytest.mark.parametrize(
    ("sv_db", "expected"),
    [
        (-60.0, 1e-6),
        (-70.0, 1e-7),
        (10.0, 10.0),
        (0.0, np.nan),
        (1000.0, np.nan),
        (9999.0, np.nan),
        (9.9e37, np.nan),
        (np.nan, np.nan),
    ],
)
def test_decode_sv(sv_db, expected):
    np.testing.assert_allclose(decode_sv(np.array([sv_db])), [expected])


def test_decode_sv_does_not_modify_input():
    sv_db = np.array([0.0, -60.0, 1000.0])
    decode_sv(sv_db)
    np.testing.assert_array_equal(sv_db, [0.0, -60.0, 1000.0])


def test_decode_signal_noise():
    snr = decode_signal_noise(np.array([12.5, 9999.0, -3.0]))
    np.testing.assert_array_equal(snr, [12.5, np.nan, -3.0])


def test_decode_motion_correction():
    mc = decode_motion_correction(np.array([0.0, 9999.0, 10 * np.log10(1.05)]))
    assert np.isnan(mc[0])
    assert np.isnan(mc[1])
    assert mc[2] == pytest.approx(5.0)


@pytest.mark.parametrize(
    ("good", "raw", "expected"),
    [
        (45, 100, 45),
        (80, 100, 80),
        (2, 3, 66),
        (100, 100, 100),
        (10, 0, 0),
        (0, 0, 0),
    ],
)
def test_percent_good(good, raw, expected):
    pct = percent_good(np.array([good]), np.array([raw]))
    assert pct.dtype == np.int64
    assert pct[0] == expected
