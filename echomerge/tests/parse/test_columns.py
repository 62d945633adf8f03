import warnings

import pytest

from echomerge.exceptions import HeaderMismatchWarning, MissingColumnError
from echomerge.parse.columns import HeaderCache, map_columns, split_header
from echomerge.testing import ECHOVIEW_COLUMNS

HEADER = ",".join(ECHOVIEW_COLUMNS)
QUOTED_HEADER = ",".join(f'"{c}"' for c in ECHOVIEW_COLUMNS)


def test_split_header_quotes_and_bom():
    assert split_header('\ufeff"Interval", "Layer" ,Sv_mean\n') == ["Interval", "Layer", "Sv_mean"]
    assert split_header("   \n") == []


@pytest.mark.parametrize("header", [HEADER, QUOTED_HEADER])
def test_map_columns_clean(header):
    cmap = map_columns(header, "clean", "a_clean.csv")

    assert cmap["Interval"] == ECHOVIEW_COLUMNS.index("Interval")
    assert cmap["Lat_M"] == ECHOVIEW_COLUMNS.index("Lat_M")
    assert cmap["EV_filename"] == ECHOVIEW_COLUMNS.index("EV_filename")
    assert "Layer_depth_min" in cmap
    # moments are only scanned in extended mode
    assert "Standard_deviation" not in cmap
    # columns not needed are skipped
    assert "NASC" not in cmap


def test_scan_plan_file_order():
    plan = map_columns(HEADER, "raw", "a_raw.csv", extended=True).scan_plan

    assert plan.positions == sorted(plan.positions)
    assert set(plan.names) == {
        "Interval",
        "Layer",
        "Sv_mean",
        "Samples",
        "EV_filename",
        "Program_version",
        "Standard_deviation",
        "Skewness",
        "Kurtosis",
    }
    assert plan.rename[ECHOVIEW_COLUMNS.index("Sv_mean")] == "Sv_mean"


@pytest.mark.parametrize(
    ("columns", "expected"),
    [
        (["Interval", "Layer", "Good_samples", "Samples"], 2),
        (["Interval", "Samples", "Layer", "Good_samples"], 1),
    ],
)
def test_map_columns_samples_first_wins(columns, expected):
    cmap = map_columns(",".join(columns), "reject_count", "a_reject.csv")

    assert cmap["Samples"] == expected


@pytest.mark.parametrize(
    ("kind", "drop", "extended"),
    [
        ("clean", "Lat_M", False),
        ("clean", "EV_filename", False),
        ("clean", "Kurtosis", True),
        ("raw", "Samples", False),
        ("raw", "Skewness", True),
        ("reject_count", "Layer", False),
        ("signal_noise", "Sv_mean", False),
    ],
)
def test_map_columns_missing(kind, drop, extended):
    header = ",".join(c for c in ECHOVIEW_COLUMNS if c != drop)

    with pytest.raises(MissingColumnError) as excinfo:
        map_columns(header, kind, "w_export.csv", extended=extended)
    assert str(excinfo.value) == f"{drop} column not found in w_export.csv"


def test_map_columns_raw_without_provenance():
    cmap = map_columns("Interval,Layer,Sv_mean,Samples", "raw", "a_raw.csv")

    assert "EV_filename" not in cmap


def test_map_columns_unknown_kind():
    with pytest.raises(ValueError, match="Unknown source kind"):
        map_columns(HEADER, "echogram", "a.csv")


def test_header_cache_reuses_map():
    cache = HeaderCache()
    first = cache.get("clean", HEADER, "a_clean.csv")

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        second = cache.get("clean", HEADER, "b_clean.csv")

    assert second is first
    assert cache.last_header("clean") == HEADER
    assert cache.last_header("raw") is None


def test_header_cache_changed_header():
    cache = HeaderCache()
    cache.get("clean", HEADER, "a_clean.csv")
    reordered = ",".join(reversed(ECHOVIEW_COLUMNS))

    with pytest.warns(HeaderMismatchWarning, match="b_clean.csv"):
        cmap = cache.get("clean", reordered, "b_clean.csv")

    assert cmap["Interval"] == len(ECHOVIEW_COLUMNS) - 1 - ECHOVIEW_COLUMNS.index("Interval")
