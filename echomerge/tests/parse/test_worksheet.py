import pytest

from echomerge.exceptions import (
    EmptySourceError,
    HeaderMismatchWarning,
    MissingHeaderError,
    MissingSourceError,
)
from echomerge.parse.columns import HeaderCache
from echomerge.parse.worksheet import (
    find_worksheets,
    get_export_fs,
    read_channel,
    read_source,
    source_path,
    variable_name,
)
from echomerge.testing import ECHOVIEW_COLUMNS, write_worksheet


def test_variable_name(two_channel_config):
    assert variable_name(two_channel_config, "raw", "120kHz") == "Reference_120kHz_raw"
    assert (
        source_path("/exports/", "w1", two_channel_config, "background", "38kHz")
        == "/exports/w1_Background_38kHz_noise.csv"
    )


def test_find_worksheets(tmp_path, config):
    for name in ["survey_02", "survey_01", "survey_10"]:
        write_worksheet(tmp_path, name, intervals=[0], layers=[1], kinds=["clean"])
    # not a clean export of the first channel
    write_worksheet(tmp_path, "survey_03", intervals=[0], layers=[1], kinds=["raw"])

    fs, root = get_export_fs(tmp_path)

    assert find_worksheets(fs, root, config) == ["survey_01", "survey_02", "survey_10"]


def test_find_worksheets_none(tmp_path, config):
    fs, root = get_export_fs(tmp_path)

    with pytest.raises(MissingSourceError, match="No \\*_Final_38kHz_cleaned.csv file"):
        find_worksheets(fs, root, config)


def test_read_channel(export_dir, config):
    fs, root = get_export_fs(export_dir)
    tables = read_channel(fs, root, "survey_01", "38kHz", config, HeaderCache())

    assert set(tables) == {
        "clean",
        "raw",
        "reject_count",
        "signal_noise",
        "background",
        "motion_correction",
    }
    assert len(tables["clean"]) == 15
    assert len(tables["background"]) == 5
    assert tables["clean"].ev_filename.endswith("worksheet.EV")


def test_read_channel_optional_missing(tmp_path, config):
    write_worksheet(
        tmp_path, "w", intervals=range(3), layers=[1], kinds=["clean", "raw", "reject_count"]
    )
    fs, root = get_export_fs(tmp_path)
    tables = read_channel(fs, root, "w", "38kHz", config, HeaderCache())

    assert tables["signal_noise"] is None
    assert tables["background"] is None
    assert tables["motion_correction"] is None


@pytest.mark.parametrize("missing", ["clean", "raw", "reject_count"])
def test_read_channel_mandatory_missing(tmp_path, config, missing):
    kinds = [k for k in ["clean", "raw", "reject_count"] if k != missing]
    write_worksheet(tmp_path, "w", intervals=range(3), layers=[1], kinds=kinds)
    fs, root = get_export_fs(tmp_path)

    with pytest.raises(MissingSourceError, match="CSV file does not exist"):
        read_channel(fs, root, "w", "38kHz", config, HeaderCache())


def test_read_channel_header_mismatch(tmp_path, config):
    write_worksheet(tmp_path, "w", intervals=range(3), layers=[1], kinds=["clean", "reject_count"])
    write_worksheet(
        tmp_path,
        "w",
        intervals=range(3),
        layers=[1],
        kinds=["raw"],
        columns=[c for c in ECHOVIEW_COLUMNS if c != "NASC"],
    )
    fs, root = get_export_fs(tmp_path)

    with pytest.warns(HeaderMismatchWarning, match="Header line mismatch"):
        read_channel(fs, root, "w", "38kHz", config, HeaderCache())


def test_read_source_bom(tmp_path):
    paths = write_worksheet(
        tmp_path, "w", intervals=range(2), layers=[1, 2], kinds=["clean"], bom=True
    )
    fs, _ = get_export_fs(tmp_path)
    table = read_source(fs, str(paths["clean"]), "clean", HeaderCache())

    assert len(table) == 4
    assert not table.header.startswith("\ufeff")


def test_read_source_empty(tmp_path):
    path = tmp_path / "w_Final_38kHz_cleaned.csv"
    path.write_text("")
    fs, _ = get_export_fs(tmp_path)

    with pytest.raises(EmptySourceError, match="CSV file empty"):
        read_source(fs, str(path), "clean", HeaderCache())


def test_read_source_blank_header(tmp_path):
    path = tmp_path / "w_Final_38kHz_cleaned.csv"
    path.write_text("\n0,1,-60\n")
    fs, _ = get_export_fs(tmp_path)

    with pytest.raises(MissingHeaderError, match="header missing"):
        read_source(fs, str(path), "clean", HeaderCache())


def test_read_source_clean_without_rows(tmp_path):
    path = tmp_path / "w_Final_38kHz_cleaned.csv"
    path.write_text(",".join(ECHOVIEW_COLUMNS) + "\n")
    fs, _ = get_export_fs(tmp_path)

    with pytest.raises(EmptySourceError, match="no data rows"):
        read_source(fs, str(path), "clean", HeaderCache())
