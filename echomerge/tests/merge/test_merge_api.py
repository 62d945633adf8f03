import numpy as np
import pytest

import echomerge as em
from echomerge.exceptions import (
    ChannelExtentWarning,
    IntervalGapWarning,
    IntervalOrderError,
    LayerDepthWarning,
    MissingSourceError,
    NoPositionDataError,
    NoPositionWarning,
)
from echomerge.testing import ECHOVIEW_COLUMNS, _gen_export_rows, write_export, write_worksheet


def test_merge_single_worksheet(export_dir, config):
    ds = em.merge_worksheets(export_dir, config)

    assert dict(ds.sizes) == {"TIME": 5, "DEPTH": 3, "SOURCE_FILE": 1}
    np.testing.assert_array_equal(ds["interval"], [1, 2, 3, 4, 5])
    np.testing.assert_array_equal(ds["DEPTH"], [5.0, 15.0, 25.0])
    np.testing.assert_allclose(ds["Sv"], 1e-7)
    np.testing.assert_allclose(ds["Sv_unfiltered"], 10**-6.5)
    np.testing.assert_array_equal(ds["Sv_percent_good"], 80)
    np.testing.assert_allclose(ds["background_noise"], -140.0)
    assert ds.attrs["channel"] == "38kHz"
    assert ds.attrs["frequency"] == 38.0
    assert ds.attrs["source_version"] == "13.1.152.45387"
    assert ds["SOURCE_FILE"].values[0] == "D:\\survey\\worksheet.EV"


def test_merge_overlap_later_worksheet_wins(tmp_path, config):
    # Echoview intervals are zero-based: A covers 1 to 100, B 80 to 150
    write_worksheet(tmp_path, "A", intervals=range(0, 100), layers=[1, 2], clean_sv=-60.0)
    write_worksheet(tmp_path, "B", intervals=range(79, 150), layers=[1, 2], clean_sv=-50.0)

    ds = em.merge_worksheets(tmp_path, config)

    np.testing.assert_array_equal(ds["interval"], np.arange(1, 151))
    np.testing.assert_allclose(ds["Sv"].isel(TIME=slice(0, 79)), 1e-6)
    np.testing.assert_allclose(ds["Sv"].isel(TIME=slice(79, None)), 1e-5)
    assert (ds["TIME"].diff("TIME") > np.timedelta64(0)).all()


def test_merge_writer_called_once(export_dir, config):
    written = []

    ds = em.merge_worksheets(export_dir, config, writer=written.append)

    assert len(written) == 1
    assert written[0] is ds


def test_merge_selected_worksheets(tmp_path, config):
    write_worksheet(tmp_path, "A", intervals=range(0, 5), layers=[1])
    write_worksheet(tmp_path, "B", intervals=range(5, 10), layers=[1])

    ds = em.merge_worksheets(tmp_path, config, worksheets=["B"])

    np.testing.assert_array_equal(ds["interval"], np.arange(6, 11))


def test_merge_interval_gap(tmp_path, config):
    write_worksheet(tmp_path, "A", intervals=range(0, 10), layers=[1])
    write_worksheet(tmp_path, "B", intervals=range(19, 30), layers=[1])

    with pytest.warns(IntervalGapWarning):
        ds = em.merge_worksheets(tmp_path, config)

    assert ds.sizes["TIME"] == 21


def test_merge_intervals_backwards(tmp_path, config):
    write_worksheet(tmp_path, "A", intervals=range(50, 60), layers=[1])
    write_worksheet(tmp_path, "B", intervals=range(0, 10), layers=[1])

    with pytest.raises(IntervalOrderError):
        em.merge_worksheets(tmp_path, config)


def test_merge_missing_mandatory(tmp_path, config):
    write_worksheet(tmp_path, "A", intervals=range(5), layers=[1], kinds=["clean", "raw"])

    with pytest.raises(MissingSourceError, match="Reject_38kHz_number_samples"):
        em.merge_worksheets(tmp_path, config)


def test_merge_two_channels(tmp_path, two_channel_config):
    write_worksheet(tmp_path, "A", intervals=range(0, 5), layers=[1, 2], channel="38kHz")
    # the 120 kHz export runs two intervals and one layer further
    write_worksheet(
        tmp_path, "A", intervals=range(0, 7), layers=[1, 2, 3], channel="120kHz", clean_sv=-80
    )

    with pytest.warns(ChannelExtentWarning):
        ds = em.merge_worksheets(tmp_path, two_channel_config)

    assert ds.sizes["CHANNEL"] == 2
    assert ds.sizes["TIME"] == 7
    assert ds.sizes["DEPTH"] == 3
    np.testing.assert_array_equal(ds["frequency"], [38.0, 120.0])
    sv = ds["Sv"]
    np.testing.assert_allclose(sv.sel(CHANNEL="38kHz").isel(TIME=slice(0, 5), DEPTH=[0, 1]), 1e-7)
    assert sv.sel(CHANNEL="38kHz").isel(TIME=slice(5, None)).isnull().all()
    assert sv.sel(CHANNEL="38kHz").isel(DEPTH=2).isnull().all()
    np.testing.assert_allclose(sv.sel(CHANNEL="120kHz"), 1e-8)


def test_merge_single_channel_output_off(export_dir):
    config = em.sanitize_config({"single_channel_output": False})
    ds = em.merge_worksheets(export_dir, config)

    assert ds["Sv"].dims == ("TIME", "DEPTH", "CHANNEL")
    assert "channel" not in ds.attrs


def test_merge_extended(export_dir):
    ds = em.merge_worksheets(export_dir, {"extended": True})

    for name in ["Sv_sd", "Sv_skew", "Sv_kurt", "Sv_unfiltered_sd"]:
        assert ds[name].dims == ("TIME", "DEPTH")
    np.testing.assert_allclose(ds["Sv_sd"], 2.5)


def test_merge_config_from_yaml(export_dir, tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("channel: 38kHz\nfrequency: 38\nglobal_attrs:\n  site_code: SOTS\n")

    ds = em.merge_worksheets(export_dir, path)

    assert ds.attrs["site_code"] == "SOTS"


def test_merge_synthesized_layer_depths(tmp_path, config):
    columns = [c for c in ECHOVIEW_COLUMNS if not c.startswith("Layer_depth")]
    write_worksheet(tmp_path, "A", intervals=range(3), layers=[1, 2, 3], columns=columns)

    with pytest.warns(LayerDepthWarning):
        ds = em.merge_worksheets(tmp_path, config)

    np.testing.assert_array_equal(ds["DEPTH"], [5.0, 15.0, 25.0])


def test_merge_percent_good(tmp_path):
    write_worksheet(
        tmp_path, "A", intervals=range(2), layers=[1], raw_samples=100, good_samples=45
    )
    ds = em.merge_worksheets(tmp_path, {"min_good": 40, "accept_good": 40})

    np.testing.assert_array_equal(ds["Sv_percent_good"], 45)
    np.testing.assert_array_equal(ds["Sv_quality_control"], 2)


def test_merge_worksheet_without_gps(tmp_path, config):
    write_worksheet(tmp_path, "A", intervals=range(5), layers=[1])
    write_worksheet(tmp_path, "B", intervals=range(5, 10), layers=[1], latitude=999.0)

    with pytest.warns(NoPositionWarning):
        ds = em.merge_worksheets(tmp_path, config)

    np.testing.assert_array_equal(ds["interval"], np.arange(1, 6))


def test_merge_no_gps_at_all(tmp_path, config):
    write_worksheet(tmp_path, "A", intervals=range(5), layers=[1], latitude=999.0)

    with pytest.warns(NoPositionWarning):
        with pytest.raises(NoPositionDataError, match="No usable GPS data"):
            em.merge_worksheets(tmp_path, config)


def test_merge_unparseable_timestamp(tmp_path, config):
    paths = write_worksheet(tmp_path, "A", intervals=range(3), layers=[1, 2])
    rows = _gen_export_rows(range(3), [1, 2])
    rows.loc[rows["Interval"] == 1, "Date_M"] = "bogus"
    write_export(paths["clean"], rows)

    ds = em.merge_worksheets(tmp_path, config)

    np.testing.assert_array_equal(ds["interval"], [1, 3])
    assert not ds["TIME"].isnull().any()
    assert (ds["TIME"].diff("TIME") > np.timedelta64(0)).all()
