import pytest

from echomerge.config import sanitize_config
from echomerge.testing import write_worksheet


@pytest.fixture
def config():
    """Single 38 kHz channel settings"""
    return sanitize_config({"channel": ["38kHz"], "frequency": [38.0]})


@pytest.fixture
def two_channel_config():
    return sanitize_config(
        {
            "channel": ["38kHz", "120kHz"],
            "frequency": [38.0, 120.0],
            "max_depth": [1200, 300],
        }
    )


@pytest.fixture
def export_dir(tmp_path):
    """Export directory holding one worksheet of 5 intervals by 3 layers"""
    write_worksheet(tmp_path, "survey_01", intervals=range(5), layers=[1, 2, 3])
    return tmp_path
