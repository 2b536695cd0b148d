import pytest

from rate_table import build_rate_data
from trip_extractor.models import TextFragment


@pytest.fixture
def rate_data():
    return build_rate_data([
        ("PENANG", "IPOH", "150.00"),
        ("NIBONG TEBAL", "IPOH", "120"),
        ("NIBONG TEBAL", "KULIM", "95"),
        ("BUTTERWORTH", "KULIM", "80"),
    ])


@pytest.fixture
def row_fragments():
    """One fragment per cell, laid out left to right on a shared baseline."""
    def _make(y, tokens, x0=30.0, step=45.0):
        return [TextFragment(x0 + i * step, y, t) for i, t in enumerate(tokens)]
    return _make


@pytest.fixture
def trip_tokens():
    """Full-width (12 column) transaction row."""
    def _make(date="01-03-2024", pickup="PENANG", drop="IPOH", wt="10", rate="140", comm="1400", do="DO1001"):
        return ["WJK1234", date, pickup, drop, do, wt, rate, "0", "0", comm, "0", "N"]
    return _make
