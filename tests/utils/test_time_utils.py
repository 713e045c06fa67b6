"""
Tests for timestamp normalization.
"""

import math
from datetime import datetime, timedelta, timezone

import pytest

from utils.time_utils import from_epoch_ms, to_epoch_ms, to_iso

T0 = 1_714_564_800_000


class TestToEpochMs:

    def test_aware_datetime(self):
        assert to_epoch_ms(datetime(2024, 5, 1, 12, tzinfo=timezone.utc)) == T0

    def test_other_timezone(self):
        cest = timezone(timedelta(hours=2))
        assert to_epoch_ms(datetime(2024, 5, 1, 14, tzinfo=cest)) == T0

    def test_naive_datetime_is_utc(self):
        assert to_epoch_ms(datetime(2024, 5, 1, 12)) == T0

    def test_numbers(self):
        assert to_epoch_ms(T0) == T0
        assert to_epoch_ms(float(T0) + 0.7) == T0

    @pytest.mark.parametrize("text", [
        "2024-05-01T12:00:00Z",
        "2024-05-01T12:00:00.000Z",
        "2024-05-01T14:00:00+02:00",
    ])
    def test_iso_strings(self, text):
        assert to_epoch_ms(text) == T0

    @pytest.mark.parametrize("value", [10**17, -10**17, 1e300])
    def test_out_of_datetime_range(self, value):
        assert to_epoch_ms(value) is None

    @pytest.mark.parametrize("value", [None, True, "", "yesterday", math.nan, math.inf, [T0]])
    def test_invalid(self, value):
        assert to_epoch_ms(value) is None


class TestFormatting:

    def test_to_iso(self):
        assert to_iso(T0) == "2024-05-01T12:00:00.000Z"
        assert to_iso(T0 + 1) == "2024-05-01T12:00:00.001Z"

    def test_from_epoch_ms(self):
        value = from_epoch_ms(T0)
        assert value == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
        assert value.tzinfo is not None

    def test_iso_round_trip(self):
        assert to_epoch_ms(to_iso(T0 + 12345)) == T0 + 12345
