#!/usr/bin/env python3
"""Tests for time anchor parsing and resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from kelvin.anchors import (
    AnchorKind,
    AnchorSpec,
    ResolvedPoint,
    TimeAnchor,
    canonical_time_spec,
    parse_time_anchor,
    resolve_fixed_spec,
    resolve_spec,
)
from kelvin.errors import InvalidTimeSpec

CEST = timezone(timedelta(hours=2))
REFERENCE = datetime(2021, 4, 28, 0, 0, 1, tzinfo=CEST)
SUNRISE = datetime(2021, 4, 28, 6, 12, 30, tzinfo=CEST)
SUNSET = datetime(2021, 4, 28, 20, 41, 10, tzinfo=CEST)


class TestParseFixedTimes:
    """Test the HH:MM form."""

    def test_two_digit_hour(self):
        """HH:MM parses into a fixed anchor."""
        assert parse_time_anchor("08:15") == TimeAnchor(AnchorKind.FIXED, hour=8, minute=15)

    def test_single_digit_hour(self):
        """H:MM is accepted."""
        assert parse_time_anchor("4:00") == TimeAnchor(AnchorKind.FIXED, hour=4, minute=0)

    def test_surrounding_whitespace(self):
        """Leading and trailing whitespace is ignored."""
        assert parse_time_anchor("  23:59 ") == TimeAnchor(AnchorKind.FIXED, hour=23, minute=59)

    def test_midnight(self):
        """00:00 is a valid time."""
        anchor = parse_time_anchor("00:00")
        assert anchor.is_fixed
        assert (anchor.hour, anchor.minute) == (0, 0)


class TestParseSunAnchors:
    """Test the sunrise/sunset forms."""

    def test_plain_sunrise(self):
        """'sunrise' has no offset."""
        assert parse_time_anchor("sunrise") == TimeAnchor(AnchorKind.SUNRISE)

    def test_plain_sunset_case_insensitive(self):
        """Keywords are case-insensitive."""
        assert parse_time_anchor("SunSet") == TimeAnchor(AnchorKind.SUNSET)

    @pytest.mark.parametrize(
        "text, kind, offset",
        [
            ("sunrise+10m", AnchorKind.SUNRISE, 10),
            ("sunrise + 30m", AnchorKind.SUNRISE, 30),
            ("sunrise + 30 minutes", AnchorKind.SUNRISE, 30),
            ("sunset - 45 min", AnchorKind.SUNSET, -45),
            ("Sunset -5m", AnchorKind.SUNSET, -5),
            ("sunset + 0m", AnchorKind.SUNSET, 0),
        ],
    )
    def test_offsets(self, text, kind, offset):
        """Signed minute offsets are parsed in all accepted spellings."""
        anchor = parse_time_anchor(text)
        assert anchor.kind is kind
        assert anchor.offset_minutes == offset


class TestParseInvalid:
    """Test rejection of malformed specifications."""

    @pytest.mark.parametrize(
        "text",
        [
            "25:99",
            "24:00",
            "12:60",
            "moonrise",
            "",
            "   ",
            "12",
            "1:5",
            "123:00",
            "12:00:00",
            "ab:cd",
            "sunrises",
            "sunrise 10m",
            "sunrise + m",
            "sunrise + 10",
            "sunrise + 10h",
            "sunrise + -5m",
            "noon",
        ],
    )
    def test_invalid_text(self, text):
        """Anything outside the grammar raises InvalidTimeSpec."""
        with pytest.raises(InvalidTimeSpec):
            parse_time_anchor(text)

    def test_non_string(self):
        """Non-string input raises InvalidTimeSpec."""
        with pytest.raises(InvalidTimeSpec):
            parse_time_anchor(800)

    def test_error_is_value_error(self):
        """InvalidTimeSpec can be caught as ValueError and keeps the text."""
        with pytest.raises(ValueError) as excinfo:
            parse_time_anchor("moonrise")
        assert excinfo.value.text == "moonrise"


class TestCanonicalSpec:
    """Test canonical notation used by configuration migration."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("4:00", "04:00"),
            ("22:30", "22:30"),
            ("Sunrise", "sunrise"),
            ("sunrise+10 minutes", "sunrise + 10m"),
            ("SUNSET -5m", "sunset - 5m"),
            ("sunset + 0m", "sunset"),
        ],
    )
    def test_canonical(self, text, expected):
        """Valid specifications are rewritten canonically."""
        assert canonical_time_spec(text) == expected

    def test_invalid_left_untouched(self):
        """Invalid specifications are returned unchanged."""
        assert canonical_time_spec("moonrise") == "moonrise"

    def test_canonical_reparses_to_same_anchor(self):
        """The canonical form parses back into the same anchor."""
        anchor = parse_time_anchor("sunset - 15 minutes")
        assert parse_time_anchor(anchor.to_spec()) == anchor


class TestResolve:
    """Test resolving anchors against a reference day."""

    @pytest.mark.parametrize("text", ["00:00", "4:00", "07:05", "12:30", "23:59"])
    def test_fixed_keeps_wall_clock_on_reference_date(self, text):
        """Fixed anchors resolve to the same hour/minute on the reference date."""
        anchor = parse_time_anchor(text)
        instant = anchor.resolve(REFERENCE, SUNRISE, SUNSET)
        assert instant.date() == REFERENCE.date()
        assert (instant.hour, instant.minute, instant.second) == (anchor.hour, anchor.minute, 0)
        assert instant.tzinfo is CEST

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("sunrise", SUNRISE),
            ("sunrise + 30m", SUNRISE + timedelta(minutes=30)),
            ("sunrise - 90m", SUNRISE - timedelta(minutes=90)),
            ("sunset", SUNSET),
            ("sunset - 30m", SUNSET - timedelta(minutes=30)),
            ("sunset + 240m", SUNSET + timedelta(minutes=240)),
        ],
    )
    def test_sun_anchor_adds_signed_offset(self, text, expected):
        """Sun anchors resolve to the sun event plus the signed offset."""
        assert parse_time_anchor(text).resolve(REFERENCE, SUNRISE, SUNSET) == expected

    def test_resolve_spec_carries_set_point(self):
        """Color temperature and brightness are copied unchanged."""
        point = resolve_spec(AnchorSpec("sunset - 30m", 5000, 100), REFERENCE, SUNRISE, SUNSET)
        assert point == ResolvedPoint(SUNSET - timedelta(minutes=30), 5000, 100)

    def test_resolve_spec_is_idempotent(self):
        """Resolving the same entry twice gives identical points."""
        spec = AnchorSpec("sunrise + 15m", 2700, 60)
        assert resolve_spec(spec, REFERENCE, SUNRISE, SUNSET) == resolve_spec(spec, REFERENCE, SUNRISE, SUNSET)

    def test_resolve_spec_invalid(self):
        """Invalid entries raise InvalidTimeSpec."""
        with pytest.raises(InvalidTimeSpec):
            resolve_spec(AnchorSpec("25:99", 2000, 60), REFERENCE, SUNRISE, SUNSET)

    def test_resolve_fixed_spec(self):
        """The HH:MM-only resolver resolves fixed times."""
        point = resolve_fixed_spec(AnchorSpec("4:00", 2000, 60), REFERENCE)
        assert point == ResolvedPoint(datetime(2021, 4, 28, 4, 0, tzinfo=CEST), 2000, 60)

    def test_resolve_fixed_spec_rejects_sun_anchor(self):
        """The HH:MM-only resolver rejects sunrise/sunset entries."""
        with pytest.raises(InvalidTimeSpec):
            resolve_fixed_spec(AnchorSpec("sunrise", 2000, 60), REFERENCE)


class TestAnchorSpec:
    """Test AnchorSpec serialization."""

    def test_from_dict(self):
        """Camel-case keys map onto the dataclass."""
        spec = AnchorSpec.from_dict({"time": "22:00", "colorTemperature": 2000, "brightness": 70})
        assert spec == AnchorSpec("22:00", 2000, 70)

    def test_missing_fields_default_to_zero_values(self):
        """Missing fields become empty/zero."""
        assert AnchorSpec.from_dict({}) == AnchorSpec("", 0, 0)

    def test_time_must_be_string(self):
        """Numeric times are rejected instead of being stringified."""
        with pytest.raises(TypeError):
            AnchorSpec.from_dict({"time": 1320, "colorTemperature": 2000, "brightness": 70})

    @pytest.mark.parametrize("brightness", [-1, 101])
    def test_brightness_out_of_range(self, brightness):
        """Brightness must lie within 0-100."""
        with pytest.raises(ValueError):
            AnchorSpec.from_dict({"time": "22:00", "colorTemperature": 2000, "brightness": brightness})

    def test_to_dict(self):
        """to_dict uses the on-disk field names."""
        assert AnchorSpec("sunrise", 2700, 60).to_dict() == {
            "time": "sunrise",
            "colorTemperature": 2700,
            "brightness": 60,
        }
