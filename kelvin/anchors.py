#!/usr/bin/env python3
"""Time anchors for lighting schedules.

A schedule entry names *when* a set-point applies with a short symbolic
time specification:

* ``HH:MM`` - a fixed wall-clock time (``4:00`` and ``04:00`` are equal)
* ``sunrise`` / ``sunset`` - the sun event of the reference day
* ``sunrise + 30m`` / ``sunset - 10 minutes`` - a sun event shifted by a
  whole number of minutes; any word starting with ``m`` names the unit

Parsing is case-insensitive and tolerates whitespace around the sign.
The parsed form is a :class:`TimeAnchor`, which resolves against a
reference day plus that day's sunrise/sunset into an absolute instant.
"""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict

from .const import MAX_BRIGHTNESS, MIN_BRIGHTNESS
from .errors import InvalidTimeSpec

logger = logging.getLogger(__name__)


class AnchorKind(Enum):
    """What a time anchor is relative to."""
    FIXED = "fixed"         # Wall-clock time on the reference day
    SUNRISE = "sunrise"     # Sunrise of the reference day, plus offset
    SUNSET = "sunset"       # Sunset of the reference day, plus offset


# Keywords are checked in this order against the lower-cased input
_SUN_KEYWORDS = (
    ("sunrise", AnchorKind.SUNRISE),
    ("sunset", AnchorKind.SUNSET),
)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnchorSpec:
    """A raw schedule entry as declared in the configuration.

    Attributes:
        time: Time specification (``HH:MM`` or ``sunrise|sunset [+|- NN m]``)
        color_temperature: Target color temperature in Kelvin
        brightness: Target brightness (0-100)
    """
    time: str
    color_temperature: int
    brightness: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnchorSpec":
        """Build an entry from its on-disk form.

        Raises:
            TypeError: If ``time`` is not a string
            ValueError: If ``brightness`` is outside the brightness scale
        """
        time = data.get("time", "")
        if not isinstance(time, str):
            raise TypeError(f"Schedule time must be a string, got {time!r}")
        brightness = int(data.get("brightness", 0))
        if not MIN_BRIGHTNESS <= brightness <= MAX_BRIGHTNESS:
            raise ValueError(
                f"Brightness {brightness} out of range {MIN_BRIGHTNESS}-{MAX_BRIGHTNESS}"
            )
        return cls(
            time=time,
            color_temperature=int(data.get("colorTemperature", 0)),
            brightness=brightness,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "colorTemperature": self.color_temperature,
            "brightness": self.brightness,
        }


@dataclass(frozen=True)
class TimeAnchor:
    """Parsed time specification.

    ``hour``/``minute`` are only meaningful for FIXED anchors and
    ``offset_minutes`` only for SUNRISE/SUNSET anchors.
    """
    kind: AnchorKind
    hour: int = 0
    minute: int = 0
    offset_minutes: int = 0

    @property
    def is_fixed(self) -> bool:
        return self.kind is AnchorKind.FIXED

    def resolve(self, reference: datetime, sunrise: datetime, sunset: datetime) -> datetime:
        """Resolve this anchor into an absolute instant.

        Args:
            reference: Any instant on the reference day; its date and tzinfo
                are used for fixed times
            sunrise: Sunrise of the reference day
            sunset: Sunset of the reference day

        Returns:
            The absolute instant for this anchor
        """
        if self.kind is AnchorKind.FIXED:
            return reference.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        base = sunrise if self.kind is AnchorKind.SUNRISE else sunset
        return base + timedelta(minutes=self.offset_minutes)

    def to_spec(self) -> str:
        """Return the canonical time specification for this anchor."""
        if self.kind is AnchorKind.FIXED:
            return f"{self.hour:02d}:{self.minute:02d}"
        if self.offset_minutes == 0:
            return self.kind.value
        sign = "+" if self.offset_minutes > 0 else "-"
        return f"{self.kind.value} {sign} {abs(self.offset_minutes)}m"


@dataclass(frozen=True)
class ResolvedPoint:
    """An absolute instant paired with the set-point reached at that instant."""
    time: datetime
    color_temperature: int
    brightness: int

    def shifted_to(self, instant: datetime) -> "ResolvedPoint":
        """Return a copy of this point at another instant."""
        return ResolvedPoint(instant, self.color_temperature, self.brightness)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _leading_digits(text: str) -> str:
    end = 0
    while end < len(text) and text[end] in string.digits:
        end += 1
    return text[:end]


def _is_digits(text: str) -> bool:
    return bool(text) and all(ch in string.digits for ch in text)


def _parse_offset(original: str, rest: str) -> int:
    """Parse the optional ``(+|-) NN m...`` tail after a sun keyword."""
    rest = rest.lstrip()
    if not rest:
        return 0

    sign = rest[0]
    if sign not in "+-":
        raise InvalidTimeSpec(original, "expected '+' or '-' after sun event")
    rest = rest[1:].lstrip()

    digits = _leading_digits(rest)
    if not digits:
        raise InvalidTimeSpec(original, "missing offset minutes")
    rest = rest[len(digits):].lstrip()

    if not rest.startswith("m"):
        raise InvalidTimeSpec(original, "offset must be given in minutes")

    minutes = int(digits)
    return minutes if sign == "+" else -minutes


def _parse_clock(original: str, text: str) -> TimeAnchor:
    """Parse ``H:MM`` or ``HH:MM``."""
    hours, sep, minutes = text.partition(":")
    if not sep or not 1 <= len(hours) <= 2 or len(minutes) != 2:
        raise InvalidTimeSpec(original)
    if not _is_digits(hours) or not _is_digits(minutes):
        raise InvalidTimeSpec(original)

    hour, minute = int(hours), int(minutes)
    if hour > 23 or minute > 59:
        raise InvalidTimeSpec(original, "hour or minute out of range")
    return TimeAnchor(AnchorKind.FIXED, hour=hour, minute=minute)


def parse_time_anchor(text: str) -> TimeAnchor:
    """Parse a time specification into a TimeAnchor.

    Args:
        text: The ``time`` field of a schedule entry

    Returns:
        The parsed anchor

    Raises:
        InvalidTimeSpec: If the text matches none of the accepted forms
    """
    if not isinstance(text, str):
        raise InvalidTimeSpec(repr(text), "not a string")

    source = text.strip().lower()
    if not source:
        raise InvalidTimeSpec(text, "empty")

    for keyword, kind in _SUN_KEYWORDS:
        if source.startswith(keyword):
            offset = _parse_offset(text, source[len(keyword):])
            return TimeAnchor(kind, offset_minutes=offset)

    return _parse_clock(text, source)


def canonical_time_spec(text: str) -> str:
    """Rewrite a time specification into canonical notation.

    Unparseable text is returned unchanged.
    """
    try:
        return parse_time_anchor(text).to_spec()
    except InvalidTimeSpec:
        return text


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def resolve_spec(
    spec: AnchorSpec,
    reference: datetime,
    sunrise: datetime,
    sunset: datetime,
) -> ResolvedPoint:
    """Parse and resolve one schedule entry against a reference day.

    Color temperature and brightness are carried over unchanged.

    Raises:
        InvalidTimeSpec: If the entry's time specification is invalid
    """
    anchor = parse_time_anchor(spec.time)
    point = ResolvedPoint(
        anchor.resolve(reference, sunrise, sunset),
        spec.color_temperature,
        spec.brightness,
    )
    logger.debug(f"Resolved '{spec.time}' on {reference.date()} -> {point.time.isoformat()}")
    return point


def resolve_fixed_spec(spec: AnchorSpec, reference: datetime) -> ResolvedPoint:
    """Resolve a schedule entry that only accepts the ``HH:MM`` form.

    Raises:
        InvalidTimeSpec: If the entry is not a fixed wall-clock time
    """
    anchor = parse_time_anchor(spec.time)
    if not anchor.is_fixed:
        raise InvalidTimeSpec(spec.time, "only HH:MM is supported here")
    return ResolvedPoint(
        anchor.resolve(reference, reference, reference),
        spec.color_temperature,
        spec.brightness,
    )
