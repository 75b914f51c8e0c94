#!/usr/bin/env python3
"""Day schedule computation.

Turns a light's schedule definition into the concrete, time-ordered
set-points of one calendar day.

Unified schedules
-----------------
The declared entries are resolved against the current day and bracketed by
the *last* entry resolved against the previous day and the *first* entry
resolved against the next day, so the returned sequence always covers the
whole current day::

    [yesterday's last] + [today's entries ...] + [tomorrow's first]

Sunrise and sunset move from day to day, so sun-relative entries can land
before an entry that precedes them in the declaration. Such an instant is
clamped to one minute after its predecessor. Clamping is greedy and works
left to right, so one clamp can push later entries as well.

Legacy schedules
----------------
Without unified entries, the ``beforeSunrise``/``afterSunset`` lists are
resolved independently against the current day. They only accept ``HH:MM``
and invalid entries are skipped with a warning.

Every function here is pure: the result depends only on the definition, the
date and the sun times, and nothing shared is mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Sequence, Tuple

from .anchors import AnchorSpec, ResolvedPoint, resolve_fixed_spec, resolve_spec
from .configuration import Configuration, ScheduleDefinition
from .const import CLAMP_MINUTES
from .errors import (
    EmptySchedule,
    InvalidTimeSpec,
    NoScheduleForLight,
    ResolutionFailure,
    ScheduleError,
)
from .sun import SunStateCalculator, SunTimes

logger = logging.getLogger(__name__)


@dataclass
class DaySchedule:
    """Resolved schedule of one light for one day.

    ``times`` is filled for unified schedules, ``before_sunrise`` and
    ``after_sunset`` for legacy ones.
    """
    end_of_day: datetime
    sunrise: ResolvedPoint
    sunset: ResolvedPoint
    times: List[ResolvedPoint] = field(default_factory=list)
    before_sunrise: List[ResolvedPoint] = field(default_factory=list)
    after_sunset: List[ResolvedPoint] = field(default_factory=list)
    enable_when_lights_appear: bool = False

    @property
    def is_unified(self) -> bool:
        return len(self.times) > 0

    def interval_at(self, instant: datetime) -> Tuple[ResolvedPoint, ResolvedPoint]:
        """Return the two adjacent points bracketing ``instant``.

        Raises:
            ScheduleError: For legacy schedules, or when ``instant`` lies
                outside the covered window
        """
        if not self.is_unified:
            raise ScheduleError("Legacy schedules have no continuous interval sequence")
        for start, end in zip(self.times, self.times[1:]):
            if start.time <= instant < end.time:
                return start, end
        raise ScheduleError(
            f"{instant.isoformat()} is outside of the schedule "
            f"({self.times[0].time.isoformat()} - {self.times[-1].time.isoformat()})"
        )

    def target_at(self, instant: datetime) -> ResolvedPoint:
        """Linearly interpolate color temperature and brightness at ``instant``."""
        start, end = self.interval_at(instant)
        span = (end.time - start.time).total_seconds()
        progress = (instant - start.time).total_seconds() / span if span > 0 else 0.0

        color_temperature = start.color_temperature + round(
            (end.color_temperature - start.color_temperature) * progress
        )
        brightness = start.brightness + round((end.brightness - start.brightness) * progress)
        return ResolvedPoint(instant, color_temperature, brightness)


# ---------------------------------------------------------------------------
# Light -> schedule selection
# ---------------------------------------------------------------------------

def select_schedule(light_id: int, schedules: Iterable[ScheduleDefinition]) -> ScheduleDefinition:
    """Return the first schedule whose associated lights contain ``light_id``.

    A light listed in several schedules gets the first one.

    Raises:
        NoScheduleForLight: If no schedule governs the light
    """
    for candidate in schedules:
        if candidate.governs(light_id):
            return candidate
    raise NoScheduleForLight(light_id)


# ---------------------------------------------------------------------------
# Unified schedules
# ---------------------------------------------------------------------------

def _resolve_entry(spec: AnchorSpec, reference: datetime, sun: SunTimes) -> ResolvedPoint:
    try:
        return resolve_spec(spec, reference, sun.sunrise, sun.sunset)
    except InvalidTimeSpec as e:
        logger.warning(f"Found invalid configuration entry in schedule: {spec} (Error: {e})")
        raise ResolutionFailure(spec, e) from e


def _after(point: ResolvedPoint, previous: ResolvedPoint) -> ResolvedPoint:
    """Clamp ``point`` so it is strictly after ``previous``."""
    if point.time > previous.time:
        return point
    clamped = previous.time + timedelta(minutes=CLAMP_MINUTES)
    logger.warning(
        f"Found time inversion: {point.time.isoformat()} is not after "
        f"{previous.time.isoformat()}, clamping to {clamped.isoformat()}"
    )
    return point.shifted_to(clamped)


def build_day_schedule(
    specs: Sequence[AnchorSpec],
    date: datetime,
    previous: SunTimes,
    current: SunTimes,
    following: SunTimes,
) -> List[ResolvedPoint]:
    """Resolve a unified schedule for one day.

    The sequence is bracketed by the last entry resolved on the previous
    day and the first entry resolved on the next day. Every point after
    that previous-day seed, the next-day head included, is moved to one
    minute after its predecessor when it would not come later.

    Args:
        specs: Declared schedule entries, in order
        date: Any instant on the day to compute (its tzinfo is used for
            fixed times)
        previous: Sun times of the day before ``date``
        current: Sun times of ``date``
        following: Sun times of the day after ``date``

    Returns:
        ``len(specs) + 2`` points with strictly increasing instants

    Raises:
        EmptySchedule: If ``specs`` is empty
        ResolutionFailure: On the first entry that cannot be resolved
    """
    if not specs:
        raise EmptySchedule("Schedule has no entries")

    # Last entry of yesterday, so the start of today is covered
    times = [_resolve_entry(specs[-1], date - timedelta(days=1), previous)]

    for spec in specs:
        point = _after(_resolve_entry(spec, date, current), times[-1])
        logger.debug(f"Adding timepoint {point}")
        times.append(point)

    # First entry of tomorrow, so the end of today is covered
    times.append(_after(_resolve_entry(specs[0], date + timedelta(days=1), following), times[-1]))
    return times


# ---------------------------------------------------------------------------
# Legacy schedules
# ---------------------------------------------------------------------------

def resolve_legacy_entries(specs: Iterable[AnchorSpec], date: datetime, label: str) -> List[ResolvedPoint]:
    """Resolve ``HH:MM`` entries on ``date``, skipping invalid ones."""
    points = []
    for spec in specs:
        try:
            points.append(resolve_fixed_spec(spec, date))
        except InvalidTimeSpec as e:
            logger.warning(f"Found invalid configuration entry {label}: {spec} (Error: {e})")
            continue
    return points


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def schedule_for_day(
    definition: ScheduleDefinition,
    date: datetime,
    latitude: float,
    longitude: float,
    calculator: SunStateCalculator,
) -> DaySchedule:
    """Compute the day schedule of a single schedule definition.

    Raises:
        ResolutionFailure: If a unified entry cannot be resolved
        SunStateUnavailable: If the calculator has no sun times for a day
    """
    current = calculator.sun_times(date, latitude, longitude)
    schedule = DaySchedule(
        end_of_day=date.replace(hour=23, minute=59, second=59, microsecond=0),
        sunrise=ResolvedPoint(
            current.sunrise, definition.default_color_temperature, definition.default_brightness
        ),
        sunset=ResolvedPoint(
            current.sunset, definition.default_color_temperature, definition.default_brightness
        ),
        enable_when_lights_appear=definition.enable_when_lights_appear,
    )

    if definition.is_unified:
        previous = calculator.sun_times(date - timedelta(days=1), latitude, longitude)
        following = calculator.sun_times(date + timedelta(days=1), latitude, longitude)
        schedule.times = build_day_schedule(definition.schedule, date, previous, current, following)
        return schedule

    schedule.before_sunrise = resolve_legacy_entries(definition.before_sunrise, date, "before sunrise")
    schedule.after_sunset = resolve_legacy_entries(definition.after_sunset, date, "after sunset")
    return schedule


def light_schedule_for_day(
    configuration: Configuration,
    light_id: int,
    date: datetime,
    calculator: SunStateCalculator,
) -> DaySchedule:
    """Compute the day schedule of a light.

    Args:
        configuration: Configuration snapshot providing schedules and location
        light_id: Light to compute the schedule for
        date: Any instant on the day to compute
        calculator: Sunrise/sunset provider

    Raises:
        NoScheduleForLight: If the light is not associated with any schedule
        ResolutionFailure: If a unified entry cannot be resolved
    """
    definition = select_schedule(light_id, configuration.schedules)
    location = configuration.location
    return schedule_for_day(definition, date, location.latitude, location.longitude, calculator)
