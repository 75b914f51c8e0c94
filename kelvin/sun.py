#!/usr/bin/env python3
"""Sunrise/sunset providers consumed by the schedule engine."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Optional

from astral import LocationInfo
from astral.sun import sunrise as solar_sunrise, sunset as solar_sunset

from .errors import SunStateUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SunTimes:
    """Sunrise and sunset instants of one calendar day."""
    sunrise: datetime
    sunset: datetime


class SunStateCalculator(ABC):
    """Source of sunrise/sunset instants for a date and location."""

    @abstractmethod
    def calculate_sunrise(self, date: datetime, latitude: float, longitude: float) -> datetime:
        """Return the sunrise instant on the calendar day of ``date``."""
        pass

    @abstractmethod
    def calculate_sunset(self, date: datetime, latitude: float, longitude: float) -> datetime:
        """Return the sunset instant on the calendar day of ``date``."""
        pass

    def sun_times(self, date: datetime, latitude: float, longitude: float) -> SunTimes:
        return SunTimes(
            self.calculate_sunrise(date, latitude, longitude),
            self.calculate_sunset(date, latitude, longitude),
        )


class AstralSunStateCalculator(SunStateCalculator):
    """Calculate sun events with the astral library.

    Instants are returned in ``tz`` when given, otherwise in the tzinfo of
    the requested date (UTC for naive dates).
    """

    def __init__(self, tz: Optional[tzinfo] = None) -> None:
        self.tz = tz

    def _tz_for(self, date: datetime) -> tzinfo:
        return self.tz or date.tzinfo or timezone.utc

    def _calculate(self, event, name: str, date: datetime, latitude: float, longitude: float) -> datetime:
        observer = LocationInfo(latitude=latitude, longitude=longitude).observer
        try:
            return event(observer, date=date.date(), tzinfo=self._tz_for(date))
        except ValueError as e:
            # astral raises ValueError when the sun never crosses the horizon
            logger.warning(f"No {name} on {date.date()} at ({latitude}, {longitude}): {e}")
            raise SunStateUnavailable(f"No {name} on {date.date()} at ({latitude}, {longitude})") from e

    def calculate_sunrise(self, date: datetime, latitude: float, longitude: float) -> datetime:
        return self._calculate(solar_sunrise, "sunrise", date, latitude, longitude)

    def calculate_sunset(self, date: datetime, latitude: float, longitude: float) -> datetime:
        return self._calculate(solar_sunset, "sunset", date, latitude, longitude)


class FixedSunStateCalculator(SunStateCalculator):
    """Return the same wall-clock sunrise/sunset on every day and location.

    The clock time and tzinfo of ``sunrise``/``sunset`` are moved onto the
    calendar day that is asked for.
    """

    def __init__(self, sunrise: datetime, sunset: datetime) -> None:
        self.sunrise = sunrise
        self.sunset = sunset

    def calculate_sunrise(self, date: datetime, latitude: float, longitude: float) -> datetime:
        return datetime.combine(date.date(), self.sunrise.timetz())

    def calculate_sunset(self, date: datetime, latitude: float, longitude: float) -> datetime:
        return datetime.combine(date.date(), self.sunset.timetz())
