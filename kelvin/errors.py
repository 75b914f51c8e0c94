#!/usr/bin/env python3
"""Exceptions raised while resolving lighting schedules and configuration."""

from typing import Any, Optional


class ScheduleError(Exception):
    """Base class for schedule resolution errors."""


class InvalidTimeSpec(ScheduleError, ValueError):
    """A time specification could not be parsed."""

    def __init__(self, text: str, reason: Optional[str] = None) -> None:
        self.text = text
        self.reason = reason
        message = f"Invalid time specification {text!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class NoScheduleForLight(ScheduleError, LookupError):
    """No schedule definition is associated with a light."""

    def __init__(self, light_id: int) -> None:
        self.light_id = light_id
        super().__init__(f"Light {light_id} is not associated with any schedule in configuration")


class EmptySchedule(ScheduleError):
    """A unified schedule was requested from an empty anchor list."""


class ResolutionFailure(ScheduleError):
    """Resolving one entry aborted a day schedule build.

    Attributes:
        spec: The offending AnchorSpec
        cause: The underlying error
    """

    def __init__(self, spec: Any, cause: Exception) -> None:
        self.spec = spec
        self.cause = cause
        super().__init__(f"Invalid configuration entry in schedule: {spec} ({cause})")


class SunStateUnavailable(ScheduleError):
    """Sunrise or sunset does not exist for the requested day and location."""


class ConfigurationError(Exception):
    """The configuration file could not be read, parsed or written."""
