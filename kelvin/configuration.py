#!/usr/bin/env python3
"""Configuration data model.

The configuration is an immutable snapshot: every dataclass here is frozen
and sequences are tuples. Code that changes the configuration builds a new
snapshot with :func:`dataclasses.replace` and hands it to the
:class:`~kelvin.config_store.ConfigStore` to publish and persist.

On disk the configuration is a JSON-shaped document::

    {
      "version": 1,
      "bridge": {"ip": "...", "username": "..."},
      "location": {"latitude": 48.1, "longitude": 11.6},
      "webinterface": {"enabled": false, "port": 8080},
      "schedules": [
        {
          "name": "default",
          "associatedDeviceIDs": [1, 2],
          "enableWhenLightsAppear": true,
          "defaultColorTemperature": 2750,
          "defaultBrightness": 100,
          "beforeSunrise": [{"time": "04:00", "colorTemperature": 2000, "brightness": 60}],
          "afterSunset": [...],
          "schedule": [...]
        }
      ]
    }

When ``schedule`` is non-empty the legacy ``beforeSunrise``/``afterSunset``
lists and the defaults only feed the day's sunrise/sunset points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from .anchors import AnchorSpec, canonical_time_spec
from .const import (
    DEFAULT_BRIGHTNESS,
    DEFAULT_COLOR_TEMPERATURE,
    DEFAULT_SCHEDULE_NAME,
    DEFAULT_WEBINTERFACE_ENABLED,
    DEFAULT_WEBINTERFACE_PORT,
    LATEST_CONFIGURATION_VERSION,
)
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{key}' must be an object, got {type(value).__name__}")
    return value


def _entries(data: Dict[str, Any], key: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"'{key}' must be a list, got {type(value).__name__}")
    return value


def _specs(data: Dict[str, Any], key: str) -> Tuple[AnchorSpec, ...]:
    specs = []
    for entry in _entries(data, key):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Entries of '{key}' must be objects, got {entry!r}")
        specs.append(AnchorSpec.from_dict(entry))
    return tuple(specs)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Bridge:
    """The lighting bridge in the installation."""
    ip: str = ""
    username: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bridge":
        return cls(ip=str(data.get("ip", "")), username=str(data.get("username", "")))

    def to_dict(self) -> Dict[str, Any]:
        return {"ip": self.ip, "username": self.username}


@dataclass(frozen=True)
class GeoLocation:
    """Geolocation used for sunrise and sunset calculation."""
    latitude: float = 0.0
    longitude: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeoLocation":
        return cls(
            latitude=float(data.get("latitude", 0.0)),
            longitude=float(data.get("longitude", 0.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class WebInterface:
    """Settings of the optional web interface."""
    enabled: bool = DEFAULT_WEBINTERFACE_ENABLED
    port: int = DEFAULT_WEBINTERFACE_PORT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebInterface":
        return cls(
            enabled=bool(data.get("enabled", DEFAULT_WEBINTERFACE_ENABLED)),
            port=int(data.get("port", DEFAULT_WEBINTERFACE_PORT)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "port": self.port}


@dataclass(frozen=True)
class ScheduleDefinition:
    """Schedule shared by a group of lights.

    Attributes:
        name: Display name of the schedule
        associated_device_ids: Light IDs governed by this schedule
        enable_when_lights_appear: Take over lights as soon as they are switched on
        default_color_temperature: Color temperature at sunrise/sunset (legacy)
        default_brightness: Brightness at sunrise/sunset (legacy)
        before_sunrise: Legacy entries between midnight and sunrise
        after_sunset: Legacy entries between sunset and midnight
        schedule: Unified entries; when non-empty, the legacy lists are ignored
    """
    name: str
    associated_device_ids: Tuple[int, ...] = ()
    enable_when_lights_appear: bool = False
    default_color_temperature: int = 0
    default_brightness: int = 0
    before_sunrise: Tuple[AnchorSpec, ...] = ()
    after_sunset: Tuple[AnchorSpec, ...] = ()
    schedule: Tuple[AnchorSpec, ...] = ()

    @property
    def is_unified(self) -> bool:
        return len(self.schedule) > 0

    def governs(self, light_id: int) -> bool:
        return light_id in self.associated_device_ids

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleDefinition":
        if not isinstance(data, dict):
            raise ConfigurationError(f"Schedules must be objects, got {data!r}")
        return cls(
            name=str(data.get("name", "")),
            associated_device_ids=tuple(int(i) for i in _entries(data, "associatedDeviceIDs")),
            enable_when_lights_appear=bool(data.get("enableWhenLightsAppear", False)),
            default_color_temperature=int(data.get("defaultColorTemperature", 0)),
            default_brightness=int(data.get("defaultBrightness", 0)),
            before_sunrise=_specs(data, "beforeSunrise"),
            after_sunset=_specs(data, "afterSunset"),
            schedule=_specs(data, "schedule"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "associatedDeviceIDs": list(self.associated_device_ids),
            "enableWhenLightsAppear": self.enable_when_lights_appear,
            "defaultColorTemperature": self.default_color_temperature,
            "defaultBrightness": self.default_brightness,
            "beforeSunrise": [spec.to_dict() for spec in self.before_sunrise],
            "afterSunset": [spec.to_dict() for spec in self.after_sunset],
            "schedule": [spec.to_dict() for spec in self.schedule],
        }


@dataclass(frozen=True)
class Configuration:
    """Complete configuration snapshot."""
    version: int = 0
    bridge: Bridge = field(default_factory=Bridge)
    location: GeoLocation = field(default_factory=GeoLocation)
    web_interface: WebInterface = field(default_factory=WebInterface)
    schedules: Tuple[ScheduleDefinition, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Configuration":
        """Build a configuration from its JSON-shaped document.

        Raises:
            ConfigurationError: If the document is structurally invalid
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration must be an object, got {type(data).__name__}")
        try:
            return cls(
                version=int(data.get("version", 0)),
                bridge=Bridge.from_dict(_section(data, "bridge")),
                location=GeoLocation.from_dict(_section(data, "location")),
                web_interface=WebInterface.from_dict(_section(data, "webinterface")),
                schedules=tuple(
                    ScheduleDefinition.from_dict(s) for s in _entries(data, "schedules")
                ),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "bridge": self.bridge.to_dict(),
            "location": self.location.to_dict(),
            "webinterface": self.web_interface.to_dict(),
            "schedules": [s.to_dict() for s in self.schedules],
        }


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

def default_schedule() -> ScheduleDefinition:
    """Return the schedule generated for fresh or empty configurations."""
    wakeup_time = AnchorSpec("04:00", 2000, 60)
    tv_time = AnchorSpec("20:00", 2300, 80)
    bed_time = AnchorSpec("22:00", 2000, 60)

    return ScheduleDefinition(
        name=DEFAULT_SCHEDULE_NAME,
        associated_device_ids=(),
        default_color_temperature=DEFAULT_COLOR_TEMPERATURE,
        default_brightness=DEFAULT_BRIGHTNESS,
        before_sunrise=(wakeup_time,),
        after_sunset=(tv_time, bed_time),
    )


def default_configuration(base: Optional[Configuration] = None) -> Configuration:
    """Return ``base`` with default schedules and web interface.

    Bridge and location of ``base`` are kept so a regenerated configuration
    does not lose its pairing.
    """
    base = base or Configuration()
    return replace(
        base,
        version=LATEST_CONFIGURATION_VERSION,
        schedules=(default_schedule(),),
        web_interface=WebInterface(),
    )


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------

def _canonicalize_specs(specs: Tuple[AnchorSpec, ...]) -> Tuple[AnchorSpec, ...]:
    return tuple(replace(spec, time=canonical_time_spec(spec.time)) for spec in specs)


def _migrate_v0_canonical_times(configuration: Configuration) -> Configuration:
    """Rewrite every entry's time into canonical notation."""
    schedules = tuple(
        replace(
            schedule,
            before_sunrise=_canonicalize_specs(schedule.before_sunrise),
            after_sunset=_canonicalize_specs(schedule.after_sunset),
            schedule=_canonicalize_specs(schedule.schedule),
        )
        for schedule in configuration.schedules
    )
    return replace(configuration, schedules=schedules)


# Maps a version to the migration that lifts it to version + 1
MIGRATIONS: Dict[int, Callable[[Configuration], Configuration]] = {
    0: _migrate_v0_canonical_times,
}


def migrate_to_latest_version(configuration: Configuration) -> Configuration:
    """Apply all pending migrations in order.

    Returns:
        The migrated snapshot (the same object when already up to date)
    """
    if configuration.version > LATEST_CONFIGURATION_VERSION:
        logger.warning(
            f"Configuration version {configuration.version} is newer than supported "
            f"version {LATEST_CONFIGURATION_VERSION}; leaving it unchanged"
        )
        return configuration

    while configuration.version < LATEST_CONFIGURATION_VERSION:
        version = configuration.version
        migration = MIGRATIONS[version]
        configuration = replace(migration(configuration), version=version + 1)
        logger.info(f"Migrated configuration from version {version} to {version + 1}")

    return configuration
