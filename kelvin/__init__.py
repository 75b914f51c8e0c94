from .anchors import (
    AnchorKind,
    AnchorSpec,
    ResolvedPoint,
    TimeAnchor,
    parse_time_anchor,
    resolve_spec,
)
from .config_store import ConfigStore
from .configuration import (
    Bridge,
    Configuration,
    GeoLocation,
    ScheduleDefinition,
    WebInterface,
)
from .errors import (
    ConfigurationError,
    EmptySchedule,
    InvalidTimeSpec,
    NoScheduleForLight,
    ResolutionFailure,
    ScheduleError,
    SunStateUnavailable,
)
from .schedule import (
    DaySchedule,
    build_day_schedule,
    light_schedule_for_day,
    select_schedule,
)
from .sun import (
    AstralSunStateCalculator,
    FixedSunStateCalculator,
    SunStateCalculator,
    SunTimes,
)

__all__ = [
    "AnchorKind",
    "AnchorSpec",
    "ResolvedPoint",
    "TimeAnchor",
    "parse_time_anchor",
    "resolve_spec",
    "ConfigStore",
    "Bridge",
    "Configuration",
    "GeoLocation",
    "ScheduleDefinition",
    "WebInterface",
    "ConfigurationError",
    "EmptySchedule",
    "InvalidTimeSpec",
    "NoScheduleForLight",
    "ResolutionFailure",
    "ScheduleError",
    "SunStateUnavailable",
    "DaySchedule",
    "build_day_schedule",
    "light_schedule_for_day",
    "select_schedule",
    "AstralSunStateCalculator",
    "FixedSunStateCalculator",
    "SunStateCalculator",
    "SunTimes",
]
