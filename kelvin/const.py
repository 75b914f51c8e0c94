"""Constants for the Kelvin schedule engine."""
from typing import Final

# Configuration file versioning
LATEST_CONFIGURATION_VERSION: Final = 1

# Files with these suffixes are stored as YAML, everything else as JSON
YAML_SUFFIXES: Final = (".yaml", ".yml")

# Backup suffix format appended to the configuration filename (MMDDYYYY)
BACKUP_DATE_FORMAT: Final = "%m%d%Y"

# Default schedule
DEFAULT_SCHEDULE_NAME: Final = "default"
DEFAULT_COLOR_TEMPERATURE: Final = 2750
DEFAULT_BRIGHTNESS: Final = 100

# Default web interface
DEFAULT_WEBINTERFACE_ENABLED: Final = False
DEFAULT_WEBINTERFACE_PORT: Final = 8080

# Minimum spacing between two resolved points after an inversion (minutes)
CLAMP_MINUTES: Final = 1

# Brightness scale
MIN_BRIGHTNESS: Final = 0
MAX_BRIGHTNESS: Final = 100
