#!/usr/bin/env python3
"""Configuration persistence.

The store owns the configuration file and the currently published
configuration snapshot. It reads JSON or YAML (decided by the file suffix),
regenerates a default schedule when a file has none, migrates old versions
and only writes when the serialized content actually changed.

The store does not lock. Callers that reload or save while other code reads
``store.configuration`` must serialize that access themselves; readers that
keep a reference to a snapshot are unaffected by later saves.
"""

import hashlib
import json
import logging
import os
import re
import tempfile
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

import yaml

from .configuration import Configuration, default_configuration, migrate_to_latest_version
from .const import BACKUP_DATE_FORMAT, YAML_SUFFIXES
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_INT_TAG = "tag:yaml.org,2002:int"


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader that keeps clock times such as ``22:00`` as strings.

    YAML 1.1 reads unquoted ``H:MM`` values as base-60 integers; schedule
    times must stay in the notation the user wrote.
    """


ConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _INT_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
ConfigLoader.add_implicit_resolver(
    _INT_TAG,
    re.compile(
        r"""^(?:[-+]?0b[0-1_]+
        |[-+]?0[0-7_]+
        |[-+]?(?:0|[1-9][0-9_]*)
        |[-+]?0x[0-9a-fA-F_]+)$""",
        re.X,
    ),
    list("-+0123456789"),
)


def configuration_hash(configuration: Configuration) -> str:
    """Return the SHA-256 hex digest of the canonical serialized form."""
    canonical = json.dumps(configuration.to_dict(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ConfigStore:
    """Load and save a configuration file.

    Attributes:
        path: Configuration filename
        hash: Hash of the content last read from or written to disk
        configuration: The currently published snapshot (None until loaded)
    """

    def __init__(self, path: Optional[str]) -> None:
        self.path = os.fspath(path) if path else ""
        self.hash: Optional[str] = None
        self.configuration: Optional[Configuration] = None

    @property
    def is_yaml(self) -> bool:
        return self.path.lower().endswith(YAML_SUFFIXES)

    def _require_path(self) -> None:
        if not self.path:
            raise ConfigurationError("No configuration filename configured")

    def exists(self) -> bool:
        """Return True if the configuration file is found on disk."""
        return bool(self.path) and os.path.exists(self.path)

    def has_changed(self, configuration: Configuration) -> bool:
        """Return True if ``configuration`` differs from what is on disk."""
        if not self.hash:
            return True
        return configuration_hash(configuration) != self.hash

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def serialize(self, configuration: Configuration) -> str:
        data = configuration.to_dict()
        if self.is_yaml:
            return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
        return json.dumps(data, indent=2) + "\n"

    def _parse(self, raw: str) -> Any:
        if self.is_yaml:
            try:
                return yaml.load(raw, Loader=ConfigLoader)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.path}: {e}") from e
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {self.path}: {e}") from e

    def _write(self, raw: str) -> None:
        """Atomically replace the configuration file with ``raw``."""
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            # Unique temp file so concurrent writers never interleave
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp", prefix=".kelvin_")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(raw)
                os.chmod(tmp_path, 0o644)
                os.replace(tmp_path, self.path)
            except BaseException:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise ConfigurationError(f"Could not write configuration to {self.path}: {e}") from e

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def save(self, configuration: Optional[Configuration] = None) -> bool:
        """Publish ``configuration`` and write it to disk if it changed.

        Args:
            configuration: New snapshot; defaults to the published one

        Returns:
            True if the file was written, False if the write was skipped
        """
        self._require_path()
        configuration = configuration or self.configuration
        if configuration is None:
            raise ConfigurationError("No configuration to save")

        self.configuration = configuration
        if not self.has_changed(configuration):
            logger.debug("Configuration hasn't changed. Omitting write.")
            return False

        logger.debug(f"Configuration changed. Saving to {self.path}")
        self._write(self.serialize(configuration))
        self.hash = configuration_hash(configuration)
        logger.debug("Updated configuration hash")
        return True

    def backup(self) -> str:
        """Move the configuration file aside.

        Returns:
            The backup filename

        Raises:
            OSError: If the file could not be renamed
        """
        backup_path = f"{self.path}_{datetime.now().strftime(BACKUP_DATE_FORMAT)}"
        logger.debug(f"Moving configuration to {backup_path}")
        os.rename(self.path, backup_path)
        return backup_path

    def load(self) -> Configuration:
        """Read, repair and migrate the configuration file.

        A file without schedules is backed up and replaced by a default
        configuration. The result is migrated to the latest version and
        written back if that changed anything.

        Returns:
            The published configuration snapshot

        Raises:
            ConfigurationError: If the file cannot be read or parsed
        """
        self._require_path()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise ConfigurationError(f"Could not read configuration {self.path}: {e}") from e

        configuration = Configuration.from_dict(self._parse(raw))
        self.configuration = configuration

        if not configuration.schedules:
            logger.warning(
                "Your current configuration doesn't contain any schedules! Generating default schedule..."
            )
            try:
                self.backup()
            except OSError as e:
                logger.warning(f"Could not create backup: {e}")
            else:
                logger.info("Configuration backup created.")
                configuration = default_configuration(configuration)
                logger.info("Default schedule created.")
                self.save(configuration)

        self.hash = configuration_hash(configuration)
        logger.debug("Updated configuration hash.")

        configuration = migrate_to_latest_version(configuration)
        self.save(configuration)
        return configuration

    def initialize(self, enable_web_interface: bool = False) -> Configuration:
        """Load the configuration, creating a default one if none exists.

        Args:
            enable_web_interface: Force the web interface on and persist it

        Returns:
            The published configuration snapshot
        """
        if self.exists():
            configuration = self.load()
            logger.info(f"Configuration {self.path} loaded")
        else:
            configuration = default_configuration()
            self.save(configuration)
            logger.info("Default configuration generated")

        if enable_web_interface:
            configuration = replace(
                configuration,
                web_interface=replace(configuration.web_interface, enabled=True),
            )
            self.save(configuration)
        return configuration
