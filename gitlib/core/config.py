"""Configuration for gitlib.

Settings are read from INI files, the way git reads its own: a global file
in the user's home directory, optionally overlaid by a file the caller
points at. GITLIB_<SECTION>_<KEY> environment variables win over both.
"""

import os
import configparser
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .objects import Signature

_TRUE = {'1', 'yes', 'true', 'on'}
_FALSE = {'0', 'no', 'false', 'off'}


class Config:
    """
    Read-only view over the layered gitlib configuration.

    Files are loaded on first use and not re-read afterwards.
    """

    GLOBAL_CONFIG_PATH = Path.home() / '.gitlibconfig'

    def __init__(self, repo_config_path: Optional[Path] = None):
        self.repo_config_path = Path(repo_config_path) if repo_config_path else None
        self._parser = None

    @property
    def parser(self) -> configparser.ConfigParser:
        """Parser holding the global file overlaid by the repository file."""
        if self._parser is None:
            self._parser = configparser.ConfigParser()
            paths = [self.GLOBAL_CONFIG_PATH]
            if self.repo_config_path:
                paths.append(self.repo_config_path)
            # missing files are skipped, later files override earlier ones
            self._parser.read(paths)
        return self._parser

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """
        Get a configuration value.

        Priority order (highest to lowest):
        1. Environment variables (GITLIB_<SECTION>_<KEY>)
        2. Repository config
        3. Global config
        4. Fallback value

        Args:
            section: Config section (e.g., 'user', 'repository')
            key: Config key (e.g., 'name', 'bare')
            fallback: Default value if not found

        Returns:
            Configuration value or fallback
        """
        env_value = os.environ.get(f"GITLIB_{section.upper()}_{key.upper()}")
        if env_value is not None:
            return env_value
        return self.parser.get(section, key, fallback=fallback)

    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        """
        Get a boolean configuration value.

        Raises:
            ValueError: If the value is not a recognised boolean
        """
        value = self.get(section, key)
        if value is None:
            return fallback
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"Not a boolean for {section}.{key}: {value}")

    def default_signature(self, when: Optional[datetime] = None) -> Signature:
        """
        Build the signature used when a caller does not supply one.

        Args:
            when: Timestamp, defaults to now in UTC

        Returns:
            Signature from [user] name and email, empty where unset
        """
        if when is None:
            when = datetime.now(timezone.utc)
        return Signature(
            self.get('user', 'name', fallback=''),
            self.get('user', 'email', fallback=''),
            when,
        )


def get_config(repo_config_path: Optional[Path] = None) -> Config:
    """Get a Config, global-only when no repository file is given."""
    return Config(repo_config_path)
