"""
Persistent settings for ec2shell.
Stored in ~/.ec2shell.yml
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path.home() / ".ec2shell.yml"

AWS_CREDENTIALS_TEMPLATE = """[default]
aws_access_key_id = XXXXX
aws_secret_access_key = XXXXX
"""


@dataclass
class AppSettings:
    """
    Settings that apply to every invocation. Command line options win.
    """
    # AWS
    profile: Optional[str] = None
    region: Optional[str] = None

    # SSH defaults
    login_name: str = "ec2-user"
    identity_file: str = "~/.ssh/id_rsa"
    private: bool = False
    connect_timeout: Optional[float] = None

    debug: bool = False

    def to_dict(self) -> dict:
        """Serialize to dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> AppSettings:
        """Deserialize from dict, ignoring unknown keys."""
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)

    def merged(self, **overrides) -> AppSettings:
        """Copy with every non-None override applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return AppSettings.from_dict(data)


class SettingsManager:
    """
    Loads and saves settings.

    Usage:
        manager = SettingsManager()
        settings = manager.settings
        settings.region = "us-west-2"
        manager.save()
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE
        self._settings: Optional[AppSettings] = None

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def settings(self) -> AppSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> AppSettings:
        """Load settings from disk, defaults when the file does not exist."""
        if not self._config_path.exists():
            logger.debug("No settings file found, using defaults")
            return AppSettings()

        try:
            data = yaml.safe_load(self._config_path.read_text())
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"unable to read config {self._config_path}: {e}") from e

        if data is None:
            return AppSettings()
        if not isinstance(data, dict):
            raise ConfigError(f"invalid config {self._config_path}: expected a mapping")

        logger.debug(f"Loaded settings from {self._config_path}")
        return AppSettings.from_dict(data)

    def save(self) -> None:
        """Save current settings to disk."""
        if self._settings is None:
            return
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(
            yaml.safe_dump(self._settings.to_dict(), default_flow_style=False, sort_keys=False)
        )
        logger.debug(f"Saved settings to {self._config_path}")

    def init_config(self) -> Path:
        """Write default settings, refusing to overwrite an existing file."""
        if self._config_path.exists():
            raise ConfigError(f"{self._config_path} config file already exists")
        self._settings = AppSettings(region="us-east-1", profile="default")
        self.save()
        return self._config_path


def init_aws_profile(aws_dir: Optional[Path] = None) -> Path:
    """
    Create ~/.aws/credentials with a placeholder default profile.

    Refuses when the .aws directory already exists, so real credentials
    are never touched.
    """
    aws_dir = aws_dir or Path.home() / ".aws"
    if aws_dir.exists():
        raise ConfigError(f"{aws_dir} directory already exists")

    aws_dir.mkdir(parents=True, mode=0o755)
    credentials = aws_dir / "credentials"
    credentials.write_text(AWS_CREDENTIALS_TEMPLATE)
    credentials.chmod(0o600)
    return credentials
