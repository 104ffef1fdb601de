"""User configuration."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tool_installer.errors import ManifestError

CONFIG_ENV_VAR = "TOOL_INSTALLER_CONFIG"


def default_config_path() -> Path:
    """Get the config file location (~/.config/tool-installer/config.yaml)."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "tool-installer" / "config.yaml"


def default_install_dir() -> Path:
    """Get the default directory for downloaded binaries."""
    return Path.home() / ".local" / "bin"


class InstallerConfig(BaseModel):
    """Settings shared by every run.

    CLI options override values loaded from the config file.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    install_dir: Path = Field(default_factory=default_install_dir, alias="installDir")
    timeout: float | None = Field(default=None, gt=0)
    use_sudo: bool | None = Field(default=None, alias="useSudo")
    manifest: Path | None = None

    @field_validator("install_dir", "manifest", mode="after")
    @classmethod
    def _expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None

    @classmethod
    def load(cls, path: Path | None = None) -> InstallerConfig:
        """Load configuration from a YAML file.

        A missing file yields the defaults.

        Args:
            path: Config file. Defaults to default_config_path().

        Returns:
            Parsed InstallerConfig.

        Raises:
            ManifestError: If the file is not valid YAML or fails validation.
        """
        path = path or default_config_path()
        if not path.exists():
            return cls()

        try:
            data = yaml.safe_load(path.read_text()) or {}
            return cls.model_validate(data)
        except (yaml.YAMLError, ValidationError) as e:
            raise ManifestError(f"Invalid config file {path}: {e}") from e
