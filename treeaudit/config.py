"""
Audit configuration.

Settings come from an optional YAML file; every field has a default so a
bare directory can be audited without one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from treeaudit.errors import ConfigError

CONFIG_FILENAME = ".treeaudit.yaml"

HashAlgorithm = Literal["xxh64", "xxh3_128", "xxh128"]


class AuditConfig(BaseModel):
    """Settings for an audit root."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    manifest_name: str = Field(
        default=".treeaudit.manifest",
        min_length=1,
        description="Manifest file name, relative to the root",
    )
    log_dir: str = Field(
        default=".treeaudit-logs",
        min_length=1,
        description="Directory for change logs, relative to the root",
    )
    log_base: str = Field(
        default="treeaudit",
        min_length=1,
        description="Prefix of change log file names",
    )
    hash_algorithm: HashAlgorithm = Field(
        default="xxh64", description="Content digest algorithm"
    )
    chunk_size: int = Field(
        default=65536, gt=0, description="Read size used while hashing"
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="fnmatch patterns of relative paths to skip while scanning",
    )

    def manifest_path(self, root: Path) -> Path:
        """Default manifest location for a root."""
        return Path(root) / self.manifest_name

    def log_path(self, root: Path) -> Path:
        """Change log directory for a root."""
        return Path(root) / self.log_dir

    @classmethod
    def from_yaml(cls, path: Path | str) -> AuditConfig:
        """
        Load configuration from a YAML file.

        Expected format:
        ```yaml
        manifest_name: .treeaudit.manifest
        hash_algorithm: xxh64
        exclude:
          - "*.tmp"
          - ".git/*"
        ```

        Args:
            path: Path to the YAML file.

        Returns:
            Loaded AuditConfig.

        Raises:
            ConfigError: If the file cannot be read or fails validation.
        """
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Error parsing config {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must be a mapping, got {type(data).__name__}")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config {path}: {e}") from e


def load_config(root: Path, config_path: Path | str | None = None) -> AuditConfig:
    """
    Resolve configuration for a root.

    An explicit config path wins; otherwise ``<root>/.treeaudit.yaml`` is
    used when present, else the defaults.
    """
    if config_path is not None:
        return AuditConfig.from_yaml(config_path)

    candidate = Path(root) / CONFIG_FILENAME
    if candidate.is_file():
        return AuditConfig.from_yaml(candidate)

    return AuditConfig()
