"""Configuration model and I/O for var2tmpfiles.

Configuration is stored in ~/.config/var2tmpfiles/config.toml:

    [converter]
    tmpfiles_dir = "usr/lib/tmpfiles.d"
    generated_prefix = "bootc-autogenerated-var"
    ignored_sample_limit = 5
    max_depth = 64

    [colors]
    error = "#ff0000"

Every key is optional; missing keys keep their defaults.
"""

import logging
import os
import tomllib
from pathlib import Path, PurePosixPath
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from var2tmpfiles.core.paths import get_config_path
from var2tmpfiles.core.theme import ThemeColors

logger = logging.getLogger(__name__)

DEFAULT_TMPFILES_DIR = "usr/lib/tmpfiles.d"
# Shared with bootc so that both tools number generations consistently
DEFAULT_GENERATED_PREFIX = "bootc-autogenerated-var"
DEFAULT_IGNORED_SAMPLE_LIMIT = 5


class ConverterSettings(BaseModel):
    """Settings for the /var to tmpfiles.d conversion.

    Attributes:
        tmpfiles_dir: tmpfiles.d directory relative to the target root.
        generated_prefix: Reserved file name prefix of generated files.
        ignored_sample_limit: How many unsupported paths to list by name
            in a generated file before summarizing the rest.
        max_depth: Optional limit on directory nesting below /var.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    tmpfiles_dir: Annotated[
        PurePosixPath,
        Field(description="tmpfiles.d directory, relative to the root"),
    ] = PurePosixPath(DEFAULT_TMPFILES_DIR)
    generated_prefix: Annotated[
        str,
        Field(min_length=1, description="File name prefix of generated files"),
    ] = DEFAULT_GENERATED_PREFIX
    ignored_sample_limit: Annotated[
        int,
        Field(ge=0, le=100, description="Unsupported paths listed by name (0-100)"),
    ] = DEFAULT_IGNORED_SAMPLE_LIMIT
    max_depth: Annotated[
        int | None,
        Field(ge=1, description="Maximum directory nesting (None = unlimited)"),
    ] = None

    @field_validator("tmpfiles_dir")
    @classmethod
    def validate_relative(cls, v: PurePosixPath) -> PurePosixPath:
        """Require a relative path below the root."""
        if v.is_absolute() or ".." in v.parts or not v.parts:
            msg = f"tmpfiles_dir must be a relative path below the root, got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("generated_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        """Require a plain file name prefix."""
        if "/" in v or v.startswith("."):
            msg = f"generated_prefix must be a plain file name prefix, got '{v}'"
            raise ValueError(msg)
        return v


class AppConfig(BaseModel):
    """Top-level configuration file model."""

    model_config = ConfigDict(extra="forbid")

    converter: Annotated[
        ConverterSettings,
        Field(default_factory=ConverterSettings, description="Conversion settings"),
    ]
    colors: Annotated[
        ThemeColors,
        Field(default_factory=ThemeColors, description="CLI color overrides"),
    ]


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def get_default_config() -> AppConfig:
    """Create an AppConfig with every setting at its default."""
    return AppConfig()


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated AppConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> AppConfig:
    """Load configuration, falling back to defaults if no file exists.

    Raises:
        ConfigError: If a config file exists but is invalid.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        logger.debug("No config file, using defaults")
        return get_default_config()


def save_config(config: AppConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The AppConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def config_to_dict(config: AppConfig) -> dict[str, object]:
    """Convert AppConfig to a dictionary for TOML serialization.

    max_depth is left out while unset, since TOML has no null.
    """
    converter: dict[str, object] = {
        "tmpfiles_dir": str(config.converter.tmpfiles_dir),
        "generated_prefix": config.converter.generated_prefix,
        "ignored_sample_limit": config.converter.ignored_sample_limit,
    }
    if config.converter.max_depth is not None:
        converter["max_depth"] = config.converter.max_depth

    return {
        "converter": converter,
        "colors": config.colors.model_dump(),
    }
