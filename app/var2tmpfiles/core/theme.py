"""Theme management for the var2tmpfiles CLI.

Colors come from the optional ``[colors]`` table of the user's
config.toml; anything not set there keeps its built-in default.
"""

import logging
import re
import sys
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from rich.theme import Theme

from var2tmpfiles.core.paths import get_config_path

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"#(?:[0-9a-fA-F]{3}){1,2}")


class ThemeColors(BaseModel):
    """Colors of the CLI, one per kind of output.

    Every value is a ``#RGB`` or ``#RRGGBB`` hex code.
    """

    model_config = ConfigDict(extra="forbid")

    text: str = "#e6e6e6"
    muted: str = "#8a939b"
    header: str = "#5fafaf"
    border: str = "#3a5f7a"

    success: str = "#2fbf71"
    warning: str = "#e5a50a"
    error: str = "#e01b24"
    info: str = "#33c7de"

    # tmpfiles.d entry types
    directory: str = "#3584e4"
    symlink: str = "#9cdc5a"
    ignored: str = "#c061cb"

    @field_validator("*", mode="before")
    @classmethod
    def check_hex(cls, v: object, info: ValidationInfo) -> str:
        if not isinstance(v, str):
            msg = f"{info.field_name}: expected a hex color string"
            raise ValueError(msg)
        color = v.strip()
        if _HEX_COLOR.fullmatch(color) is None:
            msg = f"{info.field_name}: '{color}' is not a #RGB or #RRGGBB hex color"
            raise ValueError(msg)
        return color


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a config file.

    Returns None if the file is missing or unusable, and only keeps
    string values so that pydantic reports the remaining problems.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return None
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Cannot read colors from %s: %s", path, e)
        return None

    table = data.get("colors", {})
    if not isinstance(table, dict):
        logger.warning("Ignoring non-table 'colors' entry in %s", path)
        return None
    return {str(k): v for k, v in table.items() if isinstance(v, str)}


def load_theme(path: Path | None = None) -> ThemeColors:
    """Build the effective colors from defaults and config overrides.

    Invalid overrides are reported on stderr and ignored as a whole.
    """
    config_path = path or get_config_path()
    overrides = _load_toml_colors(config_path)
    if not overrides:
        return ThemeColors()

    try:
        colors = ThemeColors.model_validate(overrides)
    except ValidationError as e:
        logger.warning("Ignoring invalid colors in %s: %s", config_path, e)
        print(f"Warning: Invalid theme configuration in {config_path}: {e}", file=sys.stderr)
        return ThemeColors()
    logger.debug("Applied %d color overrides from %s", len(overrides), config_path)
    return colors


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Map ThemeColors onto Rich style names.

    Every color becomes a style of the same name. Errors are bold, and
    ``bold_header`` and ``path`` are derived styles.
    """
    colors = colors or load_theme()
    styles = colors.model_dump()
    styles["error"] = f"bold {colors.error}"
    styles["bold_header"] = f"bold {colors.header}"
    styles["path"] = f"bold {colors.text}"
    return Theme(styles)


_theme_cache: Theme | None = None


def get_theme() -> Theme:
    """Get the cached Rich theme, loading it on first use."""
    global _theme_cache
    if _theme_cache is None:
        _theme_cache = get_rich_theme()
    return _theme_cache
