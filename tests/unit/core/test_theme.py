"""Unit tests for theme module.

Tests for color validation, loading overrides from config.toml, and
Rich theme generation.
"""

# pyright: reportPrivateUsage=false

from pathlib import Path

import pytest
import var2tmpfiles.core.theme as theme_module
from rich.theme import Theme
from var2tmpfiles.core.theme import (
    ThemeColors,
    _load_toml_colors,
    get_rich_theme,
    get_theme,
    load_theme,
)


class TestThemeColors:
    """Tests for ThemeColors Pydantic model."""

    def test_default_values(self) -> None:
        """ThemeColors has sensible defaults."""
        colors = ThemeColors()
        assert colors.text == "#e6e6e6"
        assert colors.directory == "#3584e4"
        assert colors.error == "#e01b24"

    def test_valid_hex_colors(self) -> None:
        """ThemeColors accepts #RGB and #RRGGBB codes."""
        colors = ThemeColors(directory="#abc", symlink="#123456")
        assert colors.directory == "#abc"
        assert colors.symlink == "#123456"

    def test_whitespace_stripped(self) -> None:
        """Surrounding whitespace is removed."""
        assert ThemeColors(ignored="  #abcdef ").ignored == "#abcdef"

    @pytest.mark.parametrize("value", ["ffffff", "#ff", "#fffffff", "#gggggg"])
    def test_invalid_hex(self, value: str) -> None:
        """Values that are not #RGB or #RRGGBB are rejected."""
        with pytest.raises(ValueError, match="not a #RGB or #RRGGBB"):
            ThemeColors(text=value)

    def test_non_string_rejected(self) -> None:
        """Colors must be strings."""
        with pytest.raises(ValueError, match="expected a hex color string"):
            ThemeColors(text=123)  # type: ignore[arg-type]

    def test_extra_fields_forbidden(self) -> None:
        """ThemeColors rejects unknown fields."""
        with pytest.raises(ValueError):
            ThemeColors(unknown_field="#ffffff")  # type: ignore[call-arg]


class TestLoadTomlColors:
    """Tests for _load_toml_colors internal function."""

    def test_loads_colors_table(self, tmp_path: Path) -> None:
        """Loads the [colors] table and ignores other tables."""
        config = tmp_path / "config.toml"
        config.write_text('[converter]\nmax_depth = 3\n\n[colors]\ntext = "#000000"\n')

        assert _load_toml_colors(config) == {"text": "#000000"}

    def test_returns_none_for_missing_file(self, tmp_path: Path) -> None:
        """Returns None when file doesn't exist."""
        assert _load_toml_colors(tmp_path / "nonexistent.toml") is None

    def test_returns_none_for_invalid_toml(self, tmp_path: Path) -> None:
        """Returns None for malformed TOML."""
        config = tmp_path / "config.toml"
        config.write_text("not valid [ toml syntax")

        assert _load_toml_colors(config) is None

    def test_returns_empty_dict_without_colors(self, tmp_path: Path) -> None:
        """Returns empty dict when the colors table is missing."""
        config = tmp_path / "config.toml"
        config.write_text("[converter]\nmax_depth = 3\n")

        assert _load_toml_colors(config) == {}

    def test_colors_not_a_table(self, tmp_path: Path) -> None:
        """A scalar colors key is rejected."""
        config = tmp_path / "config.toml"
        config.write_text('colors = "red"\n')

        assert _load_toml_colors(config) is None


class TestLoadTheme:
    """Tests for load_theme function."""

    def test_defaults_without_config(self, tmp_path: Path) -> None:
        """Without a config file the built-in colors are used."""
        assert load_theme(tmp_path / "config.toml") == ThemeColors()

    def test_user_overrides(self, tmp_path: Path) -> None:
        """Colors from config.toml override the defaults."""
        config = tmp_path / "config.toml"
        config.write_text('[colors]\nheader = "#ff0000"\n')

        colors = load_theme(config)

        assert colors.header == "#ff0000"
        assert colors.text == "#e6e6e6"

    def test_fallback_on_invalid_colors(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Invalid colors fall back to defaults with a warning."""
        config = tmp_path / "config.toml"
        config.write_text('[colors]\nheader = "red"\n')

        colors = load_theme(config)

        assert colors == ThemeColors()
        assert "Invalid theme configuration" in capsys.readouterr().err


class TestGetRichTheme:
    """Tests for get_rich_theme function."""

    def test_returns_rich_theme(self) -> None:
        """Returns a Rich Theme instance."""
        assert isinstance(get_rich_theme(ThemeColors()), Theme)

    def test_includes_entry_styles(self) -> None:
        """Theme includes styles for each entry kind."""
        theme = get_rich_theme(ThemeColors())

        for name in ("directory", "symlink", "ignored", "bold_header", "path"):
            assert name in theme.styles

    def test_uses_provided_colors(self) -> None:
        """Uses provided ThemeColors instance."""
        theme = get_rich_theme(ThemeColors(header="#123456"))

        assert theme.styles["header"].color is not None
        assert theme.styles["header"].color.name == "#123456"


class TestGetTheme:
    """Tests for get_theme caching function."""

    def test_caches_theme(self) -> None:
        """get_theme returns cached instance on subsequent calls."""
        theme_module._theme_cache = None

        theme1 = get_theme()
        theme2 = get_theme()

        assert isinstance(theme1, Theme)
        assert theme1 is theme2
