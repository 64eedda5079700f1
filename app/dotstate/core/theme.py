"""Theme and icon management for the dotstate CLI.

Colors come from the defaults below, optionally overridden by a user
theme file. Icons come in three sets so output stays readable on
terminals without a Nerd Font.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Literal, cast

from pydantic import BaseModel, ConfigDict, field_validator
from rich.theme import Theme

from dotstate.core.paths import get_config_dir
from dotstate.models.config import ICONS_ENV

logger = logging.getLogger(__name__)

IconSet = Literal["nerd", "unicode", "ascii"]


class ThemeColors(BaseModel):
    """Color configuration for the dotstate CLI.

    All colors must be valid hex codes (#RRGGBB or #RGB).
    """

    model_config = ConfigDict(extra="forbid")

    # Base colors
    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    # Semantic colors
    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # File and profile states
    synced: str = "#03b971"
    unsynced: str = "#636e72"
    common: str = "#0e8ac8"
    profile_active: str = "#c1ff62"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        """Validate that all color values are valid hex codes."""
        if not isinstance(v, str):
            msg = f"{info.field_name}: color must be a string"
            raise ValueError(msg)
        color = v.strip()
        if not color.startswith("#"):
            msg = f"{info.field_name}: color must start with '#'"
            raise ValueError(msg)
        color_part = color[1:]
        if len(color_part) not in (3, 6):
            msg = f"{info.field_name}: color must be #RGB or #RRGGBB format"
            raise ValueError(msg)
        try:
            int(color_part, 16)
        except ValueError:
            msg = f"{info.field_name}: invalid hex color '{color}'"
            raise ValueError(msg) from None
        return color


class Icons(BaseModel):
    """Glyphs used in CLI output."""

    model_config = ConfigDict(frozen=True)

    check: str
    cross: str
    warning: str
    file: str
    folder: str
    profile: str
    link: str
    package: str
    arrow: str


ICON_SETS: dict[str, Icons] = {
    "nerd": Icons(
        check="\uf00c",
        cross="\uf00d",
        warning="\uf071",
        file="\uf15b",
        folder="\uf07b",
        profile="\uf007",
        link="\uf0c1",
        package="\uf487",
        arrow="\uf061",
    ),
    "unicode": Icons(
        check="✓",
        cross="✗",
        warning="⚠",
        file="□",
        folder="■",
        profile="●",
        link="→",
        package="◆",
        arrow="→",
    ),
    "ascii": Icons(
        check="[ok]",
        cross="[x]",
        warning="[!]",
        file="-",
        folder="+",
        profile="*",
        link="->",
        package="#",
        arrow="->",
    ),
}


def resolve_icon_set(configured: str = "auto") -> IconSet:
    """Pick the icon set to use.

    DOTSTATE_ICONS wins over the configured value. "auto" chooses
    unicode on UTF-8 terminals and ascii elsewhere; Nerd Font glyphs
    are only used when asked for.
    """
    env_value = os.environ.get(ICONS_ENV, "").strip().lower()
    if env_value in ICON_SETS:
        return cast(IconSet, env_value)
    if env_value:
        logger.warning("Ignoring unknown %s value %r", ICONS_ENV, env_value)
    if configured in ICON_SETS:
        return cast(IconSet, configured)

    encoding = os.environ.get("LC_ALL") or os.environ.get("LC_CTYPE") or os.environ.get("LANG", "")
    if "utf" in encoding.lower():
        return "unicode"
    return "ascii"


def get_icons(configured: str = "auto") -> Icons:
    """Get the icon set for the configured preference."""
    return ICON_SETS[resolve_icon_set(configured)]


def get_user_theme_path() -> Path:
    """Get the user theme configuration path.

    Returns:
        Path to <config-dir>/theme.toml
    """
    return get_config_dir() / "theme.toml"


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Load colors section from a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Dictionary of color name to hex value, or None if loading failed.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        colors_raw: object = data.get("colors", {})
        if not isinstance(colors_raw, dict):
            logger.warning("Invalid 'colors' section in %s", path)
            return None
        result: dict[str, str] = {}
        for key, value in cast(dict[str, object], colors_raw).items():
            if isinstance(value, str):
                result[key] = value
        return result
    except FileNotFoundError:
        return None
    except tomllib.TOMLDecodeError as e:
        logger.warning("Failed to parse theme file %s: %s", path, e)
        return None
    except OSError as e:
        logger.warning("Failed to read theme file %s: %s", path, e)
        return None


def load_theme() -> ThemeColors:
    """Load theme colors, applying user overrides on top of the defaults."""
    user_path = get_user_theme_path()
    user_colors = _load_toml_colors(user_path)
    if user_colors is None:
        return ThemeColors()

    logger.debug("Loaded user theme overrides from %s", user_path)
    try:
        return ThemeColors(**user_colors)
    except ValueError as e:
        logger.warning("Theme validation failed, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Convert ThemeColors to a Rich Theme.

    Args:
        colors: ThemeColors instance to convert. If None, loads theme automatically.

    Returns:
        Rich Theme instance configured with the color scheme.
    """
    if colors is None:
        colors = load_theme()

    styles: dict[str, str] = {
        "text": colors.text,
        "muted": colors.muted,
        "header": colors.header,
        "border": colors.border,
        "success": colors.success,
        "warning": colors.warning,
        "error": f"bold {colors.error}",
        "info": colors.info,
        "synced": colors.synced,
        "unsynced": colors.unsynced,
        "common": colors.common,
        "profile.active": f"bold {colors.profile_active}",
        "bold_header": f"bold {colors.header}",
        "dim": colors.muted,
        "path": f"bold {colors.text}",
    }

    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Get the Rich theme, loading and caching it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme


def reload_theme() -> Theme:
    """Force reload the theme from the user theme file."""
    global _cached_theme
    _cached_theme = get_rich_theme()
    return _cached_theme
