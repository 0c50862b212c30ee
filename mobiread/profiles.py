"""Config profiles for storing book paths and decode settings."""
from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

import click

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

_PROFILE_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


@dataclass
class Profile:
    name: str
    book: Path
    max_chain_depth: int | None = None


@dataclass
class Config:
    default_profile: str | None = None
    profiles: dict[str, Profile] = field(default_factory=dict)


def get_config_path() -> Path:
    """Return the TOML config file path via click.get_app_dir."""
    return Path(click.get_app_dir("mobiread")) / "config.toml"


def _profile_from_table(name: str, table: dict, path: Path) -> Profile:
    book = table.get("book")
    if not isinstance(book, str) or not book:
        raise click.ClickException(f"{path}: profile '{name}' has no book path")
    depth = table.get("max_chain_depth")
    if depth is not None and (isinstance(depth, bool) or not isinstance(depth, int) or depth < 1):
        raise click.ClickException(
            f"{path}: profile '{name}': max_chain_depth must be a positive integer, got {depth!r}"
        )
    return Profile(name=name, book=Path(book), max_chain_depth=depth)


def load_config() -> Config:
    """Read the TOML config; a missing file is an empty Config."""
    path = get_config_path()
    if not path.exists():
        return Config()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise click.ClickException(f"{path}: {e}") from e

    profiles = {
        name: _profile_from_table(name, table, path)
        for name, table in data.get("profiles", {}).items()
    }
    return Config(default_profile=data.get("default_profile"), profiles=profiles)


def _toml_string(value: str) -> str:
    # Literal strings keep Windows backslashes as-is but cannot hold a quote
    if "'" not in value and "\n" not in value:
        return f"'{value}'"
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def save_config(config: Config) -> Path:
    """Write the config as TOML and return its path."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    if config.default_profile:
        lines.append(f"default_profile = {_toml_string(config.default_profile)}")

    for name, profile in config.profiles.items():
        lines += ["", f"[profiles.{name}]", f"book = {_toml_string(str(profile.book))}"]
        if profile.max_chain_depth is not None:
            lines.append(f"max_chain_depth = {profile.max_chain_depth}")

    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def profile_name_error(name: str, config: Config | None = None) -> str | None:
    """Why ``name`` can't be used as a profile name, or None if it can.

    Names become bare TOML keys under ``[profiles]``.
    """
    if not name:
        return "Profile name can't be empty."
    if not _PROFILE_NAME_RE.match(name):
        return f"Invalid profile name '{name}'. Use letters, digits, hyphens, underscores."
    if config is not None and name in config.profiles:
        return f"Profile '{name}' is already defined."
    return None


def resolve_profile(book: Path | None, profile_name: str | None) -> Profile:
    """Resolve the book to open: --book > --profile > default profile.

    Raises click.UsageError with a helpful message if nothing resolves.
    An explicit --book still picks up settings from the named profile.
    """
    config = load_config() if (book is None or profile_name) else Config()

    if book is not None:
        if not book.exists():
            raise click.UsageError(f"Book not found: {book}")
        base = config.profiles.get(profile_name) if profile_name else None
        return Profile(
            name=profile_name or "",
            book=book,
            max_chain_depth=base.max_chain_depth if base else None,
        )

    name = profile_name or config.default_profile
    if name is None:
        raise click.UsageError(
            "No book provided. Either:\n"
            "  1. Run 'mobiread init' to set up a profile\n"
            "  2. Pass --book <path> explicitly\n"
            "  3. Pass --profile <name> to use a named profile"
        )

    profile = config.profiles.get(name)
    if profile is None:
        available = ", ".join(config.profiles) or "(none)"
        raise click.UsageError(
            f"Profile '{name}' not found. Available profiles: {available}"
        )

    if not profile.book.exists():
        raise click.UsageError(
            f"Book not found for profile '{name}': {profile.book}\n"
            "Run 'mobiread init' to update the path."
        )

    return profile
