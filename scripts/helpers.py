"""Shared utilities, constants, and config loading."""

import json
import os
from datetime import date, datetime
from pathlib import Path

# ------------------------------------------------------------------ #
#  Paths
# ------------------------------------------------------------------ #
CONFIG_PATH = Path(os.environ.get(
    "GW2_REPORT_CONFIG", Path(__file__).parent.parent / "config.json"
))

# ------------------------------------------------------------------ #
#  Config keys
# ------------------------------------------------------------------ #
REQUIRED_KEYS = [
    "gw2raidar_token",
    "extra_upload_data",
    "gw2raidar_start_map",
    "last_format_file",
]

REQUIRED_DIRS = ["extra_upload_data", "gw2raidar_start_map"]

OPTIONAL_KEYS = {
    "discord_webhook": str,
    "debug_mode": bool,
    "discord_json_data": str,
    "discord_map": dict,
    "emoji_map": dict,
    "gw2raidar_tag_glob": str,
    "guild_text": str,
    "guild_thumbnail": str,
    "footer_text": str,
    "embed_color": int,
    "prefer_local_data": bool,
}

# Environment variables that override the matching config key
ENV_OVERRIDES = {
    "GW2RAIDAR_TOKEN": "gw2raidar_token",
    "DISCORD_WEBHOOK": "discord_webhook",
}

DEFAULT_EMBED_COLOR = 0x3498DB


# ------------------------------------------------------------------ #
#  Config loading
# ------------------------------------------------------------------ #
def load_config(path: Path | None = None) -> dict:
    with open(path or CONFIG_PATH, encoding="utf-8") as f:
        return json.load(f)


def save_config(config: dict, path: Path | None = None) -> None:
    with open(path or CONFIG_PATH, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=4)
        f.write("\n")


def apply_env_overrides(config: dict, environ=None) -> dict:
    """Return a copy of config with secrets taken from the environment when set."""
    environ = os.environ if environ is None else environ
    merged = dict(config)
    for var, key in ENV_OVERRIDES.items():
        if environ.get(var):
            merged[key] = environ[var]
    return merged


def validate_config(config: dict) -> list[str]:
    """Check config for problems. Returns 'ERROR: ...' / 'WARNING: ...' strings."""
    issues = []

    for key in REQUIRED_KEYS:
        value = config.get(key)
        if not value:
            issues.append(f"ERROR: missing required setting '{key}'")
        elif not isinstance(value, str):
            issues.append(f"ERROR: '{key}' must be a string")

    for key in REQUIRED_DIRS:
        value = config.get(key)
        if isinstance(value, str) and value and not Path(value).is_dir():
            issues.append(f"ERROR: '{key}' directory does not exist: {value}")

    last_file = config.get("last_format_file")
    if isinstance(last_file, str) and last_file:
        parent = Path(last_file).parent
        if not parent.is_dir():
            issues.append(f"ERROR: directory for 'last_format_file' does not exist: {parent}")

    if not config.get("debug_mode") and not config.get("discord_webhook"):
        issues.append("ERROR: missing required setting 'discord_webhook' (needed unless debug_mode is set)")

    for key, expected in OPTIONAL_KEYS.items():
        if key not in config or config[key] is None:
            continue
        value = config[key]
        # bool is a subclass of int, embed_color must not accept it
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            issues.append(f"ERROR: '{key}' must be of type {expected.__name__}")

    for key in ("discord_map", "emoji_map"):
        mapping = config.get(key)
        if isinstance(mapping, dict):
            bad = [k for k, v in mapping.items() if not isinstance(v, str)]
            if bad:
                issues.append(f"ERROR: '{key}' values must be strings (bad entries: {', '.join(sorted(bad))})")

    known = set(REQUIRED_KEYS) | set(OPTIONAL_KEYS)
    for key in sorted(config):
        if key not in known:
            issues.append(f"WARNING: unrecognized setting '{key}' is ignored")

    return issues


# ------------------------------------------------------------------ #
#  File helpers
# ------------------------------------------------------------------ #
def read_json(path: Path, default=None):
    """Load a JSON file, returning default if it is missing or malformed."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default
    except (OSError, ValueError) as e:
        print(f"Warning: could not read {path}: {e}")
        return default


# ------------------------------------------------------------------ #
#  Formatting helpers
# ------------------------------------------------------------------ #
def fmt_title_date(day: date) -> str:
    """Format a date like 'Mar 4, 2018' (no zero padding on the day)."""
    return f"{day.strftime('%b')} {day.day}, {day.year}"


def fmt_stamp(dt: datetime) -> str:
    """Format a datetime as a filename-friendly YYYYMMDD-HHMMSS stamp."""
    return dt.strftime("%Y%m%d-%H%M%S")


def md_link(label: str, url: str) -> str:
    """Markdown link with the URL repeated as hover text."""
    return f'[{label}]({url} "{url}")'


def emphasize(text: str) -> str:
    """Wrap text in markdown emphasis."""
    return f"_{text}_"


def unique(items) -> list:
    """Drop duplicates, keeping order of first occurrence."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
