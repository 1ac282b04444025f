"""Read per-encounter data written by the log upload pipeline.

Layout:
    <extra_upload_data>/<key>/encounter.json    {"name": "Slothasor"}
    <extra_upload_data>/<key>/accounts.json     ["abc.1234", ...]
    <extra_upload_data>/<key>/dpsreport.json    {"permalink": "https://dps.report/..."}
    <extra_upload_data>/<key>/servertime.json   {"start": 1500000000}
    <gw2raidar_start_map>/<started_at>/evtc     text file holding <key>
"""

from pathlib import Path

from encounters import LocalEncounter
from helpers import emphasize, read_json, unique

ENCOUNTER_FILE = "encounter.json"
ACCOUNTS_FILE = "accounts.json"
PERMALINK_FILE = "dpsreport.json"
SERVERTIME_FILE = "servertime.json"
START_MAP_FILE = "evtc"


def _read_name(path: Path) -> str | None:
    data = read_json(path / ENCOUNTER_FILE)
    if isinstance(data, dict) and isinstance(data.get("name"), str):
        return data["name"]
    return None


def _read_accounts(path: Path) -> tuple:
    data = read_json(path / ACCOUNTS_FILE, [])
    if not isinstance(data, list):
        return ()
    return tuple(unique(str(a) for a in data if a))


def _read_permalink(path: Path) -> str | None:
    data = read_json(path / PERMALINK_FILE)
    if isinstance(data, dict) and data.get("permalink"):
        return str(data["permalink"])
    return None


def _read_start(path: Path) -> int | None:
    data = read_json(path / SERVERTIME_FILE)
    if isinstance(data, dict):
        try:
            return int(data["start"])
        except (KeyError, TypeError, ValueError):
            return None
    return None


def read_local_encounter(root, key: str) -> LocalEncounter | None:
    """Load one encounter directory, or None if it does not exist."""
    path = Path(root) / key
    if not path.is_dir():
        return None
    return LocalEncounter(
        key=key,
        name=_read_name(path),
        accounts=_read_accounts(path),
        permalink=_read_permalink(path),
        start_time=_read_start(path),
        mtime=path.stat().st_mtime,
    )


def lookup_start_map(start_map_root, started_at: int) -> str | None:
    """Return the local directory key recorded for an encounter start time."""
    entry = Path(start_map_root) / str(int(started_at)) / START_MAP_FILE
    try:
        key = entry.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    except OSError as e:
        print(f"Warning: could not read {entry}: {e}")
        return None
    return key or None


def scan_local_encounters(root, since: int | None = None) -> list[LocalEncounter]:
    """List encounter directories modified after since, newest first."""
    root = Path(root)
    if not root.is_dir():
        return []
    found = []
    for path in root.iterdir():
        if not path.is_dir():
            continue
        if since is not None and path.stat().st_mtime <= since:
            continue
        encounter = read_local_encounter(root, path.name)
        if encounter is not None:
            found.append(encounter)
    found.sort(key=lambda e: e.sort_key, reverse=True)
    return found


def participant_names(accounts, discord_map: dict | None) -> list[str]:
    """Translate account names to Discord identities; unmapped ones are emphasized."""
    discord_map = discord_map or {}
    return unique(discord_map.get(a) or emphasize(a) for a in accounts)
