"""
Raid report publisher

Collects the newest encounters for each tracked raid boss from GW2 Raidar
and the local log upload data, then posts a summary per day to a Discord
webhook.

The time of the last successful post is kept in last_format_file so the next
run only looks at newer encounters.
Modules: raidar.py (API), local_store.py (upload data), reconcile.py (merge),
render.py (payload), webhook.py (Discord), state.py (persistence).
"""

import sys
from datetime import datetime
from pathlib import Path

import helpers
import raidar
import state as state_store
import webhook
from encounters import TRACKED_ENCOUNTERS, with_area_ids
from local_store import scan_local_encounters
from reconcile import reconcile
from render import render, serialize


# ------------------------------------------------------------------ #
#  Publisher
# ------------------------------------------------------------------ #
def save_debug_copy(text: str, config: dict, now: datetime) -> Path | None:
    """Write the payload to discord_json_data, if that directory exists."""
    json_dir = config.get("discord_json_data")
    if not json_dir or not Path(json_dir).is_dir():
        return None
    path = Path(json_dir) / f"{helpers.fmt_stamp(now)}.json"
    path.write_text(text, encoding="utf-8")
    print(f"Saved payload to {path}")
    return path


def publish(text: str, config: dict, *, now: datetime | None = None) -> bool:
    """Post the payload and record the time on success.

    In debug mode the payload is only printed; nothing is posted or recorded.
    """
    if config.get("debug_mode"):
        print(text)
        return True

    now = now or datetime.now()
    save_debug_copy(text, config, now)

    if not webhook.send_payload(config["discord_webhook"], text):
        print("Error: could not post to Discord, last processed time not updated")
        return False

    state_store.save(config["last_format_file"], int(now.timestamp()))
    print("Posted raid report to Discord")
    return True


# ------------------------------------------------------------------ #
#  Pipeline
# ------------------------------------------------------------------ #
def collect_results(config: dict, since: int | None) -> list:
    """Fetch remote encounters, scan local data and reconcile them."""
    areas = raidar.get_areas()
    tracked = with_area_ids(TRACKED_ENCOUNTERS, raidar.build_area_ids(areas))
    print(f"Loaded {len(areas)} Raidar areas")

    remote = raidar.list_encounters_since(tracked, since, config.get("gw2raidar_tag_glob"))

    local = scan_local_encounters(config["extra_upload_data"], since)
    print(f"Found {len(local)} local encounter directories")

    return reconcile(
        tracked,
        remote,
        local,
        store_root=config["extra_upload_data"],
        start_map=config["gw2raidar_start_map"],
        discord_map=config.get("discord_map"),
        prefer_local=config.get("prefer_local_data", True),
    )


def run(config: dict, *, now: datetime | None = None) -> int:
    """Run one pass of the pipeline. Returns a process exit code."""
    raidar.init(config["gw2raidar_token"])
    since = state_store.load(config["last_format_file"])
    if since is not None:
        print(f"Looking for encounters since {datetime.fromtimestamp(since).isoformat()}")

    try:
        results = collect_results(config, since)
    except raidar.RaidarError as e:
        print(f"Error: {e}")
        return 1

    if not results:
        print("No new encounters")
        return 0

    print(f"Reporting {len(results)} encounters")
    text = serialize(render(results, config))
    return 0 if publish(text, config, now=now) else 1


# ------------------------------------------------------------------ #
#  Main
# ------------------------------------------------------------------ #
def main() -> None:
    """Entry point: load and validate config, run the pipeline."""
    try:
        config = helpers.load_config()
    except (OSError, ValueError) as e:
        print(f"Error: could not load config from {helpers.CONFIG_PATH}: {e}")
        sys.exit(1)

    config = helpers.apply_env_overrides(config)

    issues = helpers.validate_config(config)
    for issue in issues:
        print(issue)
    if any(i.startswith("ERROR:") for i in issues):
        print("Fatal config errors found, aborting")
        sys.exit(1)

    sys.exit(run(config))


if __name__ == "__main__":
    main()
