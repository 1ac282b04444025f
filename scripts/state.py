"""Last-processed timestamp persistence."""

import json
from pathlib import Path


def load(path) -> int | None:
    """Return the saved unix timestamp, or None if nothing was saved yet."""
    path = Path(path)
    if not path.exists():
        print("No previous run recorded, scanning everything")
        return None

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return int(data["time"])
    except (OSError, ValueError, KeyError, TypeError) as e:
        print(f"Warning: Could not read {path} ({e}), scanning everything")
        return None


def save(path, when: int) -> None:
    path = Path(path)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps({"time": int(when)}, indent=2), encoding="utf-8")
    tmp.replace(path)
    print(f"Saved last processed time to {path}")
