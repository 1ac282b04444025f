"""GW2 Raidar API helpers."""

import fnmatch
from typing import Iterator

import requests

from encounters import CM_SUFFIX, RemoteEncounter, TrackedEncounter

DEFAULT_API = "https://www.gw2raidar.com/api/v2"
PAGE_SIZE = 15
TIMEOUT = 30

RAIDAR_API = DEFAULT_API
RAIDAR_TOKEN = ""


class RaidarError(RuntimeError):
    """A request to the Raidar API failed."""


def init(token: str, base_url: str = DEFAULT_API) -> None:
    """Set the API token and base URL."""
    global RAIDAR_API, RAIDAR_TOKEN
    RAIDAR_TOKEN = token
    RAIDAR_API = base_url.rstrip("/")


def _headers() -> dict:
    return {"Authorization": f"Token {RAIDAR_TOKEN}"}


def _get(url: str, params: dict | None = None, label: str = "request") -> dict:
    """GET a Raidar URL and return the decoded JSON body, raising RaidarError on failure."""
    try:
        resp = requests.get(url, headers=_headers(), params=params, timeout=TIMEOUT)
    except requests.RequestException as e:
        raise RaidarError(f"Raidar {label} failed: {e}") from e
    if resp.status_code != 200:
        raise RaidarError(f"Raidar {label} failed: HTTP {resp.status_code} {resp.text[:200]}")
    try:
        return resp.json()
    except ValueError as e:
        raise RaidarError(f"Raidar {label} returned invalid JSON") from e


def get_areas() -> list:
    """Fetch the list of encounter areas."""
    return _get(f"{RAIDAR_API}/areas", label="areas").get("results", [])


def build_area_ids(areas: list) -> dict:
    """Map boss name -> {"id": ..., "cm_id": ...}.

    Areas named like 'Keep Construct (CM)' are the challenge mode variant and
    are filed under cm_id of 'Keep Construct'.
    """
    area_ids = {}
    for area in areas:
        name = area.get("name", "")
        if name.endswith(CM_SUFFIX):
            area_ids.setdefault(name[: -len(CM_SUFFIX)], {})["cm_id"] = area.get("id")
        else:
            area_ids.setdefault(name, {})["id"] = area.get("id")
    return area_ids


def _tags_match(record: RemoteEncounter, tag_glob: str | None) -> bool:
    if not tag_glob:
        return True
    return any(fnmatch.fnmatch(tag, tag_glob) for tag in record.tags)


def iter_encounters(since: int | None = None, tag_glob: str | None = None) -> Iterator[RemoteEncounter]:
    """Yield encounters uploaded since a unix timestamp, following pagination.

    Pages are fetched lazily, so callers that stop early skip the rest.
    """
    params = {"limit": PAGE_SIZE}
    if since is not None:
        params["since"] = int(since)
    url = f"{RAIDAR_API}/encounters"

    while url:
        page = _get(url, params=params, label="encounters")
        results = page.get("results") or []
        if not results:
            return
        for item in results:
            record = RemoteEncounter.from_api(item)
            if _tags_match(record, tag_glob):
                yield record
        # The next link already carries the query string
        url = page.get("next")
        params = None


def list_encounters_since(
    tracked: list[TrackedEncounter], since: int | None = None, tag_glob: str | None = None
) -> dict:
    """Assign each tracked boss the newest matching Raidar encounter.

    Returns a dict of boss name -> RemoteEncounter. Paging stops as soon as
    every tracked boss has a match.
    """
    tracked = [b for b in tracked if b.id is not None or b.cm_id is not None]
    found = {}
    for record in iter_encounters(since, tag_glob):
        for boss in tracked:
            if not boss.matches(record.area_id):
                continue
            current = found.get(boss.name)
            if current is None or record.started_at > current.started_at:
                found[boss.name] = record
        if len(found) == len(tracked):
            break
    print(f"Matched {len(found)} of {len(tracked)} bosses on Raidar")
    return found


def request_token(username: str, password: str) -> str:
    """Exchange account credentials for an API token."""
    try:
        resp = requests.post(
            f"{RAIDAR_API}/token",
            data={"username": username, "password": password},
            timeout=TIMEOUT,
        )
    except requests.RequestException as e:
        raise RaidarError(f"Raidar token request failed: {e}") from e
    if resp.status_code != 200:
        raise RaidarError(f"Raidar token request failed: HTTP {resp.status_code} {resp.text[:200]}")
    token = resp.json().get("token")
    if not token:
        raise RaidarError("Raidar token response did not contain a token")
    return token
