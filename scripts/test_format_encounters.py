"""End-to-end tests for format_encounters.py.

Raidar and Discord are replaced by fake requests objects, the local upload
data and start map live in temp directories.
"""

import io
import json
import sys
import tempfile
from contextlib import contextmanager, redirect_stdout
from datetime import datetime
from pathlib import Path

import requests

import format_encounters
import raidar
import webhook
from test_local_store import _write_encounter
from test_raidar import _FakeRequests, _FakeResponse, _item, _page

NOW = datetime(2018, 3, 5, 9, 0)
AREAS = _FakeResponse(200, {"results": [
    {"id": 5, "name": "Slothasor"},
    {"id": 7, "name": "Keep Construct"},
    {"id": 8, "name": "Keep Construct (CM)"},
]})


def _make_config(debug=False, json_dir=True):
    root = Path(tempfile.mkdtemp())
    for sub in ("upload", "startmap", "json"):
        (root / sub).mkdir()
    config = {
        "gw2raidar_token": "secret",
        "discord_webhook": "https://discord.test/api/webhooks/1/abc",
        "extra_upload_data": str(root / "upload"),
        "gw2raidar_start_map": str(root / "startmap"),
        "last_format_file": str(root / "last_format.json"),
        "discord_json_data": str(root / "json") if json_dir else str(root / "missing"),
        "discord_map": {"abc.1234": "<@999>"},
        "guild_text": "[TAG]",
        "debug_mode": debug,
    }
    return config


def _add_slothasor(config):
    _write_encounter(config["extra_upload_data"], "sloth.evtc", "Slothasor", ["abc.1234"],
                     "https://dps.report/sloth", start=1000, mtime=1100,
                     start_map=config["gw2raidar_start_map"])


@contextmanager
def _fake_services(raidar_responses, webhook_responses=()):
    api = _FakeRequests(raidar_responses)
    hook = _FakeRequests(webhook_responses)
    old_api, old_hook = raidar.requests, webhook.requests
    raidar.requests, webhook.requests = api, hook
    try:
        yield api, hook
    finally:
        raidar.requests, webhook.requests = old_api, old_hook


def _run(config):
    out = io.StringIO()
    with redirect_stdout(out):
        code = format_encounters.run(config, now=NOW)
    return code, out.getvalue()


# ------------------------------------------------------------------ #
#  Publishing
# ------------------------------------------------------------------ #
def test_posts_report_and_saves_time():
    config = _make_config()
    _add_slothasor(config)
    with _fake_services([AREAS, _page([_item(5, "r1", 1000)])],
                        [_FakeResponse(204, None)]) as (api, hook):
        code, _ = _run(config)

    assert code == 0
    assert api.calls[0]["headers"]["Authorization"] == "Token secret"
    assert len(hook.calls) == 1
    assert hook.calls[0]["url"] == config["discord_webhook"]

    payload = json.loads(hook.calls[0]["data"].decode("utf-8"))
    embed = payload["embeds"][0]
    assert "Wings: 2" in embed["title"]
    assert embed["fields"][0]["name"] == "**Slothasor**"
    assert "https://dps.report/sloth" in embed["fields"][0]["value"]
    assert "https://www.gw2raidar.com/encounter/r1" in embed["fields"][0]["value"]
    assert embed["fields"][-1]["value"] == "<@999>"

    saved = json.loads(Path(config["last_format_file"]).read_text(encoding="utf-8"))
    assert saved == {"time": int(NOW.timestamp())}

    copies = list(Path(config["discord_json_data"]).glob("*.json"))
    assert [c.name for c in copies] == ["20180305-090000.json"]


def test_local_only_encounter_still_posted():
    config = _make_config()
    _add_slothasor(config)
    with _fake_services([AREAS, _page([])], [_FakeResponse(204, None)]) as (_, hook):
        code, _ = _run(config)

    assert code == 0
    payload = json.loads(hook.calls[0]["data"].decode("utf-8"))
    value = payload["embeds"][0]["fields"][0]["value"]
    assert "dps.report" in value
    assert "gw2raidar" not in value


def test_nothing_to_report():
    config = _make_config()
    with _fake_services([AREAS, _page([])]) as (_, hook):
        code, out = _run(config)

    assert code == 0
    assert "No new encounters" in out
    assert hook.calls == []
    assert not Path(config["last_format_file"]).exists()


def test_webhook_failure_keeps_time_but_writes_copy():
    config = _make_config()
    _add_slothasor(config)
    with _fake_services([AREAS, _page([_item(5, "r1", 1000)])],
                        [requests.ConnectionError("refused")]):
        code, out = _run(config)

    assert code == 1
    assert "refused" in out
    assert not Path(config["last_format_file"]).exists()
    assert len(list(Path(config["discord_json_data"]).glob("*.json"))) == 1


def test_webhook_http_error():
    config = _make_config()
    _add_slothasor(config)
    Path(config["last_format_file"]).write_text(json.dumps({"time": 500}), encoding="utf-8")
    with _fake_services([AREAS, _page([_item(5, "r1", 1000)])],
                        [_FakeResponse(400, None, "bad embed")]):
        code, _ = _run(config)

    assert code == 1
    saved = json.loads(Path(config["last_format_file"]).read_text(encoding="utf-8"))
    assert saved == {"time": 500}


def test_missing_json_dir_is_skipped():
    config = _make_config(json_dir=False)
    _add_slothasor(config)
    with _fake_services([AREAS, _page([_item(5, "r1", 1000)])], [_FakeResponse(204, None)]):
        code, _ = _run(config)
    assert code == 0
    assert not Path(config["discord_json_data"]).exists()


def test_debug_mode_prints_only():
    config = _make_config(debug=True)
    _add_slothasor(config)
    with _fake_services([AREAS, _page([_item(5, "r1", 1000)])]) as (_, hook):
        code, out = _run(config)

    assert code == 0
    assert hook.calls == []
    assert '"embeds"' in out
    assert not Path(config["last_format_file"]).exists()
    assert list(Path(config["discord_json_data"]).glob("*.json")) == []


def test_raidar_failure_aborts():
    config = _make_config()
    _add_slothasor(config)
    with _fake_services([_FakeResponse(502, None, "bad gateway")]) as (_, hook):
        code, out = _run(config)

    assert code == 1
    assert "Error:" in out
    assert hook.calls == []
    assert not Path(config["last_format_file"]).exists()


def test_since_is_sent_to_raidar():
    config = _make_config()
    Path(config["last_format_file"]).write_text(json.dumps({"time": 1500}), encoding="utf-8")
    with _fake_services([AREAS, _page([])]) as (api, _):
        _run(config)
    assert api.calls[1]["params"] == {"limit": 15, "since": 1500}


def test_rerun_without_new_data_is_stable():
    config = _make_config()
    _add_slothasor(config)
    runs = []
    for _ in range(2):
        with _fake_services([AREAS, _page([_item(5, "r1", 1000)])]):
            with redirect_stdout(io.StringIO()):
                runs.append(format_encounters.collect_results(config, None))
    assert runs[0] == runs[1]
    assert len(runs[0]) == 1


# ------------------------------------------------------------------ #
#  Runner
# ------------------------------------------------------------------ #
def _run_all():
    """Find and run all test_ functions, report results."""
    tests = [(name, obj) for name, obj in globals().items()
             if name.startswith("test_") and callable(obj)]
    passed = failed = 0
    for name, func in sorted(tests):
        try:
            func()
            passed += 1
        except Exception as e:
            failed += 1
            print(f"  FAIL: {name}: {e}")
    print(f"\n{passed} passed, {failed} failed out of {passed + failed}")
    return failed


if __name__ == "__main__":
    sys.exit(_run_all())
