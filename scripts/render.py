"""Build the Discord webhook payload for a set of boss results."""

import json
from datetime import date, datetime

from encounters import UnifiedResult
from helpers import DEFAULT_EMBED_COLOR, fmt_title_date, md_link, unique

ZERO_WIDTH_SPACE = "\u200b"
BOX_DASH = "\u2500"
EM_DASH = "\u2014"
MIDDLE_DOT = "\u00b7"

LINK_SEPARATOR = f" {EM_DASH} "
PLAYER_SEPARATOR = f" {MIDDLE_DOT} "
ROSTER_TITLE = f"{BOX_DASH * 3} Players {BOX_DASH * 3}"


def local_date(timestamp: int) -> date:
    return datetime.fromtimestamp(timestamp).date()


def group_by_date(results: list[UnifiedResult]) -> dict:
    """Partition results by local calendar date, each day sorted by start time."""
    days = {}
    for result in results:
        days.setdefault(local_date(result.start_time), []).append(result)
    for day_results in days.values():
        day_results.sort(key=lambda r: r.start_time)
    return days


def day_of_week(day: date) -> int:
    """Sunday=0 through Saturday=6."""
    return int(day.strftime("%w"))


def encounter_field(result: UnifiedResult, emoji_map: dict) -> dict:
    name = result.encounter.name
    emoji = emoji_map.get(name)
    label = f"{emoji} **{name}**" if emoji else f"**{name}**"

    links = []
    if result.dpsreport_link:
        links.append(md_link("dps.report", result.dpsreport_link))
    if result.raidar_link:
        links.append(md_link("gw2raidar", result.raidar_link))

    return {"name": label, "value": LINK_SEPARATOR.join(links)}


def roster_field(day_results: list[UnifiedResult]) -> dict:
    players = unique(p for r in day_results for p in r.players)
    return {
        "name": ROSTER_TITLE,
        "value": PLAYER_SEPARATOR.join(players) if players else ZERO_WIDTH_SPACE,
    }


def build_embed(day: date, day_results: list[UnifiedResult], config: dict) -> dict:
    """One embed for a single day of results (already sorted by start time)."""
    wings = unique(str(r.encounter.wing) for r in day_results)
    prefix = config.get("guild_text", "")
    title = f"{prefix} Wings: {', '.join(wings)} | {fmt_title_date(day)}".strip()

    emoji_map = config.get("emoji_map") or {}
    fields = [encounter_field(r, emoji_map) for r in day_results]
    fields.append(roster_field(day_results))

    embed = {
        "title": title,
        "color": config.get("embed_color", DEFAULT_EMBED_COLOR),
        "fields": fields,
    }
    if config.get("guild_thumbnail"):
        embed["thumbnail"] = {"url": config["guild_thumbnail"]}
    if config.get("footer_text"):
        embed["footer"] = {"text": config["footer_text"]}
    return embed


def render(results: list[UnifiedResult], config: dict) -> dict:
    """Build the webhook payload: one embed per day, ordered by day of week, latest first."""
    days = group_by_date([r for r in results if r.has_link])
    ordered = sorted(days, key=day_of_week, reverse=True)
    return {"embeds": [build_embed(day, days[day], config) for day in ordered]}


def serialize(payload: dict) -> str:
    """JSON text for the webhook body.

    Non-ASCII glyphs are written as \\uXXXX escapes, which decode to the exact
    characters on the receiving side.
    """
    return json.dumps(payload, indent=2, ensure_ascii=True)
