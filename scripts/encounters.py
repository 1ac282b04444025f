"""Encounter records shared by the lister, reconciler and renderer."""

from dataclasses import dataclass, field, replace
from typing import Optional

RAIDAR_SITE = "https://www.gw2raidar.com"

# Area names with this suffix are the challenge mode variant of a boss
CM_SUFFIX = " (CM)"


@dataclass(frozen=True)
class TrackedEncounter:
    name: str
    wing: int
    id: Optional[int] = None
    cm_id: Optional[int] = None

    def matches(self, area_id: int) -> bool:
        return area_id is not None and area_id in (self.id, self.cm_id)


TRACKED_ENCOUNTERS = [
    TrackedEncounter("Vale Guardian", 1),
    TrackedEncounter("Gorseval", 1),
    TrackedEncounter("Sabetha", 1),
    TrackedEncounter("Slothasor", 2),
    TrackedEncounter("Bandit Trio", 2),
    TrackedEncounter("Matthias", 2),
    TrackedEncounter("Keep Construct", 3),
    TrackedEncounter("Xera", 3),
    TrackedEncounter("Cairn", 4),
    TrackedEncounter("Mursaat Overseer", 4),
    TrackedEncounter("Samarog", 4),
    TrackedEncounter("Deimos", 4),
    TrackedEncounter("Soulless Horror", 5),
    TrackedEncounter("Dhuum", 5),
]


def with_area_ids(catalog: list[TrackedEncounter], area_ids: dict) -> list[TrackedEncounter]:
    """Return the catalog with id/cm_id filled in from a name -> ids mapping."""
    resolved = []
    for boss in catalog:
        ids = area_ids.get(boss.name, {})
        resolved.append(replace(boss, id=ids.get("id"), cm_id=ids.get("cm_id")))
    return resolved


@dataclass(frozen=True)
class RemoteEncounter:
    area_id: int
    url_id: str
    started_at: int
    tags: tuple = ()

    @property
    def url(self) -> str:
        return f"{RAIDAR_SITE}/encounter/{self.url_id}"

    @classmethod
    def from_api(cls, item: dict) -> "RemoteEncounter":
        tags = item.get("tags") or ()
        return cls(
            area_id=item.get("area_id"),
            url_id=str(item.get("url_id", "")),
            started_at=int(item.get("started_at", 0)),
            tags=tuple(str(t) for t in tags),
        )


@dataclass(frozen=True)
class LocalEncounter:
    key: str
    name: Optional[str]
    accounts: tuple = ()
    permalink: Optional[str] = None
    start_time: Optional[int] = None
    mtime: float = 0.0

    @property
    def sort_key(self) -> tuple:
        """Newest first ordering: start time, then directory mtime."""
        start = self.start_time if self.start_time is not None else int(self.mtime)
        return (start, self.mtime)


@dataclass(frozen=True)
class UnifiedResult:
    encounter: TrackedEncounter
    start_time: int
    raidar_link: Optional[str] = None
    dpsreport_link: Optional[str] = None
    players: tuple = ()
    local_key: Optional[str] = None

    @property
    def has_link(self) -> bool:
        return bool(self.raidar_link or self.dpsreport_link)


@dataclass
class ResultBuilder:
    """Mutable staging area for one UnifiedResult."""

    encounter: TrackedEncounter
    start_time: Optional[int] = None
    raidar_link: Optional[str] = None
    dpsreport_link: Optional[str] = None
    players: list = field(default_factory=list)
    local_key: Optional[str] = None

    def with_local(self, local: LocalEncounter, players: list[str]) -> "ResultBuilder":
        self.local_key = local.key
        self.dpsreport_link = local.permalink
        self.players = list(players)
        if self.start_time is None:
            self.start_time = local.sort_key[0]
        return self

    def with_remote(self, remote: RemoteEncounter) -> "ResultBuilder":
        self.raidar_link = remote.url
        self.start_time = remote.started_at
        return self

    def build(self) -> UnifiedResult:
        if self.start_time is None:
            raise ValueError(f"No start time resolved for {self.encounter.name}")
        return UnifiedResult(
            encounter=self.encounter,
            start_time=self.start_time,
            raidar_link=self.raidar_link,
            dpsreport_link=self.dpsreport_link,
            players=tuple(self.players),
            local_key=self.local_key,
        )
