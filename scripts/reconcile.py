"""Match Raidar encounters to local upload data, one result per tracked boss."""

from encounters import LocalEncounter, RemoteEncounter, ResultBuilder, TrackedEncounter, UnifiedResult
from local_store import lookup_start_map, participant_names, read_local_encounter


def newest_local(name: str, local: list[LocalEncounter]) -> LocalEncounter | None:
    """Pick the newest local encounter recorded under a boss name."""
    candidates = [e for e in local if e.name == name]
    if not candidates:
        return None
    return max(candidates, key=lambda e: e.sort_key)


def linked_local(store_root, key: str | None, name: str) -> LocalEncounter | None:
    """Load the start-map directory for a remote encounter, if it is the same boss."""
    if not key:
        return None
    local = read_local_encounter(store_root, key)
    if local is None:
        return None
    if local.name != name:
        print(f"{name}: start map points at {key}, which is a {local.name} log, ignoring it")
        return None
    return local


def reconcile(
    tracked: list[TrackedEncounter],
    remote: dict,
    local: list[LocalEncounter],
    *,
    store_root,
    start_map,
    discord_map: dict | None = None,
    prefer_local: bool = True,
) -> list[UnifiedResult]:
    """Merge remote and local data into at most one result per tracked boss.

    remote maps boss name -> newest RemoteEncounter. When the start map ties the
    remote encounter to a different local directory than the newest local one,
    the local data wins and the Raidar link is dropped (prefer_local), or the
    remote encounter and its own local directory win (not prefer_local).
    Results without any link are left out.
    """
    results = []
    for boss in tracked:
        local_enc = newest_local(boss.name, local)
        remote_enc: RemoteEncounter | None = remote.get(boss.name)
        if local_enc is None and remote_enc is None:
            continue

        builder = ResultBuilder(boss)
        linked_key = lookup_start_map(start_map, remote_enc.started_at) if remote_enc else None

        if local_enc is not None and remote_enc is not None and linked_key != local_enc.key:
            if prefer_local:
                print(f"{boss.name}: Raidar encounter {remote_enc.url_id} does not match "
                      f"local log {local_enc.key}, keeping local data only")
            else:
                builder.with_remote(remote_enc)
                local_enc = linked_local(store_root, linked_key, boss.name)
        elif remote_enc is not None:
            builder.with_remote(remote_enc)
            if local_enc is None:
                local_enc = linked_local(store_root, linked_key, boss.name)

        if local_enc is not None:
            builder.with_local(local_enc, participant_names(local_enc.accounts, discord_map))

        result = builder.build()
        if result.has_link:
            results.append(result)
        else:
            print(f"{boss.name}: no links found, skipping")
    return results
