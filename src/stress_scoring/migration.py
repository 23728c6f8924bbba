"""
Migration flow helpers

Reduce county-to-county flows into the in/out/net figures the migration
scorer consumes.
"""

from typing import Dict, Iterable, List

from .records import MigrationFlow


def calculate_net_migration(region_key: str, flows: Iterable[MigrationFlow]) -> Dict[str, int]:
    """
    In, out and net migration for one region

    Returns:
        Dictionary with in_migration, out_migration and net_migration
    """
    in_migration = 0
    out_migration = 0
    for flow in flows:
        if flow.destination_region_key == region_key:
            in_migration += flow.net_persons
        if flow.origin_region_key == region_key:
            out_migration += flow.net_persons

    return {
        "in_migration": in_migration,
        "out_migration": out_migration,
        "net_migration": in_migration - out_migration,
    }


def net_migration_by_region(flows: Iterable[MigrationFlow]) -> Dict[str, Dict[str, int]]:
    """Same figures as :func:`calculate_net_migration` for every region in one pass"""
    totals: Dict[str, Dict[str, int]] = {}

    def _entry(key: str) -> Dict[str, int]:
        return totals.setdefault(key, {"in_migration": 0, "out_migration": 0, "net_migration": 0})

    for flow in flows:
        _entry(flow.origin_region_key)["out_migration"] += flow.net_persons
        _entry(flow.destination_region_key)["in_migration"] += flow.net_persons

    for entry in totals.values():
        entry["net_migration"] = entry["in_migration"] - entry["out_migration"]
    return totals


def top_destinations(origin_key: str, flows: Iterable[MigrationFlow], limit: int = 10) -> List[MigrationFlow]:
    outgoing = [f for f in flows if f.origin_region_key == origin_key]
    return sorted(outgoing, key=lambda f: f.net_persons, reverse=True)[:limit]


def top_origins(destination_key: str, flows: Iterable[MigrationFlow], limit: int = 10) -> List[MigrationFlow]:
    incoming = [f for f in flows if f.destination_region_key == destination_key]
    return sorted(incoming, key=lambda f: f.net_persons, reverse=True)[:limit]
