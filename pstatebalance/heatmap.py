"""Map of the cheapest migration decision for every state of the two queues.

For each pair of occupancies the map records whether moving customers
between the queues lowers the energy consumption and, if so, where the
system ends up. A well-formed policy never sends a state to another state
that would itself migrate again.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from .model import LoadBalancingModel, Thresholds

DEFAULT_BUFFER_SIZE = 90
DEFAULT_SERVERS = 10
DEFAULT_THRESHOLDS = Thresholds((3, 6, 12, 24, 48))
DEFAULT_MIGRATION_ENERGY = 1.0
OUTPUT_FILE = "HeatMap.data"


@dataclass(frozen=True)
class HeatMapEntry:
    """Energy of a state and, when worthwhile, its optimal migration."""

    state: tuple[int, int]
    energy: float
    migrations: int = 0
    target: tuple[int, int] | None = None
    optimal_energy: float | None = None


class PropertyViolation(Exception):
    """Raised when a migration leads to a state that migrates again."""

    def __init__(self, state: tuple[int, int]) -> None:
        super().__init__(f"Erreur etat : ({state[0]},{state[1]})")
        self.state = state


def compute_heatmap(buffer_size, servers, thresholds, migration_energy) -> list[HeatMapEntry]:
    """Evaluate every state (a, b) with 0 <= a, b <= buffer_size, row by row."""
    model = LoadBalancingModel(
        thresholds=thresholds,
        buffer_size=buffer_size,
        servers=servers,
        migration_energy=migration_energy,
    )
    entries: list[HeatMapEntry] = []
    for a in range(buffer_size + 1):
        for b in range(buffer_size + 1):
            energy = model.energy(a, b, 0)
            migration = model.optimal_migration((a, b))
            if migration is None:
                entries.append(HeatMapEntry((a, b), energy))
            else:
                entries.append(
                    HeatMapEntry(
                        (a, b),
                        energy,
                        migration.count,
                        migration.target,
                        migration.energy_after,
                    )
                )
    return entries


def check_property(entries: Iterable[HeatMapEntry]) -> int:
    """Check that no migration target migrates itself.

    Returns the number of migrating states checked; raises
    PropertyViolation naming the first offending target.
    """
    entries = list(entries)
    migrating = {entry.state: entry for entry in entries if entry.migrations}
    for entry in entries:
        if entry.migrations and entry.target in migrating:
            raise PropertyViolation(entry.target)
    return len(migrating)


def _data_line(entry: HeatMapEntry) -> str:
    a, b = entry.state
    if entry.migrations and entry.target is not None:
        x, y = entry.target
        return f"{a:5d} {b:5d} {entry.migrations:5d} {x:5d} {y:5d}\n"
    return f"{a:5d} {b:5d} NaN   NaN   NaN \n"


def format_heatmap(entries: Sequence[HeatMapEntry]) -> str:
    """Render the data file: one line per state, NaN where nothing migrates."""
    return "".join(_data_line(entry) for entry in entries)


def _describe(entry: HeatMapEntry) -> str:
    a, b = entry.state
    x, y = entry.target
    return (
        f"({a} , {b}) : {entry.energy:.0f}  ---> ({x}  , {y}) : "
        f"{entry.optimal_energy:.0f} et {entry.migrations} Migrations "
    )


def main(argv=None) -> int:
    """Compute the default map, write it to ``HeatMap.data`` and check it."""
    entries = compute_heatmap(
        DEFAULT_BUFFER_SIZE,
        DEFAULT_SERVERS,
        DEFAULT_THRESHOLDS,
        DEFAULT_MIGRATION_ENERGY,
    )
    for entry in entries:
        if entry.migrations:
            print(_describe(entry))
    Path(OUTPUT_FILE).write_text(format_heatmap(entries))
    try:
        check_property(entries)
    except PropertyViolation as violation:
        print(f"{violation} ")
        return 1
    print("Proprieté Verifiée ! ")
    return 0


if __name__ == "__main__":
    sys.exit(main())