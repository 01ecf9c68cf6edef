"""Two-queue load-balancing model with power states (P-states) and migrations.

Each queue is an M/M/C/B station whose service rate and power draw depend
on the P-state selected by its current occupancy. When the two queues sit
in different P-states, customers may be migrated from one queue to the
other to reach the configuration that consumes the least energy.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from enum import IntEnum

STATE_COMPONENTS = 2
EVENT_COUNT = 7

BUFFER_SIZE = 90
SERVERS = 15
LAMBDA1 = 20.0
LAMBDA2 = 10.0

MU1 = (1.0, 1.8, 2.0, 2.2, 2.4, 2.6)
MU2 = (1.0, 1.8, 2.0, 2.2, 2.4, 2.6)

ACTIVE_POWER = (32.0, 55.0, 65.0, 76.0, 90.0, 95.0)
"""Consumption of a busy server, per P-state."""

IDLE_POWER = (8.0, 13.75, 16.25, 19.0, 22.5, 23.75)
"""Consumption of an idle server, per P-state (75% below the busy value)."""

MIGRATION_ENERGY = 1.0
"""Energy spent for each migrated customer."""


@dataclass(frozen=True)
class Thresholds:
    """Occupancy limits separating the six P-states."""

    limits: tuple[int, int, int, int, int]

    def __post_init__(self) -> None:
        limits = tuple(int(x) for x in self.limits)
        if len(limits) != 5:
            raise ValueError(f"expected 5 thresholds, got {len(limits)}")
        if any(lo > hi for lo, hi in zip(limits, limits[1:])):
            raise ValueError(f"thresholds must be non-decreasing: {limits}")
        object.__setattr__(self, "limits", limits)

    def level(self, count: int) -> int:
        """Return the P-state (1 to 6) of a queue holding ``count`` customers."""
        return bisect_left(self.limits, count) + 1


class Event(IntEnum):
    """Events of the uniformised chain."""

    ARRIVAL_1 = 1
    ARRIVAL_2 = 2
    SERVICE_1 = 3
    SERVICE_2 = 4
    MIGRATE_FROM_1 = 5
    MIGRATE_FROM_2 = 6
    LOOP = 7


@dataclass(frozen=True)
class Migration:
    """The cheapest redistribution of customers from a given state."""

    source: int
    """Queue (1 or 2) whose customers are migrated."""
    count: int
    target: tuple[int, int]
    energy_before: float
    energy_after: float


def _queue_energy(count: int, thresholds: Thresholds, servers: int) -> float:
    level = thresholds.level(count)
    busy = min(count, servers)
    idle = servers - busy
    return busy * ACTIVE_POWER[level - 1] + idle * IDLE_POWER[level - 1]


def state_energy(a, b, thresholds, migrations, servers, migration_energy):
    """Power drawn by both queues in state (a, b) plus the migration cost."""
    return (
        _queue_energy(a, thresholds, servers)
        + _queue_energy(b, thresholds, servers)
        + migrations * migration_energy
    )


@dataclass(frozen=True)
class LoadBalancingModel:
    """Parameters of the two-queue model and its transition rules."""

    thresholds: Thresholds
    gamma12: float = 0.0
    buffer_size: int = BUFFER_SIZE
    servers: int = SERVERS
    lambda1: float = LAMBDA1
    lambda2: float = LAMBDA2
    mu1: tuple[float, ...] = field(default=MU1)
    mu2: tuple[float, ...] = field(default=MU2)
    migration_energy: float = MIGRATION_ENERGY

    def initial_state(self) -> tuple[int, int]:
        """The empty system."""
        return (0, 0)

    def bounds(self) -> tuple[tuple[int, int], tuple[int, int]]:
        """Inclusive (min, max) range of each state component."""
        return ((0, self.buffer_size), (0, self.buffer_size))

    def energy(self, a: int, b: int, migrations: int) -> float:
        """Energy of state (a, b) after ``migrations`` customers moved."""
        return state_energy(
            a, b, self.thresholds, migrations, self.servers, self.migration_energy
        )

    def optimal_migration(self, state) -> Migration | None:
        """Find the split of customers with strictly lowest energy.

        Returns None when both queues share a P-state or no split beats
        staying put.
        """
        a, b = state
        current = self.energy(a, b, 0)
        if self.thresholds.level(a) == self.thresholds.level(b):
            return None
        best: Migration | None = None
        lowest = current
        total = a + b
        for first in range(total + 1):
            second = total - first
            if first > self.buffer_size or second > self.buffer_size:
                continue
            moved = abs(a - first)
            candidate = self.energy(first, second, moved)
            if candidate < lowest:
                lowest = candidate
                best = Migration(
                    source=1 if a > first else 2,
                    count=moved,
                    target=(first, second),
                    energy_before=current,
                    energy_after=candidate,
                )
        return best

    def _active_migration(self, state) -> Migration | None:
        if self.gamma12 > 0:
            return self.optimal_migration(state)
        return None

    def uniformisation_rate(self, migrations: int) -> float:
        """Sum of all rates used to uniformise the chain."""
        if migrations < 0:
            raise ValueError("number of migrations cannot be negative")
        rate = self.lambda1 + self.lambda2 + self.servers * (sum(self.mu1) + sum(self.mu2))
        if migrations > 0:
            rate += self.gamma12 / migrations
        return rate

    def probability(self, event, state) -> float:
        """Probability that ``event`` fires from ``state``."""
        event = Event(event)
        a, b = state
        migration = self._active_migration(state)
        moved = migration.count if migration else 0
        delta = self.uniformisation_rate(moved)
        busy1 = min(a, self.servers)
        busy2 = min(b, self.servers)
        mu1 = self.mu1[self.thresholds.level(a) - 1]
        mu2 = self.mu2[self.thresholds.level(b) - 1]

        if event is Event.ARRIVAL_1:
            return self.lambda1 / delta
        if event is Event.ARRIVAL_2:
            return self.lambda2 / delta
        if event is Event.SERVICE_1:
            return busy1 * mu1 / delta
        if event is Event.SERVICE_2:
            return busy2 * mu2 / delta
        if event is Event.MIGRATE_FROM_1:
            if migration and migration.source == 1:
                return self.gamma12 / moved / delta
            return 0.0
        if event is Event.MIGRATE_FROM_2:
            if migration and migration.source == 2:
                return self.gamma12 / moved / delta
            return 0.0
        others = self.servers * (sum(self.mu1) - mu1 + sum(self.mu2) - mu2)
        return ((self.servers - busy1) * mu1 + (self.servers - busy2) * mu2 + others) / delta

    def transition(self, state, event) -> tuple[int, int]:
        """State reached from ``state`` when ``event`` fires."""
        event = Event(event)
        a, b = state
        (min1, max1), (min2, max2) = self.bounds()
        if event is Event.ARRIVAL_1:
            return (a + 1, b) if a < max1 else (a, b)
        if event is Event.ARRIVAL_2:
            return (a, b + 1) if b < max2 else (a, b)
        if event is Event.SERVICE_1:
            return (a - 1, b) if a > min1 else (a, b)
        if event is Event.SERVICE_2:
            return (a, b - 1) if b > min2 else (a, b)
        if event in (Event.MIGRATE_FROM_1, Event.MIGRATE_FROM_2):
            migration = self._active_migration(state)
            wanted = 1 if event is Event.MIGRATE_FROM_1 else 2
            if migration and migration.source == wanted:
                return migration.target
        return (a, b)