"""Performance and energy measures computed from a stationary distribution.

``states`` is the sequence of states, a pair (customers in queue 1,
customers in queue 2) for each, and ``pi`` gives their stationary
probabilities in the same order. Migration records come from the log
written by the chain generator.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from .model import (
    ACTIVE_POWER,
    IDLE_POWER,
    LAMBDA1,
    LAMBDA2,
    MIGRATION_ENERGY,
    SERVERS,
    Thresholds,
)

PSTATE_COUNT = 6
_REPORTED_RATES = (0.0, 0.02)
_LOG_END = "-1"


@dataclass(frozen=True)
class MigrationRecord:
    """A state from which customers of ``source`` are migrated."""

    source: int
    state: tuple[int, int]
    count: int


def read_migration_log(path) -> list[MigrationRecord]:
    """Read the migration log, stopping at its ``-1`` terminator."""
    tokens = iter(Path(path).read_text().split())
    records: list[MigrationRecord] = []
    for token in tokens:
        if token == _LOG_END:
            break
        try:
            a, b, count = (int(next(tokens)) for _ in range(3))
        except (StopIteration, RuntimeError):
            raise ValueError(f"{path}: truncated migration record") from None
        records.append(MigrationRecord(int(token), (a, b), count))
    return records


def _component(queue: int) -> int:
    if queue not in (1, 2):
        raise ValueError(f"queue must be 1 or 2, got {queue}")
    return queue - 1


def _pairs(states, pi):
    return zip((tuple(state) for state in states), pi, strict=True)


def _state_weights(states, pi) -> dict[tuple[int, ...], float]:
    weights: dict[tuple[int, ...], float] = defaultdict(float)
    for state, probability in _pairs(states, pi):
        weights[state] += probability
    return weights


def _first_records(
    records: Iterable[MigrationRecord], source: int
) -> dict[tuple[int, int], MigrationRecord]:
    index: dict[tuple[int, int], MigrationRecord] = {}
    for record in records:
        if record.source == source:
            index.setdefault(tuple(record.state), record)
    return index


def _power(count: int, thresholds: Thresholds) -> float:
    level = thresholds.level(count)
    busy = min(count, SERVERS)
    idle = SERVERS - busy
    return busy * ACTIVE_POWER[level - 1] + idle * IDLE_POWER[level - 1]


def loss_probability(states, pi, queue, buffer_size) -> float:
    """Probability that ``queue`` is full."""
    position = _component(queue)
    return sum(p for state, p in _pairs(states, pi) if state[position] == buffer_size)


def migration_sums(states, pi, records) -> tuple[float, float]:
    """Probability mass of migrating states, per migrating server.

    Every record contributes, so a state logged twice counts twice.
    """
    weights = _state_weights(states, pi)
    sums = [0.0, 0.0]
    for record in records:
        if record.source in (1, 2):
            sums[record.source - 1] += weights.get(tuple(record.state), 0.0)
    return sums[0], sums[1]


def migration_energy(states, pi, records, server, gamma12) -> float:
    """Mean energy spent migrating customers away from ``server``."""
    _component(server)
    if gamma12 == 0:
        return 0.0
    index = _first_records(records, server)
    total = 0.0
    for state, probability in _pairs(states, pi):
        record = index.get(state)
        if record is not None:
            total += MIGRATION_ENERGY * record.count * probability
    return total


def queue_energy(states, pi, queue, thresholds, gamma12, records) -> float:
    """Mean power drawn by ``queue``, migration cost included.

    In a state from which ``queue`` migrates customers, its power is taken
    after the migrated customers have left.
    """
    position = _component(queue)
    index = _first_records(records, queue) if gamma12 != 0 else {}
    total = 0.0
    for state, probability in _pairs(states, pi):
        count = state[position]
        record = index.get(state)
        if record is not None:
            count -= record.count
            if count < 0:
                raise ValueError(f"Problème dans l'etat : {state}")
            total += record.count * MIGRATION_ENERGY * probability
        total += _power(count, thresholds) * probability
    return total


def migration_probability(states, pi, records, server, gamma12) -> float:
    """Probability of being in a state where ``server`` migrates customers."""
    _component(server)
    if gamma12 == 0:
        return 0.0
    weights = _state_weights(states, pi)
    return sum(
        weights.get(tuple(record.state), 0.0)
        for record in records
        if record.source == server
    )


def pstate_distribution(states, pi, thresholds) -> tuple[list[float], list[float]]:
    """Probability of each P-state for queue 1 and for queue 2."""
    first = [0.0] * PSTATE_COUNT
    second = [0.0] * PSTATE_COUNT
    for (a, b), probability in _pairs(states, pi):
        first[thresholds.level(a) - 1] += probability
        second[thresholds.level(b) - 1] += probability
    return first, second


def write_pstate_distribution(path, states, pi, thresholds, gamma12):
    """Append the P-state distributions to ``path`` for the reported rates.

    Only migration rates 0 and 0.02 are reported; for any other rate
    nothing is written and None is returned.
    """
    if gamma12 not in _REPORTED_RATES:
        return None
    first, second = pstate_distribution(states, pi, thresholds)
    lines = [f"Cas de  C = {SERVERS} serveurs et taux de migration = {gamma12:f} \n"]
    lines.extend(
        f"   P{level}\t\t   {p1:.10e}      {p2:.10e}       \n"
        for level, (p1, p2) in enumerate(zip(first, second), start=1)
    )
    lines.append("\n \n")
    with open(path, "a") as handle:
        handle.write("".join(lines))
    print(
        f"Verification somme des marginales : {sum(first):.5e}  et {sum(second):.5e} "
    )
    return first, second


def mean_customers(states, pi, queue) -> float:
    """Mean number of customers in ``queue``."""
    position = _component(queue)
    return sum(state[position] * p for state, p in _pairs(states, pi))


def _arrival_rate(queue: int) -> float:
    return LAMBDA1 if queue == 1 else LAMBDA2


def response_time(states, pi, queue, buffer_size) -> float:
    """Mean response time of ``queue`` by Little's law on accepted customers."""
    customers = mean_customers(states, pi, queue)
    losses = loss_probability(states, pi, queue, buffer_size)
    return customers / (_arrival_rate(queue) * (1.0 - losses))


def total_response_time(states, pi, gamma12, buffer_size) -> float:
    """Mean response time of the whole system.

    With migrations both queues are seen as a single system; without, the
    two response times are added.
    """
    if gamma12 != 0:
        customers = mean_customers(states, pi, 1) + mean_customers(states, pi, 2)
        throughput = LAMBDA1 * (1.0 - loss_probability(states, pi, 1, buffer_size))
        throughput += LAMBDA2 * (1.0 - loss_probability(states, pi, 2, buffer_size))
        return customers / throughput
    return response_time(states, pi, 1, buffer_size) + response_time(
        states, pi, 2, buffer_size
    )