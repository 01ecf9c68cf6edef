"""Breadth-first generation of the reachable Markov chain of a model."""

from __future__ import annotations

import sys
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path

from .formats import MatrixRow, SizeInfo, write_encoding, write_matrix, write_sizes
from .model import STATE_COMPONENTS, Event, LoadBalancingModel, Migration, Thresholds

MIGRATION_LOG = "Migration_States.data"
_TOLERANCE = 1.0e-9

USAGE = (
    "usage : GenerMatrix -f filename gamma12  seuil1 seuil2 seuil3 seuil4 seuil5\n"
    "to create filename.Rii, filename.cd and filename.sz \n"
    "to store the description of the states and the matrix of your model \n"
    "The files must not exist before"
)


@dataclass
class MarkovChain:
    """Reachable states, transition rows and migrations of a model.

    ``states[n]`` is the state numbered ``n``; ``rows`` are listed in the
    order the states were explored.
    """

    states: list[tuple[int, ...]] = field(default_factory=list)
    rows: list[MatrixRow] = field(default_factory=list)
    migrations: list[tuple[tuple[int, ...], Migration]] = field(default_factory=list)

    def sizes(self) -> SizeInfo:
        """Transition count, state count and component count."""
        components = len(self.states[0]) if self.states else STATE_COMPONENTS
        return SizeInfo(
            arcs=sum(row.degree for row in self.rows),
            states=len(self.states),
            components=components,
        )


def generate_chain(model: LoadBalancingModel) -> MarkovChain:
    """Explore every state reachable from the empty system.

    States are numbered in the order they are first reached; each row
    lists its successors by increasing number with merged probabilities.
    """
    chain = MarkovChain()
    numbers: dict[tuple[int, ...], int] = {}

    def number_of(state) -> int:
        if state not in numbers:
            numbers[state] = len(chain.states)
            chain.states.append(state)
        return numbers[state]

    start = tuple(model.initial_state())
    number_of(start)
    queued = {start}
    pending = deque([start])

    while pending:
        state = pending.popleft()
        if model.gamma12 > 0:
            migration = model.optimal_migration(state)
            if migration is not None:
                chain.migrations.append((state, migration))

        successors: dict[int, float] = {}
        for event in Event:
            target = tuple(model.transition(state, event))
            probability = model.probability(event, state)
            if probability > 0:
                index = number_of(target)
                successors[index] = successors.get(index, 0.0) + probability

        ordered = sorted(successors.items())
        total = sum(probability for _, probability in ordered)
        if abs(total - 1.0) > _TOLERANCE:
            raise ValueError(
                f"transition probabilities from state {state} sum to {total:.10E}"
            )
        chain.rows.append(
            MatrixRow(numbers[state], tuple((p, index) for index, p in ordered))
        )
        for index, _ in ordered:
            successor = chain.states[index]
            if successor not in queued:
                queued.add(successor)
                pending.append(successor)
    return chain


def write_chain(chain: MarkovChain, basename) -> None:
    """Write ``.cd``, ``.Rii`` and ``.sz`` files plus the migration log.

    The log is placed next to the model files.
    """
    base = Path(basename)
    encoding = {row.index: chain.states[row.index] for row in chain.rows}
    write_encoding(f"{base}.cd", encoding)
    write_matrix(f"{base}.Rii", chain.rows)
    write_sizes(f"{base}.sz", chain.sizes())
    with open(base.parent / MIGRATION_LOG, "w") as log:
        for (a, b), migration in chain.migrations:
            log.write(f"{migration.source}  {a}  {b}  {migration.count} \n")
        log.write("-1")


def main(argv=None) -> int:
    """Command line: ``-f filename gamma12 seuil1 seuil2 seuil3 seuil4 seuil5``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 8 or args[0] != "-f":
        print(USAGE)
        return 1
    basename = args[1]
    if any(Path(f"{basename}{suffix}").exists() for suffix in (".cd", ".Rii", ".sz")):
        print(USAGE)
        return 1
    try:
        gamma12 = float(args[2]) / 10
        limits = tuple(int(value) for value in args[3:])
        thresholds = Thresholds(limits)
    except ValueError as error:
        print(error)
        print(USAGE)
        return 1

    print(f"gamma12 : {gamma12:f} ")
    for position, limit in enumerate(limits, start=1):
        print(f"Seuil{position} : {limit} ")

    model = LoadBalancingModel(thresholds=thresholds, gamma12=gamma12)
    try:
        chain = generate_chain(model)
    except ValueError as error:
        print(f"attention : {error}")
        return 1
    write_chain(chain, basename)
    return 0


if __name__ == "__main__":
    sys.exit(main())