"""Renumbering of a chain's states and splitting of its matrix into blocks.

States are ordered by decreasing imbalance between the two queues, the
transition matrix is rewritten with the new numbers, and the renumbered
matrix can be cut into four blocks for a near-complete-decomposability
analysis.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from .formats import MatrixRow, SizeInfo, read_encoding, read_matrix, read_sizes
from .model import EVENT_COUNT, STATE_COMPONENTS

DEFAULT_BUFFER = 20

USAGE = (
    " Erreur passez en parametre le nom du model \n"
    " <Exemple d'usage > ./reordonner model50 "
)


@dataclass(frozen=True)
class EncodedState:
    """A state number with the occupancy of each queue."""

    number: int
    x1: int
    x2: int

    @property
    def imbalance(self) -> int:
        return abs(self.x1 - self.x2)


def sort_states(states: Iterable[EncodedState]) -> list[EncodedState]:
    """Order states by decreasing imbalance, keeping ties in their order."""
    return sorted(states, key=lambda state: -state.imbalance)


def reorder_matrix(rows: Sequence[MatrixRow], order: Sequence[int]) -> list[MatrixRow]:
    """Renumber a matrix: ``order[k]`` is the old number of new state ``k``."""
    position = {old: new for new, old in enumerate(order)}
    if len(position) != len(order):
        raise ValueError("state order contains duplicates")
    by_index: dict[int, MatrixRow] = {}
    for row in rows:
        by_index.setdefault(row.index, row)

    result = []
    for new, old in enumerate(order):
        row = by_index.get(old)
        if row is None:
            raise ValueError(f"no matrix row for state {old}")
        entries = []
        for probability, destination in row.entries:
            if destination not in position:
                raise ValueError(f"destination {destination} is not a known state")
            entries.append((probability, position[destination]))
        result.append(MatrixRow(new, tuple(entries)))
    return result


def split_blocks(states, rows, threshold, deadline, buffer_size, events):
    """Cut a renumbered matrix into its four blocks.

    ``states`` holds (t1, t2, t3) triples in the new order; those with
    ``t3 == 0`` (the first ``c``) form the first block. Returns a mapping
    from "NO", "NE", "SE" and "SO" to a (SizeInfo, encoding, rows) triple.
    The north-west and south-east blocks are square; the north-east and
    south-west blocks keep the off-diagonal entries with their global
    numbers. Only the first ``2 * c`` rows are used.
    """
    states = [tuple(state) for state in states]
    first = {}
    second = {}
    c = c1 = 0
    for i, (t1, t2, t3) in enumerate(states):
        if t3 == 0:
            first[i] = (t1, t2, t3)
            if t1 > threshold * buffer_size or t2 == deadline:
                c1 += 1
            c += 1
        else:
            second[i] = (t1, t2, t3)

    if len(rows) < 2 * c:
        raise ValueError(f"expected at least {2 * c} matrix rows, got {len(rows)}")

    square_size = SizeInfo(c1 + (c - c1) * (events - 1), c, STATE_COMPONENTS)
    coupling_size = SizeInfo(c - c1, c, STATE_COMPONENTS)

    north_west, north_east, south_east, south_west = [], [], [], []
    for i, row in enumerate(rows[:c]):
        north_west.append(MatrixRow(i, tuple((p, e) for p, e in row.entries if e < c)))
        north_east.append(MatrixRow(i, tuple((p, e) for p, e in row.entries if e >= c)))
    for i, row in enumerate(rows[c : 2 * c], start=c):
        south_west.append(MatrixRow(i, tuple((p, e) for p, e in row.entries if e < c)))
        south_east.append(
            MatrixRow(i - c, tuple((p, e - c) for p, e in row.entries if e >= c))
        )

    return {
        "NO": (square_size, dict(first), north_west),
        "NE": (coupling_size, dict(first), north_east),
        "SE": (square_size, dict(second), south_east),
        "SO": (coupling_size, dict(second), south_west),
    }


def _write_rows(path, rows: Iterable[MatrixRow]) -> None:
    with open(path, "w") as handle:
        for row in rows:
            handle.write(f"{row.index:12d} {row.degree:12d} ")
            handle.write("".join(f"{p: .15E}{e:12d}" for p, e in row.entries))
            handle.write("\n")


def main(argv=None) -> int:
    """Command line: ``model``; writes the ``model-reordre`` files."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print(USAGE)
        return 1
    base = args[0]
    sz, cd, rii = f"{base}.sz", f"{base}.cd", f"{base}.Rii"
    if not all(Path(path).exists() for path in (sz, cd, rii)):
        return 2

    sizes = read_sizes(sz)
    if sizes.components is None:
        print(f"{sz}: missing component count")
        return 1
    n = sizes.states
    print(f"n = {n} ")
    Path(f"{base}-reordre.sz").write_text(
        f"{sizes.arcs:12d} \n{n:12d} \n{sizes.components:12d} \n"
    )

    states = []
    for number, components in list(read_encoding(cd).items())[:n]:
        if len(components) < 2:
            print(f"{cd}: state {number} needs two components")
            return 1
        states.append(EncodedState(number, components[0], components[1]))

    ordered = sort_states(states)
    Path(f"{base}-reordre.cd").write_text(
        "".join(f"{i:12d} {s.x1:12d} {s.x2:12d} \n" for i, s in enumerate(ordered))
    )

    try:
        rows = reorder_matrix(read_matrix(rii), [s.number for s in ordered])
    except ValueError as error:
        print(error)
        return 1
    _write_rows(f"{base}-reordre.Rii", rows)
    return 0


if __name__ == "__main__":
    sys.exit(main())