"""Readers and writers for the text files that describe a Markov chain.

A model ``name`` is stored as:

* ``name.sz``: number of transitions, number of states, number of components;
* ``name.cd``: one line per state, its number followed by its components;
* ``name.Rii``: one line per state, its number, its out-degree, then pairs
  of (probability, destination number);
* ``name.pi``: a stationary distribution.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Mapping


@dataclass(frozen=True)
class SizeInfo:
    """Contents of a ``.sz`` file."""

    arcs: int
    states: int
    components: int | None = None


@dataclass(frozen=True)
class MatrixRow:
    """One row of a sparse transition matrix."""

    index: int
    entries: tuple[tuple[float, int], ...]

    @property
    def degree(self) -> int:
        return len(self.entries)


def read_sizes(path) -> SizeInfo:
    """Read a ``.sz`` file; the component count is optional."""
    values = [int(token) for token in Path(path).read_text().split()]
    if len(values) < 2:
        raise ValueError(f"{path}: expected at least two sizes, got {len(values)}")
    components = values[2] if len(values) > 2 else None
    return SizeInfo(arcs=values[0], states=values[1], components=components)


def write_sizes(path, sizes: SizeInfo) -> None:
    """Write a ``.sz`` file."""
    values = [sizes.arcs, sizes.states]
    if sizes.components is not None:
        values.append(sizes.components)
    Path(path).write_text("".join(f"{value:12d}\n" for value in values))


def read_encoding(path) -> dict[int, tuple[int, ...]]:
    """Read a ``.cd`` file into a mapping from state number to components."""
    encoding: dict[int, tuple[int, ...]] = {}
    with open(path) as handle:
        for line in handle:
            fields = line.split()
            if not fields:
                continue
            number, *components = (int(field) for field in fields)
            encoding[number] = tuple(components)
    return encoding


def write_encoding(path, encoding: Mapping[int, Iterable[int]]) -> None:
    """Write a ``.cd`` file, one state per line, in mapping order."""
    with open(path, "w") as handle:
        for number, components in encoding.items():
            handle.write(f"{number:12d}")
            handle.write("".join(f"{value:12d}" for value in components))
            handle.write("\n")


def _next(tokens: Iterator[str], path) -> str:
    try:
        return next(tokens)
    except StopIteration:
        raise ValueError(f"{path}: truncated matrix file") from None


def read_matrix(path) -> list[MatrixRow]:
    """Read a ``.Rii`` sparse matrix file."""
    tokens = iter(Path(path).read_text().split())
    rows: list[MatrixRow] = []
    for token in tokens:
        index = int(token)
        degree = int(_next(tokens, path))
        entries = []
        for _ in range(degree):
            probability = float(_next(tokens, path))
            destination = int(_next(tokens, path))
            entries.append((probability, destination))
        rows.append(MatrixRow(index, tuple(entries)))
    return rows


def write_matrix(path, rows: Iterable[MatrixRow]) -> None:
    """Write a ``.Rii`` sparse matrix file."""
    with open(path, "w") as handle:
        for row in rows:
            handle.write(f"{row.index:12d}{row.degree:12d}")
            handle.write(
                "".join(f"{prob: .15E}{dest:12d}" for prob, dest in row.entries)
            )
            handle.write("\n")


def read_distribution(path) -> list[float]:
    """Read a stationary distribution.

    Accepts one probability per entry, or the sparse solver's layout where
    a leading state count precedes the values and their sum follows them.
    """
    tokens = Path(path).read_text().split()
    if (
        len(tokens) >= 2
        and tokens[0].isdigit()
        and int(tokens[0]) == len(tokens) - 2
    ):
        return [float(token) for token in tokens[1:-1]]
    return [float(token) for token in tokens]