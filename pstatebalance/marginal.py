"""Marginal distributions of each state component."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Mapping, Sequence

from .formats import read_distribution, read_encoding, read_sizes
from .model import BUFFER_SIZE, STATE_COMPONENTS

USAGE = (
    "usage : Marginale -f filename \n"
    "filename.pi, filename.sz and filename.cd must exist before "
)

DEFAULT_BOUNDS = tuple((0, BUFFER_SIZE) for _ in range(STATE_COMPONENTS))


def marginals(
    encoding: Mapping[int, Sequence[int]],
    pi: Sequence[float],
    bounds: Sequence[tuple[int, int]],
) -> list[list[float]]:
    """Sum the probability of every state onto each value of each component.

    ``encoding`` maps a state number to its components, ``pi`` is indexed
    by state number and ``bounds`` gives the inclusive range of each
    component.
    """
    margins = [[0.0] * (high - low + 1) for low, high in bounds]
    for number, components in encoding.items():
        if len(components) != len(bounds):
            raise ValueError(
                f"state {number} has {len(components)} components, expected {len(bounds)}"
            )
        probability = pi[number]
        for margin, (low, high), value in zip(margins, bounds, components):
            if not low <= value <= high:
                raise ValueError(f"state {number}: value {value} outside {low}..{high}")
            margin[value - low] += probability
    return margins


def write_marginals(basename, margins, bounds) -> list[Path]:
    """Write ``basename.marginale.<k>.pi`` for each component ``k``."""
    paths = []
    for component, (margin, (low, _)) in enumerate(zip(margins, bounds)):
        path = Path(f"{basename}.marginale.{component}.pi")
        path.write_text(
            "".join(f"{value + low}  {p:.15E} \n" for value, p in enumerate(margin))
        )
        paths.append(path)
    return paths


def main(argv=None) -> int:
    """Command line: ``-f filename``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2 or args[0] != "-f":
        print(USAGE)
        return 1
    basename = args[1]
    if not all(Path(f"{basename}{suffix}").exists() for suffix in (".sz", ".pi", ".cd")):
        print(USAGE)
        return 1

    sizes = read_sizes(f"{basename}.sz")
    print(f"{sizes.arcs:12d}")
    print(f"{sizes.states:12d}")

    print("debut lecture code ")
    encoding = dict(list(read_encoding(f"{basename}.cd").items())[: sizes.states])
    print("fin lecture du codage des etats ")
    pi = read_distribution(f"{basename}.pi")[: sizes.states]
    print("fin lecture pi ")

    try:
        margins = marginals(encoding, pi, DEFAULT_BOUNDS)
    except (ValueError, IndexError) as error:
        print(error)
        return 1
    write_marginals(basename, margins, DEFAULT_BOUNDS)
    print("Done Marginale ")
    return 0


if __name__ == "__main__":
    sys.exit(main())