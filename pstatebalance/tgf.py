"""Conversion of a model's state files into Trivial Graph Format."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Mapping

from .formats import MatrixRow, read_encoding, read_matrix, read_sizes

USAGE = (
    "usage : Lam2TGF -f filename \n"
    "filename.Rii, filename.sz and filename.cd must exist before "
)


def to_tgf(encoding: Mapping[int, Iterable[int]], rows: Iterable[MatrixRow]) -> str:
    """Render nodes labelled by their components, then one edge per transition."""
    parts = []
    for number, components in encoding.items():
        label = ",".join(str(value) for value in components)
        parts.append(f"{number}  ({label})\n")
    parts.append("# \n ")
    for row in rows:
        for _, destination in row.entries:
            parts.append(f"{row.index} {destination} \n")
    return "".join(parts)


def convert(basename) -> Path:
    """Write ``basename.tgf`` from the model files and return its path."""
    sizes = read_sizes(f"{basename}.sz")
    encoding = dict(list(read_encoding(f"{basename}.cd").items())[: sizes.states])
    rows = read_matrix(f"{basename}.Rii")[: sizes.states]
    target = Path(f"{basename}.tgf")
    target.write_text(to_tgf(encoding, rows))
    return target


def main(argv=None) -> int:
    """Command line: ``-f filename``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2 or args[0] != "-f":
        print(USAGE)
        return 1
    basename = args[1]
    if not all(Path(f"{basename}{suffix}").exists() for suffix in (".sz", ".Rii", ".cd")):
        print(USAGE)
        return 1
    sizes = read_sizes(f"{basename}.sz")
    print(f"{sizes.arcs:12d}")
    print(f"{sizes.states:12d}")
    if sizes.components is not None:
        print(f"{sizes.components:12d}")
    convert(basename)
    print("Done Lam2TGF")
    return 0


if __name__ == "__main__":
    sys.exit(main())