"""Stationary distributions by the Grassmann-Taksar-Heyman (GTH) algorithm.

Two solvers are provided. One works on a full dense matrix. The other keeps
only the non-zero entries, split into the strictly lower part of each row
and the upper part (diagonal included) of each column. Both perform the
same elimination, which needs no subtraction and stays numerically stable.
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Sequence

from .formats import MatrixRow, read_matrix, read_sizes

TIMING_LOG = "GTH.time"

DENSE_USAGE = (
    "usage : Gth -f filename Suffix \n"
    "filename.Suffix and filename.sz must exist before. And the suffix must be Rxx "
)


class SingularChainError(ArithmeticError):
    """Raised when elimination meets a state with no way back to lower states."""

    def __init__(self, state: int) -> None:
        super().__init__(f"no transition from state {state} to a lower state")
        self.state = state


def _check_destination(destination: int, size: int) -> None:
    if not 0 <= destination < size:
        raise ValueError(f"destination {destination} outside 0..{size - 1}")


def gth_dense(rows: Sequence[MatrixRow], size: int) -> list[float]:
    """Solve for the stationary distribution with a full matrix.

    Each row is placed by its own index; a repeated destination in a row
    overwrites the earlier value.
    """
    if size <= 0:
        return []
    matrix = [[0.0] * size for _ in range(size)]
    for row in rows[:size]:
        _check_destination(row.index, size)
        for probability, destination in row.entries:
            _check_destination(destination, size)
            matrix[row.index][destination] = probability

    for n in range(size - 1, 0, -1):
        row_n = matrix[n]
        total = sum(row_n[:n])
        if total == 0.0:
            raise SingularChainError(n)
        for row_i in matrix[:n]:
            row_i[n] /= total
        head = row_n[:n]
        for row_i in matrix[:n]:
            factor = row_i[n]
            if factor:
                for j, value in enumerate(head):
                    row_i[j] += factor * value

    pi = [1.0]
    for j in range(1, size):
        value = matrix[0][j]
        for k in range(1, j):
            value += pi[k] * matrix[k][j]
        pi.append(value)
    norm = sum(pi)
    return [value / norm for value in pi]


def gth_sparse(rows: Sequence[MatrixRow], size: int) -> list[float]:
    """Solve for the stationary distribution keeping only non-zero entries.

    Rows are taken in the order given, the n-th row being state n; repeated
    destinations in a row are added together.
    """
    if size <= 0:
        return []
    lower: list[dict[int, float]] = [{} for _ in range(size)]
    upper: list[dict[int, float]] = [{} for _ in range(size)]
    lower_sum = [0.0] * size

    for position, row in enumerate(rows[:size]):
        for probability, column in row.entries:
            _check_destination(column, size)
            if column < position:
                lower[position][column] = lower[position].get(column, 0.0) + probability
                lower_sum[position] += probability
            else:
                upper[column][position] = upper[column].get(position, 0.0) + probability

    for j in range(size - 1, 0, -1):
        column = upper[j]
        row_j = sorted(lower[j].items())
        for i in sorted(k for k in column if k < j):
            if lower_sum[j] == 0:
                raise SingularChainError(j)
            scale = column[i] / lower_sum[j]
            column[i] = scale
            for k, value in row_j:
                contribution = value * scale
                if k < i:
                    lower[i][k] = lower[i].get(k, 0.0) + contribution
                    lower_sum[i] += contribution
                elif k > i:
                    upper[k][i] = upper[k].get(i, 0.0) + contribution

    pi = [1.0]
    for j in range(1, size):
        pi.append(
            sum(pi[i] * value for i, value in sorted(upper[j].items()) if i < j)
        )
    norm = sum(pi)
    return [value / norm for value in pi]


def write_dense_distribution(path, pi: Sequence[float]) -> None:
    """Write one probability per line."""
    Path(path).write_text("".join(f" {value:.18e}\n" for value in pi))


def write_sparse_distribution(path, pi: Sequence[float]) -> None:
    """Write the state count, the probabilities, then their sum."""
    body = "".join(f" {value:.14e}\n" for value in pi)
    Path(path).write_text(f"   {len(pi)}\n{body}\n   {sum(pi):E}\n")


def solve_dense(basename, suffix: str) -> list[float]:
    """Solve ``basename.suffix`` with the dense solver and write ``basename.pi``."""
    if not suffix.startswith("R"):
        raise ValueError(f"matrix suffix must start with 'R', got {suffix!r}")
    sizes = read_sizes(f"{basename}.sz")
    rows = read_matrix(f"{basename}.{suffix}")
    pi = gth_dense(rows, sizes.states)
    write_dense_distribution(f"{basename}.pi", pi)
    return pi


def solve_sparse(basename) -> list[float]:
    """Solve ``basename.Rii`` with the sparse solver and write ``basename.pi``."""
    sizes = read_sizes(f"{basename}.sz")
    rows = read_matrix(f"{basename}.Rii")
    pi = gth_sparse(rows, sizes.states)
    write_sparse_distribution(f"{basename}.pi", pi)
    return pi


def main_dense(argv=None) -> int:
    """Command line: ``-f filename Suffix``."""
    started = time.perf_counter()
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 3 or args[0] != "-f":
        print(DENSE_USAGE)
        return 1
    basename, suffix = args[1], args[2]
    if (
        not suffix.startswith("R")
        or not Path(f"{basename}.sz").exists()
        or not Path(f"{basename}.{suffix}").exists()
    ):
        print(DENSE_USAGE)
        return 1
    try:
        solve_dense(basename, suffix)
    except SingularChainError as error:
        print(f"Probleme en {error.state} 0.000000")
        return 1
    elapsed = time.perf_counter() - started
    with open(Path(basename).parent / TIMING_LOG, "a") as log:
        log.write(f"{elapsed:.2f}\n")
    print(f"ALGO GTH DONE, temps: {elapsed:.2f} secondes")
    return 0


def main_sparse(argv=None) -> int:
    """Command line: ``filename``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("bad args ")
        return 1
    basename = args[0]
    if not Path(f"{basename}.sz").exists() or not Path(f"{basename}.Rii").exists():
        print("Le Fichier specifie n'existant pas")
        return 1
    try:
        solve_sparse(basename)
    except SingularChainError:
        print(" PROBLEME dans la chaine.\n\n\n")
        print("           ARRET DU TRAITEMENT...\n\n\n")
        return 1
    print(f"\n\n La Distribution Stationnaire est dans le fichier {basename}.pi \n\n")
    print("\n           FIN DE TRAITEMENT\n\n")
    return 0


if __name__ == "__main__":
    sys.exit(main_sparse())