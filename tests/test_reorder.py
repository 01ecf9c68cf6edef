import pytest

from pstatebalance.formats import (
    MatrixRow,
    SizeInfo,
    read_encoding,
    read_matrix,
    read_sizes,
    write_encoding,
    write_matrix,
    write_sizes,
)
from pstatebalance.reorder import (
    EncodedState,
    main,
    reorder_matrix,
    sort_states,
    split_blocks,
)


def test_sort_states_decreasing_imbalance_and_stable():
    states = [
        EncodedState(0, 0, 0),
        EncodedState(1, 1, 3),
        EncodedState(2, 2, 0),
        EncodedState(3, 0, 2),
    ]
    ordered = sort_states(states)
    assert [s.number for s in ordered] == [1, 2, 3, 0]


def test_sort_states_keeps_all_states():
    states = [EncodedState(i, i % 4, (3 * i) % 5) for i in range(12)]
    ordered = sort_states(states)
    assert sorted(ordered, key=lambda s: s.number) == states
    imbalances = [s.imbalance for s in ordered]
    assert imbalances == sorted(imbalances, reverse=True)


ROWS = [
    MatrixRow(0, ((0.5, 0), (0.5, 1))),
    MatrixRow(1, ((0.25, 0), (0.75, 2))),
    MatrixRow(2, ((1.0, 1),)),
]


def test_reorder_matrix_renumbers_rows_and_destinations():
    result = reorder_matrix(ROWS, [2, 0, 1])
    assert [row.index for row in result] == [0, 1, 2]
    assert result[0].entries == ((1.0, 2),)
    assert result[1].entries == ((0.5, 1), (0.5, 2))
    assert result[2].entries == ((0.25, 1), (0.75, 0))


def test_reorder_matrix_inverse_restores_original():
    order = [2, 0, 1]
    inverse = [order.index(old) for old in range(3)]
    assert reorder_matrix(reorder_matrix(ROWS, order), inverse) == ROWS


def test_reorder_matrix_missing_row():
    with pytest.raises(ValueError):
        reorder_matrix(ROWS[:2], [0, 1, 2])


def test_reorder_matrix_unknown_destination():
    with pytest.raises(ValueError):
        reorder_matrix(ROWS, [0, 1])


STATES = [(0, 0, 0), (5, 1, 0), (0, 0, 1), (1, 3, 1)]
BLOCK_ROWS = [
    MatrixRow(0, ((0.5, 0), (0.5, 2))),
    MatrixRow(1, ((0.7, 1), (0.3, 3))),
    MatrixRow(2, ((0.4, 2), (0.6, 0))),
    MatrixRow(3, ((1.0, 3),)),
]


def test_split_blocks_sizes():
    blocks = split_blocks(STATES, BLOCK_ROWS, 0.1, 9, 20, 7)
    assert blocks["NO"][0] == SizeInfo(7, 2, 2)
    assert blocks["NE"][0] == SizeInfo(1, 2, 2)
    assert blocks["SE"][0] == blocks["NO"][0]
    assert blocks["SO"][0] == blocks["NE"][0]


def test_split_blocks_encodings():
    blocks = split_blocks(STATES, BLOCK_ROWS, 0.1, 9, 20, 7)
    assert blocks["NO"][1] == {0: (0, 0, 0), 1: (5, 1, 0)}
    assert blocks["SE"][1] == {2: (0, 0, 1), 3: (1, 3, 1)}


def test_split_blocks_entries_partition_rows():
    blocks = split_blocks(STATES, BLOCK_ROWS, 0.1, 9, 20, 7)
    north_west, north_east = blocks["NO"][2], blocks["NE"][2]
    assert north_west[0].entries == ((0.5, 0),)
    assert north_east[0].entries == ((0.5, 2),)
    south_east, south_west = blocks["SE"][2], blocks["SO"][2]
    assert [row.index for row in south_east] == [0, 1]
    assert south_east[0].entries == ((0.4, 0),)
    assert south_west[0].index == 2
    assert south_west[0].entries == ((0.6, 0),)
    for i, row in enumerate(BLOCK_ROWS[:2]):
        assert north_west[i].degree + north_east[i].degree == row.degree


def test_split_blocks_needs_enough_rows():
    with pytest.raises(ValueError):
        split_blocks(STATES, BLOCK_ROWS[:3], 0.1, 9, 20, 7)


def test_main_requires_one_argument():
    assert main([]) == 1


def test_main_missing_files(tmp_path):
    assert main([str(tmp_path / "absent")]) == 2


def test_main_writes_reordered_files(tmp_path):
    base = tmp_path / "model"
    write_sizes(f"{base}.sz", SizeInfo(5, 3, 2))
    write_encoding(f"{base}.cd", {0: (0, 0), 1: (1, 0), 2: (0, 2)})
    write_matrix(f"{base}.Rii", ROWS)

    assert main([str(base)]) == 0

    assert read_sizes(f"{base}-reordre.sz") == SizeInfo(5, 3, 2)
    assert read_encoding(f"{base}-reordre.cd") == {0: (0, 2), 1: (1, 0), 2: (0, 0)}
    rows = read_matrix(f"{base}-reordre.Rii")
    assert rows == reorder_matrix(ROWS, [2, 1, 0])
    for row in rows:
        assert sum(p for p, _ in row.entries) == pytest.approx(1.0)