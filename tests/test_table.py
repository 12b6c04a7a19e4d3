from __future__ import annotations

import logging

import pytest

from chainhash.contracts.error import BadInputError, InvalidArgumentError, InvariantError
from chainhash.core.table import DEFAULT_SIZE, ChainedHashTable, bucket_index, create


def test_default_construction() -> None:
    table = ChainedHashTable()
    assert table.capacity == DEFAULT_SIZE == 4
    assert table.usage == 0
    assert table.total_nodes == 0
    assert table.load_factor == 0.0
    assert len(table) == 0


@pytest.mark.parametrize("size", [0, -1, -5])
def test_non_positive_capacity_falls_back_to_default(size: int) -> None:
    table = create(size)
    assert table.capacity == 4


def test_requested_capacity_is_used() -> None:
    assert create(16).capacity == 16


def test_colliding_elements_are_prepended() -> None:
    table = create(4)
    table.add(1)
    table.add(5)
    assert table.chain(1) == [5, 1]
    assert table.usage == 1
    assert table.total_nodes == 2
    assert table.load_factor == pytest.approx(0.25)
    assert table.contains(1)
    assert not table.contains(9)


def test_rehash_happens_before_insert_once_threshold_reached() -> None:
    table = create(4)
    for element in (0, 1, 2):
        table.add(element)
    assert table.capacity == 4
    assert table.load_factor == pytest.approx(0.75)

    table.add(3)
    assert table.capacity == 8
    assert table.usage == 4
    assert table.total_nodes == 4
    assert table.load_factor == pytest.approx(0.5)
    assert all(table.contains(e) for e in (0, 1, 2, 3))


def test_duplicates_are_stored_twice() -> None:
    table = create(1)
    table.add(100)
    table.add(100)
    assert table.usage == 1
    assert table.total_nodes == 2
    assert table.contains(100)
    assert table.chain(bucket_index(100, table.capacity)) == [100, 100]


def test_direct_rehash_doubles_and_reverses_collisions() -> None:
    table = create(4)
    for element in (0, 4, 8):
        table.add(element)
    assert table.chain(0) == [8, 4, 0]

    table.rehash()

    assert table.capacity == 8
    assert table.chain(0) == [0, 8]
    assert table.chain(4) == [4]
    assert table.usage == 2
    assert table.total_nodes == 3
    assert table.load_factor == pytest.approx(2 / 8)
    table.check_invariants()


def test_negative_hashes_are_found() -> None:
    table = create(4)
    for element in (-3, -7, -10, 6):
        table.add(element)
    for element in (-3, -7, -10, 6):
        assert element in table
    assert -11 not in table
    table.check_invariants()


def test_nan_is_found_after_add() -> None:
    nan = float("nan")
    table = create(4)
    table.add(nan)
    table.add(1.5)
    assert table.contains(nan)
    assert nan in table
    # a distinct NaN object is not equal to the stored one
    assert not table.contains(float("nan"))
    table.check_invariants()


def test_string_elements_round_trip_through_rehashes() -> None:
    table = ChainedHashTable()
    words = [f"word-{i}" for i in range(200)]
    for word in words:
        table.add(word)
    assert all(table.contains(w) for w in words)
    assert not table.contains("word-200")
    assert table.total_nodes == 200
    assert sorted(table) == sorted(words)
    table.check_invariants()


def test_none_is_rejected() -> None:
    table = create()
    with pytest.raises(InvalidArgumentError):
        table.add(None)
    with pytest.raises(InvalidArgumentError):
        table.contains(None)
    assert table.total_nodes == 0


def test_unhashable_is_rejected_as_bad_input() -> None:
    table = create()
    with pytest.raises(BadInputError) as excinfo:
        table.add([1, 2])
    assert isinstance(excinfo.value, InvalidArgumentError)
    assert excinfo.value.hint


def test_invalid_growth_settings() -> None:
    with pytest.raises(InvalidArgumentError):
        ChainedHashTable(4, load_factor_threshold=0.0)
    with pytest.raises(InvalidArgumentError):
        ChainedHashTable(4, resize_factor=1)


def test_custom_resize_factor() -> None:
    table = ChainedHashTable(2, resize_factor=3, load_factor_threshold=0.5)
    table.add(0)
    table.add(1)
    assert table.capacity == 6
    table.check_invariants()


def test_chain_index_out_of_range() -> None:
    with pytest.raises(InvalidArgumentError):
        create(4).chain(4)


def test_check_invariants_detects_corruption() -> None:
    table = create(4)
    table.add(1)
    table._usage = 3  # pylint: disable=protected-access
    with pytest.raises(InvariantError):
        table.check_invariants()

    table = create(4)
    table.add(1)
    table._total_nodes = 5  # pylint: disable=protected-access
    with pytest.raises(InvariantError):
        table.check_invariants()


def test_describe_lists_every_bucket() -> None:
    table = create(4)
    table.add(1)
    table.add(5)
    expected = (
        "Underlying array usage / length: 1/4"
        "\nTotal number of nodes: 2"
        "\n[  0 ]: null"
        "\n[  1 ]: 5 --> 1 --> "
        "\n[  2 ]: null"
        "\n[  3 ]: null"
    )
    assert table.describe() == expected
    assert str(table) == expected


def test_repr_summarises_state() -> None:
    table = create(4)
    table.add("a")
    text = repr(table)
    assert "capacity=4" in text
    assert "total_nodes=1" in text


def test_rehash_logs_debug_and_large_table_warning(
    chainhash_caplog: pytest.LogCaptureFixture,
) -> None:
    table = ChainedHashTable(1, large_table_warn_threshold=1)
    table.add(1)
    table.add(2)
    records = [r for r in chainhash_caplog.records if r.name == "chainhash"]
    assert any(r.levelno == logging.WARNING and "Large table rehash" in r.getMessage() for r in records)
    assert any(r.levelno == logging.DEBUG and "Rehashed 1 nodes" in r.getMessage() for r in records)
