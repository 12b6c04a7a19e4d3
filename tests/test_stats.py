from __future__ import annotations

import logging

import pytest

from chainhash.contracts.schema import STATS_SCHEMA, validate_stats_document
from chainhash.core.stats import (
    collect_bucket_heatmap,
    collect_chain_histogram,
    sample_stats,
)
from chainhash.core.table import create


def _seeded() -> object:
    table = create(4)
    for element in (1, 5, 2):
        table.add(element)
    return table


def test_sample_stats_reports_occupancy() -> None:
    stats = sample_stats(_seeded())
    assert stats.capacity == 4
    assert stats.usage == 2
    assert stats.total_nodes == 3
    assert stats.load_factor == pytest.approx(0.5)
    assert stats.max_chain_length == 2
    assert stats.avg_chain_length == pytest.approx(1.5)
    assert stats.empty_buckets == 2
    assert stats.to_dict()["schema"] == STATS_SCHEMA


def test_sample_stats_empty_table() -> None:
    stats = sample_stats(create(4))
    assert stats.max_chain_length == 0
    assert stats.avg_chain_length == 0.0
    assert stats.empty_buckets == 4


def test_sample_stats_warns_on_long_chain(chainhash_caplog: pytest.LogCaptureFixture) -> None:
    sample_stats(_seeded(), chain_length_warn=1)
    assert any(
        r.levelno == logging.WARNING and "Longest chain has 2 nodes" in r.getMessage()
        for r in chainhash_caplog.records
    )


def test_chain_histogram_counts_empty_buckets() -> None:
    assert collect_chain_histogram(_seeded()) == [[0, 2], [1, 1], [2, 1]]


def test_bucket_heatmap_shapes_matrix() -> None:
    heatmap = collect_bucket_heatmap(_seeded(), target_cols=2, max_cells=512)
    assert heatmap["rows"] == 2
    assert heatmap["cols"] == 2
    assert heatmap["matrix"] == [[0, 2], [1, 0]]
    assert heatmap["max"] == 2
    assert heatmap["total"] == 3
    assert heatmap["slot_span"] == 1
    assert heatmap["original_slots"] == 4


def test_bucket_heatmap_aggregates_wide_tables() -> None:
    table = create(64)
    for element in range(10):
        table.add(element)
    heatmap = collect_bucket_heatmap(table, target_cols=4, max_cells=8)
    assert heatmap["slot_span"] == 8
    assert heatmap["total"] == 10
    assert sum(sum(row) for row in heatmap["matrix"]) == 10


def test_stats_document_matches_schema() -> None:
    table = _seeded()
    document = sample_stats(table).to_dict()
    document["chain_histogram"] = collect_chain_histogram(table)
    assert validate_stats_document(document) == []


def test_schema_rejects_missing_fields() -> None:
    document = sample_stats(_seeded()).to_dict()
    document.pop("schema")
    problems = validate_stats_document(document)
    assert problems
    assert any("schema" in p for p in problems)


def test_schema_rejects_inconsistent_counters() -> None:
    document = sample_stats(_seeded()).to_dict()
    document["usage"] = 5
    problems = validate_stats_document(document)
    assert any("exceeds capacity" in p for p in problems)
    assert any("empty_buckets" in p for p in problems)


def test_custom_schema_without_counters_is_accepted() -> None:
    permissive = {"type": "object"}
    assert validate_stats_document({"schema": "custom.v0"}, permissive) == []
    assert validate_stats_document({"usage": 3}, permissive) == []


def test_custom_schema_still_checks_counters_that_are_present() -> None:
    permissive = {"type": "object"}
    problems = validate_stats_document({"capacity": 4, "usage": 6}, permissive)
    assert problems == ["usage 6 exceeds capacity 4"]
