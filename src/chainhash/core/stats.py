from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from chainhash.contracts.schema import STATS_SCHEMA
from chainhash.core.table import ChainedHashTable


logger = logging.getLogger("chainhash")


@dataclass(frozen=True)
class TableStats:
    capacity: int
    usage: int
    total_nodes: int
    load_factor: float
    max_chain_length: int
    avg_chain_length: float
    empty_buckets: int
    schema: str = STATS_SCHEMA

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def sample_stats(table: ChainedHashTable, chain_length_warn: Optional[int] = None) -> TableStats:
    """Snapshot the table's occupancy figures."""

    lengths = table.chain_lengths()
    occupied = [n for n in lengths if n]
    longest = max(lengths) if lengths else 0
    if chain_length_warn is not None and longest > chain_length_warn:
        logger.warning(
            "Longest chain has %d nodes (warn threshold %d, capacity=%d)",
            longest,
            chain_length_warn,
            table.capacity,
        )
    return TableStats(
        capacity=table.capacity,
        usage=table.usage,
        total_nodes=table.total_nodes,
        load_factor=table.load_factor,
        max_chain_length=longest,
        avg_chain_length=(sum(occupied) / len(occupied)) if occupied else 0.0,
        empty_buckets=len(lengths) - len(occupied),
    )


def collect_chain_histogram(table: ChainedHashTable) -> List[List[int]]:
    histogram = Counter(table.chain_lengths())
    return [[length, count] for length, count in sorted(histogram.items())]


def collect_bucket_heatmap(
    table: ChainedHashTable, target_cols: int = 32, max_cells: int = 512
) -> Dict[str, Any]:
    base_counts = table.chain_lengths()
    original_slots = len(base_counts)
    total = sum(base_counts)
    target_cells = max(1, max_cells)
    group_width = max(1, math.ceil(original_slots / target_cells))
    aggregated: List[int] = []
    for idx in range(0, original_slots, group_width):
        aggregated.append(sum(base_counts[idx : idx + group_width]))

    cols = max(1, min(target_cols, len(aggregated)))
    rows = math.ceil(len(aggregated) / cols)
    padded_length = rows * cols
    if len(aggregated) < padded_length:
        aggregated.extend([0] * (padded_length - len(aggregated)))
    matrix = [aggregated[r * cols : (r + 1) * cols] for r in range(rows)]

    return {
        "rows": rows,
        "cols": cols,
        "matrix": matrix,
        "max": max(aggregated) if aggregated else 0,
        "total": total,
        "slot_span": group_width,
        "original_slots": original_slots,
    }


__all__ = ["TableStats", "collect_bucket_heatmap", "collect_chain_histogram", "sample_stats"]
