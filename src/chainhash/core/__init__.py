from .stats import TableStats, collect_bucket_heatmap, collect_chain_histogram, sample_stats
from .table import (
    DEFAULT_SIZE,
    LARGE_TABLE_WARN_THRESHOLD,
    LOAD_FACTOR_THRESHOLD,
    RESIZE_FACTOR,
    ChainedHashTable,
    bucket_index,
    create,
)

__all__ = [
    "ChainedHashTable",
    "TableStats",
    "bucket_index",
    "create",
    "collect_bucket_heatmap",
    "collect_chain_histogram",
    "sample_stats",
    "DEFAULT_SIZE",
    "LOAD_FACTOR_THRESHOLD",
    "RESIZE_FACTOR",
    "LARGE_TABLE_WARN_THRESHOLD",
]
