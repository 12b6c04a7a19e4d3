"""Separate-chaining hash set with diagnostics."""

from . import analysis, contracts, core
from .core.table import ChainedHashTable, create

__all__ = [
    "ChainedHashTable",
    "analysis",
    "contracts",
    "core",
    "create",
]
