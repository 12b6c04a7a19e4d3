"""Chain-walk tracing for ``ChainedHashTable`` lookups and insertions."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from chainhash.core.table import ChainedHashTable, bucket_index

ProbeTrace = Dict[str, Any]


def _json_friendly(value: Any) -> Any:
    """Return a JSON-serialisable representation of ``value``."""

    try:
        import json

        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return repr(value)


def trace_contains(table: ChainedHashTable, target: Any) -> ProbeTrace:
    bucket = bucket_index(target, table.capacity)
    chain = table.chain(bucket)
    path: List[Dict[str, Any]] = []
    found = False
    for pos, content in enumerate(chain):
        matches = content is target or content == target
        path.append(
            {
                "position": pos,
                "content_repr": repr(content),
                "matches": matches,
            }
        )
        if matches:
            found = True
            break
    if not chain:
        terminal = "empty"
    else:
        terminal = "match" if found else "exhausted"
    return {
        "operation": "contains",
        "element_repr": repr(target),
        "element": _json_friendly(target),
        "capacity": table.capacity,
        "bucket": bucket,
        "chain_length": len(chain),
        "found": found,
        "terminal": terminal,
        "path": path,
    }


def trace_add(table: ChainedHashTable, content: Any) -> ProbeTrace:
    """Describe where ``content`` would land, accounting for a pending rehash."""

    rehashed = table.load_factor >= table.load_factor_threshold
    if rehashed:
        capacity = table.capacity * table.resize_factor
        bucket = bucket_index(content, capacity)
        # rehash head-inserts in sweep order, so the last colliding node ends up first
        colliding = [item for item in table if bucket_index(item, capacity) == bucket]
        chain_length = len(colliding)
        head: Optional[str] = repr(colliding[-1]) if colliding else None
    else:
        capacity = table.capacity
        bucket = bucket_index(content, capacity)
        chain = table.chain(bucket)
        chain_length = len(chain)
        head = repr(chain[0]) if chain else None
    return {
        "operation": "add",
        "element_repr": repr(content),
        "element": _json_friendly(content),
        "capacity": capacity,
        "rehashed": rehashed,
        "bucket": bucket,
        "chain_length": chain_length,
        "terminal": "prepend" if chain_length else "new-chain",
        "displaced_head": head,
        "duplicate": content in table,
        "path": [],
    }


def format_trace_lines(
    trace: Dict[str, Any],
    *,
    seeds: Optional[Sequence[str]] = None,
    export_path: Optional[Union[str, Path]] = None,
) -> List[str]:
    """Return a human-friendly rendering of a trace."""

    lines: List[str] = []
    operation = trace.get("operation", "?")
    element_repr = trace.get("element_repr", "?")
    lines.append(f"Chain trace {operation.upper()} element={element_repr}")
    if operation == "contains":
        lines.append(f"Found: {trace.get('found')} | Terminal: {trace.get('terminal')}")
    else:
        lines.append(f"Terminal: {trace.get('terminal')}")
    capacity_line = f"Capacity: {trace.get('capacity')}"
    if trace.get("rehashed"):
        capacity_line += " (after rehash)"
    lines.append(capacity_line)
    lines.append(f"Bucket: {trace.get('bucket')} | Chain length: {trace.get('chain_length')}")
    if trace.get("displaced_head") is not None:
        lines.append(f"Displaced head: {trace['displaced_head']}")
    if seeds:
        lines.append("Seed elements: " + ", ".join(seeds))
    if operation == "contains":
        lines.append("Steps:")
        path = trace.get("path")
        if not isinstance(path, list) or not path:
            lines.append("  (no nodes visited)")
        else:
            for item in path:
                if not isinstance(item, dict):
                    lines.append(f"  {item!r}")
                    continue
                matches = str(bool(item.get("matches"))).lower()
                lines.append(
                    f"  Node {item.get('position')}: content={item.get('content_repr')}, matches={matches}"
                )
    if export_path:
        lines.append(f"Trace JSON written to: {export_path}")
    return lines


__all__ = ["trace_contains", "trace_add", "format_trace_lines"]
