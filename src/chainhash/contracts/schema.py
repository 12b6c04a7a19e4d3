"""JSON-schema contract for ``chainhash.stats.v1`` documents."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

STATS_SCHEMA = "chainhash.stats.v1"


def load_stats_schema(custom_schema: Path | None = None) -> dict[str, Any]:
    if custom_schema is not None:
        return json.loads(custom_schema.read_text(encoding="utf-8"))
    schema_resource = resources.files("chainhash.contracts") / "stats_schema.json"
    with schema_resource.open(encoding="utf-8") as stream:
        return json.load(stream)


def validate_stats_document(obj: Any, schema: dict[str, Any] | None = None) -> list[str]:
    """Return human-readable problems with ``obj``; an empty list means valid."""

    validator = Draft202012Validator(schema if schema is not None else load_stats_schema())
    errors = sorted(validator.iter_errors(obj), key=lambda err: list(err.path))
    problems = [f"{err.message} @ {list(err.path)}" for err in errors]
    if problems or not isinstance(obj, dict):
        return problems

    # A custom schema may not require these; compare only the counts that are present.
    capacity = _count(obj, "capacity")
    usage = _count(obj, "usage")
    total_nodes = _count(obj, "total_nodes")
    empty_buckets = _count(obj, "empty_buckets")
    if usage is None:
        return problems
    if capacity is not None and usage > capacity:
        problems.append(f"usage {usage} exceeds capacity {capacity}")
    if total_nodes is not None and usage > total_nodes:
        problems.append(f"usage {usage} exceeds total_nodes {total_nodes}")
    if capacity is not None and empty_buckets is not None and empty_buckets != capacity - usage:
        problems.append(
            f"empty_buckets {empty_buckets} != capacity - usage ({capacity - usage})"
        )
    return problems


def _count(obj: dict[str, Any], key: str) -> int | None:
    value = obj.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


__all__ = ["STATS_SCHEMA", "load_stats_schema", "validate_stats_document"]
