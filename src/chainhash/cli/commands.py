"""CLI command registration and handlers for chainhash."""

from __future__ import annotations

import argparse
import ast
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, cast

from chainhash.analysis import format_trace_lines, trace_add, trace_contains
from chainhash.config import AppConfig
from chainhash.contracts.error import BadInputError, Exit, IOErrorEnvelope
from chainhash.contracts.schema import load_stats_schema, validate_stats_document
from chainhash.core.stats import collect_bucket_heatmap, collect_chain_histogram, sample_stats
from chainhash.core.table import ChainedHashTable


@dataclass(frozen=True)
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    emit_success: Callable[..., None]
    build_table: Callable[[Optional[int]], ChainedHashTable]
    app_config: Callable[[], AppConfig]
    logger: logging.Logger
    guard: Callable[[Callable[[argparse.Namespace], int]], Callable[[argparse.Namespace], int]]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> Dict[str, Callable[[argparse.Namespace], int]]:
    """Define CLI subcommands and return their handlers."""

    handlers: Dict[str, Callable[[argparse.Namespace], int]] = {}

    def _register(
        name: str,
        help_text: Optional[str],
        configure: Callable[[argparse.ArgumentParser], Callable[[argparse.Namespace], int]],
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        handler = configure(parser)
        handlers[name] = ctx.guard(handler)

    _register(
        "describe",
        "Insert elements and print every bucket chain.",
        lambda parser: _configure_describe(parser, ctx),
    )
    _register(
        "contains",
        "Check membership of an element after seeding the table.",
        lambda parser: _configure_contains(parser, ctx),
    )
    _register(
        "stats",
        "Print occupancy statistics (chainhash.stats.v1).",
        lambda parser: _configure_stats(parser, ctx),
    )
    _register(
        "probe",
        "Trace the chain walk for a contains/add operation.",
        lambda parser: _configure_probe(parser, ctx),
    )
    _register(
        "validate-stats",
        "Validate NDJSON stats documents against the bundled schema.",
        lambda parser: _configure_validate_stats(parser, ctx),
    )
    return handlers


def _parse_literal(text: str) -> Any:
    try:
        return ast.literal_eval(text)
    except (ValueError, SyntaxError):
        return text


def _read_elements_file(path: str) -> List[Any]:
    file_path = Path(path).expanduser()
    try:
        raw = file_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise IOErrorEnvelope(f"Element file not found: {file_path}") from exc
    return [_parse_literal(line.strip()) for line in raw.splitlines() if line.strip()]


def _add_element_sources(parser: argparse.ArgumentParser, *, positional: bool) -> None:
    if positional:
        parser.add_argument("elements", nargs="*", help="Elements to insert (Python literals or text)")
    else:
        parser.add_argument(
            "--seed",
            action="append",
            default=[],
            metavar="ELEMENT",
            help="Insert an element before running the command (repeatable)",
        )
    parser.add_argument("--input", help="File with one element per line")


def _collect_elements(args: argparse.Namespace) -> List[Any]:
    raw: List[str] = list(getattr(args, "elements", None) or getattr(args, "seed", None) or [])
    elements = [_parse_literal(item) for item in raw]
    if args.input:
        elements.extend(_read_elements_file(args.input))
    return elements


def _seeded_table(args: argparse.Namespace, ctx: CLIContext) -> ChainedHashTable:
    table = ctx.build_table(args.capacity)
    for element in _collect_elements(args):
        table.add(element)
    ctx.logger.debug("Seeded table: %r", table)
    return table


def _configure_describe(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    _add_element_sources(parser, positional=True)

    def handler(args: argparse.Namespace) -> int:
        table = _seeded_table(args, ctx)
        data = {
            "capacity": table.capacity,
            "usage": table.usage,
            "total_nodes": table.total_nodes,
            "buckets": [[repr(item) for item in chain] for chain in table.buckets()],
        }
        ctx.emit_success("describe", text=table.describe(), data=data)
        return int(Exit.OK)

    return handler


def _configure_contains(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("target", help="Element to look up")
    _add_element_sources(parser, positional=False)

    def handler(args: argparse.Namespace) -> int:
        table = _seeded_table(args, ctx)
        target = _parse_literal(args.target)
        found = table.contains(target)
        data = {"target": repr(target), "found": found}
        ctx.emit_success("contains", text=str(found).lower(), data=data)
        return int(Exit.OK)

    return handler


def _configure_stats(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    _add_element_sources(parser, positional=True)
    parser.add_argument("--out", help="Append the stats document to an NDJSON file")

    def handler(args: argparse.Namespace) -> int:
        diag = ctx.app_config().diagnostics
        table = _seeded_table(args, ctx)
        stats = sample_stats(table, chain_length_warn=diag.chain_length_warn)
        document = stats.to_dict()
        document["chain_histogram"] = collect_chain_histogram(table)
        if args.out:
            out_path = Path(args.out).expanduser()
            out_path.parent.mkdir(parents=True, exist_ok=True)
            with out_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(document) + "\n")
        text = "\n".join(f"{key}: {value}" for key, value in document.items())
        payload: Dict[str, Any] = {
            "stats": document,
            "heatmap": collect_bucket_heatmap(
                table, target_cols=diag.heatmap_cols, max_cells=diag.heatmap_max_cells
            ),
        }
        ctx.emit_success("stats", text=text, data=payload)
        return int(Exit.OK)

    return handler


def _configure_probe(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument(
        "--operation",
        choices=["contains", "add"],
        required=True,
        help="Operation to trace",
    )
    parser.add_argument("--element", required=True, help="Element to trace")
    _add_element_sources(parser, positional=False)
    parser.add_argument(
        "--export-json",
        help="Write the trace payload to a JSON file (indent=2)",
    )

    def handler(args: argparse.Namespace) -> int:
        table = _seeded_table(args, ctx)
        element = _parse_literal(args.element)
        if args.operation == "contains":
            trace = trace_contains(table, element)
        else:
            trace = trace_add(table, element)

        export_path: Optional[Path] = None
        if args.export_json:
            export_path = Path(args.export_json).expanduser().resolve()
            export_path.parent.mkdir(parents=True, exist_ok=True)
            export_path.write_text(json.dumps(trace, indent=2), encoding="utf-8")

        text_output = "\n".join(
            format_trace_lines(trace, seeds=args.seed, export_path=export_path)
        )
        payload: Dict[str, Any] = {"trace": cast(Any, trace)}
        if args.seed:
            payload["seed_elements"] = list(args.seed)
        if export_path is not None:
            payload["export_json"] = str(export_path)
        ctx.emit_success("probe", text=text_output, data=payload)
        return int(Exit.OK)

    return handler


def _configure_validate_stats(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("ndjson", type=Path, help="Path to stats NDJSON file")
    parser.add_argument(
        "--schema",
        type=Path,
        default=None,
        help="Schema JSON path (default: bundled chainhash.stats.v1 schema)",
    )

    def handler(args: argparse.Namespace) -> int:
        try:
            lines = args.ndjson.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError as exc:
            raise IOErrorEnvelope(f"Stats file not found: {args.ndjson}") from exc
        schema = load_stats_schema(args.schema)

        invalid: List[Dict[str, Any]] = []
        checked = 0
        for idx, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            checked += 1
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as exc:
                raise BadInputError(f"line {idx} is not valid JSON: {exc}") from exc
            problems = validate_stats_document(obj, schema)
            if problems:
                invalid.append({"line": idx, "problems": problems})
                for problem in problems:
                    ctx.logger.warning("[invalid line %d] %s", idx, problem)

        if invalid:
            text = f"Validation finished: {len(invalid)} invalid line(s)"
        else:
            text = "Validation finished: all lines valid"
        ctx.emit_success(
            "validate-stats",
            text=text,
            data={"checked": checked, "invalid": invalid, "valid": not invalid},
        )
        return 1 if invalid else int(Exit.OK)

    return handler


__all__ = ["CLIContext", "register_subcommands"]
