"""Contract helpers for chainhash."""

from .error import (
    BadInputError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    InvalidArgumentError,
    InvariantError,
    IOErrorEnvelope,
    PolicyError,
    classify,
    die,
    guard_cli,
)
from .schema import STATS_SCHEMA, load_stats_schema, validate_stats_document

__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "InvalidArgumentError",
    "InvariantError",
    "PolicyError",
    "IOErrorEnvelope",
    "classify",
    "guard_cli",
    "die",
    "STATS_SCHEMA",
    "load_stats_schema",
    "validate_stats_document",
]
