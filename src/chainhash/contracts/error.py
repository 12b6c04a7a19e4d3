"""Failure contract for chainhash: exit codes, JSON envelopes and the CLI guard.

Every failure the CLI reports is one JSON object on stderr::

    {"error": "<kind>", "detail": "<message>", "hint": "<optional>"}

The ``kind`` and the process exit code are derived from the exception class.
Library code raises the typed errors below. Only ``guard_cli`` turns them
into envelopes.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from functools import wraps
from typing import Any, ClassVar, NoReturn, TypeVar

logger = logging.getLogger("chainhash")
T = TypeVar("T")


class Exit(IntEnum):
    OK = 0
    BAD_INPUT = 2
    INVARIANT = 3
    POLICY = 4
    IO = 5


@dataclass(slots=True)
class ErrorEnvelope:
    error: str
    detail: str
    hint: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> tuple[Exit, ErrorEnvelope]:
        code, kind = classify(exc)
        detail = str(exc) if kind != UNEXPECTED_KIND else f"{type(exc).__name__}: {exc}"
        return code, cls(error=kind, detail=detail, hint=getattr(exc, "hint", None))

    def to_json(self) -> str:
        payload = {"error": self.error, "detail": self.detail}
        if self.hint:
            payload["hint"] = self.hint
        return json.dumps(payload, ensure_ascii=False)


def die(code: Exit, kind: str, detail: str, hint: str | None = None) -> NoReturn:
    """Print a single envelope line to stderr and exit with ``code``."""

    sys.stderr.write(ErrorEnvelope(error=kind, detail=detail, hint=hint).to_json() + "\n")
    try:
        sys.stderr.flush()
    finally:
        sys.exit(int(code))


class EnvelopeError(Exception):
    """Base class for failures that map onto a stable exit code.

    Subclasses pin ``exit_code`` and ``kind``; a subclass of a subclass
    inherits both unless it overrides them.
    """

    exit_code: ClassVar[Exit] = Exit.POLICY
    kind: ClassVar[str] = "Policy"

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class BadInputError(EnvelopeError):
    """Malformed flags, config values or element files."""

    exit_code = Exit.BAD_INPUT
    kind = "BadInput"


class InvalidArgumentError(BadInputError):
    """A table operation received ``None``, an unhashable element or a bad setting."""

    kind = "InvalidArgument"


class InvariantError(EnvelopeError):
    """A table's counters or bucket placement no longer agree with its chains."""

    exit_code = Exit.INVARIANT
    kind = "Invariant"


class PolicyError(EnvelopeError):
    """Unsupported command or request."""


class IOErrorEnvelope(EnvelopeError):  # noqa: N818
    exit_code = Exit.IO
    kind = "IO"


UNEXPECTED_KIND = "Unexpected"


def classify(exc: BaseException) -> tuple[Exit, str]:
    """Return the exit code and envelope kind reported for ``exc``."""

    if isinstance(exc, EnvelopeError):
        return exc.exit_code, exc.kind
    if isinstance(exc, FileNotFoundError):
        return Exit.IO, "FileNotFound"
    if isinstance(exc, OSError):
        return Exit.IO, "IO"
    return Exit.POLICY, UNEXPECTED_KIND


def guard_cli(fn: Callable[..., T]) -> Callable[..., T]:
    """Run ``fn`` and convert any raised exception into an envelope and exit code."""

    @wraps(fn)
    def _wrapped(*args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except Exception as exc:  # noqa: BLE001
            code, envelope = ErrorEnvelope.from_exception(exc)
            if envelope.error == UNEXPECTED_KIND:
                logger.exception("Unexpected failure in %s", fn.__name__)
            die(code, envelope.error, envelope.detail, hint=envelope.hint)

    return _wrapped


__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "InvalidArgumentError",
    "InvariantError",
    "PolicyError",
    "IOErrorEnvelope",
    "UNEXPECTED_KIND",
    "classify",
    "guard_cli",
    "die",
]
