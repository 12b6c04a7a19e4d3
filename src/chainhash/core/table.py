from __future__ import annotations

import logging
from typing import Any, Iterator, List, Optional

from chainhash.contracts.error import InvalidArgumentError, InvariantError


logger = logging.getLogger("chainhash")

DEFAULT_SIZE: int = 4
LOAD_FACTOR_THRESHOLD: float = 0.75
RESIZE_FACTOR: int = 2
LARGE_TABLE_WARN_THRESHOLD: int = 1_000_000

_ARRAY_INFORMATION = "Underlying array usage / length: %d/%d"
_NODES_INFORMATION = "\nTotal number of nodes: %d"
_LINKED_LIST_HEADER = "\n[ %2d ]: "
_EMPTY_LIST_MESSAGE = "null"
_NODE_CONTENT = "%s --> "


class _Node:
    """Single link in a bucket chain."""

    __slots__ = ("content", "next")

    def __init__(self, content: Any, next: Optional["_Node"] = None) -> None:  # noqa: A002
        self.content = content
        self.next = next

    def __str__(self) -> str:
        return str(self.content)

    def __repr__(self) -> str:
        return f"_Node({self.content!r})"


def _require_hash(element: Any) -> int:
    if element is None:
        raise InvalidArgumentError("element must not be None")
    try:
        return hash(element)
    except TypeError as exc:
        raise InvalidArgumentError(
            f"element of type {type(element).__name__} is not hashable",
            hint="store immutable values such as str, int or tuple",
        ) from exc


def bucket_index(element: Any, capacity: int) -> int:
    """Return the slot for ``element`` in an array of ``capacity`` buckets."""

    return abs(_require_hash(element)) % capacity


class ChainedHashTable:
    """Set/multiset backed by an array of singly linked chains.

    New nodes are always prepended to their chain. When the load factor
    (occupied buckets / capacity) measured before an insertion reaches the
    threshold, every node is redistributed into an array ``resize_factor``
    times larger.
    """

    __slots__ = (
        "_underlying",
        "_usage",
        "_total_nodes",
        "_load_factor",
        "_threshold",
        "_resize_factor",
        "_large_warn",
    )

    def __init__(
        self,
        size: int = DEFAULT_SIZE,
        *,
        load_factor_threshold: float = LOAD_FACTOR_THRESHOLD,
        resize_factor: int = RESIZE_FACTOR,
        large_table_warn_threshold: int = LARGE_TABLE_WARN_THRESHOLD,
    ) -> None:
        if not load_factor_threshold > 0.0:
            raise InvalidArgumentError("load_factor_threshold must be > 0")
        if resize_factor < 2:
            raise InvalidArgumentError("resize_factor must be >= 2")
        if size <= 0:
            size = DEFAULT_SIZE
        self._underlying: List[Optional[_Node]] = [None] * size
        self._usage = 0
        self._total_nodes = 0
        self._load_factor = 0.0
        self._threshold = load_factor_threshold
        self._resize_factor = resize_factor
        self._large_warn = large_table_warn_threshold

    @property
    def capacity(self) -> int:
        return len(self._underlying)

    @property
    def usage(self) -> int:
        return self._usage

    @property
    def total_nodes(self) -> int:
        return self._total_nodes

    @property
    def load_factor(self) -> float:
        return self._load_factor

    @property
    def load_factor_threshold(self) -> float:
        return self._threshold

    @property
    def resize_factor(self) -> int:
        return self._resize_factor

    def __len__(self) -> int:
        return self._total_nodes

    def __contains__(self, target: Any) -> bool:
        return self.contains(target)

    def __iter__(self) -> Iterator[Any]:
        for head in self._underlying:
            cursor = head
            while cursor is not None:
                yield cursor.content
                cursor = cursor.next

    def _place(self, array: List[Optional[_Node]], node: _Node, position: int) -> None:
        head = array[position]
        if head is None:
            array[position] = node
            self._usage += 1
        else:
            node.next = head
            array[position] = node

    def add(self, content: Any) -> None:
        """Insert ``content``; equal elements are stored again, never merged."""

        h = _require_hash(content)
        if self._load_factor >= self._threshold:
            self.rehash()
        position = abs(h) % len(self._underlying)
        self._place(self._underlying, _Node(content), position)
        self._total_nodes += 1
        self._load_factor = self._usage / len(self._underlying)

    def contains(self, target: Any) -> bool:
        index = bucket_index(target, len(self._underlying))
        current = self._underlying[index]
        while current is not None:
            if current.content is target or current.content == target:
                return True
            current = current.next
        return False

    def rehash(self) -> None:
        """Move every node into an array ``resize_factor`` times larger."""

        old = self._underlying
        new_array: List[Optional[_Node]] = [None] * (len(old) * self._resize_factor)
        self._usage = 0
        for head in old:
            current = head
            while current is not None:
                next_node = current.next
                current.next = None
                self._place(new_array, current, bucket_index(current.content, len(new_array)))
                current = next_node
        self._underlying = new_array
        self._load_factor = self._usage / len(new_array)
        if self._total_nodes >= self._large_warn:
            logger.warning(
                "Large table rehash (nodes=%d, capacity %d -> %d)",
                self._total_nodes,
                len(old),
                len(new_array),
            )
        logger.debug(
            "Rehashed %d nodes: capacity %d -> %d, usage=%d",
            self._total_nodes,
            len(old),
            len(new_array),
            self._usage,
        )

    def chain(self, index: int) -> List[Any]:
        """Contents of bucket ``index``, head to tail."""

        if not 0 <= index < len(self._underlying):
            raise InvalidArgumentError(
                f"bucket index {index} out of range for capacity {len(self._underlying)}"
            )
        out: List[Any] = []
        cursor = self._underlying[index]
        while cursor is not None:
            out.append(cursor.content)
            cursor = cursor.next
        return out

    def buckets(self) -> List[List[Any]]:
        return [self.chain(i) for i in range(len(self._underlying))]

    def chain_lengths(self) -> List[int]:
        lengths: List[int] = []
        for head in self._underlying:
            count = 0
            cursor = head
            while cursor is not None:
                count += 1
                cursor = cursor.next
            lengths.append(count)
        return lengths

    def check_invariants(self) -> None:
        capacity = len(self._underlying)
        usage = 0
        nodes = 0
        for idx, head in enumerate(self._underlying):
            if head is not None:
                usage += 1
            cursor = head
            while cursor is not None:
                nodes += 1
                expected = bucket_index(cursor.content, capacity)
                if expected != idx:
                    raise InvariantError(
                        f"{cursor.content!r} stored in bucket {idx}, expected {expected}"
                    )
                cursor = cursor.next
        if usage != self._usage:
            raise InvariantError(f"usage counter {self._usage} != occupied buckets {usage}")
        if nodes != self._total_nodes:
            raise InvariantError(f"total_nodes counter {self._total_nodes} != reachable nodes {nodes}")
        if self._load_factor != usage / capacity:
            raise InvariantError(
                f"stale load factor {self._load_factor} (expected {usage / capacity})"
            )

    def describe(self) -> str:
        """Render usage, node count and every chain, one bucket per line."""

        parts = [
            _ARRAY_INFORMATION % (self._usage, len(self._underlying)),
            _NODES_INFORMATION % self._total_nodes,
        ]
        for i, head in enumerate(self._underlying):
            parts.append(_LINKED_LIST_HEADER % i)
            if head is None:
                parts.append(_EMPTY_LIST_MESSAGE)
                continue
            cursor: Optional[_Node] = head
            while cursor is not None:
                parts.append(_NODE_CONTENT % cursor)
                cursor = cursor.next
        return "".join(parts)

    def __str__(self) -> str:
        return self.describe()

    def __repr__(self) -> str:
        return (
            f"ChainedHashTable(capacity={len(self._underlying)}, usage={self._usage}, "
            f"total_nodes={self._total_nodes}, load_factor={self._load_factor:.3f})"
        )


def create(capacity: int = DEFAULT_SIZE) -> ChainedHashTable:
    return ChainedHashTable(capacity)


__all__ = [
    "ChainedHashTable",
    "DEFAULT_SIZE",
    "LOAD_FACTOR_THRESHOLD",
    "RESIZE_FACTOR",
    "LARGE_TABLE_WARN_THRESHOLD",
    "bucket_index",
    "create",
]
