"""
Allocator hooks consumed by the node model, parser and printer.

Every node, owned string and print buffer is charged to an allocator through
an ``allocate(size)``/``release(block)`` pair. Allocators are plain objects
passed in through configuration rather than installed process-wide, so two
trees built with different allocators never interfere.
"""

import itertools
import logging
from typing import Any
from typing import Protocol
from typing import TypeAlias
from typing import runtime_checkable

from ._errors import AllocationFailure

logger = logging.getLogger(__name__)

# Nominal size charged for one node: eight pointer-sized fields.
NODE_SIZE = 64

Block: TypeAlias = Any


@runtime_checkable
class Allocator(Protocol):
    """The two-function hook pair: ``allocate`` may return ``None`` to refuse."""

    def allocate(self, size: int) -> Block | None: ...

    def release(self, block: Block) -> None: ...


class SystemAllocator:
    """
    Default allocator.

    Hands out opaque integer tokens and leaves the actual memory management to
    the interpreter. Never refuses a request.
    """

    def __init__(self) -> None:
        self._tokens = itertools.count(1)

    def allocate(self, size: int) -> Block | None:
        return next(self._tokens)

    def release(self, block: Block) -> None:
        pass


class TrackingAllocator:
    """
    Accounting allocator for tests and instrumentation.

    Records every live block with its size and refuses requests that would
    push the live total past ``limit`` bytes. Releasing a block that is not
    live raises ``ValueError``, which surfaces double frees caused by
    ownership bugs.
    """

    def __init__(self, limit: int | None = None) -> None:
        if limit is not None and limit < 0:
            raise ValueError("limit must be non-negative")
        self.limit = limit
        self.live: dict[int, int] = {}
        self.allocations = 0
        self.releases = 0
        self.refusals = 0
        self.peak_bytes = 0
        self._live_bytes = 0
        self._ids = itertools.count(1)

    @property
    def live_bytes(self) -> int:
        return self._live_bytes

    @property
    def live_blocks(self) -> int:
        return len(self.live)

    def allocate(self, size: int) -> Block | None:
        if self.limit is not None and self._live_bytes + size > self.limit:
            self.refusals += 1
            return None
        block = next(self._ids)
        self.live[block] = size
        self._live_bytes += size
        self.allocations += 1
        self.peak_bytes = max(self.peak_bytes, self._live_bytes)
        return block

    def release(self, block: Block) -> None:
        if block not in self.live:
            raise ValueError(f"release of unknown or already released block {block!r}")
        self._live_bytes -= self.live.pop(block)
        self.releases += 1


DEFAULT_ALLOCATOR = SystemAllocator()


def allocate(allocator: Allocator, size: int) -> Block:
    """Requests ``size`` bytes, raising ``AllocationFailure`` on refusal."""
    block = allocator.allocate(size)
    if block is None:
        logger.debug("Allocator %r refused %d bytes", allocator, size)
        raise AllocationFailure(size)
    return block


def string_size(text: str) -> int:
    """Bytes charged for an owned string: its UTF-8 length plus terminator."""
    return len(text.encode("utf-8", "surrogatepass")) + 1
