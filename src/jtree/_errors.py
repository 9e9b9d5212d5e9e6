"""Error hierarchy shared by the parser, printer and tree editor."""

from typing import TypeAlias

Position: TypeAlias = int


class JsonTreeError(Exception):
    """Base class for every error raised by jtree."""


class ParseError(JsonTreeError, ValueError):
    """
    Handles JSON parsing failures with precise position and context information.

    ``pos`` is a byte offset into the UTF-8 encoded document. Line and column
    numbers are derived from it; the column counts characters when the line
    decodes cleanly and bytes otherwise.
    """

    def __init__(self, msg: str, doc: bytes = b"", pos: Position = 0) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")

        self.msg = msg
        self.doc = doc
        self.pos = pos

        if doc:
            line_start = doc.rfind(b"\n", 0, pos) + 1
            self.lineno = doc.count(b"\n", 0, pos) + 1
            try:
                self.colno = len(doc[line_start:pos].decode("utf-8")) + 1
            except UnicodeDecodeError:
                self.colno = pos - line_start + 1
        else:
            self.lineno = 1
            self.colno = pos + 1

        super().__init__(
            f"{msg} at line {self.lineno}, column {self.colno} (byte {pos})"
        )


class NestingLimitExceeded(ParseError):
    """Raised when input nests containers deeper than the configured limit."""


class TypeMismatch(JsonTreeError, TypeError):
    """An Array-only or Object-only operation was invoked on the wrong variant."""


class StructureError(JsonTreeError, ValueError):
    """A requested relinking would break the tree's ownership rules."""


class AllocationFailure(JsonTreeError, MemoryError):
    """The allocator hook refused a request."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"allocator refused a request for {size} bytes")


class BufferTooSmall(JsonTreeError, ValueError):
    """Serialized output does not fit a fixed-size buffer."""

    def __init__(self, mode: str, capacity: int, needed: int) -> None:
        self.mode = mode
        self.capacity = capacity
        self.needed = needed
        super().__init__(
            f"{mode} buffer of {capacity} bytes cannot hold at least "
            f"{needed} bytes of output"
        )


class CircularLimitExceeded(JsonTreeError, RecursionError):
    """Duplication descended past the circular-reference guard depth."""
