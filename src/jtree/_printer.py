"""
Node tree to JSON text.

Output is produced into a ``PrintBuffer`` in one of three ways: a buffer that
starts at ``PrintConfig.buffer_size`` and doubles as needed, the same with a
caller-chosen starting capacity, or a caller-owned buffer that never grows.
All three produce the same text for the same tree.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import IO
from typing import Any

from ._alloc import DEFAULT_ALLOCATOR
from ._alloc import Allocator
from ._alloc import Block
from ._alloc import allocate
from ._errors import BufferTooSmall
from ._errors import StructureError
from ._node import Node
from ._node import NodeType
from ._profile import ProfileContext

logger = logging.getLogger(__name__)

_ESCAPE = re.compile(r'["\\\x00-\x1f\ud800-\udfff]')
_ESCAPE_MAP = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

# Integral doubles below this magnitude are printed without a fraction.
_INTEGRAL_LIMIT = 1e16

_LITERALS = {
    NodeType.NULL: "null",
    NodeType.FALSE: "false",
    NodeType.TRUE: "true",
}


@dataclass(frozen=True)
class PrintConfig:
    """
    Configures printing with immutable settings.

    ``indent`` is the per-level indentation of formatted output, either a
    string or a number of spaces. ``buffer_size`` seeds the auto-growing
    buffer, whose storage is charged to ``allocator``.
    """

    indent: str | int = "\t"
    buffer_size: int = 256
    allocator: Allocator = DEFAULT_ALLOCATOR

    def __post_init__(self) -> None:
        if isinstance(self.indent, bool) or not isinstance(self.indent, str | int):
            raise TypeError("indent must be a string or an integer")
        if isinstance(self.indent, int) and self.indent < 0:
            raise ValueError("indent must be non-negative")
        if isinstance(self.indent, str) and self.indent.strip(" \t\n\r"):
            raise ValueError("indent may only contain JSON whitespace")
        if not isinstance(self.buffer_size, int) or isinstance(self.buffer_size, bool):
            raise TypeError("buffer_size must be an integer")
        if self.buffer_size < 1:
            raise ValueError("buffer_size must be positive")
        if not isinstance(self.allocator, Allocator):
            raise TypeError("allocator must provide allocate() and release()")

    @property
    def indent_unit(self) -> str:
        if isinstance(self.indent, int):
            return " " * self.indent
        return self.indent


class PrintBuffer:
    """
    Output buffer with ensure-before-write semantics.

    Every write first makes sure the text plus a terminating NUL fits. A
    growing buffer doubles its capacity through the allocator; a fixed one
    raises ``BufferTooSmall`` instead.
    """

    def __init__(
        self,
        capacity: int,
        allocator: Allocator = DEFAULT_ALLOCATOR,
        *,
        storage: memoryview | None = None,
        mode: str = "auto",
    ) -> None:
        self.mode = mode
        self.allocator = allocator
        self.offset = 0
        self._block: Block | None = None
        if storage is not None:
            self.fixed = True
            self.view = storage
            self.capacity = len(storage)
        else:
            self.fixed = False
            self._block = allocate(allocator, capacity)
            self.view = memoryview(bytearray(capacity))
            self.capacity = capacity

    def ensure(self, needed: int) -> None:
        required = self.offset + needed + 1
        if required <= self.capacity:
            return
        if self.fixed:
            raise BufferTooSmall(self.mode, self.capacity, required)

        new_capacity = self.capacity * 2
        while new_capacity < required:
            new_capacity *= 2
        block = allocate(self.allocator, new_capacity)
        self.allocator.release(self._block)
        self._block = block

        grown = bytearray(new_capacity)
        grown[: self.offset] = self.view[: self.offset]
        self.view = memoryview(grown)
        logger.debug(
            "Grew %s print buffer from %d to %d bytes",
            self.mode,
            self.capacity,
            new_capacity,
        )
        self.capacity = new_capacity

    def write(self, text: str) -> None:
        data = text.encode("utf-8", "surrogatepass")
        self.ensure(len(data))
        self.view[self.offset : self.offset + len(data)] = data
        self.offset += len(data)

    def terminate(self) -> None:
        self.ensure(0)
        self.view[self.offset] = 0

    def getvalue(self) -> str:
        return bytes(self.view[: self.offset]).decode("utf-8", "surrogatepass")

    def close(self) -> None:
        """Releases growable storage back to the allocator."""
        if self._block is not None:
            self.allocator.release(self._block)
            self._block = None


def _escape(match: re.Match[str]) -> str:
    char = match.group(0)
    return _ESCAPE_MAP.get(char) or f"\\u{ord(char):04x}"


def quote_string(text: str | None) -> str:
    """Renders ``text`` as a JSON string literal."""
    if text is None:
        return '""'
    return '"' + _ESCAPE.sub(_escape, text) + '"'


def format_number(value: float) -> str:
    """
    Renders a double as JSON.

    Integral values print without a fraction, everything else as the shortest
    text that reads back as the same double. NaN and the infinities have no
    JSON form and print as ``0``.
    """
    if not math.isfinite(value):
        logger.debug("Printing non-finite number %r as 0", value)
        return "0"
    if value.is_integer() and abs(value) < _INTEGRAL_LIMIT:
        if value == 0 and math.copysign(1.0, value) < 0:
            return "-0"
        return str(int(value))
    return repr(value)


def _scalar_text(node: Node) -> str:
    if node.type is NodeType.NUMBER:
        return format_number(node.number)
    if node.type is NodeType.STRING:
        return quote_string(node.text)
    if node.type is NodeType.RAW:
        return node.text or ""
    return _LITERALS[node.type]


@dataclass(slots=True)
class _Open:
    member: Node
    closer: str
    in_object: bool


def _render(root: Node, out: PrintBuffer, formatted: bool, indent: str) -> None:
    separator = ": " if formatted else ":"
    stack: list[_Open] = []
    node = root

    while True:
        if node.type is NodeType.OBJECT or node.type is NodeType.ARRAY:
            in_object = node.type is NodeType.OBJECT
            opener, closer = ("{", "}") if in_object else ("[", "]")
            if node.child is None:
                out.write(opener + closer)
            else:
                out.write(opener + "\n" if formatted else opener)
                stack.append(_Open(node.child, closer, in_object))
                node = node.child
                if formatted:
                    out.write(indent * len(stack))
                if in_object:
                    out.write(quote_string(node.key) + separator)
                continue
        else:
            out.write(_scalar_text(node))

        # move on to the next sibling, closing finished containers
        while stack:
            frame = stack[-1]
            following = frame.member.next
            if following is not None:
                frame.member = following
                node = following
                out.write(",\n" if formatted else ",")
                if formatted:
                    out.write(indent * len(stack))
                if frame.in_object:
                    out.write(quote_string(node.key) + separator)
                break
            stack.pop()
            if formatted:
                out.write("\n" + indent * len(stack))
            out.write(frame.closer)
        else:
            return


def _require_printable(node: Any) -> Node:
    if not isinstance(node, Node):
        raise TypeError(f"node must be a Node, not {type(node).__name__}")
    if node.is_deleted:
        raise StructureError("cannot print a deleted node")
    return node


def _print_growing(
    node: Node, capacity: int, formatted: bool, config: PrintConfig, mode: str
) -> str:
    _require_printable(node)
    out = PrintBuffer(capacity, config.allocator, mode=mode)
    try:
        with ProfileContext("print") as profile:
            _render(node, out, formatted, config.indent_unit)
            out.terminate()
            profile.nbytes = out.offset
        return out.getvalue()
    finally:
        out.close()


def print_node(node: Node, formatted: bool = True, **kwargs: Any) -> str:
    """
    Serializes ``node`` to JSON text.

    Formatted output puts every member on its own line; unformatted output
    carries no whitespace at all. Keyword arguments build a ``PrintConfig``.
    """
    config = PrintConfig(**kwargs)
    return _print_growing(node, config.buffer_size, formatted, config, "auto")


def print_unformatted(node: Node, **kwargs: Any) -> str:
    return print_node(node, False, **kwargs)


def print_buffered(
    node: Node, prebuffer: int, formatted: bool = True, **kwargs: Any
) -> str:
    """Serializes ``node`` starting from a buffer of ``prebuffer`` bytes."""
    if not isinstance(prebuffer, int) or isinstance(prebuffer, bool):
        raise TypeError("prebuffer must be an integer")
    if prebuffer < 1:
        raise ValueError("prebuffer must be positive")
    config = PrintConfig(**kwargs)
    return _print_growing(node, prebuffer, formatted, config, "buffered")


def print_preallocated(
    node: Node, buffer: bytearray | memoryview, formatted: bool = True, **kwargs: Any
) -> int:
    """
    Serializes ``node`` as UTF-8 into the caller's ``buffer``.

    The text is followed by a NUL byte, which must fit as well. Returns the
    length of the text in bytes, excluding the terminator. Raises
    ``BufferTooSmall`` when the output does not fit.
    """
    _require_printable(node)
    config = PrintConfig(**kwargs)
    view = memoryview(buffer)
    if view.readonly:
        raise TypeError("buffer must be writable")
    view = view.cast("B")
    out = PrintBuffer(len(view), storage=view, mode="preallocated")
    with ProfileContext("print") as profile:
        _render(node, out, formatted, config.indent_unit)
        out.terminate()
        profile.nbytes = out.offset
    return out.offset


def dump(node: Node, fp: IO[str], formatted: bool = True, **kwargs: Any) -> None:
    """Serializes ``node`` and writes the text to a file-like object."""
    if not hasattr(fp, "write"):
        raise TypeError("fp must have a write() method")

    fp.write(print_node(node, formatted, **kwargs))
