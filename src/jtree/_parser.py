"""
JSON text to node tree.

The parser works on UTF-8 bytes and reports every position as a byte offset.
Open containers are tracked on an explicit stack, so nesting depth is bounded
by ``ParseConfig.nesting_limit`` rather than by the interpreter's recursion
limit.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import IO
from typing import Any

from ._alloc import DEFAULT_ALLOCATOR
from ._alloc import Allocator
from ._alloc import allocate
from ._alloc import string_size
from ._errors import JsonTreeError
from ._errors import NestingLimitExceeded
from ._errors import ParseError
from ._errors import Position
from ._node import Node
from ._node import NodeType
from ._node import create_array
from ._node import create_number
from ._node import create_object
from ._node import create_string
from ._node import link_after
from ._node import release_tree
from ._profile import ProfileContext

logger = logging.getLogger(__name__)

_DEFAULT_NESTING_LIMIT = 1000


def _nesting_limit_from_env() -> int:
    raw = os.environ.get("JTREE_NESTING_LIMIT")
    if raw is None:
        return _DEFAULT_NESTING_LIMIT
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        logger.warning(
            "Ignoring JTREE_NESTING_LIMIT=%r, expected a positive integer", raw
        )
        return _DEFAULT_NESTING_LIMIT
    return value


NESTING_LIMIT = _nesting_limit_from_env()

_BOM = b"\xef\xbb\xbf"
_WHITESPACE = frozenset(b" \t\n\r")
_DIGITS = frozenset(b"0123456789")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_COLON = ord(":")
_COMMA = ord(",")
_MINUS = ord("-")
_DOT = ord(".")
_LBRACE = ord("{")
_RBRACE = ord("}")
_LBRACKET = ord("[")
_RBRACKET = ord("]")

_SIMPLE_ESCAPES = {
    ord('"'): '"',
    ord("\\"): "\\",
    ord("/"): "/",
    ord("b"): "\b",
    ord("f"): "\f",
    ord("n"): "\n",
    ord("r"): "\r",
    ord("t"): "\t",
}

_LITERALS = (
    (b"true", NodeType.TRUE),
    (b"false", NodeType.FALSE),
    (b"null", NodeType.NULL),
)

# Run of string bytes needing no special handling.
_PLAIN_RUN = re.compile(rb'[^"\\\x00-\x1f]*')


@dataclass(frozen=True)
class ParseConfig:
    """
    Configures parsing with immutable settings.

    ``nesting_limit`` bounds how many containers may be open at once;
    ``allocator`` receives every node and string allocation of the result.
    """

    nesting_limit: int = NESTING_LIMIT
    allocator: Allocator = DEFAULT_ALLOCATOR

    def __post_init__(self) -> None:
        if not isinstance(self.nesting_limit, int) or isinstance(
            self.nesting_limit, bool
        ):
            raise TypeError("nesting_limit must be an integer")
        if self.nesting_limit < 1:
            raise ValueError("nesting_limit must be positive")
        if not isinstance(self.allocator, Allocator):
            raise TypeError("allocator must provide allocate() and release()")


@dataclass(frozen=True)
class ParseResult:
    """A parsed root and the offset just past the text that produced it."""

    node: Node
    end: Position


class JsonScanner:
    """
    Reads JSON tokens out of a byte buffer bounded by ``end``.

    Each ``scan_*`` method starts at ``pos`` and leaves ``pos`` just after the
    token it consumed.
    """

    def __init__(self, data: bytes, end: int, pos: Position = 0) -> None:
        self.data = data
        self.end = end
        self.pos = pos

    def peek(self) -> int:
        """Returns the current byte, or -1 at the end of input."""
        return self.data[self.pos] if self.pos < self.end else -1

    def skip_whitespace(self) -> None:
        data, end, pos = self.data, self.end, self.pos
        while pos < end and data[pos] in _WHITESPACE:
            pos += 1
        self.pos = pos

    def error(self, msg: str, pos: Position) -> ParseError:
        return ParseError(msg, self.data, pos)

    def _decode(self, start: Position, stop: Position) -> str:
        try:
            return self.data[start:stop].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self.error("Invalid UTF-8 in string", start + exc.start) from exc

    def _hex4(self, at: Position) -> int | None:
        if at + 4 > self.end:
            return None
        digits = self.data[at : at + 4]
        if not all(byte in _HEX_DIGITS for byte in digits):
            return None
        return int(digits, 16)

    def _scan_escape(self, pos: Position, start: Position) -> tuple[str, Position]:
        """Decodes the escape at ``pos`` (a backslash)."""
        if pos + 1 >= self.end:
            raise self.error("Unterminated string starting at", start)
        code = self.data[pos + 1]
        simple = _SIMPLE_ESCAPES.get(code)
        if simple is not None:
            return simple, pos + 2
        if code != ord("u"):
            raise self.error("Invalid \\escape", pos)

        unit = self._hex4(pos + 2)
        if unit is None:
            raise self.error("Invalid \\uXXXX escape", pos)
        if 0xDC00 <= unit <= 0xDFFF:
            raise self.error("Invalid surrogate pair", pos)
        if unit < 0xD800 or unit > 0xDBFF:
            return chr(unit), pos + 6

        # high surrogate, a low one must follow
        if self.data[pos + 6 : min(pos + 8, self.end)] != b"\\u":
            raise self.error("Invalid surrogate pair", pos)
        low = self._hex4(pos + 8)
        if low is None or not 0xDC00 <= low <= 0xDFFF:
            raise self.error("Invalid surrogate pair", pos)
        code_point = 0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00)
        return chr(code_point), pos + 12

    def scan_string(self) -> str:
        """Scans a string literal and returns its decoded text."""
        start = self.pos
        data, end = self.data, self.end
        pos = start + 1
        chunks: list[str] = []

        while True:
            run_end = _PLAIN_RUN.match(data, pos, end).end()  # type: ignore[union-attr]
            if run_end > pos:
                chunks.append(self._decode(pos, run_end))
            pos = run_end
            if pos >= end:
                raise self.error("Unterminated string starting at", start)
            byte = data[pos]
            if byte == _QUOTE:
                self.pos = pos + 1
                return "".join(chunks)
            if byte == _BACKSLASH:
                text, pos = self._scan_escape(pos, start)
                chunks.append(text)
            else:
                raise self.error("Invalid control character at", pos)

    def _scan_digits(self) -> None:
        data, end, pos = self.data, self.end, self.pos
        while pos < end and data[pos] in _DIGITS:
            pos += 1
        self.pos = pos

    def _scan_integer_part(self, start: Position) -> None:
        if self.peek() not in _DIGITS:
            raise self.error("Invalid number", start)
        if self.peek() == ord("0"):
            self.pos += 1
            if self.peek() in _DIGITS:
                raise self.error("Leading zeros not allowed", start)
        else:
            self._scan_digits()

    def _scan_decimal_part(self, start: Position) -> None:
        if self.peek() == _DOT:
            self.pos += 1
            if self.peek() not in _DIGITS:
                raise self.error("Invalid decimal number", start)
            self._scan_digits()

    def _scan_exponent_part(self, start: Position) -> None:
        if self.peek() in (ord("e"), ord("E")):
            self.pos += 1
            if self.peek() in (ord("+"), ord("-")):
                self.pos += 1
            if self.peek() not in _DIGITS:
                raise self.error("Invalid exponent", start)
            self._scan_digits()

    def scan_number(self) -> float:
        """Scans a number with strict JSON grammar and returns it as a double."""
        start = self.pos
        if self.peek() == _MINUS:
            self.pos += 1
        self._scan_integer_part(start)
        self._scan_decimal_part(start)
        self._scan_exponent_part(start)
        return float(self.data[start : self.pos])

    def scan_literal(self) -> NodeType:
        """Scans ``true``, ``false`` or ``null``."""
        for literal, node_type in _LITERALS:
            if self.data.startswith(literal, self.pos, self.end):
                self.pos += len(literal)
                return node_type
        raise self.error("Expecting value", self.pos)


@dataclass(slots=True)
class _Frame:
    container: Node
    tail: Node | None = None


class JsonParser:
    """
    Builds node trees from JSON text.

    A parser can be reused; ``error_offset`` holds the byte offset of the most
    recent failure and is reset to ``None`` by every successful parse.
    """

    def __init__(self, config: ParseConfig | None = None) -> None:
        self.config = ParseConfig() if config is None else config
        self.error_offset: Position | None = None

    def parse(
        self,
        value: str | bytes | bytearray | memoryview,
        *,
        length: int | None = None,
        require_terminated: bool = False,
    ) -> ParseResult:
        """
        Parses one JSON value from the start of ``value``.

        Only the first ``length`` bytes are considered when a length is given.
        Bytes after the value are ignored unless ``require_terminated`` is
        set, in which case only whitespace may follow it.
        """
        data = _as_bytes(value)
        end = len(data) if length is None else _check_length(length, len(data))
        scanner = JsonScanner(data, end)
        if data.startswith(_BOM, 0, end):
            scanner.pos = len(_BOM)

        with ProfileContext("parse", end):
            try:
                root = self._parse_value(scanner)
                try:
                    if require_terminated:
                        scanner.skip_whitespace()
                        if scanner.pos < end:
                            raise scanner.error("Extra data", scanner.pos)
                except BaseException:
                    release_tree(root)
                    raise
            except JsonTreeError as exc:
                self.error_offset = getattr(exc, "pos", scanner.pos)
                logger.debug("Parse failed: %s", exc)
                raise

        self.error_offset = None
        return ParseResult(root, scanner.pos)

    def _scan_value(self, scanner: JsonScanner, depth: int) -> Node:
        """Scans one value; an opened container comes back empty."""
        allocator = self.config.allocator
        scanner.skip_whitespace()
        byte = scanner.peek()

        if byte == _LBRACE or byte == _LBRACKET:
            if depth >= self.config.nesting_limit:
                raise NestingLimitExceeded(
                    "Nesting limit exceeded", scanner.data, scanner.pos
                )
            scanner.pos += 1
            if byte == _LBRACE:
                return create_object(allocator=allocator)
            return create_array(allocator=allocator)
        if byte == _QUOTE:
            return create_string(scanner.scan_string(), allocator=allocator)
        if byte == _MINUS or byte in _DIGITS:
            return create_number(scanner.scan_number(), allocator=allocator)
        return Node(scanner.scan_literal(), allocator)

    def _scan_key(self, scanner: JsonScanner) -> str:
        scanner.skip_whitespace()
        if scanner.peek() != _QUOTE:
            raise scanner.error(
                "Expecting property name enclosed in double quotes", scanner.pos
            )
        key = scanner.scan_string()
        scanner.skip_whitespace()
        if scanner.peek() != _COLON:
            raise scanner.error("Expecting ':' delimiter", scanner.pos)
        scanner.pos += 1
        return key

    def _parse_value(self, scanner: JsonScanner) -> Node:
        allocator = self.config.allocator
        stack: list[_Frame] = []
        root: Node | None = None
        key: str | None = None

        try:
            while True:
                node = self._scan_value(scanner, len(stack))
                if stack:
                    frame = stack[-1]
                    frame.tail = link_after(frame.container, frame.tail, node)
                    if key is not None:
                        block = allocate(allocator, string_size(key))
                        node._set_key(key, block)
                        key = None
                else:
                    root = node

                if node.type is NodeType.OBJECT or node.type is NodeType.ARRAY:
                    closer = _RBRACE if node.type is NodeType.OBJECT else _RBRACKET
                    scanner.skip_whitespace()
                    if scanner.peek() == closer:
                        scanner.pos += 1
                    else:
                        stack.append(_Frame(node))
                        if node.type is NodeType.OBJECT:
                            key = self._scan_key(scanner)
                        continue

                # the value is complete; close containers until a comma shows up
                while stack:
                    container = stack[-1].container
                    is_object = container.type is NodeType.OBJECT
                    closer = _RBRACE if is_object else _RBRACKET
                    scanner.skip_whitespace()
                    byte = scanner.peek()
                    if byte == _COMMA:
                        comma = scanner.pos
                        scanner.pos += 1
                        scanner.skip_whitespace()
                        if scanner.peek() == closer:
                            kind = "object" if is_object else "array"
                            raise scanner.error(
                                f"Illegal trailing comma before end of {kind}",
                                comma,
                            )
                        if is_object:
                            key = self._scan_key(scanner)
                        break
                    if byte == closer:
                        scanner.pos += 1
                        stack.pop()
                        continue
                    raise scanner.error("Expecting ',' delimiter", scanner.pos)
                else:
                    return root  # type: ignore[return-value]
        except BaseException:
            if root is not None:
                release_tree(root)
            raise


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8", "surrogatepass")
    if isinstance(value, bytes):
        return value
    if isinstance(value, bytearray | memoryview):
        return bytes(value)
    raise TypeError(
        f"the JSON document must be str or bytes-like, not {type(value).__name__}"
    )


def _check_length(length: Any, available: int) -> int:
    if not isinstance(length, int) or isinstance(length, bool):
        raise TypeError("length must be an integer")
    if length < 0 or length > available:
        raise ValueError(f"length {length} outside buffer of {available} bytes")
    return length


def parse(value: str | bytes | bytearray | memoryview, **kwargs: Any) -> Node:
    """
    Parses a complete JSON document into a node tree.

    Only whitespace may follow the value. Keyword arguments build a
    ``ParseConfig``.
    """
    parser = JsonParser(ParseConfig(**kwargs))
    return parser.parse(value, require_terminated=True).node


def parse_with_length(
    value: str | bytes | bytearray | memoryview, length: int, **kwargs: Any
) -> Node:
    """Parses the value at the start of the first ``length`` bytes of ``value``."""
    parser = JsonParser(ParseConfig(**kwargs))
    return parser.parse(value, length=length).node


def parse_with_opts(
    value: str | bytes | bytearray | memoryview,
    *,
    length: int | None = None,
    require_terminated: bool = False,
    **kwargs: Any,
) -> ParseResult:
    """Parses like ``JsonParser.parse`` and also returns the end offset."""
    parser = JsonParser(ParseConfig(**kwargs))
    return parser.parse(
        value, length=length, require_terminated=require_terminated
    )


def _minify_in_place(buf: bytearray) -> None:
    read = write = 0
    end = len(buf)
    while read < end:
        byte = buf[read]
        read += 1
        if byte in _WHITESPACE:
            continue
        buf[write] = byte
        write += 1
        if byte != _QUOTE:
            continue
        # copy the string literal through its closing quote
        while read < end:
            byte = buf[read]
            read += 1
            buf[write] = byte
            write += 1
            if byte == _BACKSLASH and read < end:
                buf[write] = buf[read]
                read += 1
                write += 1
            elif byte == _QUOTE:
                break
    del buf[write:]


def minify(data: str | bytes | bytearray) -> str | bytes | bytearray:
    """
    Strips whitespace outside string literals without building a tree.

    A ``bytearray`` is compacted in place and returned; ``str`` and ``bytes``
    come back as a new object of the same type.
    """
    if not isinstance(data, str | bytes | bytearray):
        raise TypeError(f"cannot minify {type(data).__name__}")

    with ProfileContext("minify", len(data)):
        if isinstance(data, bytearray):
            _minify_in_place(data)
            return data
        if isinstance(data, str):
            buf = bytearray(data.encode("utf-8", "surrogatepass"))
            _minify_in_place(buf)
            return buf.decode("utf-8", "surrogatepass")
        buf = bytearray(data)
        _minify_in_place(buf)
        return bytes(buf)


def load(fp: IO[str] | IO[bytes], **kwargs: Any) -> Node:
    """Parses a complete JSON document read from a file-like object."""
    if not hasattr(fp, "read"):
        raise TypeError("fp must have a read() method")

    return parse(fp.read(), **kwargs)
