"""
Tree node model: the tagged JSON value, its sibling links and its lifecycle.

A container's members form a doubly linked, non-circular sibling list hanging
off ``Node.child``. Nodes do not hold a strong reference to their container;
a weak reference is kept only so that attaching a node elsewhere can first
unlink it from its previous container.
"""

import math
import weakref
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Iterator
from enum import IntEnum

from ._alloc import DEFAULT_ALLOCATOR
from ._alloc import NODE_SIZE
from ._alloc import Allocator
from ._alloc import Block
from ._alloc import allocate
from ._alloc import string_size
from ._errors import StructureError
from ._errors import TypeMismatch

INT_MAX = 2**31 - 1
INT_MIN = -(2**31)

# Bit flags above the type tags, for callers that test masks.
IS_REFERENCE = 256
STRING_IS_CONST = 512


class NodeType(IntEnum):
    """Variant tag of a node; each tag is a distinct bit so tags can be masked."""

    FALSE = 1
    TRUE = 2
    NULL = 4
    NUMBER = 8
    STRING = 16
    ARRAY = 32
    OBJECT = 64
    RAW = 128


CONTAINER_TYPES = frozenset({NodeType.ARRAY, NodeType.OBJECT})
TEXT_TYPES = frozenset({NodeType.STRING, NodeType.RAW})


def _no_container() -> None:
    return None


class Node:
    """
    One JSON value.

    ``text`` holds the payload of STRING and RAW nodes, ``number`` the payload
    of NUMBER nodes, and ``child`` the first member of ARRAY and OBJECT nodes.
    ``key`` is set only while the node is a member of an object.

    A node with ``is_reference`` set aliases the payload and members of
    another node; deleting it releases only the node itself.
    """

    __slots__ = (
        "__weakref__",
        "type",
        "next",
        "prev",
        "child",
        "key",
        "text",
        "number",
        "is_reference",
        "key_is_const",
        "_allocator",
        "_block",
        "_text_block",
        "_key_block",
        "_container",
    )

    def __init__(self, node_type: NodeType, allocator: Allocator) -> None:
        self._block: Block | None = allocate(allocator, NODE_SIZE)
        self._allocator = allocator
        self.type = node_type
        self.next: Node | None = None
        self.prev: Node | None = None
        self.child: Node | None = None
        self.key: str | None = None
        self.text: str | None = None
        self.number = 0.0
        self.is_reference = False
        self.key_is_const = False
        self._text_block: Block | None = None
        self._key_block: Block | None = None
        self._container = _no_container

    @property
    def int_value(self) -> int:
        """Integer view of ``number``, saturated to the 32-bit signed range."""
        value = self.number
        if math.isnan(value):
            return 0
        if value >= INT_MAX:
            return INT_MAX
        if value <= INT_MIN:
            return INT_MIN
        return int(value)

    @property
    def container(self) -> "Node | None":
        """The container this node is currently linked into, if any."""
        return self._container()

    @property
    def allocator(self) -> Allocator:
        return self._allocator

    @property
    def is_deleted(self) -> bool:
        return self._block is None

    def __iter__(self) -> Iterator["Node"]:
        child = self.child
        while child is not None:
            following = child.next
            yield child
            child = following

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        key = f" {self.key!r}:" if self.key is not None else ""
        ref = " ref" if self.is_reference else ""
        if self.type in CONTAINER_TYPES:
            count = sum(1 for _ in self)
            detail = f" ({count} members)"
        elif self.type is NodeType.NUMBER:
            detail = f" {self.number!r}"
        elif self.type in TEXT_TYPES:
            detail = f" {self.text!r}"
        else:
            detail = ""
        return f"<Node{ref}{key} {self.type.name}{detail}>"

    def _own_text(self, text: str) -> None:
        block = allocate(self._allocator, string_size(text))
        if self._text_block is not None:
            self._allocator.release(self._text_block)
        self._text_block = block
        self.text = text

    def _set_key(self, key: str, block: Block | None) -> None:
        """Installs a key whose storage (if owned) was already allocated."""
        self._drop_key()
        self.key = key
        self._key_block = block
        self.key_is_const = block is None

    def _drop_key(self) -> None:
        if self._key_block is not None:
            self._allocator.release(self._key_block)
        self._key_block = None
        self.key = None
        self.key_is_const = False

    def _release(self) -> None:
        if self._text_block is not None:
            self._allocator.release(self._text_block)
            self._text_block = None
        self._drop_key()
        if self._block is not None:
            self._allocator.release(self._block)
            self._block = None
        self.next = self.prev = self.child = None
        self._container = _no_container


def _resolve(allocator: Allocator | None) -> Allocator:
    return DEFAULT_ALLOCATOR if allocator is None else allocator


def link_after(container: Node, tail: Node | None, item: Node) -> Node:
    """Links a free ``item`` after ``tail`` (or as the first member)."""
    if tail is None:
        container.child = item
    else:
        tail.next = item
        item.prev = tail
    item._container = weakref.ref(container)
    return item


def link_before(container: Node, before: Node, item: Node) -> Node:
    """Links a free ``item`` in front of the member ``before``."""
    item.next = before
    item.prev = before.prev
    if before.prev is None:
        container.child = item
    else:
        before.prev.next = item
    before.prev = item
    item._container = weakref.ref(container)
    return item


def unlink(item: Node) -> Node:
    """Removes ``item`` from its container's sibling list, if it has one."""
    container = item.container
    if container is None:
        # the container was garbage collected; drop the stale sibling links
        if item.prev is not None:
            item.prev.next = item.next
        if item.next is not None:
            item.next.prev = item.prev
        item.next = item.prev = None
        return item
    if item.prev is None:
        container.child = item.next
    else:
        item.prev.next = item.next
    if item.next is not None:
        item.next.prev = item.prev
    item.next = item.prev = None
    item._container = _no_container
    return item


def splice(container: Node, old: Node, new: Node) -> Node:
    """Puts the free node ``new`` in ``old``'s place and frees ``old``'s slot."""
    new.prev = old.prev
    new.next = old.next
    if old.prev is None:
        container.child = new
    else:
        old.prev.next = new
    if old.next is not None:
        old.next.prev = new
    new._container = weakref.ref(container)
    old.next = old.prev = None
    old._container = _no_container
    return old


def release_tree(root: Node) -> None:
    """Releases ``root`` and every node it owns, without recursion."""
    pending = [root]
    while pending:
        node = pending.pop()
        if not node.is_reference:
            pending.extend(node)
        node._release()


def delete(node: Node) -> None:
    """
    Destroys a detached node and everything it owns.

    Members of a reference node belong to the aliased tree and are left alone.
    """
    if node.is_deleted:
        raise StructureError("node has already been deleted")
    if node.container is not None:
        raise StructureError("detach the node from its container before deleting it")
    release_tree(node)


def create_null(*, allocator: Allocator | None = None) -> Node:
    """Creates a NULL node."""
    return Node(NodeType.NULL, _resolve(allocator))


def create_true(*, allocator: Allocator | None = None) -> Node:
    """Creates a TRUE node."""
    return Node(NodeType.TRUE, _resolve(allocator))


def create_false(*, allocator: Allocator | None = None) -> Node:
    """Creates a FALSE node."""
    return Node(NodeType.FALSE, _resolve(allocator))


def create_bool(value: bool, *, allocator: Allocator | None = None) -> Node:
    """Creates TRUE or FALSE according to ``value``."""
    node_type = NodeType.TRUE if value else NodeType.FALSE
    return Node(node_type, _resolve(allocator))


def create_number(value: float, *, allocator: Allocator | None = None) -> Node:
    """Creates a NUMBER node holding ``value`` as a double."""
    if not isinstance(value, int | float):
        raise TypeError(f"number must be int or float, not {type(value).__name__}")
    node = Node(NodeType.NUMBER, _resolve(allocator))
    node.number = float(value)
    return node


def _create_text(
    node_type: NodeType, text: str, allocator: Allocator | None
) -> Node:
    if not isinstance(text, str):
        raise TypeError(f"text must be str, not {type(text).__name__}")
    node = Node(node_type, _resolve(allocator))
    try:
        node._own_text(text)
    except BaseException:
        node._release()
        raise
    return node


def create_string(text: str, *, allocator: Allocator | None = None) -> Node:
    """Creates a STRING node owning a copy of ``text``."""
    return _create_text(NodeType.STRING, text, allocator)


def create_raw(text: str, *, allocator: Allocator | None = None) -> Node:
    """Creates a node whose text is emitted verbatim by the printer."""
    return _create_text(NodeType.RAW, text, allocator)


def create_array(*, allocator: Allocator | None = None) -> Node:
    """Creates an empty ARRAY node."""
    return Node(NodeType.ARRAY, _resolve(allocator))


def create_object(*, allocator: Allocator | None = None) -> Node:
    """Creates an empty OBJECT node."""
    return Node(NodeType.OBJECT, _resolve(allocator))


def create_reference(item: Node, *, allocator: Allocator | None = None) -> Node:
    """
    Creates a fresh reference shell aliasing ``item``'s payload and members.

    The shell is never linked anywhere on creation and carries no key.
    """
    if not isinstance(item, Node):
        raise TypeError(f"item must be a Node, not {type(item).__name__}")
    if item.is_deleted:
        raise StructureError("cannot reference a deleted node")
    shell = Node(item.type, item.allocator if allocator is None else allocator)
    shell.number = item.number
    shell.text = item.text
    shell.child = item.child
    shell.is_reference = True
    return shell


def create_string_reference(
    text: str, *, allocator: Allocator | None = None
) -> Node:
    """Creates a STRING node that borrows ``text`` instead of owning a copy."""
    if not isinstance(text, str):
        raise TypeError(f"text must be str, not {type(text).__name__}")
    node = Node(NodeType.STRING, _resolve(allocator))
    node.text = text
    node.is_reference = True
    return node


def create_object_reference(
    target: Node, *, allocator: Allocator | None = None
) -> Node:
    """Creates a reference shell over an OBJECT node."""
    if not is_object(target):
        raise TypeMismatch("object reference target must be an Object node")
    return create_reference(target, allocator=allocator)


def create_array_reference(
    target: Node, *, allocator: Allocator | None = None
) -> Node:
    """Creates a reference shell over an ARRAY node."""
    if not is_array(target):
        raise TypeMismatch("array reference target must be an Array node")
    return create_reference(target, allocator=allocator)


def _create_filled_array(
    values: Iterable[object],
    factory: Callable[..., Node],
    allocator: Allocator | None,
) -> Node:
    array = create_array(allocator=allocator)
    tail = None
    try:
        for value in values:
            item = factory(value, allocator=array.allocator)
            tail = link_after(array, tail, item)
    except BaseException:
        release_tree(array)
        raise
    return array


def create_int_array(
    values: Iterable[int], *, allocator: Allocator | None = None
) -> Node:
    """Creates an ARRAY of NUMBER nodes from integers, in order."""
    return _create_filled_array(values, create_number, allocator)


def create_double_array(
    values: Iterable[float], *, allocator: Allocator | None = None
) -> Node:
    """Creates an ARRAY of NUMBER nodes from floats, in order."""
    return _create_filled_array(values, create_number, allocator)


def create_string_array(
    values: Iterable[str], *, allocator: Allocator | None = None
) -> Node:
    """Creates an ARRAY of owned STRING nodes, in order."""
    return _create_filled_array(values, create_string, allocator)


def is_false(node: Node | None) -> bool:
    return node is not None and node.type is NodeType.FALSE


def is_true(node: Node | None) -> bool:
    return node is not None and node.type is NodeType.TRUE


def is_bool(node: Node | None) -> bool:
    return node is not None and node.type in (NodeType.TRUE, NodeType.FALSE)


def is_null(node: Node | None) -> bool:
    return node is not None and node.type is NodeType.NULL


def is_number(node: Node | None) -> bool:
    return node is not None and node.type is NodeType.NUMBER


def is_string(node: Node | None) -> bool:
    return node is not None and node.type is NodeType.STRING


def is_array(node: Node | None) -> bool:
    return node is not None and node.type is NodeType.ARRAY


def is_object(node: Node | None) -> bool:
    return node is not None and node.type is NodeType.OBJECT


def is_raw(node: Node | None) -> bool:
    return node is not None and node.type is NodeType.RAW


def get_string_value(node: Node | None) -> str | None:
    """Returns the text of a STRING node, ``None`` for any other node."""
    return node.text if is_string(node) else None  # type: ignore[union-attr]


def get_number_value(node: Node | None) -> float:
    """Returns the value of a NUMBER node, NaN for any other node."""
    return node.number if is_number(node) else math.nan  # type: ignore[union-attr]


def set_number_value(node: Node, value: float) -> float:
    """
    Stores a new value in a NUMBER node and returns it.

    ``int_value`` is derived from the stored double on every read, so it can
    never drift from it.
    """
    if not is_number(node):
        raise TypeMismatch("set_number_value requires a Number node")
    node.number = float(value)
    return node.number


def set_value_string(node: Node, text: str) -> str:
    """Replaces the owned text of a STRING node; references are refused."""
    if not is_string(node) or node.is_reference:
        raise TypeMismatch("set_value_string requires an owning String node")
    if not isinstance(text, str):
        raise TypeError(f"text must be str, not {type(text).__name__}")
    node._own_text(text)
    return text


def set_bool_value(node: Node, value: bool) -> NodeType:
    if not is_bool(node):
        raise TypeMismatch("set_bool_value requires a Bool node")
    node.type = NodeType.TRUE if value else NodeType.FALSE
    return node.type
