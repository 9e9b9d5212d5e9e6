"""
Tree surgery: adding, inserting, detaching, replacing and deleting members.

Every operation checks its arguments and acquires any storage it needs before
it touches a sibling link, so a failing call leaves the tree as it was.
Members are addressed by index, by key, or by identity within a known
container; nothing walks upwards to find a parent except the cycle guard.
"""

from collections.abc import Callable
from typing import Any

from ._alloc import allocate
from ._alloc import string_size
from ._errors import StructureError
from ._errors import TypeMismatch
from ._node import CONTAINER_TYPES
from ._node import Node
from ._node import NodeType
from ._node import create_array
from ._node import create_bool
from ._node import create_false
from ._node import create_null
from ._node import create_number
from ._node import create_object
from ._node import create_raw
from ._node import create_reference
from ._node import create_string
from ._node import create_true
from ._node import delete
from ._node import link_after
from ._node import link_before
from ._node import release_tree
from ._node import splice
from ._node import unlink

_ASCII_FOLD = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)


def fold_case(text: str) -> str:
    """Lower-cases ASCII letters only, leaving every other character intact."""
    return text.translate(_ASCII_FOLD)


def keys_match(left: str, right: str, case_sensitive: bool) -> bool:
    if case_sensitive:
        return left == right
    return fold_case(left) == fold_case(right)


def _require_node(value: Any, name: str) -> Node:
    if not isinstance(value, Node):
        raise TypeError(f"{name} must be a Node, not {type(value).__name__}")
    if value.is_deleted:
        raise StructureError(f"{name} has been deleted")
    return value


def _require_type(node: Any, node_type: NodeType, op: str) -> Node:
    _require_node(node, "container")
    if node.type is not node_type:
        raise TypeMismatch(
            f"{op} requires a {node_type.name} node, got {node.type.name}"
        )
    return node


def _require_container(node: Any, op: str) -> Node:
    _require_node(node, "container")
    if node.type not in CONTAINER_TYPES:
        raise TypeMismatch(
            f"{op} requires an ARRAY or OBJECT node, got {node.type.name}"
        )
    return node


def _require_owner(container: Node) -> None:
    if container.is_reference:
        raise StructureError(
            "container is a reference and does not own its members"
        )


def _require_key(key: Any) -> str:
    if not isinstance(key, str):
        raise TypeError(f"key must be str, not {type(key).__name__}")
    return key


def _require_index(index: Any) -> int:
    if not isinstance(index, int) or isinstance(index, bool):
        raise TypeError(f"index must be int, not {type(index).__name__}")
    if index < 0:
        raise IndexError(f"array index {index} out of range")
    return index


def _would_cycle(container: Node, item: Node) -> bool:
    aliased = item.child if item.type in CONTAINER_TYPES else None
    walk: Node | None = container
    while walk is not None:
        if walk is item or (aliased is not None and walk.child is aliased):
            return True
        walk = walk.container
    return False


def _check_attach(container: Node, item: Any) -> Node:
    _require_node(item, "item")
    if _would_cycle(container, item):
        raise StructureError("a node cannot be linked into itself or its descendants")
    return item


def _tail(container: Node) -> Node | None:
    tail = container.child
    if tail is None:
        return None
    while tail.next is not None:
        tail = tail.next
    return tail


def _item_at(array: Node, index: int) -> Node:
    item = array.child
    position = 0
    while item is not None and position < index:
        item = item.next
        position += 1
    if item is None:
        raise IndexError(f"array index {index} out of range")
    return item


def find_key(obj: Node, key: str, case_sensitive: bool) -> Node | None:
    wanted = key if case_sensitive else fold_case(key)
    item = obj.child
    while item is not None:
        if item.key is not None:
            candidate = item.key if case_sensitive else fold_case(item.key)
            if candidate == wanted:
                return item
        item = item.next
    return None


def _member(parent: Node, item: Node) -> Node:
    current = parent.child
    while current is not None:
        if current is item:
            return current
        current = current.next
    raise StructureError("item is not a member of the given parent")


def get_array_size(node: Node) -> int:
    """Counts the members of an array."""
    _require_type(node, NodeType.ARRAY, "get_array_size")
    return sum(1 for _ in node)


def get_array_item(array: Node, index: int) -> Node:
    _require_type(array, NodeType.ARRAY, "get_array_item")
    return _item_at(array, _require_index(index))


def get_object_item(obj: Node, key: str) -> Node | None:
    """Looks up a member by key, folding ASCII case."""
    _require_type(obj, NodeType.OBJECT, "get_object_item")
    return find_key(obj, _require_key(key), case_sensitive=False)


def get_object_item_case_sensitive(obj: Node, key: str) -> Node | None:
    _require_type(obj, NodeType.OBJECT, "get_object_item_case_sensitive")
    return find_key(obj, _require_key(key), case_sensitive=True)


def has_object_item(obj: Node, key: str) -> bool:
    return get_object_item(obj, key) is not None


def add_item_to_array(array: Node, item: Node) -> Node:
    """Appends ``item``, moving it out of any container it currently sits in."""
    _require_type(array, NodeType.ARRAY, "add_item_to_array")
    _require_owner(array)
    _check_attach(array, item)
    unlink(item)
    item._drop_key()
    return link_after(array, _tail(array), item)


def insert_item_in_array(array: Node, index: int, item: Node) -> Node:
    """
    Inserts ``item`` in front of the member currently at ``index``.

    ``index`` may equal the array size, which appends.
    """
    _require_type(array, NodeType.ARRAY, "insert_item_in_array")
    _require_owner(array)
    _require_index(index)
    _check_attach(array, item)
    before = array.child
    position = 0
    while before is not None and position < index:
        before = before.next
        position += 1
    if before is None and position < index:
        raise IndexError(f"array index {index} out of range")
    if before is item:
        before = item.next
    unlink(item)
    item._drop_key()
    if before is None:
        return link_after(array, _tail(array), item)
    return link_before(array, before, item)


def _add_to_object(obj: Node, key: str, item: Node, const_key: bool) -> Node:
    _require_type(obj, NodeType.OBJECT, "add_item_to_object")
    _require_owner(obj)
    _require_key(key)
    _check_attach(obj, item)
    block = None if const_key else allocate(item.allocator, string_size(key))
    unlink(item)
    item._set_key(key, block)
    return link_after(obj, _tail(obj), item)


def add_item_to_object(obj: Node, key: str, item: Node) -> Node:
    """Appends ``item`` under an owned copy of ``key``."""
    return _add_to_object(obj, key, item, const_key=False)


def add_item_to_object_cs(obj: Node, key: str, item: Node) -> Node:
    """Appends ``item`` under a borrowed ``key`` (``key_is_const`` is set)."""
    return _add_to_object(obj, key, item, const_key=True)


def add_item_reference_to_array(array: Node, item: Node) -> Node:
    """Appends a fresh reference shell aliasing ``item``; returns the shell."""
    _require_type(array, NodeType.ARRAY, "add_item_reference_to_array")
    _require_owner(array)
    _check_attach(array, item)
    shell = create_reference(item, allocator=array.allocator)
    return link_after(array, _tail(array), shell)


def add_item_reference_to_object(obj: Node, key: str, item: Node) -> Node:
    _require_type(obj, NodeType.OBJECT, "add_item_reference_to_object")
    _require_owner(obj)
    _require_key(key)
    _check_attach(obj, item)
    shell = create_reference(item, allocator=obj.allocator)
    try:
        block = allocate(shell.allocator, string_size(key))
    except BaseException:
        release_tree(shell)
        raise
    shell._set_key(key, block)
    return link_after(obj, _tail(obj), shell)


def _add_new(
    obj: Node, key: str, factory: Callable[..., Node], *args: Any
) -> Node:
    _require_type(obj, NodeType.OBJECT, "add_item_to_object")
    _require_owner(obj)
    _require_key(key)
    item = factory(*args, allocator=obj.allocator)
    try:
        return add_item_to_object(obj, key, item)
    except BaseException:
        release_tree(item)
        raise


def add_null_to_object(obj: Node, key: str) -> Node:
    """Creates a NULL under ``key`` and returns it."""
    return _add_new(obj, key, create_null)


def add_true_to_object(obj: Node, key: str) -> Node:
    """Creates a TRUE under ``key`` and returns it."""
    return _add_new(obj, key, create_true)


def add_false_to_object(obj: Node, key: str) -> Node:
    """Creates a FALSE under ``key`` and returns it."""
    return _add_new(obj, key, create_false)


def add_bool_to_object(obj: Node, key: str, value: bool) -> Node:
    """Creates TRUE or FALSE under ``key`` and returns it."""
    return _add_new(obj, key, create_bool, value)


def add_number_to_object(obj: Node, key: str, value: float) -> Node:
    """Creates a NUMBER under ``key`` and returns it."""
    return _add_new(obj, key, create_number, value)


def add_string_to_object(obj: Node, key: str, text: str) -> Node:
    """Creates an owned STRING under ``key`` and returns it."""
    return _add_new(obj, key, create_string, text)


def add_raw_to_object(obj: Node, key: str, text: str) -> Node:
    """Creates a RAW node under ``key`` and returns it."""
    return _add_new(obj, key, create_raw, text)


def add_object_to_object(obj: Node, key: str) -> Node:
    """Creates an empty OBJECT under ``key`` and returns it."""
    return _add_new(obj, key, create_object)


def add_array_to_object(obj: Node, key: str) -> Node:
    """Creates an empty ARRAY under ``key`` and returns it."""
    return _add_new(obj, key, create_array)


def detach_item_via_pointer(parent: Node, item: Node) -> Node:
    """
    Unlinks ``item`` from ``parent`` by identity and hands it to the caller.

    The detached node loses its key; the caller owns it from now on.
    """
    _require_container(parent, "detach_item_via_pointer")
    _require_owner(parent)
    _require_node(item, "item")
    _member(parent, item)
    unlink(item)
    item._drop_key()
    return item


def detach_item_from_array(array: Node, index: int) -> Node:
    _require_type(array, NodeType.ARRAY, "detach_item_from_array")
    _require_owner(array)
    item = _item_at(array, _require_index(index))
    return detach_item_via_pointer(array, item)


def delete_item_from_array(array: Node, index: int) -> None:
    delete(detach_item_from_array(array, index))


def _detach_key(obj: Node, key: str, case_sensitive: bool) -> Node:
    _require_type(obj, NodeType.OBJECT, "detach_item_from_object")
    _require_owner(obj)
    item = find_key(obj, _require_key(key), case_sensitive)
    if item is None:
        raise KeyError(key)
    return detach_item_via_pointer(obj, item)


def detach_item_from_object(obj: Node, key: str) -> Node:
    return _detach_key(obj, key, case_sensitive=False)


def detach_item_from_object_case_sensitive(obj: Node, key: str) -> Node:
    return _detach_key(obj, key, case_sensitive=True)


def delete_item_from_object(obj: Node, key: str) -> None:
    delete(_detach_key(obj, key, case_sensitive=False))


def delete_item_from_object_case_sensitive(obj: Node, key: str) -> None:
    delete(_detach_key(obj, key, case_sensitive=True))


def _replace(
    parent: Node, item: Node, replacement: Node, key: str | None, const_key: bool
) -> Node:
    if replacement is item:
        return item
    _check_attach(parent, replacement)
    block = None
    if parent.type is NodeType.OBJECT and not const_key:
        block = allocate(replacement.allocator, string_size(key or ""))
    unlink(replacement)
    if parent.type is NodeType.OBJECT:
        replacement._set_key(key or "", block)
    else:
        replacement._drop_key()
    splice(parent, item, replacement)
    release_tree(item)
    return replacement


def replace_item_via_pointer(parent: Node, item: Node, replacement: Node) -> Node:
    """
    Puts ``replacement`` in ``item``'s position and deletes ``item``.

    In an object the replacement takes over the old member's key.
    """
    _require_container(parent, "replace_item_via_pointer")
    _require_owner(parent)
    _require_node(item, "item")
    _member(parent, item)
    return _replace(parent, item, replacement, item.key, item.key_is_const)


def replace_item_in_array(array: Node, index: int, replacement: Node) -> Node:
    _require_type(array, NodeType.ARRAY, "replace_item_in_array")
    _require_owner(array)
    item = _item_at(array, _require_index(index))
    return _replace(array, item, replacement, None, False)


def _replace_key(
    obj: Node, key: str, replacement: Node, case_sensitive: bool
) -> Node:
    _require_type(obj, NodeType.OBJECT, "replace_item_in_object")
    _require_owner(obj)
    item = find_key(obj, _require_key(key), case_sensitive)
    if item is None:
        raise KeyError(key)
    return _replace(obj, item, replacement, key, False)


def replace_item_in_object(obj: Node, key: str, replacement: Node) -> Node:
    return _replace_key(obj, key, replacement, case_sensitive=False)


def replace_item_in_object_case_sensitive(
    obj: Node, key: str, replacement: Node
) -> Node:
    return _replace_key(obj, key, replacement, case_sensitive=True)
