"""Structural equality and deep/shallow duplication of node trees."""

import logging

from ._alloc import Allocator
from ._alloc import allocate
from ._alloc import string_size
from ._editor import find_key
from ._editor import keys_match
from ._errors import CircularLimitExceeded
from ._errors import StructureError
from ._node import CONTAINER_TYPES
from ._node import Node
from ._node import NodeType
from ._node import link_after
from ._node import release_tree

logger = logging.getLogger(__name__)

CIRCULAR_LIMIT = 10000


def compare(a: Node | None, b: Node | None, case_sensitive: bool = True) -> bool:
    """
    Reports whether two trees hold the same JSON value.

    Numbers compare by exact double equality, strings by text (ASCII case
    folded when ``case_sensitive`` is false). Arrays must match element by
    element in order; objects must have the same key set, each key mapping to
    an equal value, regardless of member order.
    """
    pending: list[tuple[Node | None, Node | None]] = [(a, b)]
    while pending:
        left, right = pending.pop()
        if left is None or right is None:
            return False
        if left is right:
            continue
        if left.type is not right.type:
            return False

        if left.type is NodeType.NUMBER:
            if left.number != right.number:
                return False
        elif left.type in (NodeType.STRING, NodeType.RAW):
            if left.text is None or right.text is None:
                return False
            if not keys_match(left.text, right.text, case_sensitive):
                return False
        elif left.type is NodeType.ARRAY:
            left_item, right_item = left.child, right.child
            while left_item is not None and right_item is not None:
                pending.append((left_item, right_item))
                left_item, right_item = left_item.next, right_item.next
            if left_item is not None or right_item is not None:
                return False
        elif left.type is NodeType.OBJECT:
            for member in left:
                if member.key is None:
                    return False
                counterpart = find_key(right, member.key, case_sensitive)
                if counterpart is None:
                    return False
                pending.append((member, counterpart))
            for member in right:
                if member.key is None:
                    return False
                if find_key(left, member.key, case_sensitive) is None:
                    return False
    return True


def _copy_payload(source: Node, allocator: Allocator) -> Node:
    copy = Node(source.type, allocator)
    copy.number = source.number
    if source.text is not None:
        try:
            copy._own_text(source.text)
        except BaseException:
            copy._release()
            raise
    return copy


def duplicate(
    node: Node,
    recurse: bool = True,
    *,
    allocator: Allocator | None = None,
    circular_limit: int = CIRCULAR_LIMIT,
) -> Node:
    """
    Copies a node into storage of its own.

    The copy never carries the reference flag, whatever the source was, and as
    a detached root it carries no key. With ``recurse`` false containers come
    back empty; otherwise every member is copied in order along with its key.
    """
    if not isinstance(node, Node):
        raise TypeError(f"node must be a Node, not {type(node).__name__}")
    if node.is_deleted:
        raise StructureError("cannot duplicate a deleted node")
    target_allocator = node.allocator if allocator is None else allocator

    root = _copy_payload(node, target_allocator)
    if not recurse:
        return root

    pending = [(node, root, 0)]
    try:
        while pending:
            source, target, depth = pending.pop()
            if depth >= circular_limit:
                logger.debug("Duplication stopped at depth %d", depth)
                raise CircularLimitExceeded(
                    f"duplication deeper than {circular_limit} levels"
                )
            tail = None
            for member in source:
                copy = _copy_payload(member, target_allocator)
                tail = link_after(target, tail, copy)
                if member.key is not None:
                    block = allocate(target_allocator, string_size(member.key))
                    copy._set_key(member.key, block)
                if member.type in CONTAINER_TYPES and member.child is not None:
                    pending.append((member, copy, depth + 1))
    except BaseException:
        release_tree(root)
        raise
    return root
