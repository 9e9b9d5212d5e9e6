"""
JSON document engine built around a mutable tree of nodes.

Parses JSON text into ``Node`` trees, lets callers query and edit them member
by member, and prints them back as formatted or compact text. Storage for
nodes, strings and print buffers is charged to a pluggable allocator.
"""

from ._alloc import DEFAULT_ALLOCATOR
from ._alloc import NODE_SIZE
from ._alloc import Allocator
from ._alloc import SystemAllocator
from ._alloc import TrackingAllocator
from ._compare import CIRCULAR_LIMIT
from ._compare import compare
from ._compare import duplicate
from ._editor import add_array_to_object
from ._editor import add_bool_to_object
from ._editor import add_false_to_object
from ._editor import add_item_reference_to_array
from ._editor import add_item_reference_to_object
from ._editor import add_item_to_array
from ._editor import add_item_to_object
from ._editor import add_item_to_object_cs
from ._editor import add_null_to_object
from ._editor import add_number_to_object
from ._editor import add_object_to_object
from ._editor import add_raw_to_object
from ._editor import add_string_to_object
from ._editor import add_true_to_object
from ._editor import delete_item_from_array
from ._editor import delete_item_from_object
from ._editor import delete_item_from_object_case_sensitive
from ._editor import detach_item_from_array
from ._editor import detach_item_from_object
from ._editor import detach_item_from_object_case_sensitive
from ._editor import detach_item_via_pointer
from ._editor import get_array_item
from ._editor import get_array_size
from ._editor import get_object_item
from ._editor import get_object_item_case_sensitive
from ._editor import has_object_item
from ._editor import insert_item_in_array
from ._editor import replace_item_in_array
from ._editor import replace_item_in_object
from ._editor import replace_item_in_object_case_sensitive
from ._editor import replace_item_via_pointer
from ._errors import AllocationFailure
from ._errors import BufferTooSmall
from ._errors import CircularLimitExceeded
from ._errors import JsonTreeError
from ._errors import NestingLimitExceeded
from ._errors import ParseError
from ._errors import StructureError
from ._errors import TypeMismatch
from ._node import IS_REFERENCE
from ._node import STRING_IS_CONST
from ._node import Node
from ._node import NodeType
from ._node import create_array
from ._node import create_array_reference
from ._node import create_bool
from ._node import create_double_array
from ._node import create_false
from ._node import create_int_array
from ._node import create_null
from ._node import create_number
from ._node import create_object
from ._node import create_object_reference
from ._node import create_raw
from ._node import create_reference
from ._node import create_string
from ._node import create_string_array
from ._node import create_string_reference
from ._node import create_true
from ._node import delete
from ._node import get_number_value
from ._node import get_string_value
from ._node import is_array
from ._node import is_bool
from ._node import is_false
from ._node import is_null
from ._node import is_number
from ._node import is_object
from ._node import is_raw
from ._node import is_string
from ._node import is_true
from ._node import set_bool_value
from ._node import set_number_value
from ._node import set_value_string
from ._parser import NESTING_LIMIT
from ._parser import JsonParser
from ._parser import JsonScanner
from ._parser import ParseConfig
from ._parser import ParseResult
from ._parser import load
from ._parser import minify
from ._parser import parse
from ._parser import parse_with_length
from ._parser import parse_with_opts
from ._printer import PrintBuffer
from ._printer import PrintConfig
from ._printer import dump
from ._printer import print_buffered
from ._printer import print_node
from ._printer import print_preallocated
from ._printer import print_unformatted
from ._profile import HotPathStats
from ._profile import clear_hot_path_stats
from ._profile import get_hot_path_stats

__version__ = "0.1.0"


def version() -> str:
    """Returns the library version string."""
    return __version__


__all__ = [
    "CIRCULAR_LIMIT",
    "DEFAULT_ALLOCATOR",
    "IS_REFERENCE",
    "NESTING_LIMIT",
    "NODE_SIZE",
    "STRING_IS_CONST",
    "AllocationFailure",
    "Allocator",
    "BufferTooSmall",
    "CircularLimitExceeded",
    "HotPathStats",
    "JsonParser",
    "JsonScanner",
    "JsonTreeError",
    "NestingLimitExceeded",
    "Node",
    "NodeType",
    "ParseConfig",
    "ParseError",
    "ParseResult",
    "PrintBuffer",
    "PrintConfig",
    "StructureError",
    "SystemAllocator",
    "TrackingAllocator",
    "TypeMismatch",
    "add_array_to_object",
    "add_bool_to_object",
    "add_false_to_object",
    "add_item_reference_to_array",
    "add_item_reference_to_object",
    "add_item_to_array",
    "add_item_to_object",
    "add_item_to_object_cs",
    "add_null_to_object",
    "add_number_to_object",
    "add_object_to_object",
    "add_raw_to_object",
    "add_string_to_object",
    "add_true_to_object",
    "clear_hot_path_stats",
    "compare",
    "create_array",
    "create_array_reference",
    "create_bool",
    "create_double_array",
    "create_false",
    "create_int_array",
    "create_null",
    "create_number",
    "create_object",
    "create_object_reference",
    "create_raw",
    "create_reference",
    "create_string",
    "create_string_array",
    "create_string_reference",
    "create_true",
    "delete",
    "delete_item_from_array",
    "delete_item_from_object",
    "delete_item_from_object_case_sensitive",
    "detach_item_from_array",
    "detach_item_from_object",
    "detach_item_from_object_case_sensitive",
    "detach_item_via_pointer",
    "dump",
    "duplicate",
    "get_array_item",
    "get_array_size",
    "get_hot_path_stats",
    "get_number_value",
    "get_object_item",
    "get_object_item_case_sensitive",
    "get_string_value",
    "has_object_item",
    "insert_item_in_array",
    "is_array",
    "is_bool",
    "is_false",
    "is_null",
    "is_number",
    "is_object",
    "is_raw",
    "is_string",
    "is_true",
    "load",
    "minify",
    "parse",
    "parse_with_length",
    "parse_with_opts",
    "print_buffered",
    "print_node",
    "print_preallocated",
    "print_unformatted",
    "replace_item_in_array",
    "replace_item_in_object",
    "replace_item_in_object_case_sensitive",
    "replace_item_via_pointer",
    "set_bool_value",
    "set_number_value",
    "set_value_string",
    "version",
]
