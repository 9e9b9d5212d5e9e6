"""
Test data generators for jtree benchmarks.

Creates JSON documents of different shapes for performance testing:
- Small and large objects
- Mixed-type arrays and deep container nesting
- String-heavy content with escapes and non-ASCII text
- Number-heavy arrays

Every generator is seeded so repeated runs benchmark identical input.
"""

import json
import random
import string
from typing import Any

_SEED = 20240115
_ESCAPE_PROBABILITY = 0.3
_ESCAPES = ['\\"', "\\\\", "\\/", "\\b", "\\f", "\\n", "\\r", "\\t", "\\u00e9"]

DATA_TYPES = [
    "small_object",
    "large_object",
    "mixed_array",
    "nested_structure",
    "deep_array",
    "string_heavy",
    "number_heavy",
]


def generate_test_data(data_type: str) -> str:
    """Generates JSON test data of the given shape."""
    generators = {
        "small_object": _generate_small_object,
        "large_object": _generate_large_object,
        "mixed_array": _generate_mixed_array,
        "nested_structure": _generate_nested_structure,
        "deep_array": _generate_deep_array,
        "string_heavy": _generate_string_heavy,
        "number_heavy": _generate_number_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    return generators[data_type](random.Random(_SEED))


def _generate_small_object(rng: random.Random) -> str:
    """Generates a small object (< 1KB), a typical API response."""
    data = {
        "id": 12345,
        "name": "Alice Johnson",
        "email": "alice@example.com",
        "active": True,
        "balance": 1234.56,
        "tags": ["admin", "beta"],
        "metadata": {"created": "2024-01-15T10:30:00Z", "source": "api"},
    }
    return json.dumps(data)


def _generate_large_object(rng: random.Random) -> str:
    """Generates a large object (> 10KB) with many records."""
    data = {
        "account": {
            "id": rng.randint(1000000, 9999999),
            "owner": _random_string(rng, 12),
            "region": rng.choice(["us-east", "eu-west", "ap-south"]),
        },
        "orders": [
            {
                "id": f"ord_{i:06d}",
                "amount": round(rng.uniform(1.0, 1000.0), 2),
                "currency": rng.choice(["USD", "EUR", "GBP", "JPY"]),
                "items": [
                    {"sku": _random_string(rng, 8), "qty": rng.randint(1, 5)}
                    for _ in range(rng.randint(1, 4))
                ],
                "shipped": rng.choice([True, False]),
                "note": None,
            }
            for i in range(80)
        ],
    }
    return json.dumps(data)


def _generate_mixed_array(rng: random.Random) -> str:
    """Generates a large array with mixed value types."""
    makers = [
        lambda i: rng.randint(-1000, 1000),
        lambda i: round(rng.uniform(-100.0, 100.0), 3),
        lambda i: _random_string(rng, rng.randint(5, 30)),
        lambda i: rng.choice([True, False]),
        lambda i: None,
        lambda i: {"index": i, "value": _random_string(rng, 10)},
    ]
    array: list[Any] = [rng.choice(makers)(i) for i in range(300)]
    return json.dumps(array)


def _generate_nested_structure(rng: random.Random) -> str:
    """Generates a bushy tree of objects and arrays."""

    def create_nested(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _random_string(rng, 10)}

        return {
            "level": depth,
            "data": _random_string(rng, 15),
            "children": [create_nested(depth - 1) for _ in range(3)],
        }

    return json.dumps(create_nested(6))


def _generate_deep_array(rng: random.Random) -> str:
    """Generates arrays nested close to the default nesting limit."""
    depth = 900
    return "[" * depth + str(rng.randint(0, 9)) + "]" * depth


def _generate_string_heavy(rng: random.Random) -> str:
    """Generates strings full of escapes, \\u sequences and UTF-8 text."""

    def create_escaped_string() -> str:
        chars = []
        for _ in range(50):
            if rng.random() < _ESCAPE_PROBABILITY:
                chars.append(rng.choice(_ESCAPES))
            else:
                chars.append(rng.choice(string.ascii_letters + " "))
        return "".join(chars)

    entries = [f'"{create_escaped_string()}"' for _ in range(100)]
    entries.extend('"\\ud83d\\ude00 pair"' for _ in range(20))
    entries.extend('"Grüße, 世界"' for _ in range(20))
    return '{"strings": [' + ", ".join(entries) + "]}"


def _generate_number_heavy(rng: random.Random) -> str:
    """Generates an array of integers, decimals and exponent forms."""
    numbers = []
    for _ in range(1000):
        numbers.append(str(rng.randint(-(10**9), 10**9)))
        numbers.append(repr(rng.uniform(-1e6, 1e6)))
        numbers.append(f"{rng.uniform(1, 9):.3f}e{rng.randint(-30, 30)}")
    return "[" + ",".join(numbers) + "]"


def _random_string(rng: random.Random, length: int) -> str:
    """Generates a random ASCII string of the given length."""
    return "".join(rng.choices(string.ascii_letters, k=length))
