"""
JSON specification failure tests ensuring standards compliance.

Validates that invalid JSON text raises ParseError with the right message and
byte position, and that failed parses leave nothing allocated behind.
"""

import pytest

import jtree

from .conftest import JsonTestCase


def test_json_spec_failures(json_fail_cases: list[JsonTestCase]) -> None:
    """
    Validates JSON strings that must fail parsing per RFC 8259.

    Runs the JSON_checker failure cases to ensure strict standards
    compliance and proper error handling for malformed JSON.
    """
    for case in json_fail_cases:
        if case.skip_reason:
            continue

        with pytest.raises(jtree.ParseError) as exc_info:
            jtree.parse(case.input_data, **case.config)

        # Ensure error contains position information
        assert exc_info.value.pos >= 0, case.description
        assert exc_info.value.lineno >= 1
        assert exc_info.value.colno >= 1


def test_skipped_failure_cases_parse(json_fail_cases: list[JsonTestCase]) -> None:
    """
    Validates the JSON_checker cases this engine accepts do parse.
    """
    skipped = [case for case in json_fail_cases if case.skip_reason]
    assert skipped
    for case in skipped:
        assert jtree.is_string(jtree.parse(case.input_data))


@pytest.mark.parametrize(
    "input_data,expected_msg,expected_pos",
    [
        ("", "Expecting value", 0),
        ("[", "Expecting value", 1),
        ("[42", "Expecting ',' delimiter", 3),
        ("[42,", "Expecting value", 4),
        ('["', "Unterminated string starting at", 1),
        ('["spam', "Unterminated string starting at", 1),
        ('["spam"', "Expecting ',' delimiter", 7),
        ('["spam",', "Expecting value", 8),
        ("{", "Expecting property name enclosed in double quotes", 1),
        ('{"', "Unterminated string starting at", 1),
        ('{"spam', "Unterminated string starting at", 1),
        ('{"spam"', "Expecting ':' delimiter", 7),
        ('{"spam":', "Expecting value", 8),
        ('{"spam":42', "Expecting ',' delimiter", 10),
        (
            '{"spam":42,',
            "Expecting property name enclosed in double quotes",
            11,
        ),
        ('"', "Unterminated string starting at", 0),
        ('"spam', "Unterminated string starting at", 0),
    ],
)
def test_truncated_input_error_positions(
    input_data: str, expected_msg: str, expected_pos: int
) -> None:
    """
    Validates precise error positioning for truncated JSON inputs.
    """
    with pytest.raises(jtree.ParseError) as exc_info:
        jtree.parse(input_data)

    err = exc_info.value
    assert err.msg == expected_msg
    assert err.pos == expected_pos
    assert err.lineno == 1
    assert err.colno == expected_pos + 1


@pytest.mark.parametrize(
    "input_data,expected_msg,expected_pos",
    [
        ("[,", "Expecting value", 1),
        ('{"spam":[}', "Expecting value", 9),
        ("[42:", "Expecting ',' delimiter", 3),
        ('[42 "spam"', "Expecting ',' delimiter", 4),
        ("[42,]", "Illegal trailing comma before end of array", 3),
        ('{"spam":[42}', "Expecting ',' delimiter", 11),
        ('["]', "Unterminated string starting at", 1),
        ('["spam":', "Expecting ',' delimiter", 7),
        ('["spam",]', "Illegal trailing comma before end of array", 7),
        ("{:", "Expecting property name enclosed in double quotes", 1),
        ("{,", "Expecting property name enclosed in double quotes", 1),
        ("{42", "Expecting property name enclosed in double quotes", 1),
        ("[{]", "Expecting property name enclosed in double quotes", 2),
        ('{"spam",', "Expecting ':' delimiter", 7),
        ('{"spam"}', "Expecting ':' delimiter", 7),
        ('[{"spam"]', "Expecting ':' delimiter", 8),
        ('{"spam":}', "Expecting value", 8),
        ('[{"spam":]', "Expecting value", 9),
        ('{"spam":42 "ham"', "Expecting ',' delimiter", 11),
        ('[{"spam":42]', "Expecting ',' delimiter", 11),
        ('{"spam":42,}', "Illegal trailing comma before end of object", 10),
        ('{"spam":42 , }', "Illegal trailing comma before end of object", 11),
        ("[123  , ]", "Illegal trailing comma before end of array", 6),
    ],
)
def test_unexpected_data_error_positions(
    input_data: str, expected_msg: str, expected_pos: int
) -> None:
    """
    Validates precise error positioning for unexpected JSON data.
    """
    with pytest.raises(jtree.ParseError) as exc_info:
        jtree.parse(input_data)

    err = exc_info.value
    assert err.msg == expected_msg
    assert err.pos == expected_pos
    assert err.lineno == 1
    assert err.colno == expected_pos + 1


@pytest.mark.parametrize(
    "input_data,expected_msg,expected_pos",
    [
        ("[]]", "Extra data", 2),
        ("{}}", "Extra data", 2),
        ("[],[]", "Extra data", 2),
        ("{},{}", "Extra data", 2),
        ('42,"spam"', "Extra data", 2),
        ('"spam",42', "Extra data", 6),
    ],
)
def test_extra_data_error_positions(
    input_data: str, expected_msg: str, expected_pos: int
) -> None:
    """
    Validates precise error positioning for extra data after valid JSON.
    """
    with pytest.raises(jtree.ParseError) as exc_info:
        jtree.parse(input_data)

    err = exc_info.value
    assert err.msg == expected_msg
    assert err.pos == expected_pos
    assert err.lineno == 1
    assert err.colno == expected_pos + 1


@pytest.mark.parametrize(
    "input_data,expected_msg,expected_pos",
    [
        ('["\\x"]', "Invalid \\escape", 2),
        ('["\\u12"]', "Invalid \\uXXXX escape", 2),
        ('["\\u12G4"]', "Invalid \\uXXXX escape", 2),
        ('["\\u+123"]', "Invalid \\uXXXX escape", 2),
        ('["\\ud800"]', "Invalid surrogate pair", 2),
        ('["\\ud800\\u0041"]', "Invalid surrogate pair", 2),
        ('["\\udc00"]', "Invalid surrogate pair", 2),
        ('["a\x01"]', "Invalid control character at", 3),
        ("[01]", "Leading zeros not allowed", 1),
        ("[-]", "Invalid number", 1),
        ("[-a]", "Invalid number", 1),
        ("[1.]", "Invalid decimal number", 1),
        ("[1.e5]", "Invalid decimal number", 1),
        ("[1e]", "Invalid exponent", 1),
        ("[.5]", "Expecting value", 1),
        ("[+1]", "Expecting value", 1),
        ("[NaN]", "Expecting value", 1),
        ("[Infinity]", "Expecting value", 1),
        ("[tru]", "Expecting value", 1),
    ],
)
def test_invalid_token_error_positions(
    input_data: str, expected_msg: str, expected_pos: int
) -> None:
    """
    Validates messages and positions for malformed strings and numbers.
    """
    with pytest.raises(jtree.ParseError) as exc_info:
        jtree.parse(input_data)

    err = exc_info.value
    assert err.msg == expected_msg
    assert err.pos == expected_pos


def test_invalid_utf8_rejected() -> None:
    """
    Validates byte sequences that are not UTF-8 are rejected inside strings.
    """
    with pytest.raises(jtree.ParseError) as exc_info:
        jtree.parse(b'["ab\xff"]')

    assert exc_info.value.msg == "Invalid UTF-8 in string"
    assert exc_info.value.pos == 4


def test_lone_surrogate_in_str_input_rejected() -> None:
    """
    Validates a str carrying a lone surrogate cannot sneak invalid UTF-8 in.
    """
    with pytest.raises(jtree.ParseError):
        jtree.parse('["\ud800"]')


@pytest.mark.parametrize(
    "input_data,expected_line,expected_col,expected_pos",
    [
        ("!", 1, 1, 0),
        (" !", 1, 2, 1),
        ("\n!", 2, 1, 1),
        ("\n  \n\n     !", 4, 6, 10),
    ],
)
def test_line_column_calculation(
    input_data: str, expected_line: int, expected_col: int, expected_pos: int
) -> None:
    """
    Validates accurate line and column number calculation for multi-line JSON.
    """
    with pytest.raises(jtree.ParseError) as exc_info:
        jtree.parse(input_data)

    err = exc_info.value
    assert err.msg == "Expecting value"
    assert err.pos == expected_pos
    assert err.lineno == expected_line
    assert err.colno == expected_col

    # Verify string representation format
    expected_str = (
        f"Expecting value at line {expected_line}, column {expected_col}"
    )
    assert expected_str in str(err)


def test_column_counts_characters_not_bytes() -> None:
    """
    Validates columns count characters while positions count bytes.
    """
    with pytest.raises(jtree.ParseError) as exc_info:
        jtree.parse('["é" x]')

    err = exc_info.value
    assert err.pos == 6
    assert err.colno == 6


def test_parse_error_is_value_error() -> None:
    """
    Validates ParseError can be caught as ValueError like json's errors.
    """
    with pytest.raises(ValueError):
        jtree.parse("[")
    assert issubclass(jtree.ParseError, jtree.JsonTreeError)


def test_nesting_limit_enforced() -> None:
    """
    Validates containers deeper than the limit fail without a stack fault.
    """
    depth = 5
    doc = "[" * depth + "]" * depth
    assert jtree.is_array(jtree.parse(doc, nesting_limit=depth))

    with pytest.raises(jtree.NestingLimitExceeded) as exc_info:
        jtree.parse(doc, nesting_limit=depth - 1)

    assert exc_info.value.pos == depth - 1
    assert exc_info.value.msg == "Nesting limit exceeded"


def test_default_nesting_limit() -> None:
    """
    Validates the default limit admits 1000 levels and refuses 1001.
    """
    assert jtree.NESTING_LIMIT == 1000
    ok = "[" * 1000 + "]" * 1000
    assert jtree.is_array(jtree.parse(ok))

    with pytest.raises(jtree.NestingLimitExceeded):
        jtree.parse("[" * 1001 + "]" * 1001)


def test_very_deep_input_fails_cleanly() -> None:
    """
    Validates adversarial nesting far past the recursion limit only raises.
    """
    doc = '{"a":' * 100_000 + "1" + "}" * 100_000
    with pytest.raises(jtree.NestingLimitExceeded):
        jtree.parse(doc)


def test_failed_parse_releases_partial_tree(
    tracking_allocator: jtree.TrackingAllocator,
) -> None:
    """
    Validates every node built before a failure is returned to the allocator.
    """
    with pytest.raises(jtree.ParseError):
        jtree.parse(
            '{"a": [1, 2, {"b": "text"}], "c": tru}',
            allocator=tracking_allocator,
        )

    assert tracking_allocator.allocations > 0
    assert tracking_allocator.live_blocks == 0


def test_extra_data_releases_root(
    tracking_allocator: jtree.TrackingAllocator,
) -> None:
    """
    Validates a complete value followed by garbage is released on failure.
    """
    with pytest.raises(jtree.ParseError):
        jtree.parse('{"a": 1} x', allocator=tracking_allocator)

    assert tracking_allocator.live_blocks == 0


def test_allocation_failure_during_parse(
    tracking_allocator: jtree.TrackingAllocator,
) -> None:
    """
    Validates an allocator refusal surfaces as AllocationFailure and leaks nothing.
    """
    limited = jtree.TrackingAllocator(limit=jtree.NODE_SIZE * 3)
    parser = jtree.JsonParser(jtree.ParseConfig(allocator=limited))

    with pytest.raises(jtree.AllocationFailure):
        parser.parse("[1, 2, 3, 4, 5]")

    assert limited.refusals == 1
    assert limited.live_blocks == 0
    assert parser.error_offset is not None


def test_parser_error_offset() -> None:
    """
    Validates the parser remembers the last failure offset until a success.
    """
    parser = jtree.JsonParser()
    assert parser.error_offset is None

    with pytest.raises(jtree.ParseError):
        parser.parse('{"a" 1}')
    assert parser.error_offset == 5

    parser.parse("[]")
    assert parser.error_offset is None


@pytest.mark.parametrize("invalid_input", [None, 42, 1.5, ["[]"]])
def test_non_text_input_rejected(invalid_input: object) -> None:
    """
    Validates only str and bytes-like documents are accepted.
    """
    with pytest.raises(TypeError):
        jtree.parse(invalid_input)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "kwargs,error",
    [
        ({"nesting_limit": 0}, ValueError),
        ({"nesting_limit": "10"}, TypeError),
        ({"nesting_limit": True}, TypeError),
        ({"allocator": object()}, TypeError),
    ],
)
def test_parse_config_validation(kwargs: dict[str, object], error: type) -> None:
    """
    Validates ParseConfig rejects unusable settings up front.
    """
    with pytest.raises(error):
        jtree.ParseConfig(**kwargs)  # type: ignore[arg-type]
