import json

import pytest

from payload.diagnostics import analyze_payload, error_position
from payload.repair import patch_elided_values


def test_error_position_prefers_decoder_offset():
    with pytest.raises(json.JSONDecodeError) as excinfo:
        json.loads('{"a" 1}')
    assert error_position(excinfo.value) == 5


def test_error_position_reads_position_from_message():
    exc = ValueError("Unexpected token } in JSON at position 42")
    assert error_position(exc) == 42
    assert error_position(ValueError("unexpected end of data")) is None


def test_trailing_comma_is_reported_with_context():
    text = '{"a":1,}'
    diagnostics = analyze_payload(
        text, "Expecting property name enclosed in double quotes: line 1 column 8 (char 7)"
    )
    assert diagnostics.position == 7
    assert diagnostics.context == '{"a":1, >> }'
    assert diagnostics.trailing_comma is True
    assert diagnostics.brace_mismatch is False


def test_brace_mismatch_and_control_characters():
    diagnostics = analyze_payload('{{"customer":}\x01')
    assert diagnostics.open_braces == 2
    assert diagnostics.close_braces == 1
    assert diagnostics.elided_values == 1
    assert diagnostics.control_chars == 1
    issues = diagnostics.issues()
    assert "Brace mismatch: 2 opening vs 1 closing braces" in issues
    assert "Found 1 control characters" in issues
    assert "Found 1 keys with an elided value" in issues


def test_out_of_range_position_is_ignored():
    diagnostics = analyze_payload("{}", position=10)
    assert diagnostics.position is None
    assert diagnostics.context is None
    assert diagnostics.issues() == []


def test_elided_value_count_matches_what_the_patch_fixes():
    text = '[{"owner":},{"parent":},{"id":1}]'
    assert analyze_payload(text).elided_values == 2
    assert analyze_payload(patch_elided_values(text)).elided_values == 0
