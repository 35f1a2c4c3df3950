"""Tests for the syntax heuristics and re-indentation helpers."""

import pytest

from app.services.code_validator import format_code, validate_syntax


class TestJavaScript:
    def test_balanced_code_is_valid(self):
        result = validate_syntax("function add(a, b) {\n  return [a, b];\n}", "javascript")
        assert result.is_valid
        assert result.errors == []

    def test_unclosed_brace(self):
        result = validate_syntax("function f() {\n  if (x) {\n    go();\n}", "js")
        assert not result.is_valid
        assert [e.message for e in result.errors] == ["1 unclosed brace(s)"]
        assert result.errors[0].line == 4

    def test_unexpected_closing_parenthesis(self):
        result = validate_syntax("call(a));", "ts")
        messages = [e.message for e in result.errors]
        assert "Unexpected closing parenthesis" in messages
        assert result.errors[0].column == 8

    def test_unclosed_string(self):
        result = validate_syntax('const greeting = "hello;', "javascript")
        assert not result.is_valid
        assert result.errors[0].message == "Unclosed string literal"
        assert result.errors[0].column == 18

    def test_comment_lines_are_skipped(self):
        result = validate_syntax("// a { b\nconst x = 1;", "js")
        assert result.is_valid

    def test_style_suggestions(self):
        code = "var x = 1;\nif (x == 2) console.log(x);"
        suggestions = validate_syntax(code, "js").suggestions
        assert "Line 1: Consider using 'let' or 'const' instead of 'var'" in suggestions
        assert "Line 2: Consider using '===' for strict equality" in suggestions
        assert "Line 2: Consider removing console.log before production" in suggestions

    def test_any_hint_only_for_typescript(self):
        code = "let value: any = 1;"
        assert any("'any'" in s for s in validate_syntax(code, "typescript").suggestions)
        assert not any("'any'" in s for s in validate_syntax(code, "javascript").suggestions)


class TestPython:
    def test_valid_nested_blocks(self):
        code = "def f(x):\n    if x:\n        return 1\n    return 2"
        result = validate_syntax(code, "python")
        assert result.is_valid
        assert result.suggestions == []

    def test_dedent_to_unknown_level(self):
        code = "def f():\n    return 1\n  x = 2"
        result = validate_syntax(code, "py")
        assert not result.is_valid
        assert result.errors[0].message == "Indentation error"
        assert result.errors[0].line == 3
        assert "Line 3: Consider using 4 spaces for indentation" in result.suggestions

    def test_print_suggestion(self):
        result = validate_syntax("print('hi')", "python")
        assert result.is_valid
        assert result.suggestions == [
            "Line 1: Consider using logging instead of print for production code"
        ]


class TestJson:
    def test_valid(self):
        assert validate_syntax('{"a": [1, 2]}', "json").is_valid

    def test_invalid_reports_position(self):
        result = validate_syntax('{\n  "a": 1\n  "b": 2\n}', "json")
        assert not result.is_valid
        assert result.errors[0].line == 3
        assert result.errors[0].column == 3

    def test_deep_nesting_is_reported(self):
        result = validate_syntax("[" * 100000, "json")
        assert not result.is_valid
        assert result.errors[0].message == "Nesting too deep to parse"


class TestShell:
    def test_unquoted_variable_and_missing_shebang(self):
        result = validate_syntax("echo $HOME", "bash")
        assert result.is_valid
        assert "Line 1: Consider quoting variable $HOME" in result.suggestions
        assert "Consider adding a shebang line (e.g., #!/bin/bash)" in result.suggestions

    def test_quoted_variable_with_shebang(self):
        result = validate_syntax('#!/bin/sh\necho "$HOME"', "sh")
        assert result.suggestions == []


@pytest.mark.parametrize("language", ["rust", "go", "sql", ""])
def test_unknown_languages_always_validate(language):
    result = validate_syntax("{{{ ((( '", language)
    assert result.is_valid
    assert result.errors == []


class TestFormat:
    def test_javascript_reindents_with_two_spaces(self):
        result = format_code("function f() {\nif (x) {\nreturn 1;\n}\n}", "js")
        assert result.formatted_code == "function f() {\n  if (x) {\n    return 1;\n  }\n}"
        assert result.changed is True

    def test_json_pretty_prints(self):
        result = format_code('{"a":1,"b":[1,2]}', "json")
        assert result.formatted_code == '{\n  "a": 1,\n  "b": [\n    1,\n    2\n  ]\n}'

    def test_invalid_json_unchanged(self):
        result = format_code('{"a":', "json")
        assert result.formatted_code == '{"a":'
        assert result.changed is False

    def test_deeply_nested_json_unchanged(self):
        code = "[" * 100000 + "]" * 100000
        result = format_code(code, "json")
        assert result.formatted_code == code
        assert result.changed is False

    def test_python_maps_depths_to_four_spaces(self):
        code = "def f():\n  if x:\n     return 1\n  return 2"
        result = format_code(code, "python")
        assert result.formatted_code == "def f():\n    if x:\n        return 1\n    return 2"

    def test_already_formatted_is_not_changed(self):
        code = "def f():\n    return 1"
        assert format_code(code, "python").changed is False

    def test_unsupported_language_passthrough(self):
        result = format_code("  SELECT 1", "sql")
        assert result.formatted_code == "  SELECT 1"
        assert result.changed is False
