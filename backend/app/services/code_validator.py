"""Lightweight syntax checks and re-indentation for snippet code.

These are heuristics, not parsers: bracket counting and string checks for the
JavaScript family, indentation tracking for Python, a real parse for JSON and
quoting hints for shell scripts. Unknown languages always validate.
"""

import json
import re
from dataclasses import dataclass, field

JS_LANGUAGES = frozenset({"js", "ts", "jsx", "tsx", "javascript", "typescript"})
TS_LANGUAGES = frozenset({"ts", "tsx", "typescript"})
PYTHON_LANGUAGES = frozenset({"python", "py"})
SHELL_LANGUAGES = frozenset({"bash", "sh", "shell"})

_STRING_LITERAL = re.compile(r"""(['"`])((?:(?!\1)[^\\]|\\.)*)(\1?)""")
_SHELL_VARIABLE = re.compile(r"\$\w+")

# closing char -> (opening char, name, plural form)
_PAIRS = {
    "}": ("{", "brace", "brace(s)"),
    ")": ("(", "parenthesis", "parenthesis(es)"),
    "]": ("[", "bracket", "bracket(s)"),
}


@dataclass
class Issue:
    line: int
    column: int
    message: str
    severity: str = "error"  # error, warning, info


@dataclass
class ValidationResult:
    errors: list[Issue] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(issue.severity == "error" for issue in self.errors)


@dataclass(frozen=True)
class FormatResult:
    formatted_code: str
    changed: bool


def _normalize(language: str) -> str:
    return language.strip().lower()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_javascript(lines: list[str], typescript: bool) -> ValidationResult:
    result = ValidationResult()
    levels = {"{": 0, "(": 0, "[": 0}

    for number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("//") or stripped.startswith("/*"):
            continue

        for match in _STRING_LITERAL.finditer(line):
            if not match.group(3):
                result.errors.append(Issue(number, match.start() + 1, "Unclosed string literal"))

        for column, char in enumerate(line, start=1):
            if char in levels:
                levels[char] += 1
            elif char in _PAIRS:
                opening, name, _ = _PAIRS[char]
                levels[opening] -= 1
                if levels[opening] < 0:
                    result.errors.append(Issue(number, column, f"Unexpected closing {name}"))

        if "console.log" in stripped and "//" not in stripped:
            result.suggestions.append(f"Line {number}: Consider removing console.log before production")
        if "var " in stripped:
            result.suggestions.append(f"Line {number}: Consider using 'let' or 'const' instead of 'var'")
        if "==" in stripped and "===" not in stripped:
            result.suggestions.append(f"Line {number}: Consider using '===' for strict equality")
        if typescript and ": any" in stripped:
            result.suggestions.append(f"Line {number}: Consider using more specific types instead of 'any'")

    for opening, _, plural in _PAIRS.values():
        if levels[opening] > 0:
            result.errors.append(Issue(len(lines), 1, f"{levels[opening]} unclosed {plural}"))
    return result


def _validate_python(lines: list[str]) -> ValidationResult:
    result = ValidationResult()
    indent_stack = [0]

    for number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        leading = len(line) - len(line.lstrip())
        if leading % 4:
            result.suggestions.append(f"Line {number}: Consider using 4 spaces for indentation")

        if stripped.endswith(":"):
            indent_stack.append(leading + 4)
        elif leading < indent_stack[-1]:
            while len(indent_stack) > 1 and indent_stack[-1] > leading:
                indent_stack.pop()
            if indent_stack[-1] != leading:
                result.errors.append(Issue(number, 1, "Indentation error"))

        if "print(" in stripped:
            result.suggestions.append(
                f"Line {number}: Consider using logging instead of print for production code"
            )
    return result


def _validate_json(code: str) -> ValidationResult:
    result = ValidationResult()
    try:
        json.loads(code)
    except json.JSONDecodeError as e:
        result.errors.append(Issue(e.lineno, e.colno, e.msg))
    except RecursionError:
        result.errors.append(Issue(1, 1, "Nesting too deep to parse"))
    return result


def _validate_shell(lines: list[str]) -> ValidationResult:
    result = ValidationResult()
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        for match in _SHELL_VARIABLE.finditer(line):
            before = line[match.start() - 1] if match.start() > 0 else ""
            after = line[match.end()] if match.end() < len(line) else ""
            if before not in ("'", '"') and after not in ("'", '"'):
                result.suggestions.append(f"Line {index + 1}: Consider quoting variable {match.group(0)}")
    if lines and not lines[0].strip().startswith("#!"):
        result.suggestions.append("Consider adding a shebang line (e.g., #!/bin/bash)")
    return result


def validate_syntax(code: str, language: str) -> ValidationResult:
    """Run the checks for ``language`` over ``code``."""
    language = _normalize(language)
    lines = code.split("\n")
    if language in JS_LANGUAGES:
        return _validate_javascript(lines, typescript=language in TS_LANGUAGES)
    if language in PYTHON_LANGUAGES:
        return _validate_python(lines)
    if language == "json":
        return _validate_json(code)
    if language in SHELL_LANGUAGES:
        return _validate_shell(lines)
    return ValidationResult()


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def _format_braces(code: str, indent_size: int = 2) -> str:
    level = 0
    out = []
    for line in code.split("\n"):
        stripped = line.strip()
        if not stripped:
            out.append("")
            continue
        if stripped[0] in "}])":
            level = max(0, level - 1)
        out.append(" " * (level * indent_size) + stripped)
        if stripped[-1] in "{[(":
            level += 1
    return "\n".join(out)


def _format_json(code: str) -> str:
    try:
        return json.dumps(json.loads(code), indent=2)
    except (json.JSONDecodeError, RecursionError):
        return code


def _format_python(code: str, indent_size: int = 4) -> str:
    """Map each existing indentation depth onto multiples of ``indent_size``."""
    widths = [0]
    out = []
    for line in code.split("\n"):
        stripped = line.strip()
        if not stripped:
            out.append("")
            continue
        leading = len(line) - len(line.lstrip())
        if leading > widths[-1]:
            widths.append(leading)
        else:
            while len(widths) > 1 and widths[-1] > leading:
                widths.pop()
        depth = len(widths) - 1
        out.append(" " * (depth * indent_size) + stripped)
    return "\n".join(out)


def format_code(code: str, language: str) -> FormatResult:
    """Re-indent ``code``; unsupported languages come back unchanged."""
    language = _normalize(language)
    if language in JS_LANGUAGES:
        formatted = _format_braces(code)
    elif language == "json":
        formatted = _format_json(code)
    elif language in PYTHON_LANGUAGES:
        formatted = _format_python(code)
    else:
        formatted = code
    return FormatResult(formatted_code=formatted, changed=formatted != code)
