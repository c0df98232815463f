"""Helpers for reading and writing JavaScript source text."""

import re

# Block comments, line comments, template literals, double- and single-quoted strings
_COMMENT_OR_STRING = re.compile(
    r"/\*[\s\S]*?\*/|//[^\n]*|`(?:[^`\\]|\\.)*`|\"(?:[^\"\\\n]|\\.)*\"|'(?:[^'\\\n]|\\.)*'"
)
_COMMENT = re.compile(r"/\*[\s\S]*?\*/|//[^\n]*")

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Words that cannot name a variable in strict-mode JS
RESERVED_WORDS = frozenset({
    "await", "break", "case", "catch", "class", "const", "continue", "debugger",
    "default", "delete", "do", "else", "enum", "export", "extends", "false",
    "finally", "for", "function", "if", "implements", "import", "in",
    "instanceof", "interface", "let", "new", "null", "package", "private",
    "protected", "public", "return", "static", "super", "switch", "this",
    "throw", "true", "try", "typeof", "var", "void", "while", "with", "yield",
    "arguments", "eval",
})


def _blank(match: re.Match) -> str:
    # Keep newlines so line structure and offsets survive
    return re.sub(r"[^\n]", " ", match.group(0))


def blank_comments_and_strings(code: str) -> str:
    """Replace comments and string literals with spaces of equal length.

    Offsets in the returned text match the input, so matches found in the
    blanked text can be mapped back to the original source.
    """
    if not code:
        return ""
    return _COMMENT_OR_STRING.sub(_blank, code)


def blank_comments(code: str) -> str:
    """Replace only comments with spaces, leaving string literals intact."""
    if not code:
        return ""
    return _COMMENT.sub(_blank, code)


def is_identifier(name: str) -> bool:
    """Check whether a name is a plain JS identifier."""
    return bool(name) and IDENTIFIER_PATTERN.match(name) is not None


def camel_case(name: str) -> str:
    """Convert a parameter name into a camelCase JS identifier.

    "Window Width" -> "windowWidth", "max_hp" -> "maxHp". Leading digits get an
    underscore prefix and reserved words an underscore suffix ("Switch" ->
    "switch_"), so the result is always a usable variable name.
    """
    if not name:
        return "unnamed"
    words = [w for w in re.sub(r"[^A-Za-z0-9]", " ", name).split(" ") if w]
    if not words:
        return "unnamed"
    result = words[0].lower() + "".join(w[:1].upper() + w[1:].lower() for w in words[1:])
    if result[0].isdigit():
        result = "_" + result
    if result in RESERVED_WORDS:
        result += "_"
    return result


def js_string(value: str) -> str:
    """Quote a Python string as a single-quoted JS string literal."""
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"
