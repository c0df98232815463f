"""Heuristic extraction of the class methods a plugin overrides.

Works on plain text with comments and string literals blanked out. It does not
parse JavaScript: computed names (`Cls.prototype[name] = ...`) and assignments
through intermediate variables are invisible to it.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from mzforge.utils.js_text import blank_comments, blank_comments_and_strings

# Cls.prototype.method = ...   (also Cls.prototype.method.sub = ..., not == / =>)
_PROTOTYPE_ASSIGN = re.compile(r"\b(\w+)\.prototype\.(\w+)(?:\.\w+)*\s*=(?![=>])")
# const _alias = Cls.prototype.method;
_PROTOTYPE_ALIAS = re.compile(r"\b(?:const|let|var)\s+\w+\s*=\s*(\w+)\.prototype\.(\w+)\s*[;,]")
# Object.defineProperty(Cls.prototype, 'method', {...})
_DEFINE_PROPERTY = re.compile(r"Object\.defineProperty\(\s*(\w+)\.prototype\s*,\s*['\"](\w+)['\"]")
# Cls.method = function / async function / (args) => / arg =>
_STATIC_ASSIGN = re.compile(
    r"(?<![\w.$])([A-Z]\w*)\.(\w+)\s*=\s*(?:function\b|async\b|\([^()]*\)\s*=>|\w+\s*=>)"
)
# const _alias = Cls.method;
_STATIC_ALIAS = re.compile(r"\b(?:const|let|var)\s+\w+\s*=\s*([A-Z]\w*)\.(\w+)\s*[;,]")


@dataclass
class MethodTouch:
    """One plugin touching one class method."""

    class_name: str
    method_name: str
    static: bool = False
    captured: bool = False
    assigned: bool = False

    @property
    def identifier(self) -> str:
        return f"{self.class_name}.{self.method_name}"

    @property
    def key(self) -> Tuple[str, str, bool]:
        return (self.class_name, self.method_name, self.static)


def extract_touches(code: str) -> List[MethodTouch]:
    """Find every class method the code assigns or captures, in first-seen order."""
    if not code:
        return []

    cleaned = blank_comments_and_strings(code)
    touches: Dict[Tuple[str, str, bool], MethodTouch] = {}

    def touch(class_name: str, method_name: str, static: bool) -> MethodTouch:
        key = (class_name, method_name, static)
        if key not in touches:
            touches[key] = MethodTouch(class_name, method_name, static)
        return touches[key]

    events = []
    for match in _PROTOTYPE_ASSIGN.finditer(cleaned):
        events.append((match.start(), "assign", match.group(1), match.group(2), False))
    for match in _PROTOTYPE_ALIAS.finditer(cleaned):
        events.append((match.start(), "capture", match.group(1), match.group(2), False))
    # Property names are string literals, so only comments are blanked here
    for match in _DEFINE_PROPERTY.finditer(blank_comments(code)):
        events.append((match.start(), "assign", match.group(1), match.group(2), False))

    static_assigned = set()
    for match in _STATIC_ASSIGN.finditer(cleaned):
        if match.group(2) == "prototype":
            continue
        static_assigned.add((match.group(1), match.group(2)))
        events.append((match.start(), "assign", match.group(1), match.group(2), True))
    for match in _STATIC_ALIAS.finditer(cleaned):
        # `const x = Foo.bar;` alone is a plain read, not an override
        if (match.group(1), match.group(2)) in static_assigned:
            events.append((match.start(), "capture", match.group(1), match.group(2), True))

    for _, kind, class_name, method_name, static in sorted(events, key=lambda e: e[0]):
        entry = touch(class_name, method_name, static)
        if kind == "assign":
            entry.assigned = True
        else:
            entry.captured = True

    return list(touches.values())


def extract_overrides(code: str) -> List[str]:
    """Identifiers (`Cls.method`) of every method the code touches."""
    return [t.identifier for t in extract_touches(code)]
