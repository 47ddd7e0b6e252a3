# provisioner/unit_file.py
# -*- coding: utf-8 -*-
"""
Structured builder for systemd unit files.

Sections keep their entries in insertion order and allow repeated keys
(`Environment=` appears once per variable), so the rendered text has exactly
the layout the entries were added in.
"""

import re
from typing import List, Optional, Sequence, Tuple, Union

UnitValue = Union[str, int, bool, Sequence[str]]

# Characters that force an Environment= assignment into double quotes.
_NEEDS_QUOTING = re.compile(r"[\s\"'\\\x00-\x1f\x7f]")
_LINE_BREAK = re.compile(r"[\r\n]")
_C_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r"}


def format_unit_value(value: UnitValue) -> str:
    """Render a Python value the way systemd expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return str(value)


def _escape_char(char: str) -> str:
    if char in _C_ESCAPES:
        return _C_ESCAPES[char]
    if ord(char) < 0x20 or ord(char) == 0x7F:
        return f"\\x{ord(char):02x}"
    return char


def quote_environment_assignment(name: str, value: UnitValue) -> str:
    """
    Return the right-hand side of an `Environment=` line for NAME=value.

    `%` is doubled so systemd does not expand it as a specifier. Assignments
    containing whitespace, quotes, backslashes or control characters are
    wrapped in double quotes with C-style escapes, which keeps the whole value
    in one variable on one line.
    """
    assignment = f"{name}={format_unit_value(value)}".replace("%", "%%")
    if not _NEEDS_QUOTING.search(assignment):
        return assignment
    return '"' + "".join(_escape_char(char) for char in assignment) + '"'


class UnitSection:
    """One `[Name]` block of a unit file."""

    def __init__(self, name: str):
        self.name = name
        # (key, value) pairs; key None marks a raw line (comment or blank).
        self._lines: List[Tuple[Optional[str], str]] = []

    def set(self, key: str, value: UnitValue) -> "UnitSection":
        rendered = format_unit_value(value)
        if _LINE_BREAK.search(rendered):
            raise ValueError(
                f"Value for '{key}' in [{self.name}] contains a line break."
            )
        self._lines.append((key, rendered))
        return self

    def environment(self, name: str, value: UnitValue) -> "UnitSection":
        return self.set("Environment", quote_environment_assignment(name, value))

    def comment(self, text: str) -> "UnitSection":
        self._lines.append((None, f"# {text}"))
        return self

    def blank(self) -> "UnitSection":
        self._lines.append((None, ""))
        return self

    def render(self) -> str:
        lines = [f"[{self.name}]"]
        for key, value in self._lines:
            lines.append(value if key is None else f"{key}={value}")
        return "\n".join(lines) + "\n"


class UnitFile:
    """An ordered collection of sections, rendered separated by blank lines."""

    def __init__(self):
        self.sections: List[UnitSection] = []

    def section(self, name: str) -> UnitSection:
        for existing in self.sections:
            if existing.name == name:
                return existing
        new_section = UnitSection(name)
        self.sections.append(new_section)
        return new_section

    def render(self) -> str:
        return "\n".join(section.render() for section in self.sections)
