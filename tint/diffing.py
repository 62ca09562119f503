"""Structural comparison of actual and expected JSON documents."""

import difflib
import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

LineKind: TypeAlias = Literal["added", "removed", "unchanged"]


@dataclass(frozen=True, kw_only=True)
class DiffLine:
    kind: LineKind
    text: str


@dataclass(frozen=True, kw_only=True)
class JsonComparison:
    """Outcome of comparing actual output with the expected document."""

    matches: bool
    lines: Sequence[DiffLine]


def dump_json(value: Any) -> list[str]:
    return json.dumps(value, indent=2, sort_keys=True).splitlines()


def compare_json(actual: Any, expected: Any) -> JsonComparison:
    """Compare two parsed JSON values.

    Values are compared in canonical form: mapping key order is ignored,
    list order is not, and ``true`` never equals ``1``. ``lines`` is a line
    diff from actual to expected: ``removed`` lines appear only in the actual
    output, ``added`` lines only in the expected document.
    """
    actual_lines = dump_json(actual)
    expected_lines = dump_json(expected)

    lines: list[DiffLine] = []
    for line in difflib.ndiff(actual_lines, expected_lines):
        tag, text = line[:2], line[2:]
        if tag == "- ":
            lines.append(DiffLine(kind="removed", text=text))
        elif tag == "+ ":
            lines.append(DiffLine(kind="added", text=text))
        elif tag == "  ":
            lines.append(DiffLine(kind="unchanged", text=text))

    return JsonComparison(matches=actual_lines == expected_lines, lines=lines)
