"""
Exact structural comparison of JSON-shaped values and readable diffs
"""

from typing import Any, List, Mapping, Sequence

def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))

def structurally_equal(actual: Any, expected: Any) -> bool:
    """Deep equality that also requires identical leaf types.

    Sequences compare position by position, mappings by key. ``1``, ``1.0``
    and ``True`` are all different values here.
    """
    if isinstance(expected, Mapping) or isinstance(actual, Mapping):
        if not (isinstance(expected, Mapping) and isinstance(actual, Mapping)):
            return False
        if actual.keys() != expected.keys():
            return False
        return all(structurally_equal(actual[k], expected[k]) for k in expected)
    if _is_sequence(expected) or _is_sequence(actual):
        if not (_is_sequence(expected) and _is_sequence(actual)):
            return False
        if len(actual) != len(expected):
            return False
        return all(structurally_equal(a, e) for a, e in zip(actual, expected))
    return type(actual) is type(expected) and actual == expected

def _describe(value: Any) -> str:
    return f"{type(value).__name__} [{value!r}]"

class NotEqualMessageBuilder:
    """Renders two structures side by side, one line per field"""

    def __init__(self):
        self._lines: List[str] = []
        self._indent = 0

    def __str__(self) -> str:
        return "\n".join(self._lines)

    def compare_maps(self, actual: Mapping, expected: Mapping):
        self._indent += 1
        for key, expected_value in expected.items():
            if key not in actual:
                self.field(key, f"expected {_describe(expected_value)} but not found")
                continue
            self.compare(key, actual[key], expected_value)
        for key, actual_value in actual.items():
            if key not in expected:
                self.field(key, f"unexpected but found [{actual_value!r}]")
        self._indent -= 1

    def compare_lists(self, actual: Sequence, expected: Sequence):
        self._indent += 1
        for i, expected_value in enumerate(expected):
            if i >= len(actual):
                self.field(i, f"expected {_describe(expected_value)} but not found")
                continue
            self.compare(i, actual[i], expected_value)
        for i in range(len(expected), len(actual)):
            self.field(i, f"unexpected but found [{actual[i]!r}]")
        self._indent -= 1

    def compare(self, name: Any, actual: Any, expected: Any):
        if isinstance(expected, Mapping):
            if not isinstance(actual, Mapping):
                self.field(name, f"expected map but found {_describe(actual)}")
                return
            self.field(name, "")
            self.compare_maps(actual, expected)
        elif _is_sequence(expected):
            if not _is_sequence(actual):
                self.field(name, f"expected list but found {_describe(actual)}")
                return
            self.field(name, "")
            self.compare_lists(actual, expected)
        elif type(actual) is type(expected) and actual == expected:
            self.field(name, f"same [{expected!r}]")
        else:
            self.field(name, f"expected {_describe(expected)} but was {_describe(actual)}")

    def field(self, name: Any, message: str):
        line = "  " * self._indent + f"{name}:"
        if message:
            line += f" {message}"
        self._lines.append(line)

def render_diff(actual: Mapping, expected: Mapping) -> str:
    builder = NotEqualMessageBuilder()
    builder.compare_maps(actual, expected)
    return str(builder)
