"""String, list and matcher-expression helpers used by the policy engine."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence

_EVAL_RE = re.compile(r"\beval\((?P<rule>[^)]*)\)", re.ASCII)
_ESCAPE_ASSERTION_RE = re.compile(r"\b((r|p)[0-9]*)\.", re.ASCII)
_NUMERIC_RE = re.compile(r"-?\d+(?:\.\d+)?", re.ASCII)


def is_numeric(s: str) -> bool:
    """Return True if ``s`` is an optionally signed integer or decimal number."""
    return _NUMERIC_RE.fullmatch(s) is not None


def escape_assertion(s: str) -> str:
    """Replace the dot after ``r``/``p`` tokens (``r.sub`` -> ``r_sub``)."""
    return _ESCAPE_ASSERTION_RE.sub(lambda m: m.group(0).replace(".", "_", 1), s)


def remove_comments(s: str) -> str:
    """Strip a trailing ``#`` comment and the whitespace around what is left."""
    pos = s.find("#")
    if pos == -1:
        return s
    return s[:pos].strip()


def array_equals(a: Sequence[str], b: Sequence[str]) -> bool:
    """Return True if both sequences hold the same items in the same order."""
    return list(a) == list(b)


def array_2d_equals(a: Sequence[Sequence[str]], b: Sequence[Sequence[str]]) -> bool:
    """Return True if both tables hold the same rows in the same order."""
    return len(a) == len(b) and all(array_equals(x, y) for x, y in zip(a, b))


def sort_array_2d(arr: list[list[str]]) -> None:
    """Sort rows in place, comparing the first ``len(arr[0])`` columns."""
    if not arr:
        return
    width = len(arr[0])
    arr.sort(key=lambda row: tuple(row[:width]))


def sorted_array_2d_equals(a: Sequence[Sequence[str]], b: Sequence[Sequence[str]]) -> bool:
    """Return True if both tables hold the same rows, in any order."""
    if len(a) != len(b):
        return False
    copy_a = [list(row) for row in a]
    copy_b = [list(row) for row in b]
    sort_array_2d(copy_a)
    sort_array_2d(copy_b)
    return array_2d_equals(copy_a, copy_b)


def remove_duplicates(items: Iterable[str]) -> list[str]:
    """Return the items with later duplicates dropped, keeping first-seen order."""
    return list(dict.fromkeys(items))


def array_to_string(items: Iterable[str]) -> str:
    """Join items with ``", "`` for display."""
    return ", ".join(items)


def params_to_string(*args: str) -> str:
    """Join the arguments with ``", "`` for display."""
    return ", ".join(args)


def set_equals(a: Iterable[str], b: Iterable[str]) -> bool:
    """Return True if both collections hold the same items, ignoring order."""
    return sorted(a) == sorted(b)


def set_2d_equals(a: Iterable[Iterable[str]], b: Iterable[Iterable[str]]) -> bool:
    """Return True if both tables hold the same rows, ignoring row and column order."""
    return set_equals(
        (", ".join(sorted(row)) for row in a),
        (", ".join(sorted(row)) for row in b),
    )


def join_slice(a: str, *args: str) -> list[str]:
    """Return a new list holding ``a`` followed by ``args``."""
    return [a, *args]


def set_subtract(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """Return the items of ``a`` that are not in ``b``, in their original order."""
    excluded = set(b)
    return [x for x in a if x not in excluded]


def has_eval(s: str) -> bool:
    """Return True if the matcher text calls ``eval(...)``."""
    return _EVAL_RE.search(s) is not None


def replace_eval(s: str, rule: str) -> str:
    """Replace every ``eval(...)`` call with ``(rule)``."""
    replacement = f"({rule})"
    return _EVAL_RE.sub(lambda _m: replacement, s)


def replace_eval_with_map(src: str, sets: Mapping[str, str] | None) -> str:
    """Replace each ``eval(name)`` with ``sets[name]``; unknown names stay as they are."""
    lookup = sets or {}

    def _substitute(match: re.Match[str]) -> str:
        value = lookup.get(match.group("rule"))
        return match.group(0) if value is None else value

    return _EVAL_RE.sub(_substitute, src)


def get_eval_value(s: str) -> list[str]:
    """Return the arguments of every ``eval(...)`` call, in order."""
    return [m.group("rule") for m in _EVAL_RE.finditer(s)]