"""Matching functions available to policy matcher expressions."""

from __future__ import annotations

import calendar
import ipaddress
import re
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Protocol, Union

_IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
_IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

_COLON_PARAM_RE = re.compile(r":[^/]+")
_BRACE_PARAM_RE = re.compile(r"\{[^/]+\}")
# Non-greedy so that several {...} placeholders inside one path segment work.
_BRACE_PARAM_LAZY_RE = re.compile(r"\{[^/]+?\}")
_KEY_MATCH4_RE = re.compile(r"\{([^/]+)\}")
_TIME_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2}) (\d{1,2}):(\d{2}):(\d{2})", re.ASCII)


class OperatorArgumentError(TypeError):
    """Raised when a matcher function gets the wrong number or type of arguments."""


class _RoleManager(Protocol):
    def has_link(self, name1: str, name2: str, *domains: str) -> bool: ...


def _validate_args(name: str, expected: int, args: tuple[Any, ...]) -> None:
    if len(args) != expected:
        raise OperatorArgumentError(
            f"{name}: expected {expected} arguments, but got {len(args)}"
        )
    if not all(isinstance(arg, str) for arg in args):
        raise OperatorArgumentError(f"{name}: argument must be a string")


def _expand_wildcards(pattern: str) -> str:
    return pattern.replace("/*", "/.*")


def key_match(key1: str, key2: str) -> bool:
    """Return True if ``key1`` matches ``key2``, where a ``*`` in ``key2`` matches any suffix."""
    i = key2.find("*")
    if i == -1:
        return key1 == key2
    if len(key1) > i:
        return key1[:i] == key2[:i]
    return key1 == key2[:i]


def key_match_func(*args: Any) -> bool:
    """Matcher wrapper for :func:`key_match`."""
    _validate_args("keyMatch", 2, args)
    return key_match(args[0], args[1])


def key_get(key1: str, key2: str) -> str:
    """Return the part of ``key1`` matched by the ``*`` in ``key2``, or ``""``."""
    i = key2.find("*")
    if i == -1:
        return ""
    if len(key1) > i and key1[:i] == key2[:i]:
        return key1[i:]
    return ""


def key_get_func(*args: Any) -> str:
    """Matcher wrapper for :func:`key_get`."""
    _validate_args("keyGet", 2, args)
    return key_get(args[0], args[1])


def key_match2(key1: str, key2: str) -> bool:
    """Match RESTful paths where ``key2`` may hold ``/*`` and ``:name`` segments."""
    pattern = _COLON_PARAM_RE.sub("[^/]+", _expand_wildcards(key2))
    return regex_match(key1, f"^{pattern}$")


def key_match2_func(*args: Any) -> bool:
    """Matcher wrapper for :func:`key_match2`."""
    _validate_args("keyMatch2", 2, args)
    return key_match2(args[0], args[1])


def _extract_value(key1: str, pattern: str, names: list[str], path_var: str) -> str:
    match = re.search(f"^{pattern}$", key1)
    if match is None:
        return ""
    for group, name in enumerate(names, start=1):
        if name == path_var:
            return match.group(group) or ""
    return ""


def key_get2(key1: str, key2: str, path_var: str) -> str:
    """Return the value of the ``:path_var`` segment of ``key2`` found in ``key1``."""
    pattern = _expand_wildcards(key2)
    names = [token[1:] for token in _COLON_PARAM_RE.findall(pattern)]
    pattern = _COLON_PARAM_RE.sub("([^/]+)", pattern)
    return _extract_value(key1, pattern, names, path_var)


def key_get2_func(*args: Any) -> str:
    """Matcher wrapper for :func:`key_get2`."""
    _validate_args("keyGet2", 3, args)
    return key_get2(args[0], args[1], args[2])


def key_match3(key1: str, key2: str) -> bool:
    """Match RESTful paths where ``key2`` may hold ``/*`` and ``{name}`` segments."""
    pattern = _BRACE_PARAM_RE.sub("[^/]+", _expand_wildcards(key2))
    return regex_match(key1, f"^{pattern}$")


def key_match3_func(*args: Any) -> bool:
    """Matcher wrapper for :func:`key_match3`."""
    _validate_args("keyMatch3", 2, args)
    return key_match3(args[0], args[1])


def key_get3(key1: str, key2: str, path_var: str) -> str:
    """Return the value of the ``{path_var}`` placeholder of ``key2`` found in ``key1``."""
    pattern = _expand_wildcards(key2)
    names = [token[1:-1] for token in _BRACE_PARAM_LAZY_RE.findall(pattern)]
    pattern = _BRACE_PARAM_LAZY_RE.sub("([^/]+?)", pattern)
    return _extract_value(key1, pattern, names, path_var)


def key_get3_func(*args: Any) -> str:
    """Matcher wrapper for :func:`key_get3`."""
    _validate_args("keyGet3", 3, args)
    return key_get3(args[0], args[1], args[2])


def key_match4(key1: str, key2: str) -> bool:
    """Like :func:`key_match3`, but repeated ``{name}`` placeholders must hold equal values."""
    tokens: list[str] = []

    def _capture(match: re.Match[str]) -> str:
        tokens.append(match.group(1))
        return "([^/]+)"

    pattern = _KEY_MATCH4_RE.sub(_capture, _expand_wildcards(key2))
    match = re.search(f"^{pattern}$", key1)
    if match is None:
        return False
    values = match.groups()
    if len(tokens) != len(values):
        raise ValueError("key_match4: number of tokens is not equal to number of values")

    seen: dict[str, str | None] = {}
    return all(seen.setdefault(token, value) == value for token, value in zip(tokens, values))


def key_match4_func(*args: Any) -> bool:
    """Matcher wrapper for :func:`key_match4`."""
    _validate_args("keyMatch4", 2, args)
    return key_match4(args[0], args[1])


def key_match5(key1: str, key2: str) -> bool:
    """Like :func:`key_match3`, ignoring any query string in ``key1``."""
    path, _, _ = key1.partition("?")
    pattern = _BRACE_PARAM_RE.sub("[^/]+", _expand_wildcards(key2))
    return regex_match(path, f"^{pattern}$")


def key_match5_func(*args: Any) -> bool:
    """Matcher wrapper for :func:`key_match5`."""
    _validate_args("keyMatch5", 2, args)
    return key_match5(args[0], args[1])


def regex_match(key1: str, key2: str) -> bool:
    """Return True if the regular expression ``key2`` is found in ``key1``."""
    return re.search(key2, key1) is not None


def regex_match_func(*args: Any) -> bool:
    """Matcher wrapper for :func:`regex_match`."""
    _validate_args("regexMatch", 2, args)
    return regex_match(args[0], args[1])


def _parse_ip(text: str) -> _IPAddress | None:
    try:
        address = ipaddress.ip_address(text)
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return address.ipv4_mapped
    return address


def _parse_cidr(text: str) -> _IPNetwork | None:
    _, sep, prefix = text.partition("/")
    if not sep or not (prefix.isascii() and prefix.isdigit()):
        return None
    try:
        return ipaddress.ip_network(text, strict=False)
    except ValueError:
        return None


def ip_match(ip1: str, ip2: str) -> bool:
    """Return True if address ``ip1`` equals address ``ip2`` or lies in the CIDR ``ip2``."""
    address = _parse_ip(ip1)
    if address is None:
        raise ValueError("invalid argument: ip1 in ip_match() function is not an IP address.")
    network = _parse_cidr(ip2)
    if network is None:
        other = _parse_ip(ip2)
        if other is None:
            raise ValueError(
                "invalid argument: ip2 in ip_match() function is neither an IP address nor a CIDR."
            )
        return address == other
    return address in network


def ip_match_func(*args: Any) -> bool:
    """Matcher wrapper for :func:`ip_match`."""
    _validate_args("ipMatch", 2, args)
    return ip_match(args[0], args[1])


def _bad_glob() -> ValueError:
    return ValueError("syntax error in pattern")


def _glob_class_char(pattern: str, pos: int) -> tuple[str, int]:
    if pos >= len(pattern) or pattern[pos] in "-]":
        raise _bad_glob()
    if pattern[pos] == "\\":
        pos += 1
        if pos >= len(pattern):
            raise _bad_glob()
    char = pattern[pos]
    pos += 1
    if pos >= len(pattern):
        raise _bad_glob()
    return char, pos


def _glob_class(pattern: str, pos: int) -> tuple[str, int]:
    negated = pos < len(pattern) and pattern[pos] == "^"
    if negated:
        pos += 1
    ranges: list[tuple[str, str]] = []
    while True:
        if ranges and pos < len(pattern) and pattern[pos] == "]":
            pos += 1
            break
        low, pos = _glob_class_char(pattern, pos)
        high = low
        if pattern[pos] == "-":
            high, pos = _glob_class_char(pattern, pos + 1)
        ranges.append((low, high))

    valid = "".join(f"{re.escape(lo)}-{re.escape(hi)}" for lo, hi in ranges if lo <= hi)
    if not valid:
        return ("." if negated else "(?!)"), pos
    return f"[{'^' if negated else ''}{valid}]", pos


def _translate_glob(pattern: str) -> str:
    parts: list[str] = []
    pos = 0
    while pos < len(pattern):
        char = pattern[pos]
        pos += 1
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "\\":
            if pos >= len(pattern):
                raise _bad_glob()
            parts.append(re.escape(pattern[pos]))
            pos += 1
        elif char == "[":
            translated, pos = _glob_class(pattern, pos)
            parts.append(translated)
        else:
            parts.append(re.escape(char))
    return "".join(parts)


def glob_match(key1: str, key2: str) -> bool:
    """Return True if ``key1`` matches the shell glob ``key2``; ``*`` and ``?`` do not cross ``/``.

    Raises ValueError if ``key2`` is malformed.
    """
    return re.fullmatch(_translate_glob(key2), key1, re.DOTALL) is not None


def glob_match_func(*args: Any) -> bool:
    """Matcher wrapper for :func:`glob_match`."""
    _validate_args("globMatch", 2, args)
    return glob_match(args[0], args[1])


def _has_link(rm: _RoleManager | None, args: tuple[str, ...]) -> bool:
    name1, name2 = args[0], args[1]
    if rm is None:
        return name1 == name2
    try:
        if len(args) == 2:
            return bool(rm.has_link(name1, name2))
        return bool(rm.has_link(name1, name2, args[2]))
    except Exception:
        # A failing role manager counts as "no link": the matcher needs a plain boolean.
        return False


def generate_g_function(rm: _RoleManager | None) -> Callable[..., bool]:
    """Build the ``g(name1, name2[, domain])`` matcher function, memoising its answers."""
    memo: dict[tuple[str, ...], bool] = {}

    def g(*args: str) -> bool:
        key = tuple(args)
        if key in memo:
            return memo[key]
        result = _has_link(rm, key)
        memo[key] = result
        return result

    return g


def generate_conditional_g_function(crm: _RoleManager | None) -> Callable[..., bool]:
    """Build the ``g(name1, name2[, domain])`` matcher function for a conditional role manager."""

    def g(*args: str) -> bool:
        return _has_link(crm, tuple(args))

    return g


def _parse_time(text: str) -> tuple[int, ...]:
    match = _TIME_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"cannot parse {text!r}: expected 'YYYY-MM-DD HH:MM:SS'")
    year, month, day, hour, minute, second = (int(part) for part in match.groups())
    if not 1 <= month <= 12:
        raise ValueError(f"cannot parse {text!r}: month out of range")
    days_in_month = 29 if month == 2 and calendar.isleap(year) else calendar.mdays[month]
    if not 1 <= day <= days_in_month:
        raise ValueError(f"cannot parse {text!r}: day out of range")
    if hour >= 24 or minute >= 60 or second >= 60:
        raise ValueError(f"cannot parse {text!r}: time out of range")
    return (year, month, day, hour, minute, second, 0)


def time_match(start_time: str, end_time: str) -> bool:
    """Return True if the current UTC time lies strictly between the two times.

    Either bound may be ``"_"`` to leave it open. Raises ValueError on a malformed time.
    """
    now = datetime.now(timezone.utc)
    now_key = (now.year, now.month, now.day, now.hour, now.minute, now.second, now.microsecond)
    if start_time != "_" and not now_key > _parse_time(start_time):
        return False
    if end_time != "_" and not now_key < _parse_time(end_time):
        return False
    return True


def time_match_func(*args: str) -> bool:
    """Link-condition wrapper for :func:`time_match`."""
    if len(args) != 2:
        raise OperatorArgumentError(f"TimeMatch: expected 2 arguments, but got {len(args)}")
    return time_match(args[0], args[1])