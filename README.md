# authzutil

Building blocks for access-control policy engines: functions that match
request values against policy patterns, helpers for matcher expressions
and rule lists, and a small LRU cache. It has no dependencies outside the
standard library.

## Installation

```
pip install authzutil
```

To run the test suite, install the test extra and run pytest:

```
pip install "authzutil[test]"
pytest
```

## Key matchers

`authzutil.operators` decides whether a request value matches a policy
pattern:

```python
from authzutil.operators import (
    key_match, key_match2, key_match3, key_match4, key_match5,
    key_get, key_get2, key_get3,
    regex_match, ip_match, glob_match, time_match,
)

key_match("/foo/bar", "/foo/*")                         # True
key_match2("/resource1", "/:resource")                  # True
key_match3("/proxy/myid/res", "/proxy/{id}/*")          # True
key_match4("/parent/123/child/456", "/parent/{id}/child/{id}")  # False
key_match5("/foo/bar?status=1", "/foo/bar")             # True

key_get("/foo/bar", "/foo/*")                           # "bar"
key_get2("/myid/using/myresid", "/:id/using/:resId", "resId")  # "myresid"
key_get3("/api/project1_admin/info", "/api/{proj}_admin/info", "proj")  # "project1"

regex_match("/topic/edit/123", "/topic/edit/[0-9]+")    # True
ip_match("192.168.2.123", "192.168.2.0/24")             # True
glob_match("/foo/bar", "/foo/*")                        # True
time_match("_", "9999-12-30 00:00:00")                  # True
```

What each one does:

- `key_match`: a `*` in the pattern matches any suffix.
- `key_match2` / `key_match3`: `/*` matches the rest of the path; `:name`
  (key_match2) or `{name}` (key_match3) matches one path segment.
- `key_match4`: like `key_match3`, but a placeholder used more than once
  must hold the same value each time.
- `key_match5`: like `key_match3`, ignoring any `?query` in the request.
- `key_get`, `key_get2`, `key_get3`: return the part of the request matched
  by `*`, `:name` or `{name}`, or `""` when there is no match.
- `regex_match`: the regular expression is searched for anywhere in the
  value.
- `ip_match`: the address equals the second address or lies in the given
  CIDR range; an unparsable address raises `ValueError`.
- `glob_match`: shell-style glob where `*` and `?` do not cross `/`; a
  malformed pattern raises `ValueError`.
- `time_match(start, end)`: the current UTC time lies strictly between the
  two `YYYY-MM-DD HH:MM:SS` times; `"_"` leaves a bound open. A malformed
  time raises `ValueError`.

Each matcher also has a `*_func` form (for example `key_match_func`,
`time_match_func`) that takes loose positional arguments, checks their
number (and, except for `time_match_func`, that they are strings), and
raises `OperatorArgumentError` with a message such as
`keyMatch: expected 2 arguments, but got 1`. These suit registration as
functions inside a matcher-expression evaluator.

`generate_g_function(rm)` builds a memoising `g(name1, name2[, domain])`
function over any object with a `has_link(name1, name2, *domains)` method;
`generate_conditional_g_function(crm)` builds the same without memoising.
With `None` as the role manager both fall back to plain equality of the two
names, and an exception from `has_link` counts as no link.

## Expression helpers

`authzutil.util` holds helpers for matcher expressions and rule lists:

```python
from authzutil.util import (
    escape_assertion, remove_comments, has_eval, get_eval_value,
    replace_eval, replace_eval_with_map, set_equals, is_numeric,
)

escape_assertion("r.attr.value == p.attr")      # "r_attr.value == p_attr"
remove_comments("r.act == p.act # comments")    # "r.act == p.act"
has_eval("eval(rule1) && a")                    # True
get_eval_value("eval(a) && eval(b)")            # ["a", "b"]
replace_eval("eval() && a", "b")                # "(b) && a"
replace_eval_with_map("eval(rule1) && c", {"rule1": "a == b"})  # "a == b && c"
set_equals(["a", "b", "c"], ["a", "c", "b"])    # True
is_numeric("-1.5")                              # True
```

It also offers `array_equals`, `array_2d_equals`, `sort_array_2d`,
`sorted_array_2d_equals`, `set_2d_equals`, `set_subtract`,
`remove_duplicates`, `join_slice`, `array_to_string` and
`params_to_string`.

## LRU cache

```python
from authzutil.lru import LRUCache, SyncLRUCache

cache = LRUCache(3)
cache.put("one", 1)
cache.get("one")            # 1
cache.get("missing", 0)     # 0
"one" in cache              # True
len(cache)                  # 1
cache.values()              # [1], most recently used first
```

When the cache is full, `put` evicts the least recently used entry.
Putting a key that is already cached only marks it as recently used; the
value stored first is kept. A capacity below 1 raises `ValueError`.

`SyncLRUCache` offers the same cache with `get`, `put` and `values`
guarded by a lock, for use from several threads.

## What this package does not do

This package holds the pieces a policy engine is built from; it is not an
engine itself. It does not read model or policy files, store policies,
manage roles or evaluate matcher expressions, and it has no command-line
tool. The role manager passed to `generate_g_function` has to come from
the calling code.