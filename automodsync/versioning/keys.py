# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Module version ordering for automodsync.

This module only parses and compares version strings. It never touches the
network. Versions published to PowerShell-style feeds are dotted numeric
releases ("2.12.1", "4.2.0.1") optionally followed by a prerelease label
("1.0.0-preview2"), and both the gallery and the Automation service report
them as plain strings.
"""

from __future__ import annotations

import re

# Known prerelease tag ordering (lower = older)
_PRE_TAG_RANK: dict[str, float] = {
    "dev": 0,
    "alpha": 1,
    "a": 1,
    "pre": 1,
    "preview": 1,
    "beta": 2,
    "b": 2,
    "rc": 3,
}
_UNKNOWN_PRE_RANK = 2.5  # unknown prerelease tags sort between beta and rc
_FINAL_RANK = 4.0

_NUM_SEP = re.compile(r"[._-]")


def _strip_build_meta(s: str) -> str:
    """Drop '+build' metadata (ignored in ordering)."""
    i = s.find("+")
    return s if i == -1 else s[:i]


def _leading_release_tuple(s: str) -> tuple[int, ...]:
    """Extract the leading numeric release tuple from a version string.

    A leading "v" is dropped and numeric tokens are taken until the first
    non-numeric one. Trailing zero components are removed so "1.2" and
    "1.2.0.0" produce the same key. Returns () when no digits lead the string.
    """
    s2 = s.strip().lower()
    if s2.startswith("v"):
        s2 = s2[1:]

    nums: list[int] = []
    for p in _NUM_SEP.split(s2):
        if not p:
            continue
        if p.isdigit():
            nums.append(int(p))
            continue
        m = re.match(r"(\d+)", p)
        if m:
            nums.append(int(m.group(1)))
        break

    while len(nums) > 1 and nums[-1] == 0:
        nums.pop()
    return tuple(nums)


def _split_pre_tokens(pre: str) -> tuple[tuple[int, object], ...]:
    """Split a prerelease label into numeric-aware tokens.

    "rc.10-x" becomes ((0, 10), (1, "x")) after the tag itself: numeric
    tokens sort before text tokens.
    """
    out: list[tuple[int, object]] = []
    for t in re.split(r"[.\-]", pre):
        if not t:
            continue
        if t.isdigit():
            out.append((0, int(t)))
        else:
            out.append((1, t.lower()))
    return tuple(out)


def _prerelease_key(suffix: str) -> tuple[float, tuple[tuple[int, object], ...]]:
    m = re.search(r"(?i)([A-Za-z]+)[._-]?([0-9A-Za-z.\-]*)", suffix)
    if not m:
        return _FINAL_RANK, ()
    tag = m.group(1).lower()
    rank = _PRE_TAG_RANK.get(tag, _UNKNOWN_PRE_RANK)
    tokens = ((1, tag),) + _split_pre_tokens(m.group(2) or "")
    return float(rank), tokens


def version_key(s: str) -> tuple:
    """Compute a sortable key for a module version string.

    Numeric releases compare component-wise, a prerelease sorts before the
    final release with the same numbers, and strings with no numeric prefix
    fall back to case-insensitive text ordering after every numeric version.

    Example:
        ```python
        sorted(["1.10.0", "1.2.0", "1.2.0-rc1"], key=version_key)
        # ['1.2.0-rc1', '1.2.0', '1.10.0']
        ```
    """
    base = _strip_build_meta(s)
    release = _leading_release_tuple(base)
    if not release:
        return (1, (), _FINAL_RANK, (), s.strip().lower())

    # Only look for a prerelease label after the numeric core.
    core = re.match(r"^\s*v?\d+(?:[._]\d+)*", base, re.IGNORECASE)
    suffix = base[core.end() :] if core else ""
    rank, tokens = _prerelease_key(suffix)
    return (0, release, rank, tokens, "")


def compare_versions(a: str, b: str) -> int:
    """Compare two version strings.

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b.
    """
    ka = version_key(a)
    kb = version_key(b)
    return (ka > kb) - (ka < kb)


def is_newer(remote: str, current: str | None) -> bool:
    """Return True iff 'remote' is strictly newer than 'current'.

    A missing current version means anything is newer.
    """
    if current is None:
        return True
    return compare_versions(remote, current) > 0
