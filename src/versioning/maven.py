"""Maven version ordering.

Implements the ordering of Maven's ``ComparableVersion``: a version string is
split into a tree of numeric, qualifier and list items, and two versions are
compared item by item. Every string is a valid version, so sorting never
fails on odd registry data.

Qualifier order: alpha < beta < milestone < rc (cr) < snapshot <
"" (ga, final, release) < sp < any other qualifier (lexical).

The same ordering is available as ``univers.versions.MavenVersion`` in the
``univers`` library.
"""
from __future__ import annotations

from functools import total_ordering
from typing import Iterable, List, Optional, Union

_QUALIFIERS = ["alpha", "beta", "milestone", "rc", "snapshot", "", "sp"]
_ALIASES = {"ga": "", "final": "", "release": "", "cr": "rc"}
_SHORT_QUALIFIERS = {"a": "alpha", "b": "beta", "m": "milestone"}
_RELEASE_INDEX = str(_QUALIFIERS.index(""))


class _IntItem:
    """Digit run kept as text; leading zeros dropped, compared by length then digits."""

    __slots__ = ("value",)

    def __init__(self, text: str) -> None:
        self.value = text.lstrip("0")

    def is_null(self) -> bool:
        return self.value == ""

    def compare(self, other: Optional["_Item"]) -> int:
        if other is None:
            return 0 if self.is_null() else 1
        if isinstance(other, _IntItem):
            mine = (len(self.value), self.value)
            theirs = (len(other.value), other.value)
            return (mine > theirs) - (mine < theirs)
        return 1  # numbers sort after qualifiers and sublists

    def __str__(self) -> str:
        return self.value or "0"


class _StringItem:
    __slots__ = ("value",)

    def __init__(self, text: str, followed_by_digit: bool) -> None:
        if followed_by_digit and len(text) == 1:
            text = _SHORT_QUALIFIERS.get(text, text)
        self.value = _ALIASES.get(text, text)

    def is_null(self) -> bool:
        return self.value == ""

    def comparable(self) -> str:
        if self.value in _QUALIFIERS:
            return str(_QUALIFIERS.index(self.value))
        return f"{len(_QUALIFIERS)}-{self.value}"

    def compare(self, other: Optional["_Item"]) -> int:
        mine = self.comparable()
        if other is None:
            theirs = _RELEASE_INDEX
        elif isinstance(other, _StringItem):
            theirs = other.comparable()
        else:
            return -1
        return (mine > theirs) - (mine < theirs)

    def __str__(self) -> str:
        return self.value


class _ListItem(list):

    def is_null(self) -> bool:
        return len(self) == 0

    def normalize(self) -> None:
        for i in range(len(self) - 1, -1, -1):
            item = self[i]
            if item.is_null():
                del self[i]
            elif not isinstance(item, _ListItem):
                break

    def compare(self, other: Optional["_Item"]) -> int:
        if other is None:
            if not self:
                return 0
            return self[0].compare(None)
        if isinstance(other, _IntItem):
            return -1
        if isinstance(other, _StringItem):
            return 1
        for i in range(max(len(self), len(other))):
            left = self[i] if i < len(self) else None
            right = other[i] if i < len(other) else None
            if left is None:
                result = -right.compare(None) if right is not None else 0
            else:
                result = left.compare(right)
            if result:
                return result
        return 0

    def __str__(self) -> str:
        parts = []
        for item in self:
            if parts:
                parts.append("-" if isinstance(item, _ListItem) else ".")
            parts.append(str(item))
        return "".join(parts)


_Item = Union[_IntItem, _StringItem, _ListItem]


def _parse_item(is_digit: bool, text: str) -> _Item:
    return _IntItem(text) if is_digit else _StringItem(text, False)


def _parse(version: str) -> _ListItem:
    version = version.lower()
    items = _ListItem()
    current = items
    stack = [items]
    is_digit = False
    start = 0

    def open_sublist() -> _ListItem:
        sub = _ListItem()
        current.append(sub)
        stack.append(sub)
        return sub

    for i, char in enumerate(version):
        if char == ".":
            current.append(_IntItem("0") if i == start else _parse_item(is_digit, version[start:i]))
            start = i + 1
        elif char == "-":
            current.append(_IntItem("0") if i == start else _parse_item(is_digit, version[start:i]))
            start = i + 1
            current = open_sublist()
        elif char.isdigit():
            if not is_digit and i > start:
                current.append(_StringItem(version[start:i], True))
                start = i
                current = open_sublist()
            is_digit = True
        else:
            if is_digit and i > start:
                current.append(_parse_item(True, version[start:i]))
                start = i
                current = open_sublist()
            is_digit = False

    if len(version) > start:
        current.append(_parse_item(is_digit, version[start:]))

    while stack:
        stack.pop().normalize()
    return items


@total_ordering
class MavenVersion:
    """A version string with Maven ordering semantics."""

    __slots__ = ("raw", "_items")

    def __init__(self, raw: str) -> None:
        self.raw = raw
        self._items = _parse(raw.strip())

    @property
    def canonical(self) -> str:
        """Normalized form; equal versions share the same canonical string."""
        return str(self._items)

    def compare(self, other: "MavenVersion") -> int:
        """Return -1, 0 or 1 like a classic comparator."""
        return self._items.compare(other._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MavenVersion):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: "MavenVersion") -> bool:
        if not isinstance(other, MavenVersion):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(self.canonical)

    def __repr__(self) -> str:
        return f"MavenVersion({self.raw!r})"

    def __str__(self) -> str:
        return self.raw


def sort_versions(versions: Iterable[str]) -> List[str]:
    """Return the version strings in ascending Maven order.

    The sort is stable, so strings that compare equal (``1.0`` and ``1.0.0``)
    keep their input order.
    """
    return sorted(versions, key=MavenVersion)


def max_version(versions: Iterable[str]) -> Optional[str]:
    """Return the highest version string, or None for an empty iterable."""
    best: Optional[str] = None
    best_key: Optional[MavenVersion] = None
    for candidate in versions:
        key = MavenVersion(candidate)
        if best_key is None or key > best_key:
            best, best_key = candidate, key
    return best
