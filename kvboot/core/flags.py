"""Load flags and their negatable textual spellings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from .errors import FlagError
from .types import KeyValueFlag

NEGATION_PREFIXES = ("NO_", "NOT_")


class LoadFlag(Enum):
    """Behavior modifiers for a resource.

    NO_REQUIRE: a missing resource contributes nothing instead of failing.
    NO_EMPTY: a resource that adds no key/values is an error.
    LOCK: keys added by the resource cannot be replaced later.
    NO_REPLACE: only keys not already present are added.
    NO_ADD: key/values only feed the variables, not the result.
    NO_ADD_VARIABLES: key/values are added but never used as variables.
    NO_LOAD_CHILDREN: the resource may not declare other resources.
    NO_INTERPOLATE: values are taken verbatim.
    SENSITIVE: values are redacted when displayed.
    NO_RELOAD: the resource is not meant to be reloaded.
    INHERIT: marks a resource whose settings children may inherit.
    """

    NO_REQUIRE = "NO_REQUIRE"
    NO_EMPTY = "NO_EMPTY"
    LOCK = "LOCK"
    NO_REPLACE = "NO_REPLACE"
    NO_ADD = "NO_ADD"
    NO_ADD_VARIABLES = "NO_ADD_VARIABLES"
    NO_LOAD_CHILDREN = "NO_LOAD_CHILDREN"
    NO_INTERPOLATE = "NO_INTERPOLATE"
    SENSITIVE = "SENSITIVE"
    NO_RELOAD = "NO_RELOAD"
    INHERIT = "INHERIT"

    @property
    def names(self) -> Tuple[str, ...]:
        """Spellings that set this flag."""
        return _flag_names(self).names

    @property
    def reverse_names(self) -> Tuple[str, ...]:
        """Spellings that clear this flag."""
        return _flag_names(self).reverse_names


# Declared spellings; negated forms are derived in FlagNames.of
_SYNONYMS: Dict[str, Tuple[Sequence[str], Sequence[str]]] = {
    "NO_REQUIRE": (("NO_REQUIRE", "OPTIONAL", "NOT_REQUIRED"), ()),
}

_TO_KEY_VALUE_FLAGS: Dict[LoadFlag, KeyValueFlag] = {
    LoadFlag.NO_INTERPOLATE: KeyValueFlag.NO_INTERPOLATION,
    LoadFlag.SENSITIVE: KeyValueFlag.SENSITIVE,
}


def _negation(name: str) -> Optional[str]:
    for prefix in NEGATION_PREFIXES:
        if name.startswith(prefix):
            return prefix
    return None


def _unique(names: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(names))


@dataclass(frozen=True)
class FlagNames:
    """Positive and negative spellings of a flag.

    Attributes:
        names: Spellings that set the flag.
        reverse_names: Spellings that clear the flag.
    """

    names: Tuple[str, ...]
    reverse_names: Tuple[str, ...]

    @staticmethod
    def of(names: Iterable[str], reverse_names: Iterable[str] = ()) -> "FlagNames":
        """Derive both polarities for every declared spelling.

        A spelling with a negation prefix contributes its prefixed forms to
        its own side and its bare form to the other side; a bare spelling
        contributes itself to its own side and its prefixed forms to the
        other side.

        Args:
            names: Spellings that set the flag.
            reverse_names: Spellings that clear the flag.

        Returns:
            FlagNames with upper-cased, de-duplicated spellings.
        """
        own: List[str] = []
        other: List[str] = []
        _fold(names, own, other)
        _fold(reverse_names, other, own)
        return FlagNames(_unique(own), _unique(other))


def _fold(names: Iterable[str], own: List[str], other: List[str]) -> None:
    for raw in names:
        name = raw.upper()
        own.append(name)
        prefix = _negation(name)
        if prefix is not None:
            base = name[len(prefix):]
            own.extend(p + base for p in NEGATION_PREFIXES)
            other.append(base)
        else:
            other.extend(p + name for p in NEGATION_PREFIXES)
            own.append(name)


@lru_cache(maxsize=None)
def _flag_names(flag: LoadFlag) -> FlagNames:
    names, reverse = _SYNONYMS.get(flag.value, ((flag.value,), ()))
    return FlagNames.of(names, reverse)


def parse_flag(name: str, flags: Set[LoadFlag]) -> None:
    """Apply one flag spelling to ``flags``.

    Args:
        name: Flag spelling, case-insensitive.
        flags: Set to update in place.

    Raises:
        FlagError: If the spelling is not recognized.
    """
    upper = name.strip().upper()
    for flag in LoadFlag:
        if upper in flag.names:
            flags.add(flag)
            return
        if upper in flag.reverse_names:
            flags.discard(flag)
            return
    raise FlagError(f"bad load flag: {name}")


def parse_csv(csv: Optional[str], flags: Optional[Set[LoadFlag]] = None) -> Set[LoadFlag]:
    """Parse a comma separated list of flag spellings.

    Args:
        csv: Comma separated spellings; blanks are ignored.
        flags: Existing set to update, a new set when omitted.

    Returns:
        The updated set.
    """
    target: Set[LoadFlag] = set() if flags is None else flags
    if not csv:
        return target
    for token in csv.split(","):
        token = token.strip()
        if token:
            parse_flag(token, target)
    return target


def parse_flags(flags: Iterable[str]) -> Set[LoadFlag]:
    target: Set[LoadFlag] = set()
    for item in flags:
        parse_csv(item, target)
    return target


def ordered(flags: Iterable[LoadFlag]) -> List[LoadFlag]:
    present = set(flags)
    return [f for f in LoadFlag if f in present]


def to_csv(flags: Iterable[LoadFlag]) -> str:
    return ",".join(f.value for f in ordered(flags))


def is_set(flag: LoadFlag, flags: Iterable[LoadFlag]) -> bool:
    return flag in set(flags)


def to_key_value_flags(flags: Iterable[LoadFlag]) -> FrozenSet[KeyValueFlag]:
    return frozenset(_TO_KEY_VALUE_FLAGS[f] for f in flags if f in _TO_KEY_VALUE_FLAGS)
