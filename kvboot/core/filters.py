"""Filters applied to the key/values of a resource after loading."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Protocol, Sequence

from . import sed
from .errors import FilterError
from .resource import Filter
from .types import KeyValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterContext:
    """What a filter may know about the resource it runs for.

    Attributes:
        parameters: Parameters of the resource.
    """

    parameters: Mapping[str, str] = field(default_factory=dict)


class KeyValuesFilter(Protocol):
    """Protocol for filter implementations."""

    filter_id: str

    def apply(
        self, context: FilterContext, kvs: Sequence[KeyValue], expression: str
    ) -> List[KeyValue]:
        """Transform a batch of key/values.

        Args:
            context: Resource context.
            kvs: Batch to transform.
            expression: Filter expression.

        Returns:
            The transformed batch.
        """
        ...


def should_include_key(key: str, pattern: Optional[Pattern[str]]) -> bool:
    """Check if a key should be kept by a grep pattern.

    Args:
        key: Key to test.
        pattern: Compiled pattern (None means include all).

    Returns:
        True if some part of the key matches.
    """
    if pattern is None:
        return True
    return pattern.search(key) is not None


class GrepFilter:
    """Keep key/values whose key matches the expression."""

    filter_id = "grep"

    def apply(
        self, context: FilterContext, kvs: Sequence[KeyValue], expression: str
    ) -> List[KeyValue]:
        try:
            pattern = re.compile(expression)
        except re.error as e:
            raise FilterError(f"Invalid grep expression. expression: '{expression}': {e}") from e
        return [kv for kv in kvs if should_include_key(kv.key, pattern)]


class SedFilter:
    """Rename or drop key/values by running a sed command on each key."""

    filter_id = "sed"

    def apply(
        self, context: FilterContext, kvs: Sequence[KeyValue], expression: str
    ) -> List[KeyValue]:
        command = sed.parse(expression)
        result: List[KeyValue] = []
        for kv in kvs:
            key = command.execute(kv.key)
            if key is None:
                continue
            result.append(kv.with_key(key))
        return result


class JoinFilter:
    """Merge repeated keys, joining their values with the expression."""

    filter_id = "join"

    def apply(
        self, context: FilterContext, kvs: Sequence[KeyValue], expression: str
    ) -> List[KeyValue]:
        joined: Dict[str, KeyValue] = {}
        for kv in kvs:
            prev = joined.get(kv.key)
            if prev is None:
                joined[kv.key] = kv
                continue
            raw = prev.raw + expression + kv.raw
            expanded = prev.expanded + expression + kv.expanded
            joined[kv.key] = kv.with_raw(raw).with_expanded(expanded)
        return list(joined.values())


class FilterRegistry:
    """Filter implementations looked up by id, ignoring case."""

    def __init__(self, filters: Optional[Iterable[KeyValuesFilter]] = None):
        self._filters: Dict[str, KeyValuesFilter] = {}
        for flt in filters if filters is not None else default_filters():
            self.register(flt)

    def register(self, flt: KeyValuesFilter) -> None:
        self._filters[flt.filter_id.lower()] = flt

    def find(self, filter_id: str) -> Optional[KeyValuesFilter]:
        return self._filters.get(filter_id.lower())

    def apply(
        self, context: FilterContext, kvs: Sequence[KeyValue], filters: Iterable[Filter]
    ) -> List[KeyValue]:
        """Run declared filters in order.

        Args:
            context: Resource context.
            kvs: Batch to transform.
            filters: Filters declared on the resource.

        Returns:
            The filtered batch.

        Raises:
            FilterError: If a filter id is unknown or a filter fails.
        """
        result = list(kvs)
        for declared in filters:
            impl = self.find(declared.filter_id)
            if impl is None:
                raise FilterError(f"Filter not found. filter: '{declared.filter_id}'")
            before = len(result)
            result = impl.apply(context, result, declared.expression)
            logger.debug(
                "Filter %s '%s' kept %d of %d key values",
                declared.filter_id,
                declared.expression,
                len(result),
                before,
            )
        return result


def default_filters() -> List[KeyValuesFilter]:
    return [GrepFilter(), SedFilter(), JoinFilter()]
