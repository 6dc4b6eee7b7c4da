"""Variable lookup and ``${name}`` interpolation."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .errors import CircularReferenceError, InterpolationError, MissingVariableError
from .types import KeyValue

Lookup = Callable[[str], Optional[str]]

VARIABLE_PREFIX = "${"
VARIABLE_SUFFIX = "}"
ESCAPE_CHAR = "$"
DEFAULT_DELIMITER = ":-"


class Variables:
    """Layered, read-only variable lookup.

    Layers are consulted in order; the first layer that knows a name wins.
    A layer is either a mapping or a callable returning ``None`` when it
    does not know the name.
    """

    def __init__(self, *layers: Union[Mapping[str, str], Lookup]):
        self._layers: List[Union[Mapping[str, str], Lookup]] = list(layers)

    def get(self, name: str) -> Optional[str]:
        for layer in self._layers:
            if callable(layer) and not isinstance(layer, Mapping):
                value = layer(name)
            else:
                value = layer.get(name)
            if value is not None:
                return value
        return None

    def __call__(self, name: str) -> Optional[str]:
        return self.get(name)

    def find_entry(self, *names: str) -> Optional[str]:
        """Return the value of the first of ``names`` that is defined."""
        for name in names:
            value = self.get(name)
            if value is not None:
                return value
        return None


def _match(buf: Sequence[str], pos: int, end: int, token: str) -> int:
    size = len(token)
    if pos + size > end:
        return 0
    for i, ch in enumerate(token):
        if buf[pos + i] != ch:
            return 0
    return size


class Interpolator:
    """Substitute ``${name}`` references in text.

    References may carry a default (``${name:-fallback}``), may be
    escaped with a leading ``$`` (``$${name}`` renders ``${name}``) and may
    nest inside a name (``${a${b}}``). Substituted text is scanned again;
    coming back to a name already being resolved raises
    CircularReferenceError.
    """

    def __init__(
        self,
        lookup: Union[Lookup, Mapping[str, str]],
        *,
        prefix: str = VARIABLE_PREFIX,
        suffix: str = VARIABLE_SUFFIX,
        escape: str = ESCAPE_CHAR,
        value_delimiter: str = DEFAULT_DELIMITER,
        substitute_in_variables: bool = True,
    ):
        if isinstance(lookup, Mapping):
            lookup = Variables(lookup)
        self._lookup = lookup
        self.prefix = prefix
        self.suffix = suffix
        self.escape = escape
        self.value_delimiter = value_delimiter
        self.substitute_in_variables = substitute_in_variables
        self._key = ""
        self._raw = ""

    def interpolate(self, key: str, raw: str) -> str:
        """Interpolate ``raw``, the value of ``key``.

        A direct reference to ``key`` itself that no variable layer knows is
        left unresolved rather than reported missing. Reaching ``key`` again
        through another variable is a cycle.

        Args:
            key: Key the value belongs to, used for messages.
            raw: Text to interpolate.

        Returns:
            The interpolated text.

        Raises:
            MissingVariableError: A reference has no value and no default.
            CircularReferenceError: References form a cycle.
        """
        if "$" not in raw:
            return raw
        self._key, self._raw = key, raw
        buf = list(raw)
        self._substitute(buf, 0, len(buf), None)
        return "".join(buf)

    def _resolve(self, name: str, has_default: bool, names: List[str]) -> Optional[str]:
        value = self._lookup(name)
        if value is None and not has_default:
            if name != self._key:
                raise MissingVariableError(self._key, name, self._raw)
            if len(names) > 1:
                # the key came back through another variable
                raise CircularReferenceError(self._key, self._raw, [self._key] + names)
        return value

    def _check_cycle(self, name: str, prior: List[str]) -> None:
        names = prior[1:]
        if name not in names:
            return
        chain = names[names.index(name):] + [name]
        raise CircularReferenceError(self._key, self._raw, chain)

    def _split_default(self, expr: str):
        for i in range(len(expr)):
            if not self.substitute_in_variables and _match(expr, i, len(expr), self.prefix):
                break
            size = _match(expr, i, len(expr), self.value_delimiter)
            if size:
                return expr[:i], expr[i + size:]
        return expr, None

    def _substitute(
        self, buf: List[str], offset: int, length: int, prior: Optional[List[str]]
    ) -> int:
        top = prior is None
        altered = False
        length_change = 0
        buf_end = offset + length
        pos = offset
        while pos < buf_end:
            start_len = _match(buf, pos, buf_end, self.prefix)
            if not start_len:
                pos += 1
                continue
            if pos > offset and buf[pos - 1] == self.escape:
                del buf[pos - 1]
                length_change -= 1
                altered = True
                buf_end -= 1
                continue
            start_pos = pos
            pos += start_len
            nested = 0
            while pos < buf_end:
                if self.substitute_in_variables:
                    nested_len = _match(buf, pos, buf_end, self.prefix)
                    if nested_len:
                        nested += 1
                        pos += nested_len
                        continue
                end_len = _match(buf, pos, buf_end, self.suffix)
                if not end_len:
                    pos += 1
                    continue
                if nested:
                    nested -= 1
                    pos += end_len
                    continue

                expr = "".join(buf[start_pos + start_len:pos])
                if self.substitute_in_variables:
                    expr_buf = list(expr)
                    self._substitute(expr_buf, 0, len(expr_buf), None)
                    expr = "".join(expr_buf)
                pos += end_len
                end_pos = pos

                name, default = self._split_default(expr)
                if prior is None:
                    prior = ["".join(buf[offset:buf_end])]
                self._check_cycle(name, prior)
                prior.append(name)

                value = self._resolve(name, default is not None, prior[1:])
                if value is None:
                    value = default
                if value is not None:
                    value_len = len(value)
                    buf[start_pos:end_pos] = list(value)
                    altered = True
                    change = self._substitute(buf, start_pos, value_len, prior)
                    change += value_len - (end_pos - start_pos)
                    pos += change
                    buf_end += change
                    length_change += change
                prior.pop()
                break
        if top:
            return 1 if altered else 0
        return length_change


def interpolate_key_values(
    kvs: Sequence[KeyValue],
    variables: Union[Lookup, Mapping[str, str]],
    strict: Union[bool, Callable[[str], bool]] = True,
) -> Dict[str, str]:
    """Interpolate a batch of key/values against each other and ``variables``.

    Lookups go to the raw values of the other key/values in the batch
    first, then to values already resolved in this pass, then to
    ``variables``. A key never looks up its own raw value.

    Args:
        kvs: Batch of key/values; for duplicate keys the last one counts.
        variables: Read-only variables.
        strict: When False, or a predicate returning False for the key, a
            key whose value references a missing variable is left out of
            the result instead of raising.

    Returns:
        Ordered mapping of key to interpolated value.

    Raises:
        MissingVariableError: A reference has no value and no default.
        CircularReferenceError: References form a cycle.
    """
    if isinstance(variables, Mapping):
        variables = Variables(variables)
    flat: Dict[str, KeyValue] = {kv.key: kv for kv in kvs}
    resolved: Dict[str, str] = {}

    def batch_raw(name: str) -> Optional[str]:
        kv = flat.get(name)
        return None if kv is None else kv.raw

    interpolator = Interpolator(Variables(batch_raw, resolved, variables))
    for kv in kvs:
        own = flat.pop(kv.key, None)
        try:
            if kv.is_no_interpolation():
                value = kv.raw
            else:
                try:
                    value = interpolator.interpolate(kv.key, kv.raw)
                except MissingVariableError:
                    if (strict(kv.key) if callable(strict) else strict):
                        raise
                    continue
                except CircularReferenceError:
                    raise
                except InterpolationError:
                    value = resolved.get(kv.key, kv.expanded)
            resolved[kv.key] = value
        finally:
            if own is not None:
                flat[kv.key] = own
    return resolved


def expand_key_values(
    kvs: Iterable[KeyValue],
    variables: Union[Lookup, Mapping[str, str]],
    strict: Union[bool, Callable[[str], bool]] = True,
) -> List[KeyValue]:
    """Return ``kvs`` with their expanded values re-interpolated.

    Non-strict expansion keeps the current expanded value of key/values
    that reference a variable not known yet.
    """
    kvs = list(kvs)
    resolved = interpolate_key_values(kvs, variables, strict)
    return [kv.with_expanded(resolved.get(kv.key)) for kv in kvs]
