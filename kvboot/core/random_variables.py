"""Variables that generate random values, like ``${random.uuid}``."""

from __future__ import annotations

import logging
import uuid
from random import Random
from typing import Optional, Tuple

from .errors import VariableLookupError

logger = logging.getLogger(__name__)

RANDOM_PREFIX = "random."

INT_BITS = 32
LONG_BITS = 64


class RandomVariables:
    """Variable layer answering names that start with ``random.``.

    Supported names::

        random.int          signed 32-bit integer
        random.long         signed 64-bit integer
        random.int[10]      integer in [0, 10)
        random.long[5,9]    integer in [5, 9)
        random.uuid         version 4 UUID
        random.<anything>   32 lowercase hex digits

    Every lookup draws a new value.
    """

    def __init__(self, source: Optional[Random] = None, prefix: str = RANDOM_PREFIX):
        self.source = source if source is not None else Random()
        self.prefix = prefix

    def __call__(self, name: str) -> Optional[str]:
        if not name.startswith(self.prefix):
            return None
        logger.debug("Generating random value for '%s'", name)
        return self._generate(name[len(self.prefix):])

    def _generate(self, kind: str) -> str:
        if kind == "int":
            return str(_signed(self.source, INT_BITS))
        if kind == "long":
            return str(_signed(self.source, LONG_BITS))
        for bounded in ("int", "long"):
            if kind.startswith(bounded + "[") and kind.endswith("]"):
                low, high = _parse_range(kind[len(bounded) + 1:-1])
                return str(self.source.randrange(low, high))
        if kind == "uuid":
            return str(uuid.UUID(int=self.source.getrandbits(128), version=4))
        return f"{self.source.getrandbits(128):032x}"


def _signed(source: Random, bits: int) -> int:
    return source.getrandbits(bits) - (1 << (bits - 1))


def _parse_range(text: str) -> Tuple[int, int]:
    """Parse ``max`` or ``min,max`` into a half-open range."""
    tokens = [t.strip() for t in text.split(",") if t.strip()]
    try:
        bounds = [int(t) for t in tokens]
    except ValueError as e:
        raise VariableLookupError(f"Invalid random range. range='{text}'") from e
    if not bounds:
        raise VariableLookupError(f"Invalid random range. range='{text}'")
    if len(bounds) == 1:
        if bounds[0] <= 0:
            raise VariableLookupError(f"Bound must be positive. range='{text}'")
        return 0, bounds[0]
    low, high = bounds[0], bounds[1]
    if low >= high:
        raise VariableLookupError(f"Lower bound must be less than upper bound. range='{text}'")
    return low, high
