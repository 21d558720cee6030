"""Integer supplies - fresh identifiers for embedded script blocks.

Each embedded block is rendered with a distinct integer prefix so the
hygienic names of one block never collide with those of another block on
the same page.

Any object with a ``next_integer()`` method is a supply. Objects that only
expose ``get()``/``put()`` over an integer cell get one for free through
:func:`next_integer_from`:

    class SessionCounter:
        def get(self) -> int: ...
        def put(self, value: int) -> None: ...

        def next_integer(self) -> int:
            return next_integer_from(self)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from scriptembed.exceptions import SupplyUnavailableError

log = logging.getLogger(__name__)


@runtime_checkable
class IntegerSupply(Protocol):
    """Source of distinct integers within one rendering context."""

    def next_integer(self) -> int: ...


class IntegerState(Protocol):
    """Read/replace access to a single integer cell."""

    def get(self) -> int: ...

    def put(self, value: int) -> None: ...


def next_integer_from(state: IntegerState) -> int:
    """Read the current value, store its successor, return the value read."""
    i = state.get()
    state.put(i + 1)
    return i


@dataclass
class Counter:
    """In-memory integer cell, one per rendering context."""

    value: int = 0

    def get(self) -> int:
        return self.value

    def put(self, value: int) -> None:
        self.value = value

    def next_integer(self) -> int:
        return next_integer_from(self)


@dataclass
class LockedCounter(Counter):
    """Counter shared between threads (process-wide scope)."""

    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def next_integer(self) -> int:
        with self._lock:
            return next_integer_from(self)


class StateSupply:
    """Supply over arbitrary get/put accessors."""

    def __init__(self, get: Callable[[], int], put: Callable[[int], None]):
        self._get = get
        self._put = put

    def get(self) -> int:
        return self._get()

    def put(self, value: int) -> None:
        self._put(value)

    def next_integer(self) -> int:
        return next_integer_from(self)


class MappingSupply:
    """Supply whose counter lives in a mutable mapping.

    Useful for request- or session-scoped counters that span several
    renders. The key must exist, or ``start`` must be given to create it;
    otherwise the store cannot back a supply and construction fails.
    """

    def __init__(
        self,
        store: MutableMapping[str, Any],
        key: str = "integer_supply",
        start: int | None = None,
    ):
        if key not in store:
            if start is None:
                raise SupplyUnavailableError(
                    f"Integer state {key!r} not found in store and no start given"
                )
            log.debug("Initialized integer state %r at %d", key, start)
            store[key] = start
        self.store = store
        self.key = key

    def get(self) -> int:
        return int(self.store[self.key])

    def put(self, value: int) -> None:
        self.store[self.key] = value

    def next_integer(self) -> int:
        return next_integer_from(self)
