"""
Shared types, capability contracts and data structures for the event service module.

Events are plain objects. The dispatcher never requires a base class; it checks
for the two optional capabilities structurally:

- cancelable: ``is_cancelled() -> bool``
- clonable:   ``clone()`` returning an independent copy

The abstract base classes below are conveniences for event authors.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CancelableEvent(Protocol):
    """An event whose propagation can be cancelled by a listener."""

    def is_cancelled(self) -> bool: ...


@runtime_checkable
class ClonableEvent(Protocol):
    """
    An event which is copied before being passed to each listener, so that the
    original event object remains untouched.

    clone() may raise CloneNotSupportedError (or return None) to suppress delivery.
    """

    def clone(self) -> Any: ...


def is_cancelled(event: Any) -> bool:
    """True if the event is cancelable and has been cancelled."""
    # runtime_checkable only checks that the attribute exists
    return callable(getattr(event, "is_cancelled", None)) and bool(event.is_cancelled())


def is_clonable(event: Any) -> bool:
    """True if the event has a callable clone()."""
    return callable(getattr(event, "clone", None))


class AbstractCancelableEvent:
    """Common base class for cancelable events."""

    _cancelled: bool = False

    def is_cancelled(self) -> bool:
        return self._cancelled

    def set_cancelled(self, cancelled: bool) -> None:
        """Cancel (or un-cancel) the event."""
        self._cancelled = cancelled

    def cancel(self) -> None:
        """Stop any further processing of this event object."""
        self.set_cancelled(True)


class AbstractClonableEvent:
    """
    Base implementation for clonable events.

    Delegates to copy.copy(), i.e. a shallow copy: nested mutable fields are shared
    between clones. Override clone() where a field needs its own copy.
    """

    def clone(self) -> Any:
        return copy.copy(self)


class IterationPolicy(str, Enum):
    """How fire() walks the listener list when listeners mutate it mid-dispatch."""

    SNAPSHOT = "snapshot"  # iterate a copy taken when fire() starts
    LIVE = "live"  # iterate the live list by index


@dataclass
class DispatchStats:
    """Statistics for event dispatch."""

    fired: int = 0
    handled: int = 0  # fire() returned True
    cancelled: int = 0  # fire() stopped on a cancelled event
    listeners_invoked: int = 0
    suppressed: int = 0  # prep_event() returned None
    by_type: dict[str, int] = field(default_factory=dict)

    def record_fire(self, event: Any) -> None:
        self.fired += 1
        cls = type(event)
        key = f"{cls.__module__}.{cls.__qualname__}"
        self.by_type[key] = self.by_type.get(key, 0) + 1
