"""Event Service Port Interfaces.

Contract: structural interfaces for listeners, sockets, services and binders.
Implementations live in eventservice.service, eventservice.multi and eventservice.binder.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, TypeVar

E = TypeVar("E")
E_contra = TypeVar("E_contra", contravariant=True)
T = TypeVar("T")


class Listener(Protocol[E_contra]):
    def __call__(self, event: E_contra) -> Any:
        """Handle one event. The return value is ignored."""
        ...


class EventSocket(Protocol[E]):
    def add_listener(self, listener: Listener[E]) -> Listener[E]:
        """Register a listener; returns it so the caller can keep it for removal."""
        ...

    def remove_listener(self, listener: Listener[E]) -> bool:
        """Remove one previously registered listener; True if it was removed."""
        ...


class EventService(Protocol[E]):
    def fire(self, event: E) -> bool:
        """Fire an event; True if handled and not cancelled."""
        ...

    def get_socket(self) -> EventSocket[E]:
        """Socket for the service's root event type."""
        ...


class MultiTypeEventService(Protocol[E]):
    def fire(self, event: E) -> bool:
        """Fire an event to every listener registered for a compatible type."""
        ...

    def get_socket(self, event_type: Optional[type] = None) -> EventSocket[Any]:
        """Socket for the root type, or for event_type (a subtype of the root)."""
        ...


class EventBinder(Protocol):
    def bind_all(self, obj: T) -> T:
        """Register every decorated listener method on obj; returns obj."""
        ...

    def unbind_all(self, obj: Any) -> bool:
        """Remove every listener bind_all registered for obj."""
        ...
