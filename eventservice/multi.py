"""
Multi-type event service.

One listener list serves a whole family of event types. Each registration carries
the event class it was made for, and fire() only invokes listeners whose class is
a base of the fired event's class. Listeners can be registered:

- On the root event type, via get_socket(). They receive every event fired on
  the service. If that is the only way the service is used, consider
  SimpleEventService instead.
- On a derived event type, via get_socket(EventClass). They receive events of
  that class and its subclasses.
- In bulk, for every @listener-decorated method of an object, via bind_all()
  (or get_annotation_socket()).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, Iterator, Optional, TypeVar

from eventservice.binder import AnnotationBinder
from eventservice.config import EventServiceConfig
from eventservice.errors import ConfigurationError, InvalidSubtype
from eventservice.ports import Listener
from eventservice.service import AbstractEventService, ListenerFn, listener_name, same_listener

logger = logging.getLogger(__name__)

E = TypeVar("E")
S = TypeVar("S")
T = TypeVar("T")


@dataclass(frozen=True, slots=True, eq=False)
class ListenerEntry:
    """A listener together with the event class it was registered for."""

    event_type: type
    listener: ListenerFn

    def matches(self, event: Any) -> bool:
        return issubclass(type(event), self.event_type)


@dataclass(frozen=True, slots=True, eq=False)
class ObjectListenerEntry(ListenerEntry):
    """Listener generated by bulk binding; remembers its owner for unbind_all()."""

    owner: Any


class TypedEventSocket(Generic[S]):
    """
    Registration handle for one event class on one MultiEventService.

    Sockets hold no state of their own; any number of them may exist for the
    same service and event class.
    """

    def __init__(self, service: MultiEventService[Any], event_type: type[S]) -> None:
        self._service = service
        self._event_type = event_type

    @property
    def service(self) -> MultiEventService[Any]:
        return self._service

    @property
    def event_type(self) -> type[S]:
        return self._event_type

    def add_listener(self, listener: Listener[S]) -> Listener[S]:
        """
        Register a listener for this socket's event type.

        Returns:
            The registered listener, so the caller can keep it for removal.
        """
        self._service._entries.append(ListenerEntry(self._event_type, listener))
        logger.debug(
            f"[{self._service.name}] added listener {listener_name(listener)} "
            f"on {self._event_type.__qualname__}"
        )
        return listener

    def remove_listener(self, listener: Listener[S]) -> bool:
        """
        Remove a listener previously registered on a socket for this very event type.

        Returns:
            True if a registration was removed.
        """
        entries = self._service._entries
        for i, entry in enumerate(entries):
            if entry.event_type is self._event_type and same_listener(entry.listener, listener):
                del entries[i]
                logger.debug(
                    f"[{self._service.name}] removed listener {listener_name(listener)} "
                    f"from {self._event_type.__qualname__}"
                )
                return True
        return False

    def __repr__(self) -> str:
        return f"TypedEventSocket({self._event_type.__qualname__}, service={self._service.name!r})"


class MultiEventService(AbstractEventService[E]):
    """
    Event service exposing sockets for a root event type and its subtypes.

    Usage:
        service = MultiEventService(ModelEvent)
        service.get_socket().add_listener(on_any)
        service.get_socket(NodeAdded).add_listener(on_node_added)
        service.fire(NodeAdded(node))
    """

    def __init__(self, root_type: type[E], config: Optional[EventServiceConfig] = None) -> None:
        if not isinstance(root_type, type):
            raise ConfigurationError(
                "root_type must be a class", field="root_type", value=repr(root_type)
            )
        super().__init__(config)
        self._root_type = root_type
        self._entries: list[ListenerEntry] = []
        self._default_socket: Optional[TypedEventSocket[E]] = None

    @property
    def root_type(self) -> type[E]:
        return self._root_type

    def get_socket(self, event_type: Optional[type[S]] = None) -> TypedEventSocket[Any]:
        """
        Get a socket for registering listeners.

        Args:
            event_type: The root type or one of its subclasses. None (default)
                        returns the shared root-type socket.

        Raises:
            InvalidSubtype: event_type is not a subclass of the root type
        """
        if event_type is None:
            if self._default_socket is None:
                self._default_socket = TypedEventSocket(self, self._root_type)
            return self._default_socket

        if not isinstance(event_type, type) or not issubclass(event_type, self._root_type):
            raise InvalidSubtype(event_type, self._root_type, component=self.name)
        return TypedEventSocket(self, event_type)

    def get_annotation_socket(self) -> AnnotationBinder:
        """Binder for all @listener-decorated methods of an object."""
        return AnnotationBinder(self)

    def bind_all(self, obj: T) -> T:
        """Register every @listener-decorated method of obj. Returns obj."""
        return self.get_annotation_socket().bind_all(obj)

    def unbind_all(self, obj: Any) -> bool:
        """Remove every listener bind_all() registered for obj."""
        return self.get_annotation_socket().unbind_all(obj)

    def listener_count(self, event_type: Optional[type] = None) -> int:
        """Number of registrations, optionally only those made for exactly event_type."""
        if event_type is None:
            return len(self._entries)
        return sum(1 for e in self._entries if e.event_type is event_type)

    def clear_listeners(self) -> None:
        self._entries.clear()

    def _listeners_for(self, event: E) -> Iterator[ListenerFn]:
        for entry in self._walk(self._entries):
            if entry.matches(event):
                yield entry.listener

    # --- Bulk binding support (used by AnnotationBinder) ---

    def _add_owner_entries(self, owner: Any, bindings: list[tuple[type, ListenerFn]]) -> int:
        self._entries.extend(ObjectListenerEntry(t, fn, owner) for t, fn in bindings)
        return len(bindings)

    def _remove_owner_entries(self, owner: Any) -> int:
        before = len(self._entries)
        # In place, so a live dispatch in progress sees the removal
        self._entries[:] = [
            e for e in self._entries if not (isinstance(e, ObjectListenerEntry) and e.owner is owner)
        ]
        return before - len(self._entries)
