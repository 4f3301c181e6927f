"""
Event service base implementation and the single-type event service.

Firing rules shared by every service:
1. pre_fire() runs first; its result seeds the "handled" flag
2. An event that is already cancelled is not delivered
3. Each listener gets prep_event(event): a clone for clonable events, else the event itself
4. A listener that cancels its event stops the dispatch (nothing is rolled back)
5. post_fire() gets the last word on the result

Listener errors are not caught: they abort the dispatch and reach the caller of fire().
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, Iterator, Optional, TypeVar

from eventservice.config import EventServiceConfig
from eventservice.errors import CloneNotSupportedError
from eventservice.ports import Listener
from eventservice.types import DispatchStats, IterationPolicy, is_cancelled, is_clonable

logger = logging.getLogger(__name__)

E = TypeVar("E")
T = TypeVar("T")

ListenerFn = Listener[Any]


def same_listener(a: Any, b: Any) -> bool:
    """
    Reference equality for listeners.

    Bound methods are created anew on every attribute access, so two bound methods
    count as the same listener when they wrap the same function on the same object.
    """
    if a is b:
        return True
    if inspect.ismethod(a) and inspect.ismethod(b):
        return a.__self__ is b.__self__ and a.__func__ is b.__func__
    if inspect.isbuiltin(a) and inspect.isbuiltin(b):
        # e.g. some_list.append
        return a.__self__ is b.__self__ and a.__name__ == b.__name__
    return False


def listener_name(listener: Any) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)


class AbstractEventService(ABC, Generic[E]):
    """
    Base class for event services.

    Subclasses provide the listener walk (_listeners_for); customise dispatch by
    overriding pre_fire(), post_fire() or prep_event().
    """

    def __init__(self, config: Optional[EventServiceConfig] = None) -> None:
        self._config = config or EventServiceConfig()
        self._stats = DispatchStats()

    @property
    def config(self) -> EventServiceConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def stats(self) -> DispatchStats:
        """Get dispatch statistics."""
        return self._stats

    def reset_stats(self) -> None:
        """Reset dispatch statistics."""
        self._stats = DispatchStats()

    # --- Hooks ---

    def pre_fire(self, event: E) -> bool:
        """
        Invoked before any listener of this service.

        Override to pre-handle the event, e.g. to propagate it elsewhere first.
        Listeners are not invoked if this method cancels the event.

        Returns:
            True if the event counts as handled already.
        """
        return False

    def post_fire(self, event: E, handled: bool) -> bool:
        """
        Invoked after all listeners ran, unless the event was cancelled.

        Override to post-handle the event, e.g. to propagate it up a model hierarchy.

        Args:
            event: The original event object
            handled: True if at least one listener has been invoked

        Returns:
            The result of fire().
        """
        return handled

    def prep_event(self, event: E) -> Optional[E]:
        """
        Prepare the event object passed to one listener.

        Clonable events are cloned (one clone per listener invocation).

        Returns:
            The object to pass to the listener, or None if cloning failed.
            Returning None suppresses that listener.
        """
        if self._config.clone_events and is_clonable(event):
            try:
                return event.clone()
            except CloneNotSupportedError as e:
                logger.debug(f"[{self.name}] clone of {type(event).__qualname__} failed: {e}")
                return None
        return event

    # --- Dispatch ---

    def fire(self, event: E) -> bool:
        """
        Fire an event to all registered listeners.

        Returns:
            True if at least one listener handled the event and it was not cancelled.
        """
        self._stats.record_fire(event)
        handled = self.pre_fire(event)

        if is_cancelled(event):
            self._on_cancelled(event, None)
            return False

        for listener in self._listeners_for(event):
            ev = self.prep_event(event)
            if ev is None:
                self._stats.suppressed += 1
                if self._config.log_dispatch:
                    logger.debug(f"[{self.name}] suppressed {listener_name(listener)}")
                continue

            listener(ev)
            self._stats.listeners_invoked += 1

            if is_cancelled(ev):
                self._on_cancelled(event, listener)
                return False
            handled = True

        handled = self.post_fire(event, handled)
        if handled:
            self._stats.handled += 1
        return handled

    @abstractmethod
    def _listeners_for(self, event: E) -> Iterator[ListenerFn]:
        """Yield the listeners to invoke for event, in registration order."""

    def _walk(self, entries: list[T]) -> Iterable[T]:
        """Iterate entries according to the configured iteration policy."""
        if self._config.iteration is IterationPolicy.SNAPSHOT:
            return list(entries)
        return self._walk_live(entries)

    @staticmethod
    def _walk_live(entries: list[T]) -> Iterator[T]:
        # Index-based so appends made by a listener are visited in the same pass
        i = 0
        while i < len(entries):
            yield entries[i]
            i += 1

    def _on_cancelled(self, event: E, listener: Optional[ListenerFn]) -> None:
        self._stats.cancelled += 1
        if self._config.log_dispatch:
            where = "before dispatch" if listener is None else f"by {listener_name(listener)}"
            logger.debug(f"[{self.name}] {type(event).__qualname__} cancelled {where}")


class SimpleEventSocket(Generic[E]):
    """Socket of a SimpleEventService."""

    def __init__(self, service: SimpleEventService[E]) -> None:
        self._service = service

    @property
    def service(self) -> SimpleEventService[E]:
        return self._service

    def add_listener(self, listener: Listener[E]) -> Listener[E]:
        """
        Register a listener.

        Returns:
            The registered listener, so the caller can keep it for removal.
        """
        self._service._listeners.append(listener)
        logger.debug(f"[{self._service.name}] added listener {listener_name(listener)}")
        return listener

    def remove_listener(self, listener: Listener[E]) -> bool:
        """Remove the first registration of this exact listener. True if removed."""
        listeners = self._service._listeners
        for i, existing in enumerate(listeners):
            if same_listener(existing, listener):
                del listeners[i]
                logger.debug(f"[{self._service.name}] removed listener {listener_name(listener)}")
                return True
        return False


class SimpleEventService(AbstractEventService[E]):
    """
    Event service for a single event type, for models that expose only one event.

    Every registered listener receives every fired event.

    Usage:
        service = SimpleEventService[Changed]()
        service.get_socket().add_listener(on_changed)
        service.fire(Changed())
    """

    def __init__(self, config: Optional[EventServiceConfig] = None) -> None:
        super().__init__(config)
        self._listeners: list[ListenerFn] = []
        self._socket: Optional[SimpleEventSocket[E]] = None

    def get_socket(self) -> SimpleEventSocket[E]:
        """Socket on which to register listeners; created on first use."""
        if self._socket is None:
            self._socket = SimpleEventSocket(self)
        return self._socket

    def listener_count(self) -> int:
        return len(self._listeners)

    def clear_listeners(self) -> None:
        self._listeners.clear()

    def _listeners_for(self, event: E) -> Iterator[ListenerFn]:
        yield from self._walk(self._listeners)
