"""
In-process, type-discriminating event dispatch.

Components:
- MultiEventService: one listener list for a root event type and all its subtypes
- TypedEventSocket: registration handle for one event type on one service
- SimpleEventService: dispatcher for models exposing a single event type
- AnnotationBinder / @listener: bulk binding of decorated listener methods
- AbstractCancelableEvent / AbstractClonableEvent: optional event capabilities

Usage:
    from eventservice import MultiEventService, listener

    service = MultiEventService(ModelEvent)
    service.get_socket().add_listener(log_everything)
    service.get_socket(NodeAdded).add_listener(refresh_tree)

    service.fire(NodeAdded(node))  # both listeners run
    service.fire(ModelEvent())     # only log_everything runs
"""

from eventservice.binder import (
    AnnotationBinder,
    ListenerDeclaration,
    ListenerSpec,
    find_listener_methods,
    listener,
)
from eventservice.config import EventServiceConfig, EventServiceSettings, load_service_config
from eventservice.errors import (
    CloneNotSupportedError,
    ConfigurationError,
    EventServiceError,
    HandlerInvocationError,
    InvalidSubtype,
    ListenerTypeMismatch,
)
from eventservice.multi import MultiEventService, TypedEventSocket
from eventservice.service import AbstractEventService, SimpleEventService, SimpleEventSocket
from eventservice.types import (
    AbstractCancelableEvent,
    AbstractClonableEvent,
    CancelableEvent,
    ClonableEvent,
    DispatchStats,
    IterationPolicy,
    is_cancelled,
    is_clonable,
)

__all__ = [
    # Services
    "MultiEventService",
    "TypedEventSocket",
    "SimpleEventService",
    "SimpleEventSocket",
    "AbstractEventService",
    # Bulk binding
    "listener",
    "AnnotationBinder",
    "ListenerSpec",
    "ListenerDeclaration",
    "find_listener_methods",
    # Event capabilities
    "CancelableEvent",
    "ClonableEvent",
    "AbstractCancelableEvent",
    "AbstractClonableEvent",
    "is_cancelled",
    "is_clonable",
    # Config & stats
    "EventServiceConfig",
    "EventServiceSettings",
    "load_service_config",
    "IterationPolicy",
    "DispatchStats",
    # Errors
    "EventServiceError",
    "InvalidSubtype",
    "ListenerTypeMismatch",
    "HandlerInvocationError",
    "CloneNotSupportedError",
    "ConfigurationError",
]
