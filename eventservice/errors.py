"""
Custom exceptions for the event service module.

Exception hierarchy:
- EventServiceError (base)
  - InvalidSubtype: socket requested for a type outside the service's root type
  - ListenerTypeMismatch: decorated listener method cannot be bound
  - HandlerInvocationError: bulk-bound listener method raised
  - CloneNotSupportedError: event refused to clone (soft failure, listener skipped)
  - ConfigurationError: Invalid configuration
"""

from __future__ import annotations

from typing import Any, Optional


def _type_name(tp: Any) -> str:
    return getattr(tp, "__qualname__", None) or repr(tp)


class EventServiceError(Exception):
    """Base exception for all event service errors."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


class InvalidSubtype(EventServiceError):
    """Raised when a socket is requested for a type unrelated to the root event type."""

    def __init__(
        self,
        event_type: Any,
        root_type: type,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.event_type = event_type
        self.root_type = root_type
        details = details or {}
        details["root_type"] = _type_name(root_type)
        super().__init__(
            f"{_type_name(event_type)} is not a subtype of {_type_name(root_type)}",
            component=component,
            details=details,
        )


class ListenerTypeMismatch(EventServiceError):
    """Raised when a decorated listener method cannot be bound to the service."""

    def __init__(
        self,
        method_name: str,
        event_type: type,
        *,
        reason: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.method_name = method_name
        self.event_type = event_type
        details = details or {}
        if reason:
            details["reason"] = reason
        super().__init__(
            f"Listener method {method_name} cannot handle any events of type "
            f"{_type_name(event_type)}",
            component=component,
            details=details,
        )


class HandlerInvocationError(EventServiceError):
    """Raised when a bulk-bound listener method fails. The original error is __cause__."""

    def __init__(
        self,
        message: str,
        *,
        handler_name: Optional[str] = None,
        event_type: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.handler_name = handler_name
        self.event_type = event_type
        details = details or {}
        if handler_name:
            details["handler_name"] = handler_name
        if event_type:
            details["event_type"] = event_type
        super().__init__(message, component=component, details=details)


class CloneNotSupportedError(EventServiceError):
    """Raised by an event's clone() when it cannot produce a copy of itself."""


class ConfigurationError(EventServiceError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, component=component, details=details)
