"""
Decorator-based bulk binding of listener methods.

Methods marked with @listener take a single event parameter whose annotation
names the event class to bind for:

    class Inspector:
        @listener
        def on_node_added(self, event: NodeAdded) -> None: ...

        @listener(strict=False)
        def on_saved(self, event: DocumentSaved) -> None: ...

    service.bind_all(inspector)
    ...
    service.unbind_all(inspector)

@listener only attaches a ListenerSpec to the function; nothing is registered
until an AnnotationBinder binds an instance.
"""

from __future__ import annotations

import functools
import inspect
import logging
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, TypeVar, overload

from eventservice.errors import HandlerInvocationError, ListenerTypeMismatch
from eventservice.service import ListenerFn, listener_name

if TYPE_CHECKING:
    from eventservice.multi import MultiEventService

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")

LISTENER_ATTR = "__event_listener__"

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


@dataclass(frozen=True)
class ListenerSpec:
    """Metadata attached by @listener."""

    # Non-strict listeners are skipped (not an error) when the service can't fire their type
    strict: bool = True
    # Explicit event type; None means "use the parameter's annotation"
    on: Optional[type] = None


@dataclass(frozen=True)
class ListenerDeclaration:
    """One listener for bulk binding: a callable plus how to bind it."""

    method: Callable[..., Any]
    event_type: Optional[type] = None
    strict: bool = True


@overload
def listener(fn: F) -> F: ...


@overload
def listener(*, strict: bool = True, on: Optional[type] = None) -> Callable[[F], F]: ...


def listener(
    fn: Optional[F] = None, *, strict: bool = True, on: Optional[type] = None
) -> Any:
    """
    Mark a method as an event listener for bind_all().

    Usable bare (@listener) or with options (@listener(strict=False, on=NodeEvent)).
    The function is returned unchanged.
    """
    spec = ListenerSpec(strict=strict, on=on)

    def decorator(func: F) -> F:
        setattr(func, LISTENER_ATTR, spec)
        return func

    if fn is not None:
        return decorator(fn)
    return decorator


def get_listener_spec(attr: Any) -> Optional[ListenerSpec]:
    spec = getattr(attr, LISTENER_ATTR, None)
    if spec is None:
        # staticmethod / classmethod objects keep the tag on the wrapped function
        spec = getattr(getattr(attr, "__func__", None), LISTENER_ATTR, None)
    return spec if isinstance(spec, ListenerSpec) else None


def find_listener_methods(obj: Any) -> list[ListenerDeclaration]:
    """
    Collect the @listener methods of obj as bound declarations.

    Classes are walked from the base to the most derived, in definition order.
    An override replaces the base attribute, so an undecorated override is not a listener.
    """
    attrs: dict[str, Any] = {}
    for klass in reversed(type(obj).__mro__):
        for name, attr in vars(klass).items():
            attrs[name] = attr

    declarations: list[ListenerDeclaration] = []
    for name, attr in attrs.items():
        spec = get_listener_spec(attr)
        if spec is None:
            continue
        declarations.append(
            ListenerDeclaration(method=getattr(obj, name), event_type=spec.on, strict=spec.strict)
        )
    return declarations


class AnnotationBinder:
    """
    Binds (and unbinds) all listener methods of an object on a MultiEventService.

    Binding is all-or-nothing: every declaration is checked before any listener
    is registered, so a ListenerTypeMismatch leaves the service unchanged.
    """

    def __init__(self, service: MultiEventService[Any]) -> None:
        self._service = service

    def bind_all(self, obj: T) -> T:
        """
        Register every @listener method declared on obj.

        Returns:
            obj, for chaining.

        Raises:
            ListenerTypeMismatch: a strict listener can't receive any event of the
                                  service, or a method doesn't take exactly one event
        """
        return self.bind_declared(obj, find_listener_methods(obj))

    def bind_declared(self, obj: T, declarations: Iterable[ListenerDeclaration]) -> T:
        """Register explicitly declared listeners, owned by obj."""
        bindings: list[tuple[type, ListenerFn]] = []
        for decl in declarations:
            event_type = self._resolve(decl)
            if event_type is None:
                continue
            bindings.append((event_type, self._wrap(decl.method)))

        count = self._service._add_owner_entries(obj, bindings)
        logger.info(
            f"[{self._service.name}] bound {count} listener(s) for {type(obj).__qualname__}"
        )
        return obj

    def unbind_all(self, obj: Any) -> bool:
        """
        Un-register all listeners previously registered for obj.

        Returns:
            True if any listeners were removed.
        """
        removed = self._service._remove_owner_entries(obj)
        if removed:
            logger.info(
                f"[{self._service.name}] unbound {removed} listener(s) for {type(obj).__qualname__}"
            )
        return removed > 0

    def _resolve(self, decl: ListenerDeclaration) -> Optional[type]:
        """Event type to register decl under, or None to skip it."""
        root = self._service.root_type
        name = listener_name(decl.method)

        try:
            params = list(inspect.signature(decl.method).parameters.values())
        except (TypeError, ValueError):
            params = []
        if len(params) != 1 or params[0].kind not in _POSITIONAL:
            raise ListenerTypeMismatch(
                name,
                root,
                reason="listener must take exactly one event parameter",
                component=self._service.name,
            )

        event_type: Any = decl.event_type
        if event_type is None:
            event_type = _annotated_type(decl.method, params[0], default=root)

        if isinstance(event_type, type) and issubclass(event_type, root):
            return event_type

        if decl.strict:
            raise ListenerTypeMismatch(name, root, component=self._service.name)
        logger.debug(f"[{self._service.name}] skipping non-strict listener {name}: {event_type!r}")
        return None

    def _wrap(self, method: Callable[..., Any]) -> ListenerFn:
        name = listener_name(method)
        component = self._service.name

        @functools.wraps(method)
        def invoke(event: Any) -> Any:
            try:
                return method(event)
            except Exception as e:
                raise HandlerInvocationError(
                    f"Exception in event handler {name}",
                    handler_name=name,
                    event_type=type(event).__qualname__,
                    component=component,
                ) from e

        return invoke


def _annotated_type(method: Callable[..., Any], param: inspect.Parameter, default: type) -> Any:
    annotation = param.annotation
    if annotation is inspect.Parameter.empty:
        return default
    if not isinstance(annotation, str):
        return annotation

    # Only the event parameter is evaluated; other annotations (e.g. a return type
    # imported under TYPE_CHECKING) must not prevent binding.
    func = inspect.unwrap(getattr(method, "__func__", method))

    def shim() -> None: ...

    shim.__annotations__ = {param.name: annotation}
    try:
        hints = typing.get_type_hints(shim, globalns=getattr(func, "__globals__", {}))
    except (NameError, SyntaxError, TypeError):
        # Unresolvable forward reference; treated as incompatible
        return None
    return hints[param.name]
