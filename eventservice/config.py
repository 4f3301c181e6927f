"""
Configuration types for the event service module.

EventServiceConfig is the immutable, validated runtime configuration.
EventServiceSettings is its pydantic counterpart for loading from a TOML file:

    [event_service]
    name = "model_events"
    iteration = "live"
    clone_events = true
    log_dispatch = false
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from eventservice.errors import ConfigurationError
from eventservice.types import IterationPolicy


@dataclass(frozen=True)
class EventServiceConfig:
    """Configuration for a single event service instance."""

    # Used as component name on errors and in log lines
    name: str = "event_service"

    # Listener list walk when listeners mutate it mid-dispatch
    iteration: IterationPolicy = IterationPolicy.SNAPSHOT

    # If False, prep_event() passes clonable events through without cloning
    clone_events: bool = True

    # Per-dispatch debug logging
    log_dispatch: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigurationError(
                "name must be a non-empty string",
                field="name",
                value=self.name,
            )
        if not isinstance(self.iteration, IterationPolicy):
            try:
                # Need to use object.__setattr__ for frozen dataclass
                object.__setattr__(self, "iteration", IterationPolicy(self.iteration))
            except ValueError:
                raise ConfigurationError(
                    "iteration must be 'snapshot' or 'live'",
                    field="iteration",
                    value=self.iteration,
                ) from None


class EventServiceSettings(BaseModel):
    name: str = "event_service"
    iteration: IterationPolicy = IterationPolicy.SNAPSHOT
    clone_events: bool = True
    log_dispatch: bool = True

    def to_config(self) -> EventServiceConfig:
        return EventServiceConfig(
            name=self.name,
            iteration=self.iteration,
            clone_events=self.clone_events,
            log_dispatch=self.log_dispatch,
        )


def load_service_config(
    path: Union[str, Path], section: str = "event_service"
) -> EventServiceConfig:
    """
    Load an EventServiceConfig from one section of a TOML file.

    A missing section yields the defaults.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("rb") as f:
        data: dict[str, Any] = tomllib.load(f)

    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"[{section}] must be a table",
            field=section,
            value=raw,
        )

    try:
        settings = EventServiceSettings.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid [{section}] config: {first.get('msg')}",
            field=loc or None,
            value=first.get("input"),
        ) from e

    return settings.to_config()
