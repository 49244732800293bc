"""Classified payload and action descriptor types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


class PayloadKind(Enum):
    """Formats recognised by the payload classifier."""

    URL = "URL"
    APP_LINK = "APP_LINK"
    WIFI = "WIFI"
    CONTACT = "CONTACT"
    EMAIL = "EMAIL"
    SMS = "SMS"
    PHONE = "PHONE"
    GEO = "GEO"
    CALENDAR = "CALENDAR"
    TEXT = "TEXT"

    @property
    def label(self) -> str:
        """Short overlay label, e.g. ``APP LINK``."""
        return self.value.replace("_", " ")


class EffectKind(Enum):
    """Symbolic side effects an action can request from the host."""

    OPEN_URL = "open_url"
    COPY_TEXT = "copy_text"
    SHARE_TEXT = "share_text"
    ADD_CONTACT = "add_contact"


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ActionDescriptor:
    """Data-only description of a user-invocable effect."""

    label: str
    icon: str
    effect: EffectKind
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", _freeze(self.params))


@dataclass(frozen=True)
class ParsedPayload:
    """Structured classification of one payload string."""

    kind: PayloadKind
    raw_data: str
    title: str
    subtitle: Optional[str] = None
    fields: Mapping[str, Any] = field(default_factory=dict)
    primary_action: Optional[ActionDescriptor] = None
    secondary_actions: Tuple[ActionDescriptor, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", _freeze(self.fields))
        object.__setattr__(self, "secondary_actions", tuple(self.secondary_actions))

    @property
    def actions(self) -> Tuple[ActionDescriptor, ...]:
        """Primary action (if any) followed by the secondary ones."""
        if self.primary_action is None:
            return self.secondary_actions
        return (self.primary_action,) + self.secondary_actions
