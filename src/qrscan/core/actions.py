"""Build declarative actions for classified payloads and run them on a host."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Tuple
from urllib.parse import quote

from qrscan.config.models import ActionsConfig
from qrscan.core.entities import ActionDescriptor, EffectKind, PayloadKind
from qrscan.infra.exceptions import UnsupportedEffectError

logger = logging.getLogger("scanner.actions")

# Characters encodeURIComponent leaves untouched besides the unreserved set.
_COMPONENT_SAFE = "!*'()"

ActionSet = Tuple[Optional[ActionDescriptor], Tuple[ActionDescriptor, ...]]


def encode_component(value: str) -> str:
    return quote(value, safe=_COMPONENT_SAFE)


def open_url(label: str, icon: str, url: str, check_handler: bool = False) -> ActionDescriptor:
    params: Dict[str, Any] = {"url": url}
    if check_handler:
        params["check_handler"] = True
    return ActionDescriptor(label=label, icon=icon, effect=EffectKind.OPEN_URL, params=params)


def copy_text(label: str, text: str, icon: str = "copy-outline") -> ActionDescriptor:
    return ActionDescriptor(label=label, icon=icon, effect=EffectKind.COPY_TEXT, params={"text": text})


def share(label: str = "Share", **params: str) -> ActionDescriptor:
    return ActionDescriptor(label=label, icon="share-outline", effect=EffectKind.SHARE_TEXT, params=params)


class ActionBuilder:
    """Turns a classified payload into one primary and several secondary actions."""

    def __init__(self, config: Optional[ActionsConfig] = None) -> None:
        self._config = config or ActionsConfig()
        self._builders: Dict[PayloadKind, Callable[[str, Mapping[str, Any]], ActionSet]] = {
            PayloadKind.URL: self._url,
            PayloadKind.APP_LINK: self._app_link,
            PayloadKind.WIFI: self._wifi,
            PayloadKind.CONTACT: self._contact,
            PayloadKind.EMAIL: self._email,
            PayloadKind.SMS: self._sms,
            PayloadKind.PHONE: self._phone,
            PayloadKind.GEO: self._geo,
            PayloadKind.CALENDAR: self._calendar,
            PayloadKind.TEXT: self._text,
        }

    def build(self, kind: PayloadKind, raw_data: str, fields: Mapping[str, Any]) -> ActionSet:
        return self._builders[kind](raw_data, fields)

    def maps_url(self, query: str) -> str:
        return f"{self._config.maps_url}{query}"

    def search_url(self, query: str) -> str:
        return f"{self._config.search_url}{encode_component(query)}"

    # Per-kind builders -------------------------------------------------------

    def _url(self, data: str, fields: Mapping[str, Any]) -> ActionSet:
        return (
            open_url("Open Website", "globe-outline", data),
            (copy_text("Copy URL", data), share(url=data)),
        )

    def _app_link(self, data: str, fields: Mapping[str, Any]) -> ActionSet:
        # Not every scheme has an installed handler, so the host checks for one first.
        return (
            open_url("Open in App", "open-outline", data, check_handler=True),
            (copy_text("Copy Link", data), share(message=data)),
        )

    def _wifi(self, data: str, fields: Mapping[str, Any]) -> ActionSet:
        return (
            copy_text("Copy Password", fields["password"], icon="key-outline"),
            (copy_text("Copy Network Name", fields["ssid"]),),
        )

    def _contact(self, data: str, fields: Mapping[str, Any]) -> ActionSet:
        name, phone, email = fields["name"], fields["phone"], fields["email"]
        primary = open_url("Call Contact", "call-outline", f"tel:{phone}") if phone else None

        first_name, _, last_name = name.partition(" ")
        secondary = [
            ActionDescriptor(
                label="Add to Contacts",
                icon="person-add-outline",
                effect=EffectKind.ADD_CONTACT,
                params={
                    "name": name,
                    "first_name": first_name,
                    "last_name": last_name,
                    "phone": phone,
                    "email": email,
                    "fallback_text": data,
                },
            )
        ]
        if email:
            secondary.append(open_url("Send Email", "mail-outline", f"mailto:{email}"))
        return primary, tuple(secondary)

    def _email(self, data: str, fields: Mapping[str, Any]) -> ActionSet:
        return (
            open_url("Send Email", "mail-outline", data),
            (copy_text("Copy Address", fields["email"]),),
        )

    def _sms(self, data: str, fields: Mapping[str, Any]) -> ActionSet:
        phone = fields["phone"]
        return (
            open_url("Send Message", "chatbox-outline", data),
            (open_url("Call Number", "call-outline", f"tel:{phone}"), copy_text("Copy Number", phone)),
        )

    def _phone(self, data: str, fields: Mapping[str, Any]) -> ActionSet:
        phone = fields["phone"]
        return (
            open_url("Call Number", "call-outline", data),
            (open_url("Send SMS", "chatbox-outline", f"sms:{phone}"), copy_text("Copy Number", phone)),
        )

    def _geo(self, data: str, fields: Mapping[str, Any]) -> ActionSet:
        coordinates = f"{fields['latitude']},{fields['longitude']}"
        return (
            open_url("Open in Maps", "map-outline", self.maps_url(coordinates)),
            (copy_text("Copy Coordinates", coordinates),),
        )

    def _calendar(self, data: str, fields: Mapping[str, Any]) -> ActionSet:
        # No calendar-write effect exists; the raw event is copied instead.
        primary = copy_text("Add to Calendar", data, icon="calendar-outline")
        location = fields["location"]
        secondary: Tuple[ActionDescriptor, ...] = ()
        if location:
            secondary = (open_url("View Location", "navigate-outline", self.maps_url(encode_component(location))),)
        return primary, secondary

    def _text(self, data: str, fields: Mapping[str, Any]) -> ActionSet:
        return (
            copy_text("Copy Text", data),
            (open_url("Search Web", "search-outline", self.search_url(data)), share(message=data)),
        )


class EffectHandlers(Protocol):
    """Platform hooks supplied by the host environment."""

    def can_open_url(self, url: str) -> bool: ...

    def open_url(self, url: str) -> None: ...

    def copy_text(self, text: str) -> None: ...

    def share_text(self, params: Mapping[str, Any]) -> None: ...

    def add_contact(self, params: Mapping[str, Any]) -> None: ...


def perform_action(action: ActionDescriptor, handlers: EffectHandlers) -> None:
    """Interpret ``action`` against the host's handlers.

    Raises UnsupportedEffectError when a checked link has no capable handler.
    """
    params = action.params
    logger.info("Performing action %r (%s)", action.label, action.effect.value)
    if action.effect is EffectKind.OPEN_URL:
        url = params["url"]
        if params.get("check_handler") and not handlers.can_open_url(url):
            raise UnsupportedEffectError(url)
        handlers.open_url(url)
    elif action.effect is EffectKind.COPY_TEXT:
        handlers.copy_text(params["text"])
    elif action.effect is EffectKind.SHARE_TEXT:
        handlers.share_text(params)
    elif action.effect is EffectKind.ADD_CONTACT:
        handlers.add_contact(params)
    else:  # pragma: no cover
        raise ValueError(f"Unknown effect: {action.effect}")
