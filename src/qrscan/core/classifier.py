"""Classify raw QR payload text into typed, structured results.

Rules are evaluated top to bottom and the first match wins; plain text is
the catch-all so :func:`classify` returns a result for every string. Field
extraction never fails on missing parts, defaults are filled in instead.
The only error is an ``http(s)://`` payload that is not a valid URL, which
raises :class:`~qrscan.infra.exceptions.MalformedURLError`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import unquote, urlsplit

from qrscan.core.actions import ActionBuilder
from qrscan.core.entities import ParsedPayload, PayloadKind
from qrscan.infra.exceptions import MalformedURLError

logger = logging.getLogger("scanner.classifier")

_APP_SCHEME = re.compile(r"^[a-zA-Z0-9.+-]+://")
_RESERVED_PREFIXES = ("mailto:", "tel:", "sms:", "smsto:", "geo:")

_LINE_END = r"(?:\r?\n|\r|$)"
_WIFI_SSID = re.compile(r"S:(.*?);")
_WIFI_TYPE = re.compile(r"T:(.*?);")
_WIFI_PASSWORD = re.compile(r"P:(.*?);")
_VCARD_NAME = re.compile(r"FN:(.*?)" + _LINE_END)
_VCARD_PHONE = re.compile(r"TEL.*?:(.*?)" + _LINE_END)
_VCARD_EMAIL = re.compile(r"EMAIL.*?:(.*?)" + _LINE_END)
_QUERY_SUBJECT = re.compile(r"[?&]subject=([^&]*)")
_QUERY_BODY = re.compile(r"[?&]body=([^&]*)")
_EVENT_SUMMARY = re.compile(r"SUMMARY:(.*?)" + _LINE_END)
_EVENT_LOCATION = re.compile(r"LOCATION:(.*?)" + _LINE_END)
_EVENT_START = re.compile(r"DTSTART:(.*?)" + _LINE_END)
_EVENT_END = re.compile(r"DTEND:(.*?)" + _LINE_END)
_COMPACT_TIMESTAMP = re.compile(r"(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})")
_URL_FORBIDDEN = re.compile(r"[\s<>\"{}|\\^`]")
# URL parsers drop leading and trailing C0 controls and spaces before parsing.
_URL_TRIM = "".join(chr(code) for code in range(0x21))


@dataclass(frozen=True)
class _Classification:
    kind: PayloadKind
    title: str
    subtitle: Optional[str]
    fields: Dict[str, Any]


def _group(pattern: re.Pattern, data: str, default: str = "") -> str:
    match = pattern.search(data)
    return match.group(1) if match else default


def _strip_prefix(data: str, prefix: str) -> str:
    return data[len(prefix):] if data.startswith(prefix) else data


# Matchers --------------------------------------------------------------------


def _is_url(data: str) -> bool:
    return data.startswith("http://") or data.startswith("https://")


def _is_app_link(data: str) -> bool:
    if not _APP_SCHEME.match(data):
        return False
    return not data.startswith(_RESERVED_PREFIXES)


def _prefix(*prefixes: str) -> Callable[[str], bool]:
    return lambda data: data.startswith(prefixes)


# Parsers ---------------------------------------------------------------------


def _parse_url(data: str) -> _Classification:
    try:
        parts = urlsplit(data.strip(_URL_TRIM))
        parts.port  # raises ValueError for a non-numeric or out-of-range port
    except ValueError as exc:
        raise MalformedURLError(data, str(exc)) from exc
    if _URL_FORBIDDEN.search(parts.netloc):
        raise MalformedURLError(data, "host contains characters that are not allowed")
    host = parts.hostname
    if not host:
        raise MalformedURLError(data, "missing host")
    return _Classification(PayloadKind.URL, "Website", host, {"url": data})


def _parse_app_link(data: str) -> _Classification:
    scheme = data.split("://", 1)[0]
    display_scheme = scheme[:1].upper() + scheme[1:]
    return _Classification(PayloadKind.APP_LINK, "App Link", display_scheme, {"url": data})


def _parse_wifi(data: str) -> _Classification:
    # WIFI:S:<SSID>;T:<WPA|WEP|>;P:<password>;;
    ssid = _group(_WIFI_SSID, data, "Unknown Network")
    security = _group(_WIFI_TYPE, data, "Unknown")
    password = _group(_WIFI_PASSWORD, data, "")
    return _Classification(
        PayloadKind.WIFI,
        "WiFi Network",
        ssid,
        {"ssid": ssid, "type": security, "password": password},
    )


def _parse_vcard(data: str) -> _Classification:
    name = _group(_VCARD_NAME, data, "Unknown Contact")
    phone = _group(_VCARD_PHONE, data)
    email = _group(_VCARD_EMAIL, data)
    return _Classification(PayloadKind.CONTACT, "Contact", name, {"name": name, "phone": phone, "email": email})


def _parse_email(data: str) -> _Classification:
    # mailto:someone@example.com?subject=Subject&body=Body
    email = _strip_prefix(data, "mailto:").split("?", 1)[0]
    subject = unquote(_group(_QUERY_SUBJECT, data))
    body = unquote(_group(_QUERY_BODY, data))
    return _Classification(
        PayloadKind.EMAIL,
        "Email Address",
        email,
        {"email": email, "subject": subject, "body": body},
    )


def _parse_sms(data: str) -> _Classification:
    # smsto:+15551234567:message  or  sms:+15551234567?body=message
    if data.startswith("smsto:"):
        phone, _, message = _strip_prefix(data, "smsto:").partition(":")
    else:
        phone = _strip_prefix(data, "sms:").split("?", 1)[0]
        message = unquote(_group(_QUERY_BODY, data))
    return _Classification(PayloadKind.SMS, "SMS Message", phone, {"phone": phone, "message": message})


def _parse_phone(data: str) -> _Classification:
    phone = _strip_prefix(data, "tel:")
    return _Classification(PayloadKind.PHONE, "Phone Number", phone, {"phone": phone})


def _parse_geo(data: str) -> _Classification:
    # geo:latitude,longitude
    coords = _strip_prefix(data, "geo:").split(",")
    latitude = coords[0] or "0"
    longitude = coords[1] if len(coords) > 1 and coords[1] else "0"
    return _Classification(
        PayloadKind.GEO,
        "Location",
        f"{latitude}, {longitude}",
        {"latitude": latitude, "longitude": longitude},
    )


def _parse_event_time(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    iso_like = _COMPACT_TIMESTAMP.sub(r"\1-\2-\3T\4:\5:\6", value)
    try:
        return datetime.fromisoformat(iso_like)
    except ValueError:
        logger.debug("Unparseable calendar timestamp %r", value)
        return None


def _parse_calendar(data: str) -> _Classification:
    summary = _group(_EVENT_SUMMARY, data, "Unknown Event")
    location = _group(_EVENT_LOCATION, data)
    start_match = _EVENT_START.search(data)
    end_match = _EVENT_END.search(data)
    return _Classification(
        PayloadKind.CALENDAR,
        "Calendar Event",
        summary,
        {
            "summary": summary,
            "location": location,
            "start_time": _parse_event_time(start_match.group(1) if start_match else None),
            "end_time": _parse_event_time(end_match.group(1) if end_match else None),
        },
    )


def _parse_text(data: str) -> _Classification:
    return _Classification(PayloadKind.TEXT, "Text", None, {"text": data})


_Rule = Tuple[PayloadKind, Callable[[str], bool], Callable[[str], _Classification]]

_RULES: Tuple[_Rule, ...] = (
    (PayloadKind.URL, _is_url, _parse_url),
    (PayloadKind.APP_LINK, _is_app_link, _parse_app_link),
    (PayloadKind.WIFI, _prefix("WIFI:"), _parse_wifi),
    (PayloadKind.CONTACT, _prefix("BEGIN:VCARD"), _parse_vcard),
    (PayloadKind.EMAIL, _prefix("mailto:"), _parse_email),
    (PayloadKind.SMS, _prefix("smsto:", "sms:"), _parse_sms),
    (PayloadKind.PHONE, _prefix("tel:"), _parse_phone),
    (PayloadKind.GEO, _prefix("geo:"), _parse_geo),
    (PayloadKind.CALENDAR, _prefix("BEGIN:VEVENT"), _parse_calendar),
)

_DEFAULT_BUILDER = ActionBuilder()


def detect_kind(raw_data: str) -> PayloadKind:
    """Return the kind the payload dispatches to without extracting fields.

    Used for live overlay labels; never raises.
    """
    for kind, matches, _ in _RULES:
        if matches(raw_data):
            return kind
    return PayloadKind.TEXT


def classify(raw_data: str, builder: Optional[ActionBuilder] = None) -> ParsedPayload:
    """Classify ``raw_data`` and attach its actions."""
    classification = None
    for _, matches, parse in _RULES:
        if matches(raw_data):
            classification = parse(raw_data)
            break
    if classification is None:
        classification = _parse_text(raw_data)

    builder = builder or _DEFAULT_BUILDER
    primary, secondary = builder.build(classification.kind, raw_data, classification.fields)
    return ParsedPayload(
        kind=classification.kind,
        raw_data=raw_data,
        title=classification.title,
        subtitle=classification.subtitle,
        fields=classification.fields,
        primary_action=primary,
        secondary_actions=secondary,
    )
