from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from urllib.parse import urlsplit

from notifier.core.errors import ModelError, ModelErrorKind


class NotificationType(str, Enum):
    POPUP = "popup"
    BANNER = "banner"
    ALERT = "alert"


class CTAType(str, Enum):
    NONE = "none"
    LINK = "link"
    EXITLINK = "exitlink"
    INFOPOPUP = "infopopup"


class AccessoryKind(str, Enum):
    TIMER = "timer"
    WHITEBOX = "whitebox"
    PROGRESSBAR = "progressbar"
    IMAGE = "image"
    VIDEO = "video"
    INPUT = "input"
    SECUREDINPUT = "securedinput"


# First key found wins when several accessory keys are supplied.
ACCESSORY_PRECEDENCE: tuple[AccessoryKind, ...] = (
    AccessoryKind.TIMER,
    AccessoryKind.WHITEBOX,
    AccessoryKind.PROGRESSBAR,
    AccessoryKind.IMAGE,
    AccessoryKind.VIDEO,
    AccessoryKind.INPUT,
    AccessoryKind.SECUREDINPUT,
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_PAYLOAD_CTAS = {CTAType.LINK, CTAType.EXITLINK, CTAType.INFOPOPUP}


@dataclass(frozen=True, slots=True)
class Button:
    label: str
    cta_type: CTAType = CTAType.NONE
    cta_payload: str | None = None


@dataclass(frozen=True, slots=True)
class HelpButton:
    cta_payload: str
    cta_type: CTAType = CTAType.INFOPOPUP


@dataclass(frozen=True, slots=True)
class MediaHandle:
    """Where a media accessory lives. Nothing is opened or downloaded here."""

    source: str
    is_remote: bool

    @property
    def name(self) -> str:
        if self.is_remote:
            return PurePath(urlsplit(self.source).path).name
        return PurePath(self.source).name


@dataclass(frozen=True, slots=True)
class TimerAccessory:
    payload: str
    seconds: int
    kind: AccessoryKind = field(default=AccessoryKind.TIMER, init=False)


@dataclass(frozen=True, slots=True)
class WhiteboxAccessory:
    payload: str
    kind: AccessoryKind = field(default=AccessoryKind.WHITEBOX, init=False)


@dataclass(frozen=True, slots=True)
class ProgressBarAccessory:
    payload: str
    kind: AccessoryKind = field(default=AccessoryKind.PROGRESSBAR, init=False)


@dataclass(frozen=True, slots=True)
class ImageAccessory:
    payload: str
    media: MediaHandle
    kind: AccessoryKind = field(default=AccessoryKind.IMAGE, init=False)


@dataclass(frozen=True, slots=True)
class VideoAccessory:
    payload: str
    media: MediaHandle
    kind: AccessoryKind = field(default=AccessoryKind.VIDEO, init=False)


@dataclass(frozen=True, slots=True)
class InputAccessory:
    payload: str
    secured: bool = False

    @property
    def kind(self) -> AccessoryKind:
        return AccessoryKind.SECUREDINPUT if self.secured else AccessoryKind.INPUT


Accessory = (
    TimerAccessory
    | WhiteboxAccessory
    | ProgressBarAccessory
    | ImageAccessory
    | VideoAccessory
    | InputAccessory
)


@dataclass(frozen=True, slots=True)
class NotificationObject:
    type: NotificationType
    main_button: Button
    title: str | None = None
    subtitle: str | None = None
    icon_path: str | None = None
    bar_title: str | None = None
    secondary_button: Button | None = None
    tertiary_button: Button | None = None
    help_button: HelpButton | None = None
    accessory_view: Accessory | None = None
    timeout: int | None = None
    always_on_top: bool = False
    identifier: str = field(default_factory=lambda: uuid.uuid4().hex, compare=False)

    @property
    def effective_timeout(self) -> int | None:
        # A timer accessory owns the countdown.
        if isinstance(self.accessory_view, TimerAccessory):
            return None
        return self.timeout


def _clean(params: Mapping[str, str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        text = str(value).strip()
        if text:
            out[str(key).strip().lower()] = text
    return out


def _parse_type(raw: str | None) -> NotificationType:
    try:
        return NotificationType((raw or "").strip().lower())
    except ValueError as exc:
        raise ModelError(ModelErrorKind.NO_TYPE_DEFINED) from exc


def _parse_cta(raw: str | None, *, allow_infopopup: bool = False) -> CTAType:
    if raw is None:
        return CTAType.NONE
    try:
        cta = CTAType(raw.strip().lower())
    except ValueError as exc:
        raise ModelError(ModelErrorKind.NO_BUTTON_DEFINED, raw) from exc
    if cta == CTAType.INFOPOPUP and not allow_infopopup:
        raise ModelError(ModelErrorKind.NO_BUTTON_DEFINED, raw)
    return cta


def _button(data: dict[str, str], prefix: str, *, default_label: str | None = None) -> Button | None:
    keys = [k for k in (f"{prefix}_label", f"{prefix}_cta_type", f"{prefix}_cta_payload") if k in data]
    if not keys and default_label is None:
        return None

    label = data.get(f"{prefix}_label") or default_label
    if not label:
        raise ModelError(ModelErrorKind.NO_BUTTON_DEFINED, prefix)

    cta_type = _parse_cta(data.get(f"{prefix}_cta_type"))
    cta_payload = data.get(f"{prefix}_cta_payload")
    if cta_type in _PAYLOAD_CTAS and not cta_payload:
        raise ModelError(ModelErrorKind.NO_BUTTON_DEFINED, prefix)
    return Button(label=label, cta_type=cta_type, cta_payload=cta_payload)


def _help_button(data: dict[str, str]) -> HelpButton | None:
    if "helpbutton" not in data and "helpbutton_cta_type" not in data:
        return None
    payload = data.get("helpbutton")
    if not payload:
        raise ModelError(ModelErrorKind.NO_BUTTON_DEFINED, "helpbutton")
    raw_cta = data.get("helpbutton_cta_type")
    cta_type = _parse_cta(raw_cta, allow_infopopup=True) if raw_cta else CTAType.INFOPOPUP
    return HelpButton(cta_payload=payload, cta_type=cta_type)


def _parse_timeout(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ModelError(ModelErrorKind.INVALID_TIMEOUT, raw) from exc
    if value < 0:
        raise ModelError(ModelErrorKind.INVALID_TIMEOUT, raw)
    return value


def resolve_media(source: str) -> MediaHandle:
    scheme = urlsplit(source).scheme.lower()
    return MediaHandle(source=source, is_remote=scheme in {"http", "https"})


def _make_accessory(kind: AccessoryKind, payload: str, timeout: int | None) -> Accessory | None:
    if kind == AccessoryKind.TIMER:
        if timeout is None:
            return None
        return TimerAccessory(payload=payload, seconds=timeout)
    if kind == AccessoryKind.WHITEBOX:
        return WhiteboxAccessory(payload=payload)
    if kind == AccessoryKind.PROGRESSBAR:
        return ProgressBarAccessory(payload=payload)
    if kind == AccessoryKind.IMAGE:
        return ImageAccessory(payload=payload, media=resolve_media(payload))
    if kind == AccessoryKind.VIDEO:
        return VideoAccessory(payload=payload, media=resolve_media(payload))
    return InputAccessory(payload=payload, secured=kind == AccessoryKind.SECUREDINPUT)


def _accessory(data: dict[str, str], timeout: int | None) -> Accessory | None:
    explicit = data.get("accessory_view_type")
    if explicit:
        try:
            kind = AccessoryKind(explicit.lower())
        except ValueError:
            kind = None
        if kind is not None:
            return _make_accessory(kind, data.get("accessory_view_payload", ""), timeout)

    for kind in ACCESSORY_PRECEDENCE:
        if kind.value in data:
            return _make_accessory(kind, data[kind.value], timeout)
    return None


def _has_info(
    notification_type: NotificationType,
    title: str | None,
    subtitle: str | None,
    accessory: Accessory | None,
) -> bool:
    if title or subtitle:
        return True
    if notification_type == NotificationType.POPUP and accessory is not None:
        return bool(accessory.payload)
    return False


def build_notification(
    params: Mapping[str, str],
    *,
    default_main_button_label: str = "OK",
) -> NotificationObject:
    """Build a validated notification from a flat key/value mapping.

    The same mapping is used by every trigger (command line, deep link, push), so
    keys that are not recognised are ignored rather than rejected.

    Raises:
        ModelError: when the mapping cannot describe a notification.
    """
    data = _clean(params)

    notification_type = _parse_type(data.get("type"))
    if notification_type == NotificationType.BANNER and (
        "helpbutton" in data or "helpbutton_cta_type" in data
    ):
        raise ModelError(ModelErrorKind.NO_HELP_BUTTON_ALLOWED_IN_NOTIFICATION)

    main_button = _button(data, "main_button", default_label=default_main_button_label)
    # Secondary buttons only ever reply, so only their label is read.
    secondary_label = data.get("secondary_button_label")
    secondary_button = Button(label=secondary_label) if secondary_label else None
    tertiary_button = _button(data, "tertiary_button")
    help_button = _help_button(data)

    timeout = _parse_timeout(data.get("timeout"))
    accessory = _accessory(data, timeout)

    title = data.get("title")
    subtitle = data.get("subtitle")
    if not _has_info(notification_type, title, subtitle, accessory):
        raise ModelError(ModelErrorKind.NO_INFO_TO_SHOW)

    return NotificationObject(
        type=notification_type,
        main_button=main_button,
        title=title,
        subtitle=subtitle,
        icon_path=data.get("icon_path"),
        bar_title=data.get("bar_title"),
        secondary_button=secondary_button,
        tertiary_button=tertiary_button,
        help_button=help_button,
        accessory_view=accessory,
        timeout=timeout,
        always_on_top=data.get("always_on_top", "").lower() in _TRUE_VALUES,
    )
