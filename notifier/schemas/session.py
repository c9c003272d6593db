from __future__ import annotations

from pydantic import BaseModel, Field

from notifier.schemas.reply import ReplyKind


class ButtonOut(BaseModel):
    label: str
    cta_type: str
    cta_payload: str | None = None


class AccessoryOut(BaseModel):
    kind: str
    payload: str
    seconds: int | None = None
    media_source: str | None = None
    media_name: str | None = None
    media_is_remote: bool | None = None


class ProgressOut(BaseModel):
    percent: float
    is_indeterminate: bool
    top_message: str
    bottom_message: str
    is_user_interaction_enabled: bool
    is_user_interruption_allowed: bool


class SessionOut(BaseModel):
    id: str
    type: str
    title: str | None = None
    subtitle: str | None = None
    icon_path: str | None = None
    bar_title: str
    always_on_top: bool
    main_button: ButtonOut
    main_button_is_cancel: bool
    secondary_button: ButtonOut | None = None
    tertiary_button: ButtonOut | None = None
    help_button: ButtonOut | None = None
    accessory: AccessoryOut | None = None
    progress: ProgressOut | None = None
    timeout: int | None = None
    info_message: str | None = None


class UserActionIn(BaseModel):
    kind: ReplyKind
    data: str | None = Field(default=None, repr=False)


class UserActionOut(BaseModel):
    replied: bool
    kind: ReplyKind | None = None
    closed: bool
    info_message: str | None = None
    opened_link: str | None = None


class ProgressIn(BaseModel):
    update: str = Field(min_length=1)
