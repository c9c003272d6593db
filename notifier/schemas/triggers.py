from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class OpenUrlsIn(BaseModel):
    urls: list[str] = Field(min_length=1)


class RemoteNotificationIn(BaseModel):
    payload: dict[str, Any] = Field(default_factory=dict)


class TriggerAccepted(BaseModel):
    accepted: bool
    sessions: list[str] = Field(default_factory=list)
