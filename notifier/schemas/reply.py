from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReplyKind(str, Enum):
    MAIN = "main"
    SECONDARY = "secondary"
    TERTIARY = "tertiary"
    HELP = "help"
    CANCEL = "cancel"
    TIMEOUT = "timeout"


class ReplyPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ReplyKind
    notification_id: str
    # Kept out of repr so an input value cannot leak through a log line.
    data: str | None = Field(default=None, repr=False)
    secured: bool = False

    def to_wire(self) -> dict:
        out: dict = {"kind": self.kind.value, "notification_id": self.notification_id}
        if self.data is not None:
            out["data"] = self.data
        return out
