from __future__ import annotations

import asyncio
import logging
import re
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace


logger = logging.getLogger(__name__)

_DIRECTIVES = ("percent", "top_message", "bottom_message", "user_interaction_enabled", "user_interruption_allowed")
_DIRECTIVE_RE = re.compile(r"(?:^|\s)/(" + "|".join(_DIRECTIVES) + r")(?=\s|$)")
_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class ProgressState:
    percent: float = 0.0
    is_indeterminate: bool = False
    top_message: str = ""
    bottom_message: str = ""
    is_user_interaction_enabled: bool = False
    is_user_interruption_allowed: bool = False

    @property
    def is_complete(self) -> bool:
        return not self.is_indeterminate and self.percent >= 100


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    state: ProgressState


@dataclass(frozen=True, slots=True)
class ProgressFinished:
    pass


ProgressEvent = ProgressUpdate | ProgressFinished


def _split_directives(payload: str) -> dict[str, str]:
    matches = list(_DIRECTIVE_RE.finditer(payload))
    out: dict[str, str] = {}
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(payload)
        out[match.group(1)] = payload[match.end() : end].strip()
    return out


def apply_directives(state: ProgressState, payload: str | None) -> ProgressState:
    """Return ``state`` with the ``/key value`` directives of ``payload`` applied.

    Text that is not a known directive stays part of the preceding value.
    ``/percent indeterminate`` switches the bar to indeterminate mode, any number
    switches it back.
    """
    directives = _split_directives(payload or "")
    changes: dict[str, object] = {}

    raw_percent = directives.get("percent")
    if raw_percent is not None:
        if raw_percent.lower() == "indeterminate":
            changes["is_indeterminate"] = True
        else:
            try:
                changes["percent"] = min(max(float(raw_percent), 0.0), 100.0)
                changes["is_indeterminate"] = False
            except ValueError:
                logger.warning("Ignoring invalid progress percent %r", raw_percent)

    if "top_message" in directives:
        changes["top_message"] = directives["top_message"]
    if "bottom_message" in directives:
        changes["bottom_message"] = directives["bottom_message"]
    if "user_interaction_enabled" in directives:
        changes["is_user_interaction_enabled"] = directives["user_interaction_enabled"].lower() in _TRUE_VALUES
    if "user_interruption_allowed" in directives:
        changes["is_user_interruption_allowed"] = directives["user_interruption_allowed"].lower() in _TRUE_VALUES

    return replace(state, **changes) if changes else state


def parse_progress_payload(payload: str | None) -> ProgressState:
    return apply_directives(ProgressState(), payload)


class ProgressUpdateReader:
    """Turns raw update lines into ordered progress events for one progress bar."""

    def __init__(self, initial: ProgressState) -> None:
        self.state = initial
        self.finished = False

    def feed(self, line: str) -> list[ProgressEvent]:
        if self.finished:
            return []
        text = line.strip()
        if not text:
            return []
        if text == "/end":
            return self.close()

        self.state = apply_directives(self.state, text)
        events: list[ProgressEvent] = [ProgressUpdate(self.state)]
        if self.state.is_complete:
            events.extend(self.close())
        return events

    def close(self) -> list[ProgressEvent]:
        if self.finished:
            return []
        self.finished = True
        return [ProgressFinished()]


def follow_updates(
    lines: Iterable[str],
    reader: ProgressUpdateReader,
    loop: asyncio.AbstractEventLoop,
    deliver: Callable[[ProgressEvent], None],
) -> threading.Thread:
    """Read ``lines`` on a worker thread and hand each event to ``deliver`` on ``loop``.

    ``call_soon_threadsafe`` keeps the events in the order they were produced.
    """

    def _run() -> None:
        try:
            for line in lines:
                for event in reader.feed(line):
                    loop.call_soon_threadsafe(deliver, event)
                if reader.finished:
                    return
        except Exception:
            logger.exception("Progress updates reader failed")
        finally:
            for event in reader.close():
                if not loop.is_closed():
                    loop.call_soon_threadsafe(deliver, event)

    thread = threading.Thread(target=_run, name="progress-updates", daemon=True)
    thread.start()
    return thread
