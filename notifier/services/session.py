from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from notifier.models.notification import (
    CTAType,
    InputAccessory,
    NotificationObject,
    ProgressBarAccessory,
    TimerAccessory,
)
from notifier.schemas.reply import ReplyKind, ReplyPayload
from notifier.services.progress import (
    ProgressEvent,
    ProgressFinished,
    ProgressState,
    ProgressUpdate,
    ProgressUpdateReader,
    parse_progress_payload,
)
from notifier.services.replies import ReplyHandler, is_terminal


logger = logging.getLogger(__name__)


class Presenter(Protocol):
    """What the rendering side has to offer. Sessions call it, it calls ``on_user_action`` back."""

    def activate(self) -> None: ...

    def present(self, session: PresentationSession) -> None: ...

    def show_info(self, session: PresentationSession, text: str) -> None: ...

    def update_progress(self, session: PresentationSession, state: ProgressState) -> None: ...

    def open_link(self, session: PresentationSession, url: str) -> None: ...

    def close(self, session: PresentationSession) -> None: ...


class HeadlessPresenter:
    """Keeps no window: sessions wait for a UI process to report actions over the local API."""

    def __init__(self) -> None:
        self.active = False

    def activate(self) -> None:
        self.active = True

    def present(self, session: PresentationSession) -> None:
        logger.info(
            "Presenting %s notification %s",
            session.notification.type.value,
            session.notification.identifier,
        )

    def show_info(self, session: PresentationSession, text: str) -> None:
        session.info_message = text

    def open_link(self, session: PresentationSession, url: str) -> None:
        session.opened_link = url

    def update_progress(self, session: PresentationSession, state: ProgressState) -> None:
        logger.debug("Progress %.0f%% for notification %s", state.percent, session.notification.identifier)

    def close(self, session: PresentationSession) -> None:
        logger.info("Closed notification %s", session.notification.identifier)


class PresentationSession:
    """Lifecycle of one shown notification, from presentation to its reply."""

    def __init__(
        self,
        notification: NotificationObject,
        reply_handler: ReplyHandler,
        presenter: Presenter,
        *,
        default_timeout: int | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        on_close: Callable[[PresentationSession], None] | None = None,
    ) -> None:
        self.notification = notification
        self.reply_handler = reply_handler
        self.presenter = presenter
        self.default_timeout = default_timeout
        self.loop = loop
        self.on_close = on_close

        self.closed = False
        self.input_value: str | None = None
        self.info_message: str | None = None
        self.opened_link: str | None = None
        self.progress: ProgressState | None = None
        self.allow_cancel = False
        self._timer: asyncio.TimerHandle | None = None
        self._countdown: asyncio.TimerHandle | None = None
        self.progress_reader: ProgressUpdateReader | None = None

        accessory = notification.accessory_view
        if isinstance(accessory, ProgressBarAccessory):
            self.progress = parse_progress_payload(accessory.payload)
            self.allow_cancel = self.progress.is_user_interruption_allowed and not self.progress.is_complete
            self.progress_reader = ProgressUpdateReader(self.progress)

    @property
    def identifier(self) -> str:
        return self.notification.identifier

    @property
    def timeout_seconds(self) -> int | None:
        if isinstance(self.notification.accessory_view, TimerAccessory):
            return None
        timeout = self.notification.effective_timeout
        return timeout if timeout is not None else self.default_timeout

    def start(self) -> None:
        self.presenter.present(self)
        seconds = self.timeout_seconds
        if seconds is not None:
            self._timer = self._schedule(seconds, self.fire_timeout)

        accessory = self.notification.accessory_view
        if isinstance(accessory, TimerAccessory):
            self._countdown = self._schedule(accessory.seconds, self.finish_countdown)

    def _schedule(self, seconds: int, callback: Callable[[], object]) -> asyncio.TimerHandle | None:
        loop = self.loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning("No running loop, %ss timer not scheduled for %s", seconds, self.identifier)
                return None
        return loop.call_later(seconds, callback)

    def reset_timers(self) -> None:
        for handle in (self._timer, self._countdown):
            if handle is not None:
                handle.cancel()
        self._timer = None
        self._countdown = None

    def set_input_value(self, value: str | None) -> None:
        self.input_value = value

    def fire_timeout(self) -> ReplyPayload | None:
        self._timer = None
        return self.on_user_action(ReplyKind.TIMEOUT)

    def finish_countdown(self) -> ReplyPayload | None:
        self._countdown = None
        return self.on_user_action(ReplyKind.MAIN)

    def on_user_action(self, kind: ReplyKind, data: str | None = None) -> ReplyPayload | None:
        if self.closed:
            logger.info("Ignoring %s action on closed notification %s", kind.value, self.identifier)
            return None

        notification = self.notification
        secured = False

        if kind == ReplyKind.MAIN and self.allow_cancel:
            kind = ReplyKind.CANCEL

        if kind == ReplyKind.CANCEL:
            if not self.allow_cancel:
                logger.warning("Cancel not allowed for notification %s", self.identifier)
                return None
            data = None
        elif kind == ReplyKind.MAIN:
            accessory = notification.accessory_view
            if isinstance(accessory, InputAccessory):
                data = data if data is not None else self.input_value
                secured = accessory.secured
            else:
                data = None
        elif kind == ReplyKind.HELP:
            help_button = notification.help_button
            if help_button is None:
                logger.warning("Help action on notification %s without help button", self.identifier)
                return None
            if help_button.cta_type == CTAType.INFOPOPUP:
                self.presenter.show_info(self, help_button.cta_payload)
                return None
            data = None
        elif kind == ReplyKind.SECONDARY and notification.secondary_button is None:
            logger.warning("Secondary action on notification %s without secondary button", self.identifier)
            return None
        elif kind == ReplyKind.TERTIARY:
            tertiary = notification.tertiary_button
            if tertiary is None:
                logger.warning("Tertiary action on notification %s without tertiary button", self.identifier)
                return None
            if not is_terminal(kind, notification):
                # Link clicks leave the surface open and send no reply.
                if tertiary.cta_type == CTAType.LINK and tertiary.cta_payload:
                    self.presenter.open_link(self, tertiary.cta_payload)
                logger.info("Tertiary button clicked on notification %s", self.identifier)
                return None
            data = None
        else:
            data = None

        payload = self.reply_handler.handle_response(kind, notification, data, secured=secured)
        self.close()
        return payload

    def on_progress_event(self, event: ProgressEvent) -> None:
        if self.closed or self.progress is None:
            return
        if isinstance(event, ProgressUpdate):
            self.progress = event.state
            self.allow_cancel = event.state.is_user_interruption_allowed and not event.state.is_complete
        elif isinstance(event, ProgressFinished):
            self.allow_cancel = False
        self.presenter.update_progress(self, self.progress)

    def feed_progress(self, line: str) -> None:
        if self.progress_reader is None:
            return
        for event in self.progress_reader.feed(line):
            self.on_progress_event(event)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.reset_timers()
        self.presenter.close(self)
        if self.on_close is not None:
            self.on_close(self)
