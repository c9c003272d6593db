from __future__ import annotations

import asyncio
import logging

from notifier.models.notification import NotificationObject
from notifier.services.replies import ReplyHandler
from notifier.services.session import PresentationSession, Presenter


logger = logging.getLogger(__name__)


class NotificationDispatch:
    """Receives "show notification" events and opens a presentation session for each.

    Events posted before ``start_observing`` are held and delivered, in order,
    once observation starts.
    """

    def __init__(
        self,
        presenter: Presenter,
        reply_handler: ReplyHandler,
        *,
        default_timeout: int | None = None,
    ) -> None:
        self.presenter = presenter
        self.reply_handler = reply_handler
        self.default_timeout = default_timeout
        self.observing = False
        self.sessions: dict[str, PresentationSession] = {}
        self._pending: list[NotificationObject] = []

    def start_observing(self) -> None:
        if self.observing:
            return
        self.observing = True
        pending, self._pending = self._pending, []
        for notification in pending:
            self._show(notification)

    def post(self, notification: NotificationObject) -> None:
        if not self.observing:
            self._pending.append(notification)
            return
        self._show(notification)

    def get(self, identifier: str) -> PresentationSession | None:
        return self.sessions.get(identifier)

    def _show(self, notification: NotificationObject) -> PresentationSession:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        session = PresentationSession(
            notification,
            self.reply_handler,
            self.presenter,
            default_timeout=self.default_timeout,
            loop=loop,
            on_close=self._forget,
        )
        self.sessions[notification.identifier] = session
        session.start()
        return session

    def _forget(self, session: PresentationSession) -> None:
        self.sessions.pop(session.identifier, None)
        self.reply_handler.release(session.notification)
