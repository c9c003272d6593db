from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from notifier.core.config import Settings, load_settings
from notifier.core.errors import ExitReason
from notifier.schemas.reply import ReplyPayload
from notifier.services.dispatch import NotificationDispatch
from notifier.services.replies import RedisReplyChannel, ReplyChannel, ReplyHandler, StdoutReplyChannel
from notifier.services.router import TriggerRouter, build_router
from notifier.services.session import HeadlessPresenter, Presenter


logger = logging.getLogger(__name__)


def default_channels(current: Settings) -> list[ReplyChannel]:
    channels: list[ReplyChannel] = [StdoutReplyChannel()]
    if current.reply_redis_url:
        channels.append(RedisReplyChannel(current.reply_redis_url, current.reply_redis_channel))
    return channels


class Agent:
    """Wires the trigger router, the dispatch and the reply channel of one agent process."""

    def __init__(
        self,
        argv: Sequence[str] = (),
        *,
        presenter: Presenter | None = None,
        channels: Sequence[ReplyChannel] | None = None,
        on_exit: Callable[[ExitReason], None] | None = None,
        settings_source: Callable[[], Settings] = load_settings,
    ) -> None:
        current = settings_source()
        self.settings_source = settings_source
        self.on_exit = on_exit
        self.exit_reason: ExitReason | None = None
        self.last_reply: ReplyPayload | None = None

        self.presenter = presenter or HeadlessPresenter()
        self.reply_handler = ReplyHandler(
            default_channels(current) if channels is None else channels,
            on_complete=self._on_reply,
        )
        self.dispatch = NotificationDispatch(
            self.presenter,
            self.reply_handler,
            default_timeout=current.default_popup_timeout,
        )
        self.router: TriggerRouter = build_router(
            self.presenter,
            self.dispatch,
            argv,
            terminate=self.finish,
            settings_source=settings_source,
        )

    def _on_reply(self, reason: ExitReason, payload: ReplyPayload) -> None:
        self.last_reply = payload
        self.finish(reason)

    def finish(self, reason: ExitReason) -> None:
        if self.exit_reason is None:
            self.exit_reason = reason
        logger.info(
            "Agent finished with exit reason %s (%d), triggered by %s",
            reason.name,
            int(reason),
            self.router.origin,
        )
        if self.on_exit is not None:
            self.on_exit(reason)

    async def aclose(self) -> None:
        await self.reply_handler.aclose()
