from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable, Iterable
from typing import Protocol, TextIO

import orjson
from redis.asyncio import Redis

from notifier.core.errors import ExitReason
from notifier.models.notification import CTAType, NotificationObject
from notifier.schemas.reply import ReplyKind, ReplyPayload


logger = logging.getLogger(__name__)

EXIT_REASONS: dict[ReplyKind, ExitReason] = {
    ReplyKind.MAIN: ExitReason.MAIN_BUTTON_CLICKED,
    ReplyKind.SECONDARY: ExitReason.SECONDARY_BUTTON_CLICKED,
    ReplyKind.TERTIARY: ExitReason.TERTIARY_BUTTON_CLICKED,
    ReplyKind.HELP: ExitReason.HELP_BUTTON_CLICKED,
    ReplyKind.CANCEL: ExitReason.CANCEL_PRESSED,
    ReplyKind.TIMEOUT: ExitReason.TIMEOUT,
}

CompletionCallback = Callable[[ExitReason, ReplyPayload], None]


def is_terminal(kind: ReplyKind, notification: NotificationObject) -> bool:
    if kind == ReplyKind.TERTIARY:
        button = notification.tertiary_button
        return button is not None and button.cta_type == CTAType.EXITLINK
    return True


def encode_reply(payload: ReplyPayload) -> bytes:
    return orjson.dumps(payload.to_wire())


class ReplyChannel(Protocol):
    def send(self, payload: ReplyPayload) -> None: ...

    async def aclose(self) -> None: ...


class StdoutReplyChannel:
    """Writes one JSON line per reply to the stream the caller is waiting on."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def send(self, payload: ReplyPayload) -> None:
        stream = self.stream or sys.stdout
        stream.write(encode_reply(payload).decode("utf-8") + "\n")
        stream.flush()

    async def aclose(self) -> None:
        return None


class RedisReplyChannel:
    def __init__(self, redis_url: str, channel: str, client: Redis | None = None) -> None:
        self.channel = channel
        self.client = client or Redis.from_url(redis_url, decode_responses=True)
        self.pending: set[asyncio.Task] = set()

    def send(self, payload: ReplyPayload) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running loop, reply for %s not published", payload.notification_id)
            return
        task = loop.create_task(self._publish(encode_reply(payload).decode("utf-8")))
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)

    async def _publish(self, message: str) -> None:
        try:
            await self.client.publish(self.channel, message)
        except Exception:
            logger.exception("Failed to publish reply on channel %s", self.channel)

    async def aclose(self) -> None:
        if self.pending:
            await asyncio.gather(*self.pending, return_exceptions=True)
        await self.client.aclose()


class ReplyHandler:
    """Turns the terminal response to a shown notification into exactly one outward reply.

    Once a reply went out for a notification every later response for it is
    ignored, whatever produced it (a second click, a stale timer, ...). Responses
    that leave the notification open never reach the channels.
    """

    def __init__(
        self,
        channels: Iterable[ReplyChannel],
        on_complete: CompletionCallback | None = None,
    ) -> None:
        self.channels = list(channels)
        self.on_complete = on_complete
        self._answered: set[str] = set()

    def is_answered(self, notification: NotificationObject) -> bool:
        return notification.identifier in self._answered

    def release(self, notification: NotificationObject) -> None:
        """Forget a notification whose surface is gone; nothing can answer it any more."""
        self._answered.discard(notification.identifier)

    def handle_response(
        self,
        kind: ReplyKind,
        notification: NotificationObject,
        data: str | None = None,
        *,
        secured: bool = False,
    ) -> ReplyPayload | None:
        if notification.identifier in self._answered:
            logger.info("Ignoring %s response, notification %s already answered", kind.value, notification.identifier)
            return None

        if not is_terminal(kind, notification):
            logger.warning("Not replying %s for notification %s, it stays open", kind.value, notification.identifier)
            return None
        self._answered.add(notification.identifier)

        payload = ReplyPayload(kind=kind, notification_id=notification.identifier, data=data, secured=secured)
        logger.info(
            "Reply %s for notification %s%s",
            kind.value,
            notification.identifier,
            " with data" if data is not None and not secured else "",
        )
        for channel in self.channels:
            try:
                channel.send(payload)
            except Exception:
                logger.exception("Reply channel %s failed", type(channel).__name__)

        if self.on_complete is not None:
            self.on_complete(EXIT_REASONS[kind], payload)
        return payload

    async def aclose(self) -> None:
        for channel in self.channels:
            await channel.aclose()
