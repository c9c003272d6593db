from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from notifier.core.config import Settings, load_settings
from notifier.core.errors import ArgumentsError, ExitReason
from notifier.services.arguments import ArgumentsController
from notifier.services.deeplink import DeepLinkParser
from notifier.services.dispatch import NotificationDispatch
from notifier.services.push import PushController
from notifier.services.session import Presenter


logger = logging.getLogger(__name__)

Continuation = Callable[[], None]


class TriggerRouter:
    """Single entry point for the three ways the agent can be started.

    Whichever trigger arrives first performs the process-wide setup; the
    ``configured`` latch is checked and set under a lock so concurrent
    triggers can never run it twice.
    """

    def __init__(
        self,
        presenter: Presenter,
        dispatch: NotificationDispatch,
        arguments: ArgumentsController,
        deeplinks: DeepLinkParser,
        push: PushController,
        *,
        terminate: Callable[[ExitReason], None] | None = None,
        settings_source: Callable[[], Settings] = load_settings,
    ) -> None:
        self.presenter = presenter
        self.dispatch = dispatch
        self.arguments = arguments
        self.deeplinks = deeplinks
        self.push = push
        self.terminate = terminate
        self.settings_source = settings_source

        self.configured = False
        self.setup_runs = 0
        self.triggered_by_deeplink = False
        self._lock = threading.Lock()

    def configure(self, continuation: Continuation | None = None) -> None:
        with self._lock:
            first = not self.configured
            self.configured = True
            if first:
                self._setup()
        if continuation is not None:
            continuation()

    def _setup(self) -> None:
        self.setup_runs += 1
        self.presenter.activate()
        self.dispatch.start_observing()
        try:
            self.arguments.parse_arguments()
        except ArgumentsError as exc:
            logger.error("Command line error: %s", exc)
            self._exit(exc.exit_reason)

    def _exit(self, reason: ExitReason) -> None:
        if self.terminate is not None:
            self.terminate(reason)

    @property
    def origin(self) -> str:
        if self.push.triggered_by_push:
            return "push"
        if self.triggered_by_deeplink:
            return "deeplink"
        return "command line"

    def on_launch(self) -> None:
        self.configure()

    def on_open_urls(self, urls: Iterable[str]) -> bool:
        self.triggered_by_deeplink = True
        if not self.settings_source().deeplink_security:
            logger.error("Deep link security must be enabled to use deep links")
            return False

        urls = list(urls)

        def _process() -> None:
            for url in urls:
                logger.info("Agent triggered by a URL")
                self.deeplinks.process_url(url)

        self.configure(_process)
        return True

    def on_remote_notification(self, payload: Mapping[str, Any]) -> None:
        self.push.triggered_by_push = True

        def _process() -> None:
            logger.info("Agent triggered by a remote notification")
            self.push.received_remote_notification(payload)

        self.configure(_process)

    def on_interrupt(self) -> None:
        logger.info("Received interrupt, exiting")
        self._exit(ExitReason.RECEIVED_SIGINT)


def build_router(
    presenter: Presenter,
    dispatch: NotificationDispatch,
    argv: Sequence[str] = (),
    *,
    terminate: Callable[[ExitReason], None] | None = None,
    settings_source: Callable[[], Settings] = load_settings,
) -> TriggerRouter:
    return TriggerRouter(
        presenter,
        dispatch,
        ArgumentsController(argv, dispatch, settings_source),
        DeepLinkParser(dispatch, settings_source),
        PushController(dispatch, settings_source),
        terminate=terminate,
        settings_source=settings_source,
    )
