from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from notifier.core.config import Settings, load_settings
from notifier.core.errors import ArgumentsError, ArgumentsErrorKind, ModelError
from notifier.models.notification import NotificationObject, build_notification
from notifier.services.dispatch import NotificationDispatch


logger = logging.getLogger(__name__)


def parse_arguments(argv: Sequence[str]) -> dict[str, str]:
    """Pair already-tokenised ``-key value`` arguments.

    Raises:
        ArgumentsError: on an odd number of tokens (syntax) or a key that is
            not a dash-prefixed name (format).
    """
    if len(argv) % 2 != 0:
        raise ArgumentsError(ArgumentsErrorKind.INVALID_ARGUMENTS_SYNTAX)

    params: dict[str, str] = {}
    for index in range(0, len(argv), 2):
        key, value = argv[index], argv[index + 1]
        if not key.startswith("-") or not key.lstrip("-"):
            raise ArgumentsError(ArgumentsErrorKind.INVALID_ARGUMENTS_FORMAT, key)
        params[key.lstrip("-").lower()] = value
    return params


class ArgumentsController:
    """Command-line trigger: builds the notification the agent was launched for."""

    def __init__(
        self,
        argv: Sequence[str] = (),
        dispatch: NotificationDispatch | None = None,
        settings_source: Callable[[], Settings] = load_settings,
    ) -> None:
        self.argv = list(argv)
        self.dispatch = dispatch
        self.settings_source = settings_source

    def parse_arguments(self) -> NotificationObject | None:
        if not self.argv:
            return None

        params = parse_arguments(self.argv)
        current = self.settings_source()
        try:
            notification = build_notification(params, default_main_button_label=current.default_main_button_label)
        except ModelError as exc:
            raise ArgumentsError(ArgumentsErrorKind.ERROR_BUILDING_NOTIFICATION_OBJECT, str(exc)) from exc

        logger.info("Command line arguments parsed into %s notification", notification.type.value)
        if self.dispatch is not None:
            self.dispatch.post(notification)
        return notification
