from __future__ import annotations

import logging
from collections.abc import Callable
from urllib.parse import SplitResult, parse_qsl, urlsplit

from notifier.core.config import Settings, load_settings
from notifier.core.errors import DeepLinkError, DeepLinkErrorKind, NotifierError
from notifier.models.notification import NotificationObject, build_notification
from notifier.services.dispatch import NotificationDispatch
from notifier.services.tokens import verify_token


logger = logging.getLogger(__name__)

NOTIFICATION_ROUTE = "shownotification"
TOKEN_PARAM = "token"


def _split(url: str) -> SplitResult:
    if not isinstance(url, str) or not url.strip():
        raise DeepLinkError(DeepLinkErrorKind.FAILED_TO_GET_COMPONENTS)
    try:
        parts = urlsplit(url.strip())
    except ValueError as exc:
        raise DeepLinkError(DeepLinkErrorKind.FAILED_TO_GET_COMPONENTS) from exc
    if not parts.scheme:
        raise DeepLinkError(DeepLinkErrorKind.FAILED_TO_GET_COMPONENTS)
    return parts


def route_of(url: str) -> str:
    # scheme://shownotification and scheme:shownotification name the same route.
    parts = _split(url)
    return f"{parts.netloc}{parts.path}".strip("/")


def query_params(url: str) -> dict[str, str]:
    params: dict[str, str] = {}
    for key, value in parse_qsl(_split(url).query, keep_blank_values=True):
        params[key] = value
    return {key: value for key, value in params.items() if key and value}


class DeepLinkParser:
    """Validates a deep link and turns it into a notification.

    Settings are read through ``settings_source`` on every call so that a
    changed security flag or a rotated key applies to the next link.
    """

    def __init__(
        self,
        dispatch: NotificationDispatch | None = None,
        settings_source: Callable[[], Settings] = load_settings,
    ) -> None:
        self.dispatch = dispatch
        self.settings_source = settings_source

    def parse(self, url: str) -> NotificationObject:
        if route_of(url) != NOTIFICATION_ROUTE:
            raise DeepLinkError(DeepLinkErrorKind.UNSUPPORTED_PATH)

        params = query_params(url)
        if not params:
            raise DeepLinkError(DeepLinkErrorKind.NO_PARAMETERS_FOUND)

        current = self.settings_source()
        token = params.pop(TOKEN_PARAM, None)
        if current.deeplink_security:
            if not token or not verify_token(
                token,
                current.deeplink_public_key,
                issuer=current.deeplink_token_issuer or None,
                audience=current.deeplink_token_audience or None,
                leeway=current.deeplink_token_leeway_seconds,
            ):
                raise DeepLinkError(DeepLinkErrorKind.INVALID_TOKEN)

        return build_notification(params, default_main_button_label=current.default_main_button_label)

    def process_url(self, url: str) -> NotificationObject | None:
        logger.info("Parsing received deep link")
        try:
            notification = self.parse(url)
        except NotifierError as exc:
            logger.error("Deep link error: %s. No UI will be shown for the URL", exc)
            return None

        logger.info("Deep link parsed into %s notification", notification.type.value)
        if self.dispatch is not None:
            self.dispatch.post(notification)
        return notification
