from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from notifier.core.config import Settings, load_settings
from notifier.core.errors import ModelError
from notifier.models.notification import NotificationObject, build_notification
from notifier.services.dispatch import NotificationDispatch
from notifier.services.tokens import verify_token


logger = logging.getLogger(__name__)

TOKEN_KEY = "token"


def flatten_payload(payload: Mapping[str, Any]) -> dict[str, str]:
    """Keep the scalar entries of a push payload as strings; nested blocks are not notification fields."""
    out: dict[str, str] = {}
    for key, value in payload.items():
        if key == TOKEN_KEY or value is None or isinstance(value, (dict, list, tuple, set)):
            continue
        if isinstance(value, bool):
            out[str(key)] = "true" if value else "false"
        else:
            out[str(key)] = str(value)
    return out


def push_token_accepted(payload: Mapping[str, Any], current: Settings) -> bool:
    """Payloads handed over the local ingress carry the same signed token as deep links."""
    if not current.deeplink_security:
        return True
    token = payload.get(TOKEN_KEY)
    if not isinstance(token, str) or not token:
        logger.error("Push payload without token refused")
        return False
    return verify_token(
        token,
        current.deeplink_public_key,
        issuer=current.deeplink_token_issuer or None,
        audience=current.deeplink_token_audience or None,
        leeway=current.deeplink_token_leeway_seconds,
    )


class PushController:
    def __init__(
        self,
        dispatch: NotificationDispatch | None = None,
        settings_source: Callable[[], Settings] = load_settings,
    ) -> None:
        self.dispatch = dispatch
        self.settings_source = settings_source
        self.triggered_by_push = False

    def received_remote_notification(self, payload: Mapping[str, Any]) -> NotificationObject | None:
        current = self.settings_source()
        try:
            notification = build_notification(
                flatten_payload(payload),
                default_main_button_label=current.default_main_button_label,
            )
        except ModelError as exc:
            logger.error("Push payload error: %s. No UI will be shown for it", exc)
            return None

        if self.dispatch is not None:
            self.dispatch.post(notification)
        return notification
