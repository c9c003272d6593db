from __future__ import annotations

from fastapi import APIRouter, Depends

from notifier.agent import Agent
from notifier.api.v1.deps import get_agent, get_session_or_404
from notifier.core.config import settings
from notifier.models.notification import (
    Button,
    HelpButton,
    ImageAccessory,
    TimerAccessory,
    VideoAccessory,
)
from notifier.schemas.session import (
    AccessoryOut,
    ButtonOut,
    ProgressIn,
    ProgressOut,
    SessionOut,
    UserActionIn,
    UserActionOut,
)
from notifier.services.session import PresentationSession

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _button_out(button: Button | HelpButton | None) -> ButtonOut | None:
    if button is None:
        return None
    if isinstance(button, HelpButton):
        return ButtonOut(label="?", cta_type=button.cta_type.value, cta_payload=button.cta_payload)
    return ButtonOut(label=button.label, cta_type=button.cta_type.value, cta_payload=button.cta_payload)


def _session_out(session: PresentationSession) -> SessionOut:
    n = session.notification
    accessory = None
    if n.accessory_view is not None:
        view = n.accessory_view
        media = view.media if isinstance(view, (ImageAccessory, VideoAccessory)) else None
        accessory = AccessoryOut(
            kind=view.kind.value,
            payload=view.payload,
            seconds=view.seconds if isinstance(view, TimerAccessory) else None,
            media_source=media.source if media else None,
            media_name=media.name if media else None,
            media_is_remote=media.is_remote if media else None,
        )

    progress = None
    if session.progress is not None:
        p = session.progress
        progress = ProgressOut(
            percent=p.percent,
            is_indeterminate=p.is_indeterminate,
            top_message=p.top_message,
            bottom_message=p.bottom_message,
            is_user_interaction_enabled=p.is_user_interaction_enabled,
            is_user_interruption_allowed=p.is_user_interruption_allowed,
        )

    return SessionOut(
        id=n.identifier,
        type=n.type.value,
        title=n.title,
        subtitle=n.subtitle,
        icon_path=n.icon_path or settings.default_popup_icon_path or None,
        bar_title=n.bar_title or settings.default_popup_bar_title,
        always_on_top=n.always_on_top,
        main_button=_button_out(n.main_button),
        main_button_is_cancel=session.allow_cancel,
        secondary_button=_button_out(n.secondary_button),
        tertiary_button=_button_out(n.tertiary_button),
        help_button=_button_out(n.help_button),
        accessory=accessory,
        progress=progress,
        timeout=session.timeout_seconds,
        info_message=session.info_message,
    )


@router.get("", response_model=list[SessionOut])
async def list_sessions(agent: Agent = Depends(get_agent)) -> list[SessionOut]:
    return [_session_out(s) for s in agent.dispatch.sessions.values()]


@router.get("/{session_id}", response_model=SessionOut)
async def get_session(session_id: str, agent: Agent = Depends(get_agent)) -> SessionOut:
    return _session_out(get_session_or_404(agent, session_id))


@router.post("/{session_id}/actions", response_model=UserActionOut)
async def user_action(
    session_id: str,
    payload: UserActionIn,
    agent: Agent = Depends(get_agent),
) -> UserActionOut:
    session = get_session_or_404(agent, session_id)
    reply = session.on_user_action(payload.kind, payload.data)
    return UserActionOut(
        replied=reply is not None,
        kind=reply.kind if reply is not None else None,
        closed=session.closed,
        info_message=session.info_message,
        opened_link=session.opened_link,
    )


@router.post("/{session_id}/progress", response_model=SessionOut)
async def progress_update(
    session_id: str,
    payload: ProgressIn,
    agent: Agent = Depends(get_agent),
) -> SessionOut:
    session = get_session_or_404(agent, session_id)
    session.feed_progress(payload.update)
    return _session_out(session)
