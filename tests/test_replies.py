import asyncio
import io
import json

from notifier.core.errors import ExitReason
from notifier.models.notification import build_notification
from notifier.schemas.reply import ReplyKind, ReplyPayload
from notifier.services.replies import ReplyHandler, StdoutReplyChannel, is_terminal
from notifier.services.session import PresentationSession


def _session(params, channel, presenter, completions=None, **kwargs) -> PresentationSession:
    handler = ReplyHandler(
        [channel],
        on_complete=(lambda reason, payload: completions.append(reason)) if completions is not None else None,
    )
    return PresentationSession(build_notification(params), handler, presenter, **kwargs)


def test_main_reply_is_emitted_once(channel, presenter) -> None:
    completions: list[ExitReason] = []
    session = _session({"type": "popup", "title": "T"}, channel, presenter, completions)
    session.start()

    first = session.on_user_action(ReplyKind.MAIN)
    second = session.on_user_action(ReplyKind.SECONDARY)

    assert first is not None and first.kind == ReplyKind.MAIN
    assert second is None
    assert [p.kind for p in channel.sent] == [ReplyKind.MAIN]
    assert completions == [ExitReason.MAIN_BUTTON_CLICKED]
    assert session.closed is True
    assert presenter.closed == [session]


def test_handler_ignores_second_terminal_reply_for_same_object(channel) -> None:
    handler = ReplyHandler([channel])
    n = build_notification({"type": "popup", "title": "T", "secondary_button_label": "Later"})
    assert handler.handle_response(ReplyKind.SECONDARY, n) is not None
    assert handler.handle_response(ReplyKind.TIMEOUT, n) is None
    assert handler.is_answered(n)
    assert len(channel.sent) == 1

    # A distinct but equal object is a distinct notification.
    twin = build_notification({"type": "popup", "title": "T", "secondary_button_label": "Later"})
    assert handler.handle_response(ReplyKind.MAIN, twin) is not None


def test_tertiary_link_opens_without_reply_exitlink_closes(channel, presenter) -> None:
    completions: list[ExitReason] = []
    link = _session(
        {
            "type": "popup",
            "title": "T",
            "tertiary_button_label": "Docs",
            "tertiary_button_cta_type": "link",
            "tertiary_button_cta_payload": "https://example.com",
        },
        channel,
        presenter,
        completions,
    )
    link.start()
    assert link.on_user_action(ReplyKind.TERTIARY) is None
    assert link.on_user_action(ReplyKind.TERTIARY) is None
    assert link.closed is False
    assert presenter.links == ["https://example.com", "https://example.com"]
    assert link.on_user_action(ReplyKind.MAIN).kind == ReplyKind.MAIN
    assert link.closed is True
    assert [p.kind for p in channel.sent] == [ReplyKind.MAIN]
    assert completions == [ExitReason.MAIN_BUTTON_CLICKED]

    exit_link = _session(
        {
            "type": "popup",
            "title": "T",
            "tertiary_button_label": "Docs",
            "tertiary_button_cta_type": "exitlink",
            "tertiary_button_cta_payload": "https://example.com",
        },
        channel,
        presenter,
    )
    assert is_terminal(ReplyKind.TERTIARY, exit_link.notification) is True
    assert exit_link.on_user_action(ReplyKind.TERTIARY).kind == ReplyKind.TERTIARY
    assert exit_link.closed is True


def test_stdout_gets_one_line_for_link_clicks_then_main(presenter) -> None:
    stream = io.StringIO()
    session = _session(
        {
            "type": "popup",
            "title": "T",
            "tertiary_button_label": "Docs",
            "tertiary_button_cta_type": "link",
            "tertiary_button_cta_payload": "https://example.com",
        },
        StdoutReplyChannel(stream),
        presenter,
    )
    session.on_user_action(ReplyKind.TERTIARY)
    session.on_user_action(ReplyKind.TERTIARY)
    session.on_user_action(ReplyKind.MAIN)
    lines = stream.getvalue().splitlines()
    assert [json.loads(line)["kind"] for line in lines] == ["main"]


def test_handler_refuses_non_terminal_tertiary(channel) -> None:
    handler = ReplyHandler([channel])
    n = build_notification(
        {
            "type": "popup",
            "title": "T",
            "tertiary_button_label": "Docs",
            "tertiary_button_cta_type": "link",
            "tertiary_button_cta_payload": "https://example.com",
        }
    )
    assert handler.handle_response(ReplyKind.TERTIARY, n) is None
    assert channel.sent == []
    assert handler.is_answered(n) is False


def test_release_forgets_answered_notification(channel) -> None:
    handler = ReplyHandler([channel])
    n = build_notification({"type": "popup", "title": "T"})
    handler.handle_response(ReplyKind.MAIN, n)
    assert handler.is_answered(n)
    handler.release(n)
    assert handler.is_answered(n) is False


def test_help_infopopup_shows_info_without_reply(channel, presenter) -> None:
    session = _session({"type": "popup", "title": "T", "helpbutton": "Call the help desk"}, channel, presenter)
    session.start()
    assert session.on_user_action(ReplyKind.HELP) is None
    assert presenter.infos == ["Call the help desk"]
    assert channel.sent == []
    assert session.closed is False


def test_help_trigger_is_terminal(channel, presenter) -> None:
    completions: list[ExitReason] = []
    session = _session(
        {"type": "popup", "title": "T", "helpbutton": "https://help", "helpbutton_cta_type": "exitlink"},
        channel,
        presenter,
        completions,
    )
    session.start()
    assert session.on_user_action(ReplyKind.HELP).kind == ReplyKind.HELP
    assert session.closed is True
    assert completions == [ExitReason.HELP_BUTTON_CLICKED]


def test_missing_buttons_are_ignored(channel, presenter) -> None:
    session = _session({"type": "popup", "title": "T"}, channel, presenter)
    assert session.on_user_action(ReplyKind.SECONDARY) is None
    assert session.on_user_action(ReplyKind.TERTIARY) is None
    assert session.on_user_action(ReplyKind.HELP) is None
    assert channel.sent == []


def test_input_value_travels_with_main_reply(channel, presenter) -> None:
    session = _session({"type": "popup", "title": "T", "input": "Your name"}, channel, presenter)
    session.set_input_value("Ada")
    payload = session.on_user_action(ReplyKind.MAIN)
    assert payload.data == "Ada"
    assert payload.secured is False


def test_secured_input_is_flagged_and_not_logged(channel, presenter, caplog) -> None:
    session = _session({"type": "popup", "title": "T", "securedinput": "Password"}, channel, presenter)
    with caplog.at_level("DEBUG"):
        payload = session.on_user_action(ReplyKind.MAIN, "hunter2")
    assert payload.data == "hunter2"
    assert payload.secured is True
    assert "hunter2" not in caplog.text
    assert "hunter2" not in repr(payload)


def test_data_dropped_without_input_accessory(channel, presenter) -> None:
    session = _session({"type": "popup", "title": "T", "secondary_button_label": "No"}, channel, presenter)
    assert session.on_user_action(ReplyKind.SECONDARY, "stray").data is None


def test_timeout_fires_once_and_close_cancels_timer(channel, presenter) -> None:
    async def scenario() -> None:
        session = _session({"type": "popup", "title": "T", "timeout": "0"}, channel, presenter)
        session.start()
        await asyncio.sleep(0.05)
        assert [p.kind for p in channel.sent] == [ReplyKind.TIMEOUT]
        assert session.closed is True

        other = _session({"type": "popup", "title": "T", "timeout": "0"}, channel, presenter)
        other.start()
        other.on_user_action(ReplyKind.MAIN)
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert [p.kind for p in channel.sent] == [ReplyKind.TIMEOUT, ReplyKind.MAIN]


def test_default_timeout_applies_when_none_given(channel, presenter) -> None:
    session = _session({"type": "popup", "title": "T"}, channel, presenter, default_timeout=90)
    assert session.timeout_seconds == 90
    timer = _session({"type": "popup", "title": "T", "timer": "%@", "timeout": "5"}, channel, presenter, default_timeout=90)
    assert timer.timeout_seconds is None


def test_timer_countdown_ends_with_main(channel, presenter) -> None:
    async def scenario() -> None:
        session = _session({"type": "popup", "title": "T", "timer": "Closing", "timeout": "0"}, channel, presenter)
        session.start()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert [p.kind for p in channel.sent] == [ReplyKind.MAIN]


def test_stdout_channel_writes_json_line() -> None:
    stream = io.StringIO()
    StdoutReplyChannel(stream).send(ReplyPayload(kind=ReplyKind.MAIN, notification_id="abc", data="Ada"))
    assert json.loads(stream.getvalue()) == {"kind": "main", "notification_id": "abc", "data": "Ada"}
