from fastapi.testclient import TestClient

from notifier.agent import Agent
from notifier.core.config import settings
from notifier.main import create_app
from notifier.schemas.reply import ReplyKind


def _client(current, channel, presenter=None):
    agent = Agent(channels=[channel], presenter=presenter, settings_source=lambda: current)
    return TestClient(create_app(agent)), agent


def test_health(make_settings, channel) -> None:
    client, _ = _client(make_settings(), channel)
    with client:
        assert client.get("/health").json() == {"status": "ok"}


def test_url_trigger_refused_when_security_disabled(make_settings, channel) -> None:
    client, agent = _client(make_settings(), channel)
    with client:
        res = client.post(f"{settings.api_prefix}/triggers/url", json={"urls": ["app://shownotification?type=popup&title=T"]})
    assert res.status_code == 403
    assert agent.dispatch.sessions == {}


def test_signed_url_round_trip(secure_settings, make_token, channel) -> None:
    client, agent = _client(secure_settings, channel)
    prefix = settings.api_prefix
    url = f"app://shownotification?type=popup&title=Restart&input=Reason&token={make_token()}"
    with client:
        res = client.post(f"{prefix}/triggers/url", json={"urls": [url]})
        assert res.status_code == 200
        [session_id] = res.json()["sessions"]

        view = client.get(f"{prefix}/sessions/{session_id}").json()
        assert view["title"] == "Restart"
        assert view["main_button"]["label"] == "OK"
        assert view["accessory"]["kind"] == "input"
        assert view["bar_title"] == settings.default_popup_bar_title

        action = client.post(f"{prefix}/sessions/{session_id}/actions", json={"kind": "main", "data": "updates"})
        assert action.json() == {"replied": True, "kind": "main", "closed": True, "info_message": None, "opened_link": None}

        again = client.post(f"{prefix}/sessions/{session_id}/actions", json={"kind": "main"})
        assert again.status_code == 404

    assert [(p.kind, p.data) for p in channel.sent] == [(ReplyKind.MAIN, "updates")]
    assert agent.last_reply is not None
    assert agent.exit_reason == 0
    assert channel.closed is True


def test_push_trigger_and_help_info(make_settings, channel) -> None:
    client, _ = _client(make_settings(), channel)
    prefix = settings.api_prefix
    with client:
        res = client.post(
            f"{prefix}/triggers/push",
            json={"payload": {"type": "popup", "title": "T", "helpbutton": "Ask IT"}},
        )
        [session_id] = res.json()["sessions"]
        action = client.post(f"{prefix}/sessions/{session_id}/actions", json={"kind": "help"})
        assert action.json() == {"replied": False, "kind": None, "closed": False, "info_message": "Ask IT", "opened_link": None}
        assert len(client.get(f"{prefix}/sessions").json()) == 1
    assert channel.sent == []


def test_progress_updates_over_api(make_settings, channel) -> None:
    client, _ = _client(make_settings(), channel)
    prefix = settings.api_prefix
    with client:
        res = client.post(
            f"{prefix}/triggers/push",
            json={"payload": {"type": "popup", "title": "Installing", "progressbar": "/percent 0 /user_interruption_allowed true"}},
        )
        [session_id] = res.json()["sessions"]
        assert client.get(f"{prefix}/sessions/{session_id}").json()["main_button_is_cancel"] is True

        view = client.post(f"{prefix}/sessions/{session_id}/progress", json={"update": "/percent 100"}).json()
        assert view["progress"]["percent"] == 100
        assert view["main_button_is_cancel"] is False


def test_unknown_session_is_404(make_settings, channel) -> None:
    client, _ = _client(make_settings(), channel)
    with client:
        assert client.get(f"{settings.api_prefix}/sessions/nope").status_code == 404


def test_unsigned_push_refused_in_security_mode(secure_settings, make_token, channel) -> None:
    client, agent = _client(secure_settings, channel)
    prefix = settings.api_prefix
    with client:
        unsigned = client.post(f"{prefix}/triggers/push", json={"payload": {"type": "popup", "title": "Evil"}})
        assert unsigned.status_code == 403
        forged = client.post(
            f"{prefix}/triggers/push",
            json={"payload": {"type": "popup", "title": "Evil", "token": "not-a-token"}},
        )
        assert forged.status_code == 403
        assert agent.dispatch.sessions == {}

        signed = client.post(
            f"{prefix}/triggers/push",
            json={"payload": {"type": "popup", "title": "Signed", "token": make_token()}},
        )
        assert signed.status_code == 200
        [session_id] = signed.json()["sessions"]
        assert client.get(f"{prefix}/sessions/{session_id}").json()["title"] == "Signed"


def test_link_click_over_api_sends_no_reply(make_settings, channel) -> None:
    client, _ = _client(make_settings(), channel)
    prefix = settings.api_prefix
    with client:
        res = client.post(
            f"{prefix}/triggers/push",
            json={
                "payload": {
                    "type": "popup",
                    "title": "T",
                    "tertiary_button_label": "Docs",
                    "tertiary_button_cta_type": "link",
                    "tertiary_button_cta_payload": "https://example.com/docs",
                }
            },
        )
        [session_id] = res.json()["sessions"]
        action = client.post(f"{prefix}/sessions/{session_id}/actions", json={"kind": "tertiary"}).json()
        assert action["replied"] is False
        assert action["closed"] is False
        assert action["opened_link"] == "https://example.com/docs"

        cancel = client.post(f"{prefix}/sessions/{session_id}/actions", json={"kind": "cancel"}).json()
        assert cancel["replied"] is False
    assert channel.sent == []
