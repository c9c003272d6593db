from notifier import cli
from notifier.core.config import settings


def test_serve_runs_ingress_on_configured_address(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    cli.serve()
    assert calls == [
        (
            "notifier.main:app",
            {"host": settings.api_host, "port": settings.api_port, "log_level": settings.log_level.lower()},
        )
    ]
