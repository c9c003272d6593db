from __future__ import annotations

from fastapi import HTTPException, Request

from notifier.agent import Agent
from notifier.services.session import PresentationSession


def get_agent(request: Request) -> Agent:
    return request.app.state.agent


def get_session_or_404(agent: Agent, session_id: str) -> PresentationSession:
    session = agent.dispatch.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return session
