from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from notifier.agent import Agent
from notifier.api.v1.deps import get_agent
from notifier.schemas.triggers import OpenUrlsIn, RemoteNotificationIn, TriggerAccepted
from notifier.services.push import push_token_accepted

router = APIRouter(prefix="/triggers", tags=["triggers"])


@router.post("/url", response_model=TriggerAccepted)
async def open_urls(payload: OpenUrlsIn, agent: Agent = Depends(get_agent)) -> TriggerAccepted:
    before = set(agent.dispatch.sessions)
    if not agent.router.on_open_urls(payload.urls):
        raise HTTPException(status_code=403, detail="Deep link security is disabled")
    return TriggerAccepted(accepted=True, sessions=[x for x in agent.dispatch.sessions if x not in before])


@router.post("/push", response_model=TriggerAccepted)
async def remote_notification(payload: RemoteNotificationIn, agent: Agent = Depends(get_agent)) -> TriggerAccepted:
    if not push_token_accepted(payload.payload, agent.settings_source()):
        raise HTTPException(status_code=403, detail="Push payload token rejected")
    before = set(agent.dispatch.sessions)
    agent.router.on_remote_notification(payload.payload)
    return TriggerAccepted(accepted=True, sessions=[x for x in agent.dispatch.sessions if x not in before])
