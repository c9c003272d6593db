from __future__ import annotations

import asyncio
import logging
import signal
import sys
from collections.abc import Sequence

import uvicorn

from notifier.agent import Agent
from notifier.core.config import get_settings
from notifier.core.errors import ExitReason
from notifier.core.logging import configure_logging
from notifier.services.progress import follow_updates


logger = logging.getLogger(__name__)


async def run(argv: Sequence[str]) -> ExitReason:
    loop = asyncio.get_running_loop()
    done: asyncio.Future[ExitReason] = loop.create_future()

    def _on_exit(reason: ExitReason) -> None:
        if not done.done():
            done.set_result(reason)

    agent = Agent(argv, on_exit=_on_exit)
    try:
        loop.add_signal_handler(signal.SIGINT, agent.router.on_interrupt)
    except (NotImplementedError, RuntimeError):
        signal.signal(signal.SIGINT, lambda *_: loop.call_soon_threadsafe(agent.router.on_interrupt))

    agent.router.on_launch()

    if not done.done():
        if not agent.dispatch.sessions:
            logger.error("Nothing to show, exiting")
            _on_exit(ExitReason.INTERNAL_ERROR)
        else:
            for session in agent.dispatch.sessions.values():
                if session.progress_reader is not None and not sys.stdin.isatty():
                    follow_updates(sys.stdin, session.progress_reader, loop, session.on_progress_event)
                    break

    try:
        return await done
    finally:
        await agent.aclose()


def main(argv: Sequence[str] | None = None) -> None:
    configure_logging()
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        reason = asyncio.run(run(args))
    except Exception:
        logger.exception("Agent crashed")
        reason = ExitReason.INTERNAL_ERROR
    sys.exit(int(reason))


def serve() -> None:
    """Run the local HTTP ingress on the loopback interface."""
    current = get_settings()
    uvicorn.run("notifier.main:app", host=current.api_host, port=current.api_port, log_level=current.log_level.lower())


if __name__ == "__main__":
    main()
