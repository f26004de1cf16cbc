from __future__ import annotations

import logging

from agents.transport import AgentTransport
from errors import SessionCreationError
from models import Session

logger = logging.getLogger(__name__)


class SessionNegotiator:
    """Открывает новую сессию агента перед вызовом /run."""

    def __init__(self, transport: AgentTransport, user_id: str) -> None:
        self._transport = transport
        self.user_id = user_id

    async def open(self, app_name: str) -> Session:
        # Сессия всегда новая: переиспользования между вызовами нет.
        session = Session.new(app_name, self.user_id)
        response = await self._transport.request("POST", session.path)
        if not response.is_success:
            raise SessionCreationError(
                f"Session creation failed: {response.reason_phrase}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            )
        logger.info(
            "Agent session created",
            extra={"app_name": app_name, "session_id": session.session_id, "user_id": self.user_id},
        )
        return session
