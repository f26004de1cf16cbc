from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from agents.transport import AgentTransport, decode_json
from errors import RunInvocationError
from models import NewMessage, RunRequest, Session


class RunInvoker:
    """Отправляет полезную нагрузку агенту и возвращает сырой JSON ответа.

    ``failure`` задает начало сообщения об ошибке, чтобы было видно, какой шаг упал.
    """

    def __init__(self, transport: AgentTransport) -> None:
        self._transport = transport

    async def run(self, session: Session, message: NewMessage) -> Any:
        """POST /run в рамках открытой сессии."""
        payload = RunRequest.for_session(session, message).model_dump(mode="json", exclude_none=True)
        return await self.post("/run", payload, failure="API run failed")

    async def post(
        self, path: str, payload: Optional[Dict[str, Any]] = None, *, failure: str = "Request failed"
    ) -> Any:
        response = await self._transport.request("POST", path, json=payload)
        return self._decode(response, failure)

    async def get(self, path: str, *, failure: str = "Request failed") -> Any:
        response = await self._transport.request("GET", path)
        return self._decode(response, failure)

    @staticmethod
    def _decode(response: httpx.Response, failure: str) -> Any:
        # Статус проверяем до любого разбора тела.
        if not response.is_success:
            raise RunInvocationError(
                f"{failure}: {response.reason_phrase}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            )
        return decode_json(response)
