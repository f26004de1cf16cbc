import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx
import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from agents.reporting import InMemoryErrorReporter  # noqa: E402
from config import AgentServiceSettings  # noqa: E402

EMAIL_BASE = "http://email.test"
LENS_BASE = "http://lens.test"
KB_BASE = "http://kb.test"


class RecordingTransport(httpx.MockTransport):
    """MockTransport, который запоминает все запросы."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def json_bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content.decode()) for request in self.requests if request.content]


@pytest.fixture()
def agent_settings() -> AgentServiceSettings:
    return AgentServiceSettings(
        email_base_url=EMAIL_BASE,
        next_lens_base_url=LENS_BASE,
        knowledge_base_url=KB_BASE,
        user_id="u_123",
        http_timeout=None,
    )


@pytest.fixture()
def reporter() -> InMemoryErrorReporter:
    return InMemoryErrorReporter()


@pytest.fixture()
def make_client():
    """Создает AsyncClient поверх RecordingTransport."""

    def _factory(handler: Callable[[httpx.Request], httpx.Response]):
        transport = RecordingTransport(handler)
        client = httpx.AsyncClient(transport=transport)
        return client, transport

    return _factory
