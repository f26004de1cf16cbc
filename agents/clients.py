from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx

from agents.base import AgentCapability, CallContext, ErrorReporter, FailureEvent
from agents.payload_encoder import encode_binary, encode_email
from agents.reporting import LoggingErrorReporter, safe_report
from agents.response_extractor import extract
from agents.run_invoker import RunInvoker
from agents.session_negotiator import SessionNegotiator
from agents.transport import AgentTransport
from config import AgentServiceSettings, get_settings
from metrics import record_call
from models import AgentCallResult, EmailText, ImageBinary, NewMessage, Part, Session

EMAIL_APP_NAME = "email_assist_agent"
IMAGE_EXTRACTOR_APP_NAME = "product_attribute_extractor"
NEXT_LENS_APP_NAME = "similar_prod_analyser"


class AgentServiceClient:
    """Общая часть фасадов: транспорт, репортер ошибок и приведение к AgentCallResult."""

    def __init__(
        self,
        base_url: str,
        user_id: str,
        http_client: Optional[httpx.AsyncClient] = None,
        reporter: Optional[ErrorReporter] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.user_id = user_id
        self._transport = AgentTransport(base_url, http_client=http_client, timeout=timeout)
        self._invoker = RunInvoker(self._transport)
        self._reporter = reporter or LoggingErrorReporter()

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def _call(
        self, context: CallContext, operation: Callable[[], Awaitable[Any]]
    ) -> AgentCallResult[Any]:
        started = time.perf_counter()
        try:
            data = await operation()
        except Exception as exc:  # noqa: BLE001
            latency_ms = record_call(context.capability.value, started, success=False)
            message = str(exc) or exc.__class__.__name__
            safe_report(
                self._reporter,
                FailureEvent(
                    capability=context.capability,
                    error_type=exc.__class__.__name__,
                    message=message,
                    app_name=context.app_name,
                    user_id=context.user_id,
                    session_id=context.session_id,
                    latency_ms=latency_ms,
                ),
            )
            return AgentCallResult.fail(message)
        record_call(context.capability.value, started, success=True)
        return AgentCallResult.ok(data)


class EmailAssistClient(AgentServiceClient):
    """Классификация намерения и уязвимости клиента по тексту письма."""

    def __init__(
        self,
        settings: AgentServiceSettings,
        http_client: Optional[httpx.AsyncClient] = None,
        reporter: Optional[ErrorReporter] = None,
    ) -> None:
        super().__init__(
            settings.email_base_url,
            settings.user_id,
            http_client=http_client,
            reporter=reporter,
            timeout=settings.http_timeout,
        )

    async def analyze(self, email: Union[str, EmailText]) -> AgentCallResult[Dict[str, Any]]:
        """POST /process-email, без сессии."""
        context = CallContext(AgentCapability.EMAIL_ANALYSIS, user_id=self.user_id)

        async def operation() -> Dict[str, Any]:
            request = email if isinstance(email, EmailText) else EmailText(email=email)
            body = await self._invoker.post(
                "/process-email", encode_email(request), failure="Email analysis failed"
            )
            return extract(AgentCapability.EMAIL_ANALYSIS, body)

        return await self._call(context, operation)

    def _session_path(self, session_id: str) -> str:
        return Session(app_name=EMAIL_APP_NAME, user_id=self.user_id, session_id=session_id).path

    async def run_session_analysis(self, session_id: str, email: str) -> AgentCallResult[Any]:
        """Анализ письма в уже существующей сессии агента."""
        context = CallContext(
            AgentCapability.EMAIL_SESSION,
            app_name=EMAIL_APP_NAME,
            user_id=self.user_id,
            session_id=session_id,
        )

        async def operation() -> Any:
            body = await self._invoker.post(
                f"{self._session_path(session_id)}/analyze",
                encode_email(EmailText(email=email)),
                failure="Analysis failed",
            )
            return extract(AgentCapability.EMAIL_SESSION, body)

        return await self._call(context, operation)

    async def get_session_results(self, session_id: str) -> AgentCallResult[Any]:
        context = CallContext(
            AgentCapability.EMAIL_SESSION,
            app_name=EMAIL_APP_NAME,
            user_id=self.user_id,
            session_id=session_id,
        )

        async def operation() -> Any:
            body = await self._invoker.get(
                f"{self._session_path(session_id)}/results", failure="Failed to fetch results"
            )
            return extract(AgentCapability.EMAIL_SESSION, body)

        return await self._call(context, operation)


class SessionImageAgentClient(AgentServiceClient):
    """Агент с сессиями: base64 -> новая сессия -> /run -> последний stateDelta."""

    app_name: str
    capability: AgentCapability

    def __init__(
        self,
        settings: AgentServiceSettings,
        http_client: Optional[httpx.AsyncClient] = None,
        reporter: Optional[ErrorReporter] = None,
    ) -> None:
        super().__init__(
            settings.next_lens_base_url,
            settings.user_id,
            http_client=http_client,
            reporter=reporter,
            timeout=settings.http_timeout,
        )
        self._negotiator = SessionNegotiator(self._transport, settings.user_id)

    async def _analyze_image(self, image: ImageBinary) -> AgentCallResult[Any]:
        context = CallContext(self.capability, app_name=self.app_name, user_id=self.user_id)

        async def operation() -> Any:
            part = Part(inline_data=await encode_binary(image))
            session = await self._negotiator.open(self.app_name)
            context.session_id = session.session_id
            body = await self._invoker.run(session, NewMessage(parts=[part]))
            return extract(self.capability, body)

        return await self._call(context, operation)


class ImageExtractorClient(SessionImageAgentClient):
    """Извлечение атрибутов товара (категория, цвет, узор...) по фото."""

    app_name = IMAGE_EXTRACTOR_APP_NAME
    capability = AgentCapability.IMAGE_ATTRIBUTES

    async def extract_attributes(self, image: ImageBinary) -> AgentCallResult[Dict[str, Any]]:
        return await self._analyze_image(image)


class NextLensClient(SessionImageAgentClient):
    """Поиск похожих товаров по фото."""

    app_name = NEXT_LENS_APP_NAME
    capability = AgentCapability.PRODUCT_SIMILARITY

    async def find_similar_products(self, image: ImageBinary) -> AgentCallResult[List[Dict[str, Any]]]:
        return await self._analyze_image(image)


def build_default_clients(
    settings: Optional[AgentServiceSettings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    reporter: Optional[ErrorReporter] = None,
) -> Dict[str, Any]:
    """Фабрика фасадов для приложения."""
    agent_settings = settings or get_settings().agents
    return {
        "email": EmailAssistClient(agent_settings, http_client=http_client, reporter=reporter),
        "image_extractor": ImageExtractorClient(agent_settings, http_client=http_client, reporter=reporter),
        "next_lens": NextLensClient(agent_settings, http_client=http_client, reporter=reporter),
    }
