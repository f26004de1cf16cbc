"""
Клиент Knowledge Assist: вопросы к базе знаний, загрузка документов, сброс чата.

В отличие от агентов с сессиями, эндпоинты здесь без состояния (кроме
``user_token``, по которому сервер связывает историю), а ошибки поднимаются
исключениями, а не возвращаются в AgentCallResult.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Awaitable, Callable, List, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

from agents.base import AgentCapability, CallContext, ErrorReporter, FailureEvent
from agents.payload_encoder import encode_query, read_binary
from agents.reporting import LoggingErrorReporter, safe_report
from agents.transport import AgentTransport, decode_json
from config import AgentServiceSettings
from errors import ExtractionError, RunInvocationError
from knowledge.streaming import ChunkCallback, StreamAccumulator
from metrics import record_call
from models import BinaryFile, DocumentQuery, KnowledgeQuery, QueryResult, ResetResult, UploadResult


M = TypeVar("M", bound=BaseModel)
R = TypeVar("R")


def generate_user_token() -> str:
    """Уникальный токен пользователя: user_<epoch ms>_<9 символов>."""
    return f"user_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _check_status(response: httpx.Response, operation: str) -> None:
    if not response.is_success:
        raise RunInvocationError(
            f"{operation} failed with status {response.status_code}",
            status_code=response.status_code,
            status_text=response.reason_phrase,
        )


def _validate(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ExtractionError(f"Unexpected {model.__name__} shape: {exc.error_count()} errors") from exc


class KnowledgeAssistClient:
    def __init__(
        self,
        settings: AgentServiceSettings,
        http_client: Optional[httpx.AsyncClient] = None,
        reporter: Optional[ErrorReporter] = None,
    ) -> None:
        self._transport = AgentTransport(
            settings.knowledge_base_url, http_client=http_client, timeout=settings.http_timeout
        )
        self._reporter = reporter or LoggingErrorReporter()

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def _guarded(self, context: CallContext, operation: Callable[[], Awaitable[R]]) -> R:
        started = time.perf_counter()
        try:
            result = await operation()
        except Exception as exc:
            latency_ms = record_call(context.capability.value, started, success=False)
            safe_report(
                self._reporter,
                FailureEvent(
                    capability=context.capability,
                    error_type=exc.__class__.__name__,
                    message=str(exc) or exc.__class__.__name__,
                    user_id=context.user_id,
                    latency_ms=latency_ms,
                ),
            )
            raise
        record_call(context.capability.value, started, success=True)
        return result

    async def query(
        self,
        query: str,
        user_token: str,
        *,
        stream: bool = False,
        history: bool = True,
        model: str = "groq",
        file_id: Optional[str] = None,
        agents: Optional[List[str]] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> QueryResult:
        """
        Задает вопрос базе знаний.

        Args:
            query: текст вопроса.
            user_token: идентификатор пользователя для истории на сервере.
            stream: читать ответ построчно; каждый новый ``body`` уходит в on_chunk.
            file_id: ограничить ответ ранее загруженным документом.
            agents: список агентов, передается повторяющимся параметром.
        """
        request = KnowledgeQuery(
            query=query,
            user_token=user_token,
            stream=stream,
            history=history,
            model=model,
            file_id=file_id,
            agents=agents or [],
        )
        return await self.ask(request, on_chunk=on_chunk)

    async def ask(
        self,
        request: Union[KnowledgeQuery, DocumentQuery],
        on_chunk: Optional[ChunkCallback] = None,
    ) -> QueryResult:
        context = CallContext(AgentCapability.KNOWLEDGE_QUERY, user_id=request.user_token)
        params = encode_query(request)
        streaming = isinstance(request, KnowledgeQuery) and request.stream

        async def operation() -> QueryResult:
            if streaming:
                return await self._query_stream(params, on_chunk)
            response = await self._transport.request("GET", "/query", params=params)
            _check_status(response, "Query")
            return self._query_result(decode_json(response))

        return await self._guarded(context, operation)

    @staticmethod
    def _query_result(data: Any) -> QueryResult:
        if not isinstance(data, dict):
            raise ExtractionError(f"Expected an object, got {type(data).__name__}")
        if "body" not in data and "answer" not in data:
            raise ExtractionError("Query response has neither 'body' nor 'answer'")
        # Разные бэкенды отдают текст в body или answer.
        return _validate(
            QueryResult,
            {
                "answer": data.get("body") or data.get("answer") or "",
                "model": data.get("model") or "",
                "references": data.get("references"),
                "sources": data.get("sources"),
                "history": data.get("history"),
            },
        )

    async def _query_stream(self, params: Any, on_chunk: Optional[ChunkCallback]) -> QueryResult:
        accumulator = StreamAccumulator(on_chunk=on_chunk)
        async with self._transport.stream("GET", "/query", params=params) as response:
            _check_status(response, "Query")
            async for line in response.aiter_lines():
                accumulator.feed(line)
        if not accumulator.received:
            raise ExtractionError("Query stream ended without an answer")
        return QueryResult(
            answer=accumulator.answer,
            model=accumulator.model,
            references=accumulator.references,
            sources=[],
            history=[],
        )

    async def upload(self, file: BinaryFile, user_token: str) -> UploadResult:
        """Загружает документ (multipart: file + user_token)."""
        context = CallContext(AgentCapability.KNOWLEDGE_UPLOAD, user_id=user_token)

        async def operation() -> UploadResult:
            content = await read_binary(file)
            files = {
                "file": (
                    file.filename or "document",
                    content,
                    file.mime_type or "application/octet-stream",
                )
            }
            response = await self._transport.request(
                "POST", "/upload", files=files, data={"user_token": user_token}
            )
            _check_status(response, "Upload")
            return _validate(UploadResult, decode_json(response))

        return await self._guarded(context, operation)

    async def reset_chat(self, user_token: str, file_id: Optional[str] = None) -> ResetResult:
        """Сбрасывает историю чата, целиком или по одному документу."""
        context = CallContext(AgentCapability.KNOWLEDGE_RESET, user_id=user_token)
        params = [("user_token", user_token)]
        if file_id:
            params.append(("file_id", file_id))

        async def operation() -> ResetResult:
            response = await self._transport.request("GET", "/reset_chat", params=params)
            _check_status(response, "Reset chat")
            return _validate(ResetResult, decode_json(response))

        return await self._guarded(context, operation)
