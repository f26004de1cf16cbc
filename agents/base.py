from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class AgentCapability(str, Enum):
    EMAIL_ANALYSIS = "email_analysis"
    EMAIL_SESSION = "email_session"
    IMAGE_ATTRIBUTES = "image_attributes"
    PRODUCT_SIMILARITY = "product_similarity"
    KNOWLEDGE_QUERY = "knowledge_query"
    KNOWLEDGE_UPLOAD = "knowledge_upload"
    KNOWLEDGE_RESET = "knowledge_reset"


@dataclass
class CallContext:
    """Что известно о вызове на момент сбоя; заполняется по мере шагов."""

    capability: AgentCapability
    app_name: str | None = None
    user_id: str | None = None
    session_id: str | None = None


@dataclass
class FailureEvent:
    capability: AgentCapability
    error_type: str
    message: str
    app_name: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    latency_ms: float | None = None


class ErrorReporter(Protocol):
    def report(self, event: FailureEvent) -> None:  # pragma: no cover - интерфейс
        ...
