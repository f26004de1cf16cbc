"""Типы ошибок клиента агентов."""

from __future__ import annotations

from typing import Optional


class AgentClientError(Exception):
    """Базовая ошибка клиентского ядра агентов."""


class PayloadEncodingError(AgentClientError):
    """Не удалось прочитать или закодировать полезную нагрузку (до сети)."""


class RemoteStatusError(AgentClientError):
    """Удаленный сервис ответил не-2xx статусом."""

    def __init__(self, message: str, status_code: Optional[int] = None, status_text: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text


class SessionCreationError(RemoteStatusError):
    """Сессия агента не была создана."""


class RunInvocationError(RemoteStatusError):
    """Основной вызов агента завершился ошибкой HTTP."""


class ExtractionError(AgentClientError):
    """Ответ агента пустой или не той формы."""


class TransportError(AgentClientError):
    """Сетевая ошибка: отказ в соединении, таймаут, неверный URL."""
