from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

# Загружаем .env при импорте, чтобы локальный запуск был воспроизводим.
load_dotenv()


def _bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if not raw:
        return None
    return float(raw)


@dataclass
class AgentServiceSettings:
    email_base_url: str = os.getenv("EMAIL_ASSIST_BASE_URL", "http://localhost:8080")
    next_lens_base_url: str = os.getenv(
        "NEXT_LENS_BASE_URL",
        "https://next-lens-attribute-agent-1037311574972.us-central1.run.app",
    )
    knowledge_base_url: str = os.getenv(
        "KNOWLEDGE_ASSIST_BASE_URL", "https://2tvyko1og8.execute-api.us-east-1.amazonaws.com"
    )
    # Фиксированный идентификатор пользователя, реальной авторизации нет.
    user_id: str = os.getenv("AGENT_USER_ID", "u_123")
    # None -> без таймаута, дедлайн ставит вызывающий код.
    http_timeout: Optional[float] = _optional_float("AGENT_HTTP_TIMEOUT")


@dataclass
class ObservabilitySettings:
    service_name: str = os.getenv("SERVICE_NAME", "agent-dashboard")
    metrics_enabled: bool = _bool("METRICS_ENABLED", True)


@dataclass
class Settings:
    agents: AgentServiceSettings = field(default_factory=AgentServiceSettings)
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Возвращает кэшированный слепок конфигурации."""
    return Settings()
