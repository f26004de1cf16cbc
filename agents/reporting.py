from __future__ import annotations

import logging
from dataclasses import asdict
from typing import List

from agents.base import ErrorReporter, FailureEvent
from logging_utils import log_event

logger = logging.getLogger(__name__)


class LoggingErrorReporter(ErrorReporter):
    """Пишет сбой в лог и структурированным событием в stdout."""

    def report(self, event: FailureEvent) -> None:
        logger.warning(
            "Agent call failed: %s",
            event.message,
            extra={
                "capability": event.capability.value,
                "app_name": event.app_name,
                "session_id": event.session_id,
                "user_id": event.user_id,
            },
        )
        payload = asdict(event)
        payload["capability"] = event.capability.value
        log_event("agent_call_failed", payload)


class InMemoryErrorReporter(ErrorReporter):
    def __init__(self) -> None:
        self.events: List[FailureEvent] = []

    def report(self, event: FailureEvent) -> None:
        self.events.append(event)


def safe_report(reporter: ErrorReporter, event: FailureEvent) -> None:
    """Сбой репортера не должен влиять на результат вызова."""
    try:
        reporter.report(event)
    except Exception:  # noqa: BLE001
        logger.exception("Error reporter failed for %s", event.capability.value)
