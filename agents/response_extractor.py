"""
Разбор ответов агентов.

Эндпоинты отвечают по-разному: email-анализ возвращает плоский объект,
агенты с сессиями возвращают массив "ходов", где финальный ответ лежит в
``actions.stateDelta`` последнего хода. Для каждой возможности есть свой
декодер в таблице DECODERS; новая возможность = новый декодер.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Sequence

from agents.base import AgentCapability
from errors import ExtractionError

EMAIL_FIELDS = (
    "intent_classification",
    "intent_score",
    "intent_reason",
    "vul_classification",
    "vul_score",
    "vul_reason",
)

Decoder = Callable[[Any], Any]


def last_state_delta(envelope: Any) -> Dict[str, Any]:
    """Возвращает stateDelta последнего хода; промежуточные ходы игнорируются."""
    if not isinstance(envelope, list):
        raise ExtractionError(f"Expected a list of turns, got {type(envelope).__name__}")
    if not envelope:
        raise ExtractionError("Agent returned an empty envelope")
    last_turn = envelope[-1]
    actions = last_turn.get("actions") if isinstance(last_turn, Mapping) else None
    if not isinstance(actions, Mapping):
        raise ExtractionError("Last turn has no actions")
    state_delta = actions.get("stateDelta")
    if not isinstance(state_delta, Mapping):
        raise ExtractionError("Last turn has no actions.stateDelta")
    return dict(state_delta)


def project(source: Mapping[str, Any], path: Sequence[str]) -> Any:
    """Достает значение по пути ключей; отсутствие ключа или null = ошибка."""
    current: Any = source
    walked = []
    for key in path:
        walked.append(key)
        if not isinstance(current, Mapping) or key not in current:
            raise ExtractionError(f"Missing '{'.'.join(walked)}' in agent state")
        current = current[key]
    if current is None:
        raise ExtractionError(f"Agent state has null '{'.'.join(walked)}'")
    return current


def decode_email_analysis(body: Any) -> Dict[str, Any]:
    if not isinstance(body, Mapping):
        raise ExtractionError(f"Expected an object, got {type(body).__name__}")
    missing = [name for name in EMAIL_FIELDS if name not in body]
    if missing:
        raise ExtractionError(f"Missing fields in email analysis: {', '.join(missing)}")
    return {name: body[name] for name in EMAIL_FIELDS}


def decode_email_session(body: Any) -> Any:
    if body is None:
        raise ExtractionError("Agent returned an empty body")
    return body


def decode_image_attributes(envelope: Any) -> Any:
    return project(last_state_delta(envelope), ("attributes",))


def decode_product_similarity(envelope: Any) -> Any:
    return project(last_state_delta(envelope), ("final_styled_response", "products"))


DECODERS: Dict[AgentCapability, Decoder] = {
    AgentCapability.EMAIL_ANALYSIS: decode_email_analysis,
    AgentCapability.EMAIL_SESSION: decode_email_session,
    AgentCapability.IMAGE_ATTRIBUTES: decode_image_attributes,
    AgentCapability.PRODUCT_SIMILARITY: decode_product_similarity,
}


def extract(capability: AgentCapability, body: Any) -> Any:
    decoder = DECODERS.get(capability)
    if decoder is None:
        raise ExtractionError(f"No decoder registered for {capability.value}")
    return decoder(body)
