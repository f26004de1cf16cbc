from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], None]


def parse_stream_line(line: str) -> Optional[Dict[str, Any]]:
    """Разбирает строку потока: SSE ("data: {...}") или сырой JSON."""
    text = line.strip()
    if not text:
        return None
    if text.startswith("data:"):
        text = text[len("data:"):].strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # keep-alive и прочий мусор в потоке пропускаем
        logger.debug("Skipping non-JSON stream line: %s", text[:80])
        return None
    return data if isinstance(data, dict) else None


@dataclass
class StreamAccumulator:
    """
    Собирает ответ из потока.

    В каждом чанке ``body`` содержит полный текст на текущий момент, а не дельту,
    поэтому ответ заменяется, а не склеивается.
    """

    on_chunk: Optional[ChunkCallback] = None
    answer: str = ""
    model: str = ""
    references: Dict[str, Any] = field(default_factory=dict)
    received: bool = False

    def feed(self, line: str) -> None:
        data = parse_stream_line(line)
        if data is None:
            return
        if "body" in data:
            self.received = True
        body = data.get("body")
        if body:
            self.answer = body
            if self.on_chunk is not None:
                self.on_chunk(body)
        if data.get("references"):
            self.references = data["references"]
        if data.get("model"):
            self.model = data["model"]
