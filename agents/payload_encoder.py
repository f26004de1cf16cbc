"""
Кодирование входов агентов в формат удаленного API.

Текст уходит как есть, бинарные файлы превращаются в чистый base64
(без префикса ``data:<mime>;base64,``), вопросы к базе знаний в query-параметры.
Все ошибки чтения и декодирования поднимаются как PayloadEncodingError,
до какого-либо сетевого вызова.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import re
from typing import Dict, List, Tuple, Union

from errors import PayloadEncodingError
from models import BinaryFile, DocumentQuery, EmailText, InlineData, KnowledgeQuery

DEFAULT_MIME_TYPE = "image/jpeg"
_DATA_URI_PREFIX = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)

QueryParams = List[Tuple[str, str]]


def strip_data_uri(value: str) -> str:
    """Убирает префикс data URI, если он есть."""
    return _DATA_URI_PREFIX.sub("", value.strip(), count=1)


def _data_uri_mime(value: str) -> str | None:
    match = re.match(r"^data:([^;,]+)", value.strip(), re.IGNORECASE)
    return match.group(1) if match else None


async def read_binary(image: BinaryFile) -> bytes:
    """Читает содержимое файла целиком."""
    if image.content is not None:
        return image.content
    if image.path is not None:
        try:
            # Чтение файла уводим в поток, чтобы не блокировать event loop.
            return await asyncio.to_thread(image.path.read_bytes)
        except OSError as exc:
            raise PayloadEncodingError(f"Cannot read {image.path}: {exc}") from exc
    try:
        return base64.b64decode(strip_data_uri(image.data_url or ""), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PayloadEncodingError(f"Invalid base64 data URL: {exc}") from exc


async def encode_binary(image: BinaryFile) -> InlineData:
    mime_type = image.mime_type
    if image.data_url is not None:
        mime_type = mime_type or _data_uri_mime(image.data_url)
    raw = await read_binary(image)
    return InlineData(mime_type=mime_type or DEFAULT_MIME_TYPE, data=base64.b64encode(raw).decode("ascii"))


def encode_email(request: EmailText) -> Dict[str, str]:
    return {"email": request.email}


def _flag(value: bool) -> str:
    return "true" if value else "false"


def encode_query(request: Union[KnowledgeQuery, DocumentQuery]) -> QueryParams:
    """Порядок параметров совпадает с тем, что ждет /query."""
    stream = request.stream if isinstance(request, KnowledgeQuery) else False
    params: QueryParams = [
        ("query", request.query),
        ("user_token", request.user_token),
        ("stream", _flag(stream)),
        ("history", _flag(request.history)),
        ("model", request.model),
    ]
    if request.file_id:
        params.append(("file_id", request.file_id))
    if isinstance(request, KnowledgeQuery):
        for agent in request.agents:
            params.append(("agents", agent))
    return params
