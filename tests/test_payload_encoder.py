from __future__ import annotations

import base64
import os

import pytest
from pydantic import TypeAdapter

from agents.payload_encoder import (
    DEFAULT_MIME_TYPE,
    encode_binary,
    encode_email,
    encode_query,
    strip_data_uri,
)
from errors import PayloadEncodingError
from models import AgentRequest, DocumentQuery, EmailText, ImageBinary, KnowledgeQuery

JPEG_STUB = b"\xff\xd8\xff\xe0\x00\x10JFIF"


@pytest.mark.asyncio
async def test_binary_round_trip_reproduces_bytes() -> None:
    for raw in (b"", JPEG_STUB, os.urandom(257), bytes(range(256))):
        inline = await encode_binary(ImageBinary(content=raw))
        assert base64.b64decode(inline.data, validate=True) == raw
        assert not inline.data.startswith("data:")


@pytest.mark.asyncio
async def test_binary_from_path_reads_full_file(tmp_path) -> None:
    image_path = tmp_path / "blazer.png"
    image_path.write_bytes(JPEG_STUB * 100)

    inline = await encode_binary(ImageBinary.from_path(image_path))

    assert base64.b64decode(inline.data) == JPEG_STUB * 100
    assert inline.mime_type == "image/png"


@pytest.mark.asyncio
async def test_mime_type_defaults_to_jpeg() -> None:
    inline = await encode_binary(ImageBinary(content=JPEG_STUB))
    assert inline.mime_type == DEFAULT_MIME_TYPE == "image/jpeg"


@pytest.mark.asyncio
async def test_data_url_prefix_is_stripped() -> None:
    data_url = "data:image/webp;base64," + base64.b64encode(JPEG_STUB).decode()

    inline = await encode_binary(ImageBinary(data_url=data_url))

    assert inline.data == base64.b64encode(JPEG_STUB).decode()
    assert inline.mime_type == "image/webp"


def test_strip_data_uri_leaves_plain_base64_untouched() -> None:
    assert strip_data_uri("QUJD") == "QUJD"
    assert strip_data_uri("data:image/jpeg;base64,QUJD") == "QUJD"


@pytest.mark.asyncio
async def test_missing_file_raises_encoding_error(tmp_path) -> None:
    with pytest.raises(PayloadEncodingError):
        await encode_binary(ImageBinary(path=tmp_path / "missing.jpg"))


@pytest.mark.asyncio
async def test_broken_data_url_raises_encoding_error() -> None:
    with pytest.raises(PayloadEncodingError):
        await encode_binary(ImageBinary(data_url="data:image/jpeg;base64,not*base64!"))


def test_image_binary_requires_single_source() -> None:
    with pytest.raises(ValueError):
        ImageBinary()
    with pytest.raises(ValueError):
        ImageBinary(content=b"x", data_url="QUJD")


def test_text_is_passed_through() -> None:
    body = "Hi, I am very unhappy with my order"
    assert encode_email(EmailText(email=body)) == {"email": body}


def test_query_params_order_and_flags() -> None:
    request = KnowledgeQuery(
        query="refund policy",
        user_token="user_1",
        stream=True,
        history=False,
        model="openai",
        file_id="f-1",
        agents=["policy", "faq"],
    )

    assert encode_query(request) == [
        ("query", "refund policy"),
        ("user_token", "user_1"),
        ("stream", "true"),
        ("history", "false"),
        ("model", "openai"),
        ("file_id", "f-1"),
        ("agents", "policy"),
        ("agents", "faq"),
    ]


def test_document_query_always_carries_file_id() -> None:
    params = dict(encode_query(DocumentQuery(query="summary", user_token="u", file_id="doc-9")))
    assert params["file_id"] == "doc-9"
    assert params["stream"] == "false"


def test_agent_request_is_discriminated_by_kind() -> None:
    adapter = TypeAdapter(AgentRequest)

    email = adapter.validate_python({"kind": "email_text", "email": "x"})
    query = adapter.validate_python({"kind": "document_query", "query": "q", "user_token": "t", "file_id": "f"})

    assert isinstance(email, EmailText)
    assert isinstance(query, DocumentQuery)
    assert encode_email(email) == {"email": "x"}
