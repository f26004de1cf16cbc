from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, File, Request, UploadFile
from pydantic import BaseModel

from agents.clients import EmailAssistClient, ImageExtractorClient, NextLensClient
from models import AgentCallResult, ImageBinary

router = APIRouter(prefix="/agents", tags=["agents"])


class EmailAnalyzeRequest(BaseModel):
    email: str


def get_agent_clients(request: Request) -> Dict[str, Any]:
    return request.app.state.agent_clients


async def _image_from_upload(upload: UploadFile) -> ImageBinary:
    content = await upload.read()
    return ImageBinary(content=content, filename=upload.filename, mime_type=upload.content_type)


@router.post("/email/analyze")
async def analyze_email(
    payload: EmailAnalyzeRequest, clients: Dict[str, Any] = Depends(get_agent_clients)
) -> AgentCallResult:
    """Классификация письма."""
    client: EmailAssistClient = clients["email"]
    return await client.analyze(payload.email)


@router.post("/email/sessions/{session_id}/analyze")
async def analyze_email_in_session(
    session_id: str,
    payload: EmailAnalyzeRequest,
    clients: Dict[str, Any] = Depends(get_agent_clients),
) -> AgentCallResult:
    client: EmailAssistClient = clients["email"]
    return await client.run_session_analysis(session_id, payload.email)


@router.get("/email/sessions/{session_id}/results")
async def email_session_results(
    session_id: str, clients: Dict[str, Any] = Depends(get_agent_clients)
) -> AgentCallResult:
    client: EmailAssistClient = clients["email"]
    return await client.get_session_results(session_id)


@router.post("/image/attributes")
async def extract_image_attributes(
    image: UploadFile = File(...), clients: Dict[str, Any] = Depends(get_agent_clients)
) -> AgentCallResult:
    """Атрибуты товара по фото."""
    client: ImageExtractorClient = clients["image_extractor"]
    return await client.extract_attributes(await _image_from_upload(image))


@router.post("/products/similar")
async def find_similar_products(
    image: UploadFile = File(...), clients: Dict[str, Any] = Depends(get_agent_clients)
) -> AgentCallResult:
    """Похожие товары по фото."""
    client: NextLensClient = clients["next_lens"]
    return await client.find_similar_products(await _image_from_upload(image))
