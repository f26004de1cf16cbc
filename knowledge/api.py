from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status

from errors import AgentClientError, PayloadEncodingError
from knowledge.client import KnowledgeAssistClient, generate_user_token
from models import BinaryFile, QueryResult, ResetResult, UploadResult

router = APIRouter(prefix="/knowledge", tags=["knowledge"])


def get_knowledge_client(request: Request) -> KnowledgeAssistClient:
    return request.app.state.knowledge_client


def _http_error(exc: AgentClientError) -> HTTPException:
    if isinstance(exc, PayloadEncodingError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.get("/query")
async def query_knowledge(
    query: str,
    user_token: str,
    stream: bool = False,
    history: bool = True,
    model: str = "groq",
    file_id: Optional[str] = None,
    agents: List[str] = Query(default=[]),
    client: KnowledgeAssistClient = Depends(get_knowledge_client),
) -> QueryResult:
    """Вопрос к базе знаний; поток собирается в один ответ."""
    try:
        return await client.query(
            query,
            user_token,
            stream=stream,
            history=history,
            model=model,
            file_id=file_id,
            agents=agents,
        )
    except AgentClientError as exc:
        raise _http_error(exc) from exc


@router.post("/upload")
async def upload_document(
    file: UploadFile = File(...),
    user_token: str = Form(...),
    client: KnowledgeAssistClient = Depends(get_knowledge_client),
) -> UploadResult:
    content = await file.read()
    document = BinaryFile(content=content, filename=file.filename, mime_type=file.content_type)
    try:
        return await client.upload(document, user_token)
    except AgentClientError as exc:
        raise _http_error(exc) from exc


@router.get("/reset_chat")
async def reset_chat(
    user_token: str,
    file_id: Optional[str] = None,
    client: KnowledgeAssistClient = Depends(get_knowledge_client),
) -> ResetResult:
    try:
        return await client.reset_chat(user_token, file_id)
    except AgentClientError as exc:
        raise _http_error(exc) from exc


@router.post("/user-token")
async def new_user_token() -> Dict[str, str]:
    return {"user_token": generate_user_token()}
