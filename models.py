from __future__ import annotations

import mimetypes
import uuid
from pathlib import Path
from typing import Annotated, Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")


class EmailText(BaseModel):
    """Сырой текст письма для классификации."""

    kind: Literal["email_text"] = "email_text"
    email: str


class BinaryFile(BaseModel):
    """Файл: байты, путь к файлу или data URL из браузера."""

    content: Optional[bytes] = None
    path: Optional[Path] = None
    data_url: Optional[str] = None
    filename: Optional[str] = None
    mime_type: Optional[str] = None

    @model_validator(mode="after")
    def _single_source(self) -> "BinaryFile":
        sources = [value for value in (self.content, self.path, self.data_url) if value is not None]
        if len(sources) != 1:
            raise ValueError("exactly one of content, path or data_url must be set")
        return self

    @classmethod
    def from_path(cls, path: Union[str, Path], mime_type: Optional[str] = None) -> "BinaryFile":
        file_path = Path(path)
        guessed, _ = mimetypes.guess_type(file_path.name)
        return cls(path=file_path, filename=file_path.name, mime_type=mime_type or guessed)


class ImageBinary(BinaryFile):
    """Изображение для агентов с сессиями."""

    kind: Literal["image_binary"] = "image_binary"


class DocumentQuery(BaseModel):
    """Вопрос к базе знаний по конкретному загруженному документу."""

    kind: Literal["document_query"] = "document_query"
    query: str
    user_token: str
    file_id: str
    model: str = "groq"
    history: bool = True


class KnowledgeQuery(BaseModel):
    """Общий вопрос к базе знаний."""

    kind: Literal["knowledge_query"] = "knowledge_query"
    query: str
    user_token: str
    stream: bool = False
    history: bool = True
    model: str = "groq"
    file_id: Optional[str] = None
    agents: List[str] = Field(default_factory=list)


AgentRequest = Annotated[
    Union[EmailText, ImageBinary, DocumentQuery, KnowledgeQuery],
    Field(discriminator="kind"),
]


class Session(BaseModel):
    """Одноразовая сессия удаленного агента: одна на вызов фасада."""

    app_name: str
    user_id: str
    session_id: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def new(cls, app_name: str, user_id: str) -> "Session":
        return cls(app_name=app_name, user_id=user_id, session_id=str(uuid.uuid4()))

    @property
    def path(self) -> str:
        return f"/apps/{self.app_name}/users/{self.user_id}/sessions/{self.session_id}"


class InlineData(BaseModel):
    mime_type: str
    data: str


class Part(BaseModel):
    text: Optional[str] = None
    inline_data: Optional[InlineData] = None


class NewMessage(BaseModel):
    role: Optional[str] = None
    parts: List[Part]


class RunRequest(BaseModel):
    """Тело POST /run."""

    app_name: str
    user_id: str
    session_id: str
    new_message: NewMessage

    @classmethod
    def for_session(cls, session: Session, message: NewMessage) -> "RunRequest":
        return cls(
            app_name=session.app_name,
            user_id=session.user_id,
            session_id=session.session_id,
            new_message=message,
        )


class AgentCallResult(BaseModel, Generic[T]):
    """Единый ответ фасадов: success + data или error."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "AgentCallResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "AgentCallResult[T]":
        return cls(success=False, error=error)


class QueryResult(BaseModel):
    """Ответ базы знаний на вопрос."""

    answer: str
    model: str = ""
    sources: Optional[List[Any]] = None
    history: Optional[List[Any]] = None
    references: Optional[Dict[str, Any]] = None


class UploadResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    file_id: str
    filename: str
    status: str


class ResetResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str
    message: str
