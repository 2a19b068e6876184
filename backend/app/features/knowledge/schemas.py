from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FileKind(str, Enum):
    PDF = "pdf"
    IMAGE = "image"
    DOCX = "docx"


class UploadStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"


class ChunkMetadata(BaseModel):
    topic: str
    keywords: frozenset[str] = frozenset()

    model_config = ConfigDict(frozen=True)


class KnowledgeChunk(BaseModel):
    """Unit of ingested knowledge. Immutable once created."""
    id: str
    file_id: str
    content: str
    metadata: ChunkMetadata

    model_config = ConfigDict(frozen=True)


class UploadDescriptor(BaseModel):
    """A file selected by the user, before ingestion starts."""
    name: str
    byte_size: int = Field(ge=0)
    mime_type: str = "application/octet-stream"


class UploadTask(BaseModel):
    id: str
    name: str
    size_label: str
    progress: int = Field(default=0, ge=0, le=100)
    status: UploadStatus = UploadStatus.PROCESSING
    kind: FileKind
    chunk_count: int = 0


class UploadListResponse(BaseModel):
    tasks: list[UploadTask]
    global_progress: int | None = None


class SearchResponse(BaseModel):
    query: str
    context: str
    is_retrieved: bool
