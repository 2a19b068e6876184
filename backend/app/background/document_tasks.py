"""
Background ingestion of uploaded study materials.

Each upload becomes an UploadTask that is driven from 0% to 100% by fixed
progress ticks. The processing -> completed edge happens once per task and is
the only place chunks get committed to the KnowledgeStore.

Text extraction is simulated: chunks are synthesized from the file name and a
placeholder body. A real extractor can be plugged in; if it raises, the
task still completes, with zero chunks recorded.
"""

import asyncio
import logging
import re
import uuid
from collections.abc import Callable, Iterable

from app.config import Settings, get_settings
from app.core.exceptions import IngestionError, UnsupportedFileError, UploadNotFoundError
from app.features.knowledge.schemas import (
    ChunkMetadata,
    FileKind,
    KnowledgeChunk,
    UploadDescriptor,
    UploadStatus,
    UploadTask,
)
from app.features.knowledge.store import KnowledgeStore

logger = logging.getLogger(__name__)

IMAGE_SUFFIX = re.compile(r"\.(jpg|jpeg|png)$", re.IGNORECASE)

DEFAULT_TOPIC = "Tài liệu học tập"
DEFAULT_KEYWORDS = frozenset({"địa lí", "kiến thức"})

Extractor = Callable[[str, str, str], list[KnowledgeChunk]]


def classify_file_kind(file_name: str) -> FileKind:
    """Best-effort classification by suffix only (no content sniffing)."""
    if file_name.endswith(".pdf"):
        return FileKind.PDF
    if IMAGE_SUFFIX.search(file_name):
        return FileKind.IMAGE
    return FileKind.DOCX


def format_size_label(byte_size: int) -> str:
    return f"{byte_size / (1024 * 1024):.1f} MB"


def build_chunks(file_name: str, content: str, file_id: str) -> list[KnowledgeChunk]:
    """Synthesize the knowledge chunks for one ingested file.

    Pure function of its inputs. `content` is the extracted body, unused
    while extraction is simulated.
    """
    return [
        KnowledgeChunk(
            id=f"{file_id}-1",
            file_id=file_id,
            content=f"Nội dung từ {file_name}: Kiến thức Địa lí đã được hệ thống hóa.",
            metadata=ChunkMetadata(topic=DEFAULT_TOPIC, keywords=DEFAULT_KEYWORDS),
        )
    ]


class IngestionPipeline:
    """Owns the upload task list and feeds the knowledge store."""

    def __init__(
        self,
        store: KnowledgeStore,
        settings: Settings | None = None,
        extractor: Extractor = build_chunks,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.extractor = extractor
        self._tasks: list[UploadTask] = []

    @property
    def tasks(self) -> list[UploadTask]:
        """Tasks, newest first."""
        return list(self._tasks)

    def get(self, task_id: str) -> UploadTask:
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise UploadNotFoundError(task_id)

    def submit(self, descriptors: Iterable[UploadDescriptor]) -> list[UploadTask]:
        """Create processing tasks for newly selected files."""
        new_tasks = []
        for descriptor in descriptors:
            if not descriptor.name.strip():
                raise UnsupportedFileError(descriptor.name)
            new_tasks.append(
                UploadTask(
                    id=uuid.uuid4().hex[:9],
                    name=descriptor.name,
                    size_label=format_size_label(descriptor.byte_size),
                    kind=classify_file_kind(descriptor.name),
                )
            )
        self._tasks = new_tasks + self._tasks
        for task in new_tasks:
            logger.info(f"🚀 Queued upload {task.id} ({task.name}, {task.kind.value})")
        return new_tasks

    def remove(self, task_id: str) -> UploadTask:
        """Drop a task from the list. Chunks it already committed are kept."""
        task = self.get(task_id)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        logger.info(f"🗑️ Removed upload {task_id}")
        return task

    def has_processing(self) -> bool:
        return any(t.status == UploadStatus.PROCESSING for t in self._tasks)

    def global_progress(self) -> int | None:
        """Average progress of tasks still processing, None when idle."""
        processing = [t.progress for t in self._tasks if t.status == UploadStatus.PROCESSING]
        if not processing:
            return None
        return round(sum(processing) / len(processing))

    def tick(self) -> bool:
        """Advance every processing task by one step.

        Each task's new state is written back as soon as it transitions, so
        the completion edge of one task never depends on the tasks after it.

        Returns:
            True if any task changed.
        """
        step = self.settings.INGEST_PROGRESS_STEP
        updated = False
        for index, task in enumerate(list(self._tasks)):
            if task.status != UploadStatus.PROCESSING:
                continue

            updated = True
            next_progress = task.progress + step
            if next_progress >= 100:
                chunk_count = self._ingest(task)
                task = task.model_copy(
                    update={
                        "progress": 100,
                        "status": UploadStatus.COMPLETED,
                        "chunk_count": chunk_count,
                    }
                )
            else:
                task = task.model_copy(update={"progress": next_progress})
            self._tasks[index] = task
        return updated

    async def drain(self) -> None:
        """Tick at the configured interval until no task is processing."""
        while self.has_processing():
            await asyncio.sleep(self.settings.INGEST_TICK_SECONDS)
            self.tick()

    def _ingest(self, task: UploadTask) -> int:
        try:
            chunks = self.extractor(task.name, self.settings.INGEST_PLACEHOLDER_CONTENT, task.id)
        except IngestionError as e:
            logger.error(f"❌ Ingestion failed for {task.id} ({task.name}): {e.message}")
            return 0
        except Exception:
            logger.error(f"❌ Extractor crashed on {task.id} ({task.name})", exc_info=True)
            return 0

        self.store.append(chunks)
        logger.info(f"🎉 Ingested {task.name}: {len(chunks)} chunk(s)")
        return len(chunks)
