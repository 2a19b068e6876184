import logging

from fastapi import APIRouter, Depends

from app.core.dependencies import get_session
from app.core.exceptions import UnsupportedFileError, UploadNotFoundError, app_error_to_http
from app.core.session import StudySession
from app.features.knowledge.schemas import (
    SearchResponse,
    UploadDescriptor,
    UploadListResponse,
    UploadTask,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/uploads", response_model=list[UploadTask])
async def upload_documents(
    descriptors: list[UploadDescriptor],
    session: StudySession = Depends(get_session),
):
    """
    Nạp tài liệu (PDF, ảnh, DOCX) vào kho tri thức.
    - Tạo tác vụ trạng thái `processing` cho mỗi tệp.
    - Bộ lập lịch nền tăng tiến độ cho tới 100% rồi ghi các đoạn tri thức.
    """
    try:
        return session.pipeline.submit(descriptors)
    except UnsupportedFileError as e:
        raise app_error_to_http(e, 400)


@router.get("/uploads", response_model=UploadListResponse)
async def list_uploads(session: StudySession = Depends(get_session)):
    """List upload tasks (newest first) with the overall loading progress."""
    return UploadListResponse(
        tasks=session.pipeline.tasks,
        global_progress=session.pipeline.global_progress(),
    )


@router.delete("/uploads/{task_id}", response_model=UploadTask)
async def remove_upload(task_id: str, session: StudySession = Depends(get_session)):
    try:
        return session.pipeline.remove(task_id)
    except UploadNotFoundError as e:
        raise app_error_to_http(e, 404)


@router.get("/search", response_model=SearchResponse)
async def search_knowledge(q: str = "", session: StudySession = Depends(get_session)):
    """Preview the context a question would be grounded on."""
    context = session.knowledge.retrieve(q)
    return SearchResponse(query=q, context=context, is_retrieved=bool(context))
