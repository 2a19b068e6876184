"""
Custom exception classes for unified error handling.
"""

from fastapi import HTTPException


class AppBaseError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class UnsupportedFileError(AppBaseError):
    """Raised when an upload descriptor cannot be accepted."""
    def __init__(self, file_name: str):
        super().__init__(
            message=f"Tệp không hợp lệ: '{file_name}'",
            detail="Tên tệp không được để trống và dung lượng phải không âm.",
        )


class IngestionError(AppBaseError):
    """Raised by a document extractor when a file cannot be parsed (ParseFailed)."""
    def __init__(self, file_name: str, original_error: str = ""):
        super().__init__(
            message=f"Không thể bóc tách nội dung tệp '{file_name}'",
            detail=original_error or None,
        )


class UploadNotFoundError(AppBaseError):
    """Raised when an upload task id is unknown."""
    def __init__(self, task_id: str):
        super().__init__(
            message="Không tìm thấy tệp tải lên",
            detail=f"task_id={task_id}",
        )


class VaultEntryNotFoundError(AppBaseError):
    """Raised when an archived entry id is unknown."""
    def __init__(self, entry_id: str):
        super().__init__(
            message="Không tìm thấy mục lưu trữ",
            detail=f"entry_id={entry_id}",
        )


class EmptyRequestError(AppBaseError):
    """Raised when a chat request has no text, no image and no files."""
    def __init__(self):
        super().__init__(
            message="Yêu cầu trống",
            detail="Hãy nhập câu hỏi, chụp ảnh hoặc đính kèm tệp.",
        )


class TextGenerationError(AppBaseError):
    """Raised when the provider fails while producing the answer stream."""
    def __init__(self, original_error: str):
        super().__init__(
            message="Lỗi tạo câu trả lời",
            detail=original_error,
        )


class ImageGenerationError(AppBaseError):
    """Raised when the provider fails while producing the infographic."""
    def __init__(self, original_error: str):
        super().__init__(
            message="Lỗi tạo infographic",
            detail=original_error,
        )


class ConversationBusyError(AppBaseError):
    """Raised when a new request starts while an answer is still being written."""
    def __init__(self):
        super().__init__(
            message="AI đang trả lời câu hỏi trước",
            detail="Vui lòng chờ câu trả lời hiện tại hoàn tất.",
        )


class TurnClosedError(AppBaseError):
    """Raised when a conversation turn is mutated after its request finished."""
    def __init__(self, turn_id: str):
        super().__init__(
            message="Lượt hội thoại đã đóng",
            detail=f"turn_id={turn_id}",
        )


# ── Utility: convert to HTTPException ────────────────────

def app_error_to_http(error: AppBaseError, status_code: int = 400) -> HTTPException:
    """Convert an AppBaseError to an HTTPException with consistent JSON body."""
    return HTTPException(
        status_code=status_code,
        detail={
            "error": error.message,
            "detail": error.detail,
            "type": type(error).__name__,
        },
    )
