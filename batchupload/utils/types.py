from enum import StrEnum


class UploadStatus(StrEnum):
    PENDING = "pending"
    UPLOADING = "uploading"
    READY_FOR_PROCESSING = "ready_for_processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadStatus.COMPLETED, UploadStatus.ERROR)
