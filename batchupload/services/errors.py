from starlette import status


class UploadError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "upload_error"
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message, "retryable": self.retryable}


class InvalidManifestEntry(UploadError):
    code = "invalid_manifest_entry"


class BatchTooLarge(UploadError):
    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    code = "batch_too_large"


class InvalidChunk(UploadError):
    code = "invalid_chunk"


class NotFound(UploadError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, message: str = "Upload not found."):
        super().__init__(message)


class BatchConflict(UploadError):
    status_code = status.HTTP_409_CONFLICT
    code = "batch_conflict"


class InvalidTransition(UploadError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"


class DuplicateKey(UploadError):
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_key"
    retryable = True


class StoreUnavailable(UploadError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "store_unavailable"
    retryable = True
