from typing import Iterable, Optional


class AppError(Exception):
    """Base error; carries the HTTP status and the message shown to callers."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigMissing(AppError):
    default_message = "Required configuration is missing"

    def __init__(self, names: Iterable[str]):
        self.names = list(names)
        super().__init__(f"Missing or empty settings: {', '.join(self.names)}")


class InvalidUpload(AppError):
    status_code = 400
    default_message = "Invalid file upload"


class StorageWriteFailed(AppError):
    default_message = "Failed to upload image"


class DatabaseError(AppError):
    default_message = "Database operation failed"
