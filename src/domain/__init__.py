"""Domain layer: errors, schemas and constants."""

from .errors import (
    ChartError,
    ChartNotFoundError,
    EngineUnavailableError,
    ErrorCodes,
    InvalidRequestError,
    InvalidUploadError,
    MalformedArchiveError,
    ParseSkipError,
    PathTraversalError,
    RenderError,
    StoreLockTimeoutError,
    UploadTooLargeError,
)
from .schemas import (
    ArchiveContent,
    ArchiveFile,
    RenderedDocument,
    RenderOutcome,
    RenderRequest,
    StoredArchive,
    UploadedFile,
    UploadSession,
)

__all__ = [
    # errors
    "ChartError",
    "ChartNotFoundError",
    "EngineUnavailableError",
    "ErrorCodes",
    "InvalidRequestError",
    "InvalidUploadError",
    "MalformedArchiveError",
    "ParseSkipError",
    "PathTraversalError",
    "RenderError",
    "StoreLockTimeoutError",
    "UploadTooLargeError",
    # schemas
    "ArchiveContent",
    "ArchiveFile",
    "RenderedDocument",
    "RenderOutcome",
    "RenderRequest",
    "StoredArchive",
    "UploadedFile",
    "UploadSession",
]
