"""Services package."""

from scansave.services.extraction import (
    ExtractionError,
    ReceiptExtractor,
)
from scansave.services.gemini import (
    GeminiClient,
    GenerativeServiceError,
)
from scansave.services.image import (
    ImageEncodingError,
    ImagePayload,
    encode_image,
    encode_image_file,
)
from scansave.services.storage import (
    DuplicateError,
    JsonFileBackend,
    JsonReceiptStore,
    JsonSessionStore,
    NotFoundError,
    PersistenceError,
    StorageError,
)

__all__ = [
    # Extraction
    "ExtractionError",
    "ReceiptExtractor",
    # Generative client
    "GeminiClient",
    "GenerativeServiceError",
    # Image encoding
    "ImageEncodingError",
    "ImagePayload",
    "encode_image",
    "encode_image_file",
    # Storage
    "DuplicateError",
    "JsonFileBackend",
    "JsonReceiptStore",
    "JsonSessionStore",
    "NotFoundError",
    "PersistenceError",
    "StorageError",
]
