"""Image encoding service."""

from scansave.services.image.encoder import (
    ImageEncodingError,
    ImagePayload,
    encode_image,
    encode_image_file,
)

__all__ = [
    "ImageEncodingError",
    "ImagePayload",
    "encode_image",
    "encode_image_file",
]
