"""
Image Encoder

Turns a captured or selected image into the inline payload the extraction
call sends to Gemini: the raw bytes plus their media type.

This service handles:
1. Media type normalization and allow-listing
2. Size limits from AppSettings
3. Decoding check with Pillow for the formats it reads natively
4. Reading image files from disk
"""

import base64
import mimetypes
import warnings
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict, Field, field_validator

from scansave.config import get_settings


class ImageEncodingError(Exception):
    """The image cannot be turned into an extraction payload."""
    pass


# Aliases seen from browsers and cameras
_MIME_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-png": "image/png",
}

_EXTENSION_MIME = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "heic": "image/heic",
    "heif": "image/heif",
}

# HEIC/HEIF need a plugin; those payloads are passed through undecoded
_PILLOW_DECODABLE = {"image/jpeg", "image/png", "image/webp"}


class ImagePayload(BaseModel):
    """Inline image ready to be sent to the extraction service."""
    model_config = ConfigDict(frozen=True)

    mime_type: str
    data: bytes = Field(repr=False)
    filename: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @field_validator("mime_type")
    @classmethod
    def normalize_mime_type(cls, v: str) -> str:
        v = v.strip().lower()
        return _MIME_ALIASES.get(v, v)

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    def to_part(self) -> dict:
        """Inline data part in the shape the Gemini SDK accepts."""
        return {"mime_type": self.mime_type, "data": self.data}

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


def _allowed_mime_types() -> set[str]:
    formats = get_settings().app.supported_formats_list
    return {_EXTENSION_MIME[fmt] for fmt in formats if fmt in _EXTENSION_MIME}


def encode_image(
    data: bytes,
    mime_type: str,
    filename: Optional[str] = None,
) -> ImagePayload:
    """
    Build an ImagePayload from raw bytes.

    Raises:
        ImageEncodingError: Empty data, unsupported type or oversized image
    """
    if not data:
        raise ImageEncodingError("Image is empty")

    payload = ImagePayload(mime_type=mime_type or "", data=data, filename=filename)

    allowed = _allowed_mime_types()
    if payload.mime_type not in allowed:
        raise ImageEncodingError(
            f"Unsupported image type: {payload.mime_type or 'unknown'}. "
            f"Allowed: {sorted(allowed)}"
        )

    max_bytes = get_settings().app.max_upload_size_bytes
    if payload.size_bytes > max_bytes:
        raise ImageEncodingError(
            f"Image is {payload.size_bytes} bytes; the limit is {max_bytes} bytes"
        )

    if payload.mime_type in _PILLOW_DECODABLE:
        width, height = _image_size(payload.data)
        payload = payload.model_copy(update={"width": width, "height": height})

    return payload


def _image_size(data: bytes) -> tuple[int, int]:
    """Open the image with PIL to make sure the bytes really are an image."""
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            with Image.open(BytesIO(data)) as img:
                width, height = img.size
                img.verify()
    except (Image.DecompressionBombWarning, Image.DecompressionBombError) as e:
        raise ImageEncodingError(f"Image has too many pixels: {e}")
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ImageEncodingError(f"Image data could not be decoded: {e}")
    return width, height


def encode_image_file(path: Union[str, Path]) -> ImagePayload:
    """
    Read an image from disk and encode it.

    The media type is guessed from the file extension.
    """
    path = Path(path)
    mime_type = _EXTENSION_MIME.get(path.suffix.lstrip(".").lower())
    if mime_type is None:
        mime_type, _ = mimetypes.guess_type(path.name)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageEncodingError(f"Cannot read image {path}: {e}")
    return encode_image(data, mime_type or "", filename=path.name)
