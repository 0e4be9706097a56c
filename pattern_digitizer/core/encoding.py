"""Base64 encoding of selected images and decoding of returned file payloads."""

import base64
import binascii
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pattern_digitizer.core.errors import EncodingError

ACCEPTED_IMAGE_TYPES = ("image/png", "image/jpeg", "image/webp")
FALLBACK_MIME_TYPE = "application/octet-stream"


class AsyncReadable(Protocol):
    """The part of starlette's UploadFile the encoder relies on."""

    filename: str | None
    content_type: str | None

    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class EncodedImage:
    """Inline image payload: base64 text plus its MIME type."""

    data: str
    mime_type: str


def guess_mime_type(filename: str | None, declared: str | None = None) -> str:
    """Prefer the declared content type; otherwise guess from the filename suffix."""
    if declared and declared != FALLBACK_MIME_TYPE:
        return declared
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return declared or FALLBACK_MIME_TYPE


def encode_bytes(raw: bytes, mime_type: str) -> EncodedImage:
    return EncodedImage(data=base64.b64encode(raw).decode("ascii"), mime_type=mime_type)


def strip_whitespace(data: str) -> str:
    """Drop line breaks and other ASCII whitespace that wrapped base64 may carry."""
    return "".join(data.split())


def decode_payload(data: str) -> bytes:
    """Strict base64 decode, ignoring whitespace. Raises ValueError on malformed input."""
    try:
        return base64.b64decode(strip_whitespace(data), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


async def encode_upload(upload: AsyncReadable) -> EncodedImage:
    """Await the upload read, then encode. Read failures surface as EncodingError."""
    try:
        raw = await upload.read()
    except OSError as e:
        raise EncodingError(f"Could not read {upload.filename or 'upload'}: {e}") from e
    return encode_bytes(raw, guess_mime_type(upload.filename, upload.content_type))


def encode_path(path: Path) -> EncodedImage:
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise EncodingError(f"Could not read {path}: {e}") from e
    return encode_bytes(raw, guess_mime_type(path.name))
