"""Conversions between raw image resources and base64 transport payloads."""

import base64
import binascii
import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..models import EncodedImage

_EXTENSION_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def sniff_media_type(raw: bytes) -> str | None:
    """Detect the image format from magic bytes (more reliable than extension)."""
    if raw[:3] == b'\xff\xd8\xff':
        return "image/jpeg"
    if raw[:8] == b'\x89PNG\r\n\x1a\n':
        return "image/png"
    if raw[:4] == b'RIFF' and raw[8:12] == b'WEBP':
        return "image/webp"
    if raw[:6] in (b'GIF87a', b'GIF89a'):
        return "image/gif"
    return None


def _convert_to_png(raw: bytes) -> bytes:
    """Re-encode any Pillow-readable image as PNG."""
    try:
        img = Image.open(io.BytesIO(raw))
        # Convert to RGB if needed (e.g., RGBA, P mode)
        if img.mode in ('RGBA', 'P'):
            img = img.convert('RGB')
        output = io.BytesIO()
        img.save(output, format='PNG')
        return output.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Unsupported image data: {e}") from e


def encode_image_bytes(raw: bytes, filename: str | None = None) -> EncodedImage:
    """Encode raw image bytes for transport.

    The media type comes from the magic bytes, then the file extension.
    Anything still unrecognised is converted to PNG.
    """
    if not raw:
        raise ValueError("Empty image data")

    media_type = sniff_media_type(raw)
    if media_type is None and filename:
        media_type = _EXTENSION_TYPES.get(Path(filename).suffix.lower())
    if media_type is None:
        raw = _convert_to_png(raw)
        media_type = "image/png"

    return EncodedImage(
        data=base64.b64encode(raw).decode("ascii"),
        media_type=media_type,
    )


def encode_image_file(path: Path) -> EncodedImage:
    """Read and encode an image file."""
    return encode_image_bytes(path.read_bytes(), filename=path.name)


def decode_data_url(data: str) -> EncodedImage:
    """Parse a `data:<type>;base64,<payload>` URL or bare base64 text.

    Bare base64 has its media type sniffed from the decoded bytes.
    """
    data = data.strip()
    if data.startswith("data:"):
        # Remove data URL prefix (e.g., "data:image/png;base64,")
        try:
            header, encoded = data.split(",", 1)
        except ValueError:
            raise ValueError("Malformed data URL: missing ',' separator") from None
        if not header.endswith(";base64"):
            raise ValueError("Only base64 data URLs are supported")
        media_type = header[len("data:"):-len(";base64")] or None
        if media_type is not None and not media_type.startswith("image/"):
            raise ValueError(f"Data URL is not an image: {media_type!r}")
    else:
        encoded, media_type = data, None

    try:
        raw = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e

    if media_type is None:
        return encode_image_bytes(raw)
    return EncodedImage(data=base64.b64encode(raw).decode("ascii"), media_type=media_type)
