"""Utility modules."""

from .image_codec import (
    decode_data_url,
    encode_image_bytes,
    encode_image_file,
    sniff_media_type,
)

__all__ = [
    "decode_data_url",
    "encode_image_bytes",
    "encode_image_file",
    "sniff_media_type",
]
