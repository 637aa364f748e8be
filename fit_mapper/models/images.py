"""Image payload models."""

import base64
import binascii
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_garment_id() -> str:
    """Short opaque id for a wardrobe item."""
    return uuid.uuid4().hex[:9]


class EncodedImage(BaseModel):
    """An image as base64 text plus its media type."""

    model_config = ConfigDict(frozen=True)

    data: str = Field(description="Base64-encoded image bytes (no data URL prefix)")
    media_type: str = Field(default="image/png", description="e.g., 'image/png', 'image/jpeg'")

    @field_validator("data")
    @classmethod
    def _require_data(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("image data must not be empty")
        return value

    def to_data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"

    def raw_bytes(self) -> bytes:
        """Decode the base64 payload."""
        try:
            return base64.b64decode(self.data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 image data: {e}") from e


class ReferenceImage(EncodedImage):
    """The subject photo whose pose, face and background must be preserved."""


class GarmentItem(EncodedImage):
    """A clothing item to composite onto the reference subject."""

    id: str = Field(default_factory=new_garment_id)
    display_name: str = Field(description="Label shown with the result, e.g. the file name")
