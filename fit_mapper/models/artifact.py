"""Synthesis output model."""

import uuid
from datetime import datetime

from pydantic import Field, field_validator

from .images import EncodedImage


class SynthesisArtifact(EncodedImage):
    """A generated try-on image and the garment it shows.

    Only ever built from a complete inline-image response part.
    """

    outfit_label: str
    garment_id: str
    sequence_key: str = Field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("media_type")
    @classmethod
    def _require_image_type(cls, value: str) -> str:
        if not value.startswith("image/"):
            raise ValueError(f"artifact media type must be an image type, got {value!r}")
        return value
