# Test fixtures and configuration
import base64
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fit_mapper.agents import GARMENT_ANALYSIS_PROMPT, POSE_ANALYSIS_PROMPT  # noqa: E402
from fit_mapper.config import PipelineConfig  # noqa: E402
from fit_mapper.errors import TransportFailure  # noqa: E402
from fit_mapper.models import EncodedImage, GarmentItem, ReferenceImage  # noqa: E402
from fit_mapper.services import InferenceClient, InferenceResponse  # noqa: E402


MINIMAL_PNG = bytes([
    0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A,  # PNG signature
    0x00, 0x00, 0x00, 0x0D, 0x49, 0x48, 0x44, 0x52,  # IHDR chunk
    0x00, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00, 0x01,  # 1x1 dimensions
    0x08, 0x02, 0x00, 0x00, 0x00, 0x90, 0x77, 0x53,
    0xDE, 0x00, 0x00, 0x00, 0x0C, 0x49, 0x44, 0x41,  # IDAT chunk
    0x54, 0x08, 0xD7, 0x63, 0xF8, 0xCF, 0xC0, 0x00,
    0x00, 0x00, 0x03, 0x00, 0x01, 0x00, 0x05, 0xFE,
    0xD4, 0xAA, 0x00, 0x00, 0x00, 0x00, 0x49, 0x45,  # IEND chunk
    0x4E, 0x44, 0xAE, 0x42, 0x60, 0x82
])

RENDERED_IMAGE_B64 = base64.b64encode(b"rendered-image-bytes").decode()


@pytest.fixture
def minimal_png_bytes():
    """Minimal valid PNG image bytes."""
    return MINIMAL_PNG


@pytest.fixture
def png_base64():
    return base64.b64encode(MINIMAL_PNG).decode()


@pytest.fixture
def temp_image_file(tmp_path, minimal_png_bytes):
    """Create a temporary PNG file."""
    img_path = tmp_path / "test_image.png"
    img_path.write_bytes(minimal_png_bytes)
    return img_path


@pytest.fixture
def reference(png_base64):
    return ReferenceImage(data=png_base64, media_type="image/png")


@pytest.fixture
def make_garment(png_base64):
    """Factory for garments with a given display name."""
    def _make(name: str, garment_id: str | None = None) -> GarmentItem:
        extra = {"id": garment_id} if garment_id else {}
        return GarmentItem(data=png_base64, media_type="image/jpeg", display_name=name, **extra)
    return _make


@pytest.fixture
def config():
    return PipelineConfig(gemini_api_key="test-key")


class ScriptedService:
    """Stands in for the inference service, answering per stage and garment.

    Garments named in `fail_at` raise TransportFailure at that stage
    ("garment" or "synthesis"). `fail_pose_calls` holds the 0-based indexes
    of pose-analysis calls that fail; pose calls only see the reference image,
    and in a sequential run pose call k belongs to garment k. Garments in
    `no_image` get a synthesis response without an inline image.
    """

    def __init__(
        self,
        fail_at: dict[str, str] | None = None,
        no_image: set[str] | None = None,
        fail_pose_calls: set[int] | None = None,
    ):
        self.fail_at = fail_at or {}
        self.no_image = no_image or set()
        self.fail_pose_calls = fail_pose_calls or set()
        self.calls: list[tuple[str, str | None]] = []
        self._pose_calls = 0

    async def generate(self, prompt, images=(), *, model, modalities=(), temperature=None):
        target = images[-1] if images else None
        name = target.display_name if isinstance(target, GarmentItem) else None

        if prompt == POSE_ANALYSIS_PROMPT:
            self.calls.append(("pose", None))
            index = self._pose_calls
            self._pose_calls += 1
            if index in self.fail_pose_calls:
                raise TransportFailure("connection reset")
            return InferenceResponse(
                text="Head facing camera-left, shoulders at 15 degrees, key light from upper right."
            )

        if prompt == GARMENT_ANALYSIS_PROMPT:
            self.calls.append(("garment", name))
            if self.fail_at.get(name) == "garment":
                raise TransportFailure("503 from service", status_code=503)
            return InferenceResponse(text=f"{name}: mid-weight cotton, boxy silhouette, stiff drape.")

        self.calls.append(("synthesis", name))
        if self.fail_at.get(name) == "synthesis":
            raise TransportFailure("503 from service", status_code=503)
        if name in self.no_image:
            return InferenceResponse(text="I could not render this outfit.")
        return InferenceResponse(
            text="Here is the result.",
            image=EncodedImage(data=RENDERED_IMAGE_B64, media_type="image/png"),
        )


@pytest.fixture
def mock_client():
    """InferenceClient double whose generate() is an AsyncMock."""
    client = MagicMock(spec=InferenceClient)
    client.generate = AsyncMock()
    client.close = AsyncMock()
    return client
