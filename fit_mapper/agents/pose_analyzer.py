"""Pose & Lighting Analyzer - extracts subject orientation and light direction."""

import logging

from ..models import ReferenceImage
from ..services import InferenceClient, Modality

logger = logging.getLogger("fit_mapper.agents.pose")


POSE_ANALYSIS_PROMPT = (
    "Identify the person's pose and orientation in Image 1. Specifically: "
    "What direction is the head facing? What is the angle of the shoulders? "
    "Where is the main light source coming from? "
    "Answer with technical detail for a 3D mapping task."
)


class PoseAnalyzer:
    """Describes head direction, shoulder angle and key light for a reference photo."""

    def __init__(self, client: InferenceClient, model: str):
        self.client = client
        self.model = model

    async def analyze(self, reference: ReferenceImage) -> str | None:
        """Return the pose/lighting description, or None if the model gave no text."""
        response = await self.client.generate(
            POSE_ANALYSIS_PROMPT,
            [reference],
            model=self.model,
            modalities=(Modality.TEXT,),
        )
        text = (response.text or "").strip()
        if not text:
            logger.debug("Pose analysis returned no text")
            return None
        return text
