"""Synthesis Stage - renders the reference subject wearing a target garment."""

import logging

from ..errors import MissingArtifact
from ..models import GarmentItem, ReferenceImage, SynthesisArtifact
from ..services import InferenceClient, Modality

logger = logging.getLogger("fit_mapper.agents.synthesis")


# Used when an analysis stage came back without text
POSE_FALLBACK = "exactly as shown in Image 1"
GARMENT_FALLBACK = "as shown in Image 2"

# Constraint order is priority order: earlier ones must never be traded for later ones
SYNTHESIS_PROMPT_TEMPLATE = """HIGH-FIDELITY POSE-MATCHED IN-PAINTING:
- REFERENCE IMAGE 1: The Human Subject (Locked Face & Pose)
- REFERENCE IMAGE 2: Target Garment

CRITICAL CONSTRAINTS (in priority order; never break an earlier constraint to satisfy a later one):
1. POSE SYNC: The person is oriented as follows: {pose}. You MUST render the new clothing to match this EXACT body orientation and head angle.
2. PIXEL LOCK: Do not change the facial features, hairstyle, or background of Image 1.
3. LIGHTING MATCH: The shadows on the new garment must match the light direction identified in the pose analysis.
4. OUTFIT SWAP: Replace the existing clothes with {name} ({garment}). Ensure the clothing drapes realistically over the body silhouette in Image 1.
5. PERSPECTIVE: If the person is facing sideways, the clothing must be seen from that same sideways perspective."""


def build_synthesis_prompt(
    display_name: str,
    pose_text: str | None,
    garment_text: str | None,
) -> str:
    """Fill the five try-on constraints with the extracted analyses."""
    return SYNTHESIS_PROMPT_TEMPLATE.format(
        pose=pose_text or POSE_FALLBACK,
        name=display_name,
        garment=garment_text or GARMENT_FALLBACK,
    )


class SynthesisStage:
    """Issues the constrained text+image generation request for one garment."""

    def __init__(self, client: InferenceClient, model: str, temperature: float = 0.1):
        self.client = client
        self.model = model
        self.temperature = temperature

    async def synthesize(
        self,
        reference: ReferenceImage,
        garment: GarmentItem,
        pose_text: str | None,
        garment_text: str | None,
    ) -> SynthesisArtifact:
        """Generate the try-on image.

        Args:
            reference: Subject photo (image 1)
            garment: Garment photo (image 2) and its display name
            pose_text: Output of the pose analyzer
            garment_text: Output of the garment analyzer

        Returns:
            SynthesisArtifact built from the response's inline image

        Raises:
            MissingArtifact: the response carried no inline image
            InferenceFailure: the request itself failed
        """
        prompt = build_synthesis_prompt(garment.display_name, pose_text, garment_text)
        logger.debug("Synthesis prompt for %s:\n%s", garment.display_name, prompt)

        response = await self.client.generate(
            prompt,
            [reference, garment],
            model=self.model,
            modalities=(Modality.TEXT, Modality.IMAGE),
            temperature=self.temperature,
        )

        if response.image is None:
            detail = f": {response.text[:200]}" if response.text else ""
            raise MissingArtifact(f"No inline image returned for {garment.display_name!r}{detail}")

        return SynthesisArtifact(
            data=response.image.data,
            media_type=response.image.media_type,
            outfit_label=garment.display_name,
            garment_id=garment.id,
        )
