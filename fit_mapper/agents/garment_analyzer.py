"""Garment Analyzer - describes a clothing item's material and shape."""

from ..models import GarmentItem
from ..services import InferenceClient, Modality


GARMENT_ANALYSIS_PROMPT = "Describe this clothing item's fabric, silhouette, and drape."


class GarmentAnalyzer:
    """Extracts a fabric/silhouette/drape description from a garment photo."""

    def __init__(self, client: InferenceClient, model: str):
        self.client = client
        self.model = model

    async def analyze(self, garment: GarmentItem) -> str | None:
        response = await self.client.generate(
            GARMENT_ANALYSIS_PROMPT,
            [garment],
            model=self.model,
            modalities=(Modality.TEXT,),
        )
        text = (response.text or "").strip()
        return text or None
