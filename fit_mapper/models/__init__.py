"""Data models for the Fit Mapper pipeline."""

from .images import EncodedImage, ReferenceImage, GarmentItem, new_garment_id
from .artifact import SynthesisArtifact
from .run import RunState, ItemStage, ItemOutcome, PipelineRun
from .results import ResultCollection

__all__ = [
    "EncodedImage",
    "ReferenceImage",
    "GarmentItem",
    "new_garment_id",
    "SynthesisArtifact",
    "RunState",
    "ItemStage",
    "ItemOutcome",
    "PipelineRun",
    "ResultCollection",
]
