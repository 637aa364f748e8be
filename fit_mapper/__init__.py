"""Fit Mapper - pose-synchronized virtual try-on over the Gemini API."""

from .config import PipelineConfig, load_config
from .errors import (
    FitMapperError,
    InferenceFailure,
    MalformedResponse,
    MissingArtifact,
    TransportFailure,
)
from .models import GarmentItem, PipelineRun, ReferenceImage, ResultCollection, SynthesisArtifact
from .pipeline import TryOnOrchestrator

__version__ = "1.0.0"

__all__ = [
    "PipelineConfig",
    "load_config",
    "FitMapperError",
    "InferenceFailure",
    "MalformedResponse",
    "MissingArtifact",
    "TransportFailure",
    "GarmentItem",
    "PipelineRun",
    "ReferenceImage",
    "ResultCollection",
    "SynthesisArtifact",
    "TryOnOrchestrator",
]
