"""Inference-backed stages of the try-on pipeline."""

from .pose_analyzer import PoseAnalyzer, POSE_ANALYSIS_PROMPT
from .garment_analyzer import GarmentAnalyzer, GARMENT_ANALYSIS_PROMPT
from .synthesis import SynthesisStage, build_synthesis_prompt

__all__ = [
    "PoseAnalyzer",
    "POSE_ANALYSIS_PROMPT",
    "GarmentAnalyzer",
    "GARMENT_ANALYSIS_PROMPT",
    "SynthesisStage",
    "build_synthesis_prompt",
]
