"""External service clients."""

from .inference_client import InferenceClient, InferenceResponse, Modality, build_request_body

__all__ = [
    "InferenceClient",
    "InferenceResponse",
    "Modality",
    "build_request_body",
]
