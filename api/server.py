"""FastAPI server for Fit Mapper.

Receives a reference photo and a batch of garments, runs the pose-synchronized
pipeline, and serves the accumulated results:
- reference_image: Base64 data URL of the subject photo
- garments: list of {image, name, id?} entries, image as a base64 data URL
"""

import logging
import mimetypes

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from fit_mapper import __version__
from fit_mapper.config import PipelineConfig
from fit_mapper.models import GarmentItem, ReferenceImage, SynthesisArtifact
from fit_mapper.pipeline import TryOnOrchestrator
from fit_mapper.utils import decode_data_url


logger = logging.getLogger("fit_mapper.api")

app = FastAPI(
    title="Fit Mapper API",
    description="Pose-synchronized virtual try-on using Gemini",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class GarmentPayload(BaseModel):
    """One wardrobe item in a run request."""
    image: str  # Base64 data URL or bare base64
    name: str
    id: str | None = None


class RunRequest(BaseModel):
    """Request body for a try-on run."""
    reference_image: str  # Base64 data URL
    garments: list[GarmentPayload] = Field(default_factory=list)


class ArtifactResponse(BaseModel):
    sequence_key: str
    outfit_label: str
    garment_id: str
    media_type: str
    image_base64: str

    @classmethod
    def from_artifact(cls, artifact: SynthesisArtifact) -> "ArtifactResponse":
        return cls(
            sequence_key=artifact.sequence_key,
            outfit_label=artifact.outfit_label,
            garment_id=artifact.garment_id,
            media_type=artifact.media_type,
            image_base64=artifact.data,
        )


class RunResponse(BaseModel):
    """Outcome of a run: the successes in input order plus the skip count."""
    run_id: str
    succeeded: int
    skipped: int
    artifacts: list[ArtifactResponse]


class ResultSummary(BaseModel):
    sequence_key: str
    outfit_label: str
    garment_id: str
    media_type: str


# Initialize orchestrator (will be done on first request)
_orchestrator: TryOnOrchestrator | None = None


def get_orchestrator() -> TryOnOrchestrator:
    """Get or create the orchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        config = PipelineConfig()  # Loads from .env automatically via pydantic-settings
        logging.basicConfig(
            level=config.log_level.upper(),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        _orchestrator = TryOnOrchestrator(config)
    return _orchestrator


def _require_orchestrator() -> TryOnOrchestrator:
    try:
        return get_orchestrator()
    except ValueError as e:
        # No credential configured
        raise HTTPException(status_code=503, detail=str(e))


def _decode_request(request: RunRequest) -> tuple[ReferenceImage, list[GarmentItem]]:
    reference = ReferenceImage(**decode_data_url(request.reference_image).model_dump())
    garments = []
    for payload in request.garments:
        image = decode_data_url(payload.image)
        extra = {"id": payload.id} if payload.id else {}
        garments.append(GarmentItem(**image.model_dump(), display_name=payload.name, **extra))
    return reference, garments


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Fit Mapper API", "version": __version__}


@app.get("/health")
async def health():
    """Detailed health check."""
    config = PipelineConfig()
    has_key = bool(config.gemini_api_key)
    return {
        "status": "ok" if has_key else "degraded",
        "credential": "configured" if has_key else "missing",
        "analysis_model": config.inference.analysis_model,
        "synthesis_model": config.inference.synthesis_model,
    }


@app.post("/api/runs", response_model=RunResponse)
async def create_run(request: RunRequest):
    """Run the try-on pipeline for every garment in the request.

    Garments that fail are skipped; the response lists the successes in
    request order.
    """
    try:
        reference, garments = _decode_request(request)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    logger.info("Run request with %d garment(s)", len(garments))
    orchestrator = _require_orchestrator()

    try:
        run = await orchestrator.run(reference, garments)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return RunResponse(
        run_id=run.run_id,
        succeeded=run.succeeded,
        skipped=run.skipped,
        artifacts=[ArtifactResponse.from_artifact(a) for a in run.artifacts],
    )


@app.get("/api/results", response_model=list[ResultSummary])
async def list_results():
    """All results so far, newest run first."""
    orchestrator = _require_orchestrator()
    return [
        ResultSummary(
            sequence_key=a.sequence_key,
            outfit_label=a.outfit_label,
            garment_id=a.garment_id,
            media_type=a.media_type,
        )
        for a in orchestrator.results
    ]


@app.get("/api/results/{sequence_key}")
async def download_result(sequence_key: str):
    """Download one generated image."""
    orchestrator = _require_orchestrator()
    artifact = orchestrator.results.get(sequence_key)
    if artifact is None:
        raise HTTPException(status_code=404, detail=f"No result {sequence_key!r}")
    ext = mimetypes.guess_extension(artifact.media_type) or ".png"
    return Response(
        content=artifact.raw_bytes(),
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{sequence_key}{ext}"'},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
