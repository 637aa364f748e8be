"""Run and per-item outcome tracking models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field, model_validator

from .artifact import SynthesisArtifact
from .images import GarmentItem, ReferenceImage


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class ItemStage(str, Enum):
    PENDING = "pending"
    ANALYZING_POSE = "analyzing_pose"
    ANALYZING_GARMENT = "analyzing_garment"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    FAILED = "failed"


class ItemOutcome(BaseModel):
    """Result of pushing one garment through the three stages."""

    garment_id: str
    display_name: str
    stage: ItemStage
    artifact: SynthesisArtifact | None = None

    # Set only when stage == FAILED
    failed_stage: ItemStage | None = None
    error: str | None = None

    @computed_field
    @property
    def succeeded(self) -> bool:
        return self.artifact is not None

    @classmethod
    def done(cls, garment: GarmentItem, artifact: SynthesisArtifact) -> "ItemOutcome":
        return cls(
            garment_id=garment.id,
            display_name=garment.display_name,
            stage=ItemStage.DONE,
            artifact=artifact,
        )

    @classmethod
    def failed(cls, garment: GarmentItem, at: ItemStage, error: BaseException) -> "ItemOutcome":
        return cls(
            garment_id=garment.id,
            display_name=garment.display_name,
            stage=ItemStage.FAILED,
            failed_stage=at,
            error=f"{type(error).__name__}: {error}",
        )


class PipelineRun(BaseModel):
    """State of one batch execution over all garments against one reference."""

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])

    # Inputs
    reference: ReferenceImage
    garments: list[GarmentItem] = Field(default_factory=list)

    # Progress
    state: RunState = RunState.IDLE
    outcomes: list[ItemOutcome] = Field(default_factory=list)

    started_at: datetime | None = None
    completed_at: datetime | None = None

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "PipelineRun":
        seen: set[str] = set()
        for garment in self.garments:
            if garment.id in seen:
                raise ValueError(f"Duplicate garment id in run: {garment.id!r}")
            seen.add(garment.id)
        return self

    @computed_field
    @property
    def artifacts(self) -> list[SynthesisArtifact]:
        """Successful artifacts in garment input order."""
        return [o.artifact for o in self.outcomes if o.artifact is not None]

    @computed_field
    @property
    def succeeded(self) -> int:
        return len(self.artifacts)

    @computed_field
    @property
    def skipped(self) -> int:
        return len(self.garments) - len(self.artifacts)

    def start(self) -> None:
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Run {self.run_id} already started (state={self.state.value})")
        self.state = RunState.RUNNING
        self.started_at = datetime.now()

    def record(self, outcome: ItemOutcome) -> None:
        if self.state is not RunState.RUNNING:
            raise RuntimeError(f"Run {self.run_id} is not running")
        self.outcomes.append(outcome)

    def complete(self) -> None:
        """Mark the run finished. Completion happens exactly once."""
        if self.state is not RunState.RUNNING:
            raise RuntimeError(f"Run {self.run_id} cannot complete from state {self.state.value}")
        self.state = RunState.COMPLETED
        self.completed_at = datetime.now()
