"""Pose-synchronized try-on orchestrator."""

import asyncio
import logging
from pathlib import Path
from typing import Iterable

from ..agents import GarmentAnalyzer, PoseAnalyzer, SynthesisStage
from ..config import PipelineConfig
from ..errors import FitMapperError
from ..models import (
    GarmentItem,
    ItemOutcome,
    ItemStage,
    PipelineRun,
    ReferenceImage,
    ResultCollection,
)
from ..services import InferenceClient
from ..utils import encode_image_file

logger = logging.getLogger("fit_mapper.pipeline")


class TryOnOrchestrator:
    """Runs a wardrobe of garments against one reference photo.

    Flow, per garment:
    1. Analyze the reference pose and lighting
    2. Analyze the garment's fabric, silhouette and drape
    3. Synthesize the subject wearing the garment, constrained by both analyses

    A failure at any step drops that garment only. The run always completes
    and its artifacts are prepended to the shared result collection.
    Pose analysis is repeated for every garment so each item stands alone.
    """

    def __init__(
        self,
        config: PipelineConfig,
        client: InferenceClient | None = None,
        results: ResultCollection | None = None,
    ):
        self.config = config

        # Initialize services
        self._owns_client = client is None
        self.client = client or InferenceClient(
            api_key=config.gemini_api_key or "",
            config=config.inference,
            retry=config.retry,
        )
        self.results = results if results is not None else ResultCollection()

        # Initialize stages
        self.pose_analyzer = PoseAnalyzer(self.client, config.inference.analysis_model)
        self.garment_analyzer = GarmentAnalyzer(self.client, config.inference.analysis_model)
        self.synthesis = SynthesisStage(
            self.client,
            config.inference.synthesis_model,
            temperature=config.synthesis.temperature,
        )

    async def run(
        self,
        reference: ReferenceImage,
        garments: Iterable[GarmentItem],
    ) -> PipelineRun:
        """Run the three stages for every garment.

        Args:
            reference: The subject photo
            garments: Garments in the order results should appear

        Returns:
            The completed PipelineRun; failed garments have no artifact

        Raises:
            ValueError: two garments share an id (checked before any request)
        """
        run = PipelineRun(reference=reference, garments=list(garments))
        run.start()
        logger.info("Run %s started with %d garment(s)", run.run_id, len(run.garments))

        limit = self.config.pipeline.max_concurrent_items
        if limit <= 1:
            for garment in run.garments:
                run.record(await self.process_item(run.reference, garment))
        elif run.garments:
            semaphore = asyncio.Semaphore(limit)

            async def bounded(garment: GarmentItem) -> ItemOutcome:
                async with semaphore:
                    return await self.process_item(run.reference, garment)

            # gather keeps input order regardless of finish order
            for outcome in await asyncio.gather(*(bounded(g) for g in run.garments)):
                run.record(outcome)

        run.complete()
        self.results.prepend(run.artifacts)

        logger.info(
            "Run %s complete: %d succeeded, %d skipped",
            run.run_id, run.succeeded, run.skipped,
        )
        return run

    async def run_files(
        self,
        reference_path: Path,
        garment_paths: Iterable[Path],
    ) -> PipelineRun:
        """Run from image files; each garment is labelled with its file name."""
        reference = ReferenceImage(**encode_image_file(reference_path).model_dump())
        garments = [
            GarmentItem(**encode_image_file(path).model_dump(), display_name=path.name)
            for path in garment_paths
        ]
        return await self.run(reference, garments)

    async def process_item(
        self,
        reference: ReferenceImage,
        garment: GarmentItem,
    ) -> ItemOutcome:
        """Push one garment through pose → garment → synthesis.

        Never raises for stage failures; they come back as a failed outcome.
        """
        stage = ItemStage.ANALYZING_POSE
        try:
            pose_text = await self.pose_analyzer.analyze(reference)

            stage = ItemStage.ANALYZING_GARMENT
            garment_text = await self.garment_analyzer.analyze(garment)

            stage = ItemStage.SYNTHESIZING
            artifact = await self.synthesis.synthesize(reference, garment, pose_text, garment_text)

        except FitMapperError as e:
            logger.warning(
                "Skipping %r: %s failed: %s", garment.display_name, stage.value, e,
            )
            return ItemOutcome.failed(garment, stage, e)
        except Exception as e:
            logger.exception(
                "Skipping %r: unexpected error during %s", garment.display_name, stage.value,
            )
            return ItemOutcome.failed(garment, stage, e)

        logger.info("Rendered %r (%s)", garment.display_name, artifact.sequence_key)
        return ItemOutcome.done(garment, artifact)

    async def aclose(self):
        """Close the inference client if this orchestrator created it."""
        if self._owns_client:
            await self.client.close()

    async def __aenter__(self) -> "TryOnOrchestrator":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
