"""Unit tests for run tracking and the result collection."""

import base64

import pytest
from pydantic import ValidationError

from fit_mapper.errors import TransportFailure
from fit_mapper.models import (
    EncodedImage,
    GarmentItem,
    ItemOutcome,
    ItemStage,
    PipelineRun,
    ResultCollection,
    RunState,
    SynthesisArtifact,
)


def artifact(label: str) -> SynthesisArtifact:
    data = base64.b64encode(label.encode()).decode()
    return SynthesisArtifact(data=data, media_type="image/png", outfit_label=label, garment_id=label)


class TestEncodedImage:

    def test_data_url(self):
        image = EncodedImage(data="aGVsbG8=", media_type="image/jpeg")

        assert image.to_data_url() == "data:image/jpeg;base64,aGVsbG8="
        assert image.raw_bytes() == b"hello"

    def test_empty_data_rejected(self):
        with pytest.raises(ValidationError):
            EncodedImage(data="   ")

    def test_invalid_base64(self):
        with pytest.raises(ValueError):
            EncodedImage(data="not base64!").raw_bytes()

    def test_images_are_immutable(self, make_garment):
        garment = make_garment("coat")

        with pytest.raises(ValidationError):
            garment.display_name = "dress"

    def test_garment_ids_generated(self, png_base64):
        first = GarmentItem(data=png_base64, display_name="a")
        second = GarmentItem(data=png_base64, display_name="a")

        assert len(first.id) == 9
        assert first.id != second.id


class TestSynthesisArtifact:

    def test_non_image_media_type_rejected(self):
        with pytest.raises(ValidationError):
            SynthesisArtifact(data="eA==", media_type="text/plain", outfit_label="x", garment_id="x")


class TestPipelineRun:
    """Tests for the run state machine."""

    def test_lifecycle(self, reference):
        run = PipelineRun(reference=reference)
        assert run.state == RunState.IDLE

        run.start()
        assert run.state == RunState.RUNNING
        assert run.started_at is not None

        run.complete()
        assert run.state == RunState.COMPLETED
        assert run.completed_at is not None

    def test_completes_exactly_once(self, reference):
        run = PipelineRun(reference=reference)
        run.start()
        run.complete()

        with pytest.raises(RuntimeError):
            run.complete()

    def test_cannot_record_before_start(self, reference, make_garment):
        garment = make_garment("coat")
        run = PipelineRun(reference=reference, garments=[garment])

        with pytest.raises(RuntimeError):
            run.record(ItemOutcome.done(garment, artifact("coat")))

    def test_counts_and_order(self, reference, make_garment):
        garments = [make_garment(n) for n in ("g1", "g2", "g3")]
        run = PipelineRun(reference=reference, garments=garments)
        run.start()
        run.record(ItemOutcome.done(garments[0], artifact("g1")))
        run.record(ItemOutcome.failed(garments[1], ItemStage.SYNTHESIZING, TransportFailure("x")))
        run.record(ItemOutcome.done(garments[2], artifact("g3")))

        assert [a.outfit_label for a in run.artifacts] == ["g1", "g3"]
        assert run.succeeded == 2
        assert run.skipped == 1
        assert [o.succeeded for o in run.outcomes] == [True, False, True]

    def test_duplicate_ids_rejected(self, reference, make_garment):
        with pytest.raises(ValidationError, match="Duplicate garment id"):
            PipelineRun(reference=reference, garments=[make_garment("a", "x"), make_garment("b", "x")])


class TestResultCollection:
    """Tests for cross-run aggregation."""

    def test_prepend_puts_newest_first(self):
        results = ResultCollection()
        results.prepend([artifact("a1"), artifact("a2")])
        results.prepend([artifact("b1")])

        assert [a.outfit_label for a in results] == ["b1", "a1", "a2"]
        assert len(results) == 3

    def test_prepend_empty_leaves_collection(self):
        results = ResultCollection()
        results.prepend([artifact("a1")])
        results.prepend([])

        assert [a.outfit_label for a in results] == ["a1"]

    def test_get_by_sequence_key(self):
        results = ResultCollection()
        item = artifact("a1")
        results.prepend([item])

        assert results.get(item.sequence_key) is item
        assert results.get("missing") is None

    def test_snapshot_is_a_copy(self):
        results = ResultCollection()
        results.prepend([artifact("a1")])

        snapshot = results.snapshot()
        snapshot.clear()

        assert len(results) == 1

    def test_clear(self):
        results = ResultCollection()
        results.prepend([artifact("a1")])
        results.clear()

        assert len(results) == 0

    def test_export_writes_files_in_order(self, tmp_path):
        results = ResultCollection()
        results.prepend([artifact("Red Jacket")])
        results.prepend([artifact("blue scarf")])

        paths = results.export(tmp_path / "out")

        assert [p.name.split("_")[0] for p in paths] == ["000", "001"]
        assert "blue-scarf" in paths[0].name
        assert "red-jacket" in paths[1].name
        assert paths[1].suffix == ".png"
        assert paths[1].read_bytes() == b"Red Jacket"
