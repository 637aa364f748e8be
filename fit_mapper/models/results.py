"""Aggregated results across pipeline runs."""

import logging
import re
from pathlib import Path
from threading import Lock
from typing import Iterable, Iterator

from .artifact import SynthesisArtifact

logger = logging.getLogger("fit_mapper.results")

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def _slug(label: str) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", label).strip("-").lower()
    return slug or "outfit"


class ResultCollection:
    """Ordered artifacts from all runs so far.

    The newest run's artifacts come first; inside a run they keep garment
    input order. Runs only ever prepend, so earlier entries are never
    removed or reordered by a run.
    """

    def __init__(self):
        self._items: list[SynthesisArtifact] = []
        self._lock = Lock()

    def prepend(self, artifacts: Iterable[SynthesisArtifact]) -> None:
        """Put a run's artifacts ahead of everything already collected."""
        batch = list(artifacts)
        with self._lock:
            self._items = batch + self._items

    def get(self, sequence_key: str) -> SynthesisArtifact | None:
        with self._lock:
            for artifact in self._items:
                if artifact.sequence_key == sequence_key:
                    return artifact
        return None

    def snapshot(self) -> list[SynthesisArtifact]:
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items = []

    def export(self, directory: Path) -> list[Path]:
        """Write every artifact to `directory`, newest first.

        Returns the written paths in collection order.
        """
        directory.mkdir(parents=True, exist_ok=True)
        paths = []
        for index, artifact in enumerate(self.snapshot()):
            ext = _EXTENSIONS.get(artifact.media_type, ".png")
            name = f"{index:03d}_{_slug(artifact.outfit_label)}_{artifact.sequence_key[:8]}{ext}"
            path = directory / name
            path.write_bytes(artifact.raw_bytes())
            paths.append(path)
        logger.info("Exported %d artifacts to %s", len(paths), directory)
        return paths

    def __iter__(self) -> Iterator[SynthesisArtifact]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
