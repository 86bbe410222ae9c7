"""Per-run scratch directories for intermediate media files."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List
from uuid import uuid4

logger = logging.getLogger(__name__)


class TempWorkspace:
    """Scratch directory owned by a single splice run.

    The directory is created lazily on the first ``new_file`` call and every
    generated name carries a fresh uuid, so concurrent runs sharing ``root``
    never collide.
    """

    def __init__(self, root: str | Path, run_id: str | None = None) -> None:
        self.root = Path(root)
        self.run_id = run_id or uuid4().hex
        self.path = self.root / f"run-{self.run_id}"
        self._files: List[Path] = []

    @property
    def files(self) -> List[Path]:
        return list(self._files)

    def new_file(self, stem: str, suffix: str) -> Path:
        self.path.mkdir(parents=True, exist_ok=True)
        suffix = suffix if suffix.startswith(".") or not suffix else f".{suffix}"
        generated = self.path / f"{stem}-{uuid4().hex}{suffix}"
        self._files.append(generated)
        return generated

    def discard(self, path: Path) -> None:
        """Remove one file early once it is no longer needed.

        Paths the workspace did not generate are left alone.
        """

        if path not in self._files:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to remove temp file %s: %s", path.name, exc)

    def cleanup(self) -> None:
        """Best-effort removal of every file and the run directory; never raises."""

        for path in self._files:
            self.discard(path)
        self._files.clear()
        if not self.path.exists():
            return
        try:
            shutil.rmtree(self.path)
        except OSError as exc:
            logger.warning("Failed to remove workspace %s: %s", self.path.name, exc)
