"""File-backed persistence for histogram checkpoints."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from ..core.errors import CheckpointWriteError, CorruptHistogramStateError, InvalidLeaderboardNameError
from ..schemas import HistogramState

logger = logging.getLogger(__name__)


class HistogramStore:
    """Stores one JSON document per leaderboard under ``root``.

    The file for a leaderboard is ``<root>/<name>.json``. Saves overwrite the
    whole document through a temporary file and ``os.replace`` so a crash
    mid-write never leaves a truncated checkpoint behind.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        if not name or name in {".", ".."} or "/" in name or "\\" in name:
            raise InvalidLeaderboardNameError(name)
        return self.root / f"{name}.json"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def load(self, name: str) -> Optional[HistogramState]:
        """Return the persisted state for ``name`` or None when nothing is stored."""

        path = self.path_for(name)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except PermissionError as exc:
            raise CorruptHistogramStateError(
                f"Persisted histogram {path} cannot be read: {exc}", path=str(path)
            ) from exc
        except UnicodeDecodeError as exc:
            raise CorruptHistogramStateError(
                f"Persisted histogram {path} is not valid UTF-8", path=str(path)
            ) from exc

        try:
            state = HistogramState.model_validate_json(raw)
        except ValidationError as exc:
            raise CorruptHistogramStateError(
                f"Persisted histogram {path} is invalid: {exc.error_count()} error(s)",
                path=str(path),
            ) from exc

        if state.name != name:
            raise CorruptHistogramStateError(
                f"Persisted histogram {path} belongs to {state.name!r}",
                path=str(path),
            )
        return state

    def save(self, state: HistogramState) -> Path:
        """Atomically overwrite the checkpoint for ``state.name``."""

        path = self.path_for(state.name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{state.name}_", suffix=".tmp")
        except OSError as exc:
            raise CheckpointWriteError(f"Could not write {path}: {exc}", path=str(path)) from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(state.to_json())
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, path)
        except OSError as exc:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise CheckpointWriteError(f"Could not write {path}: {exc}", path=str(path)) from exc

        logger.debug("saved histogram checkpoint %s", path)
        return path

    def delete(self, name: str) -> bool:
        """Remove the checkpoint for ``name``; returns False if there was none."""

        path = self.path_for(name)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as exc:
            raise CheckpointWriteError(f"Could not remove {path}: {exc}", path=str(path)) from exc
        logger.info("discarded histogram checkpoint %s", path)
        return True

    def names(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(path.stem for path in self.root.glob("*.json"))
