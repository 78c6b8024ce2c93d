"""
FileStorage: one JSON file per key under a data directory.

Writes go to a temporary sibling file first and are moved into place with
``os.replace``. ``set_many`` stages every temporary file of the group before
the first rename, so a serialization or disk error during staging leaves the
previous records untouched. If a rename fails part way through the group,
the targets already replaced get their previous contents back (or are
removed if they did not exist) before the error propagates. Staged files
never outlive the call; leftovers from a killed process are swept on start.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from manifest_garden.core.logging.logger import get_logger

logger = get_logger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStorage:
    """Filesystem gateway. Keys map to ``<data_dir>/<key>.json``."""

    SUFFIX = ".json"

    def __init__(self, data_dir: Path | str) -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._sweep_staged()
        logger.debug("FileStorage initialized", extra={"data_dir": str(self._data_dir)})

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}{self.SUFFIX}"

    def _stage(self, key: str, value: bytes) -> Path:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self._data_dir)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return Path(tmp_name)

    def get(self, key: str) -> Optional[bytes]:
        return self._read(self._path_for(key))

    def set(self, key: str, value: bytes) -> None:
        self.set_many({key: value})

    def set_many(self, records: Mapping[str, bytes]) -> None:
        targets = {key: self._path_for(key) for key in records}
        staged: Dict[str, Path] = {}
        replaced: List[Tuple[Path, Optional[bytes]]] = []
        try:
            for key, value in records.items():
                staged[key] = self._stage(key, value)

            for key, tmp in staged.items():
                previous = self._read(targets[key])
                os.replace(tmp, targets[key])
                replaced.append((targets[key], previous))
        except OSError:
            self._restore(replaced)
            raise
        finally:
            for tmp in staged.values():
                tmp.unlink(missing_ok=True)

        logger.debug(
            "FileStorage: wrote records",
            extra={"keys": sorted(records), "data_dir": str(self._data_dir)},
        )

    def _read(self, path: Path) -> Optional[bytes]:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def _restore(self, replaced: List[Tuple[Path, Optional[bytes]]]) -> None:
        """Put back what a partially applied group overwrote, newest first."""
        for target, previous in reversed(replaced):
            try:
                if previous is None:
                    target.unlink(missing_ok=True)
                    continue
                tmp = self._stage(target.stem, previous)
                try:
                    os.replace(tmp, target)
                finally:
                    tmp.unlink(missing_ok=True)
            except OSError:
                logger.exception("FileStorage: could not restore record", extra={"path": str(target)})
        if replaced:
            logger.warning(
                "FileStorage: rolled back partial write",
                extra={"keys": [target.stem for target, _ in replaced]},
            )

    def _sweep_staged(self) -> None:
        stale = list(self._data_dir.glob(".*.tmp"))
        for path in stale:
            path.unlink(missing_ok=True)
        if stale:
            logger.info("FileStorage: removed stale staged files", extra={"removed": len(stale)})

    def clear(self) -> None:
        removed = 0
        for path in self._data_dir.glob(f"*{self.SUFFIX}"):
            path.unlink(missing_ok=True)
            removed += 1
        logger.info("FileStorage: cleared records", extra={"removed": removed})
