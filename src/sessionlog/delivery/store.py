"""File-based spill store.

Each undelivered batch is written to its own file in the storage
directory. Names start with a fixed prefix so recovery can find them
among unrelated files; on collision a counter is inserted, mirroring
"generate unique name" semantics:

    logs.txt, logs (2).txt, logs (3).txt, ...

Content is written to a hidden temp file first and only then hard-linked
under its final name. A spill file therefore never appears to recovery
half-written, and os.link fails on an existing name, so two concurrent
writers never claim the same one.
"""

import contextlib
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

import structlog

from sessionlog.contracts.errors import SpillStoreError

logger = structlog.get_logger(__name__)

_TEMP_PREFIX = ".tmp-"


class FileSpillStore:
    """Spill files in a single directory.

    Thread Safety:
        Safe for concurrent writers and readers. Name allocation relies on
        os.link refusing existing names rather than in-process locking.

    Example:
        store = FileSpillStore(Path("~/.sessionlog/spill").expanduser())
        name = store.write_spill(batch.to_json())
        for name in store.list_spills():
            payload = store.read_spill(name)
    """

    def __init__(
        self,
        directory: Path,
        *,
        prefix: str = "logs",
        suffix: str = ".txt",
        max_collisions: int = 10_000,
    ) -> None:
        if not prefix:
            raise ValueError("prefix must not be empty")
        if prefix.startswith("."):
            raise ValueError(f"prefix must not start with '.', got {prefix!r}")
        if max_collisions < 1:
            raise ValueError(f"max_collisions must be >= 1, got {max_collisions}")
        self._directory = Path(directory)
        self._prefix = prefix
        self._suffix = suffix
        self._max_collisions = max_collisions

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def prefix(self) -> str:
        return self._prefix

    def _candidate_names(self) -> Iterator[str]:
        yield f"{self._prefix}{self._suffix}"
        for counter in range(2, self._max_collisions + 1):
            yield f"{self._prefix} ({counter}){self._suffix}"

    def _path_for(self, name: str) -> Path:
        if not name or Path(name).name != name:
            raise SpillStoreError(f"Invalid spill file name: {name!r}", name=name)
        return self._directory / name

    def write_spill(self, content: str) -> str:
        """Write content to a new spill file.

        Returns:
            The name of the file that was created.

        Raises:
            SpillStoreError: If the directory or file cannot be written, or
                every candidate name is taken.
        """
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SpillStoreError(f"Cannot create spill directory {self._directory}: {e}") from e

        try:
            fd, tmp_name = tempfile.mkstemp(prefix=_TEMP_PREFIX, dir=self._directory)
        except OSError as e:
            raise SpillStoreError(f"Cannot create temp file in {self._directory}: {e}") from e
        try:
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
            except OSError as e:
                raise SpillStoreError(f"Cannot write spill file {tmp_name}: {e}") from e
            name = self._claim_name(tmp_name)
        finally:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)

        logger.debug("Spill file written", name=name, bytes=len(content))
        return name

    def _claim_name(self, tmp_name: str) -> str:
        """Hard-link the complete temp file under the first free name."""
        for name in self._candidate_names():
            path = self._directory / name
            try:
                os.link(tmp_name, path)
            except FileExistsError:
                continue
            except OSError as e:
                raise SpillStoreError(f"Cannot create spill file {path}: {e}", name=name) from e
            return name

        raise SpillStoreError(
            f"No free spill file name in {self._directory} after {self._max_collisions} attempts",
        )

    def list_spills(self) -> list[str]:
        """Return spill file names (sorted) whose name starts with the prefix.

        Raises:
            SpillStoreError: If the directory exists but cannot be listed.
        """
        if not self._directory.exists():
            return []
        try:
            return sorted(
                entry.name
                for entry in self._directory.iterdir()
                if entry.name.startswith(self._prefix) and entry.is_file()
            )
        except OSError as e:
            raise SpillStoreError(f"Cannot list spill directory {self._directory}: {e}") from e

    def read_spill(self, name: str) -> str:
        path = self._path_for(name)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise SpillStoreError(f"Cannot read spill file {path}: {e}", name=name) from e

    def delete_spill(self, name: str) -> None:
        path = self._path_for(name)
        try:
            path.unlink()
        except OSError as e:
            raise SpillStoreError(f"Cannot delete spill file {path}: {e}", name=name) from e
