"""
Atomic output streams for generated files.

Plugins write generated source into an in-memory buffer; the buffer is
committed to disk in one step when the last holder releases the stream.
An interrupted run therefore never leaves a half written output file.
"""

from __future__ import annotations

import io
import logging
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class AtomicOutputStream:
    """A writable text sink committed with a two-phase write.

    1. Buffer everything written while the stream is held
    2. Write the buffer to a temporary file in the target directory
    3. Atomically replace the target file

    The stream is reference counted so that several plugin tasks bound to the
    same output path append to a single file.
    """

    def __init__(self, path: Path):
        """
        Initialize the stream.

        Args:
            path: Target file path
        """
        self.path = Path(path)
        self._buffer = io.StringIO()
        self._holders = 0
        self._kept = False
        self.committed = False

    @property
    def closed(self) -> bool:
        return self.committed or self._buffer.closed

    def acquire(self) -> AtomicOutputStream:
        if self.closed:
            raise ValueError(f"Output stream already closed: {self.path}")
        self._holders += 1
        return self

    def write(self, content: str) -> int:
        if self.closed:
            raise ValueError(f"Write to closed output stream: {self.path}")
        return self._buffer.write(content)

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    def release(self, discard: bool = False) -> None:
        """Drop one holder, committing the buffer when the last holder leaves.

        Args:
            discard: Drop this holder without committing. The buffer is still
                committed if another holder released it normally.
        """
        if self.closed:
            return
        if not discard:
            self._kept = True
        self._holders = max(self._holders - 1, 0)
        if self._holders > 0:
            return
        if not self._kept:
            logger.debug("Discarding output %s", self.path)
            self._buffer.close()
            return
        self.commit()

    def commit(self) -> None:
        """Write the buffered content to the target path atomically.

        Raises:
            OSError: If file operations fail
        """
        content = self._buffer.getvalue()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory keeps the final rename on one filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            text=True,
        )
        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            temp_path.replace(self.path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise
        finally:
            self._buffer.close()

        self.committed = True
        logger.info("Wrote %s", self.path)
