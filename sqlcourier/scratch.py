"""ScratchSpace: local directory for transient delivery artifacts."""

from __future__ import annotations

import logging
import re
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlcourier.config import settings

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_SAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9._\-]")


class ScratchSpace:
    """Hands out unique file paths for artifacts and removes them afterwards.

    Singleton accessed via ``ScratchSpace.get()``.  Pass an explicit *root*
    for test isolation (e.g. ``tmp_path / "scratch"``).

    Paths are unique per call, so concurrent task runs never share a file.
    """

    _instance: ScratchSpace | None = None

    def __init__(self, root: Path | None = None) -> None:
        self._root = (root or settings.scratch_dir).resolve()

    @classmethod
    def get(cls) -> ScratchSpace:
        """Return the shared ScratchSpace instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Clear the singleton (for tests)."""
        cls._instance = None

    @property
    def root(self) -> Path:
        return self._root

    @staticmethod
    def sanitize_filename(name: str) -> str:
        """Replace unsafe characters, strip leading dots, truncate to 200 chars.

        Raises ``ValueError`` if the result is empty.
        """
        sanitized = _SAFE_FILENAME_RE.sub("_", name)
        sanitized = sanitized.lstrip(".")
        sanitized = sanitized[:200]
        if not sanitized:
            msg = f"Filename is empty after sanitization: {name!r}"
            raise ValueError(msg)
        return sanitized

    def allocate(self, stem: str, extension: str) -> Path:
        """Return a fresh path ``<stem>_<YYYYmmdd_HHMMSS>_<hex>.<extension>``.

        The scratch root is created on demand; the file itself is not.
        """
        self._root.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        name = f"{self.sanitize_filename(stem)}_{timestamp}_{uuid.uuid4().hex[:8]}.{extension}"
        return self._root / name

    def remove(self, path: Path) -> bool:
        """Delete *path*. Returns True if a file was removed."""
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError:
            logger.warning("Scratch: failed to remove %s", path, exc_info=True)
            return False
        logger.debug("Scratch: removed %s", path.name)
        return True
