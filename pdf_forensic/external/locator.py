"""Discovery of the optional mutool and exiftool executables."""

import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional

from pdf_forensic.config import DEFAULT_TOOL_SEARCH_PATHS
from pdf_forensic.models import ToolAvailability

logger = logging.getLogger(__name__)

MUTOOL = "mutool"
EXIFTOOL = "exiftool"


class ToolLocator:
    """
    Locates external tools once and caches the answer.

    Each well-known directory is checked for an executable file first;
    the PATH lookup (shutil.which) is the fallback. A disabled locator reports
    no tools without touching the file system.
    """

    def __init__(self, search_paths: Optional[List[str]] = None, enabled: bool = True):
        self.search_paths = list(search_paths) if search_paths is not None else list(DEFAULT_TOOL_SEARCH_PATHS)
        self.enabled = enabled
        self._cached: Optional[ToolAvailability] = None

    def find_tool(self, name: str) -> Optional[str]:
        for directory in self.search_paths:
            candidate = Path(directory) / name
            if candidate.is_file() and os.access(candidate, os.X_OK):
                return str(candidate)

        found = shutil.which(name)
        if found:
            return found

        logger.debug(f"{name} not found in {self.search_paths} or PATH")
        return None

    def check(self) -> ToolAvailability:
        """Return tool availability, probing only on the first call."""
        if self._cached is not None:
            return self._cached

        if not self.enabled:
            self._cached = ToolAvailability()
        else:
            self._cached = ToolAvailability(
                mutool_path=self.find_tool(MUTOOL),
                exiftool_path=self.find_tool(EXIFTOOL),
            )
            logger.info(
                f"External tools: mutool={self._cached.mutool_path or 'missing'}, "
                f"exiftool={self._cached.exiftool_path or 'missing'}"
            )
        return self._cached

    def reset(self) -> None:
        """Forget the cached result so the next check searches again."""
        self._cached = None
