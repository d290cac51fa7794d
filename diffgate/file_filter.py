"""Path and size policy deciding which files of a diff get reviewed."""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, Field

from diffgate.errors import ConfigurationError
from diffgate.schemas import FileDiff

logger = logging.getLogger(__name__)

DEFAULT_ALLOW_PATTERN = r".*\.(java|kt|ts|tsx|js|jsx|py|go|rb|cs)$"
DEFAULT_DENY_PATTERN = r"(^|/)dist/|(^|/)build/|\.min\.|\.lock$|(^|/)node_modules/|(^|/)vendor/"
DEFAULT_MAX_FILE_CHARS = 120_000


# ---------------------------------------------------------------------------
# Filter policy configuration
# ---------------------------------------------------------------------------

class FileFilterConfig(BaseModel):
    """Which files of a diff are worth sending to the model.

    Both patterns are searched case-insensitively anywhere in the path.
    """

    allow_pattern: str = Field(
        default=DEFAULT_ALLOW_PATTERN,
        description="Regex a path must match to be reviewed (source-file extensions).",
    )
    deny_pattern: str = Field(
        default=DEFAULT_DENY_PATTERN,
        description="Regex that excludes build output, vendored, lock and minified files.",
    )
    max_file_chars: int = Field(
        default=DEFAULT_MAX_FILE_CHARS,
        description="Files whose diff content is longer than this are skipped.",
    )


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------

class FileFilter:
    """Drops files that fail the allow pattern, hit the deny pattern, or are too large."""

    def __init__(self, policy: FileFilterConfig) -> None:
        self.policy = policy
        try:
            self._allow_re = re.compile(policy.allow_pattern, re.I)
            self._deny_re = re.compile(policy.deny_pattern, re.I)
        except re.error as e:
            raise ConfigurationError(f"Invalid file filter pattern: {e}") from e

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def should_skip(self, unit: FileDiff) -> tuple[bool, str]:
        """Decide whether a file is left out of the review.

        Returns:
            ``(skip, reason)`` where *reason* names the failing check and is
            empty when the file is kept.
        """
        if not self._allow_re.search(unit.path):
            return True, f"not-allowed:{unit.path}"
        if self._deny_re.search(unit.path):
            return True, f"denied:{unit.path}"
        if len(unit.content) > self.policy.max_file_chars:
            return True, f"too-large:{len(unit.content)}"
        return False, ""

    def filter(self, units: list[FileDiff]) -> list[FileDiff]:
        kept: list[FileDiff] = []
        for unit in units:
            skip, reason = self.should_skip(unit)
            if skip:
                logger.debug("Skipping %s (%s)", unit.path, reason)
                continue
            kept.append(unit)
        logger.info("File filter kept %d of %d file(s)", len(kept), len(units))
        return kept
