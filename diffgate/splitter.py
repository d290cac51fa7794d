"""Split a unified git diff into one unit per file."""

from __future__ import annotations

import logging
import re

from diffgate.schemas import FileDiff

logger = logging.getLogger(__name__)

DIFF_HEADER = "diff --git "

_HEADER_SPLIT_RE = re.compile(r"^diff --git ", re.MULTILINE)
# "a/<old path> b/" in front of the destination path on the header line
_SOURCE_PREFIX_RE = re.compile(r"^a/\S+ b/")


def split_diff(raw_diff: str) -> list[FileDiff]:
    """Return the files of *raw_diff* in order of appearance.

    Anything before the first ``diff --git`` header is ignored. Chunks whose
    header yields no path are dropped rather than raised on.
    """
    files: list[FileDiff] = []
    chunks = _HEADER_SPLIT_RE.split(raw_diff)

    # The first piece precedes any header (often empty)
    for chunk in chunks[1:]:
        if not chunk.strip():
            continue
        header = chunk.split("\n", 1)[0]
        path = _SOURCE_PREFIX_RE.sub("", header, count=1).strip()
        if not path:
            logger.debug("Dropping diff chunk with malformed header: %r", header[:80])
            continue
        files.append(FileDiff(path=path, content=DIFF_HEADER + chunk))

    logger.info("Split diff into %d file(s)", len(files))
    return files
