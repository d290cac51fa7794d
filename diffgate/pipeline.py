"""End-to-end review run: split, filter, batch, review, render."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Protocol

from diffgate.batcher import batch_by_char_limit
from diffgate.config import Config
from diffgate.errors import ReviewClientError
from diffgate.file_filter import FileFilter
from diffgate.prompts import build_prompt
from diffgate.render import NO_CHANGES_MESSAGE, render_markdown
from diffgate.schemas import FileDiff, Finding, ReviewRun
from diffgate.splitter import split_diff

logger = logging.getLogger(__name__)


class Reviewer(Protocol):
    def review_or_raise(self, prompt: str) -> list[Finding]: ...


def read_diff(path: str) -> str:
    """Return the diff text at *path*, or ``""`` when the file does not exist."""
    diff_path = Path(path)
    if not diff_path.exists():
        logger.info("Diff file %s not found", path)
        return ""
    # Patches of legacy-encoded files are not always valid UTF-8
    return diff_path.read_text(encoding="utf-8", errors="replace")


def plan_batches(raw_diff: str, cfg: Config) -> tuple[list[FileDiff], list[list[FileDiff]]]:
    """Split and filter *raw_diff*, then pack it into batches.

    Returns:
        ``(files, batches)`` where *files* is every file found in the diff.
    """
    files = split_diff(raw_diff)
    reviewable = FileFilter(cfg.file_filter).filter(files)
    if not reviewable:
        return files, []
    return files, batch_by_char_limit(reviewable, cfg.max_prompt_chars)


class ReviewPipeline:
    """Runs every batch through the reviewer, one call at a time."""

    def __init__(
        self,
        cfg: Config,
        reviewer: Reviewer,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cfg = cfg
        self.reviewer = reviewer
        self._sleep = sleep

    def run(self, raw_diff: str) -> ReviewRun:
        if not raw_diff.strip():
            logger.info("Empty diff; nothing to review")
            return ReviewRun(report=NO_CHANGES_MESSAGE)

        files, batches = plan_batches(raw_diff, self.cfg)
        findings: list[Finding] = []
        failed = 0

        for i, batch in enumerate(batches, 1):
            logger.info("Reviewing batch %d/%d (%d file(s))", i, len(batches), len(batch))
            try:
                part = self.reviewer.review_or_raise(build_prompt(batch))
            except ReviewClientError as e:
                failed += 1
                logger.warning(
                    "Batch %d failed, its files are missing from the report (%s): %s",
                    i, ", ".join(f.path for f in batch), e,
                )
                part = []
            findings.extend(part)
            self._sleep(self.cfg.llm.batch_pause_seconds)

        return ReviewRun(
            files_total=len(files),
            files_reviewed=sum(len(b) for b in batches),
            batches_total=len(batches),
            batches_failed=failed,
            findings=findings,
            report=render_markdown(findings),
        )
