"""Render findings as the Markdown review report."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

from diffgate.schemas import Finding

logger = logging.getLogger(__name__)

REPORT_FILENAME = "review.md"

NO_CHANGES_MESSAGE = "### AI Review\n\n_No changes detected._"
NO_ISSUES_MESSAGE = "### 🤖 Gemini Review\n\n✅ No issues found in changed lines."
REPORT_HEADER = "### AI Review (Gemini)"
CRITICAL_BANNER = "> SEVERITY: CRITICAL"
DISCLAIMER = "> _Automated review. Please verify before applying suggestions._"


def render_markdown(findings: list[Finding]) -> str:
    """Render *findings* sorted by file, then line (findings without a line last)."""
    if not findings:
        return NO_ISSUES_MESSAGE

    lines: list[str] = [REPORT_HEADER, ""]

    tally = Counter(f.severity for f in findings)
    summary = "".join(f"{sev}: {tally[sev]}  " for sev in sorted(tally))
    lines.append(f"**Summary:** {summary}")
    lines.append("")

    if any(f.is_critical for f in findings):
        lines.append(CRITICAL_BANNER)
        lines.append("")

    for f in sorted(findings, key=_sort_key):
        location = f.file if f.line is None else f"{f.file}:{f.line}"
        lines.append(f"**{location}** — `{f.severity}` **{_single_line(f.title)}**")
        lines.append("")
        if f.detail.strip():
            lines.append(f.detail)
            lines.append("")
        if f.suggestion.strip():
            lines.append("_Suggestion:_")
            lines.append("```")
            lines.append(f.suggestion)
            lines.append("```")
            lines.append("")

    lines.append("")
    lines.append(DISCLAIMER)
    return "\n".join(lines) + "\n"


def write_report(report: str, output_dir: str = ".") -> Path:
    """Write the report to ``review.md`` under *output_dir*."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / REPORT_FILENAME
    path.write_text(report, encoding="utf-8")
    logger.info("Wrote review report to %s", path)
    return path


def _sort_key(f: Finding) -> tuple[str, bool, int]:
    return (f.file, f.line is None, f.line or 0)


def _single_line(text: str) -> str:
    return text.replace("\n", " ").strip()
