"""CLI entrypoint for diffgate."""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from diffgate.config import Config, load_config
from diffgate.errors import ConfigurationError

app = typer.Typer(
    name="diffgate",
    help="Review a git diff with Gemini and write a Markdown report for CI.",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
    )


def _load(config_file: Optional[str], overrides: dict) -> Config:
    try:
        return load_config(config_path=config_file, overrides=overrides)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(2)


# ---------------------------------------------------------------------------
# review
# ---------------------------------------------------------------------------

@app.command()
def review(
    diff: Optional[str] = typer.Option(None, "--diff", help="Path to the diff/patch file [default: diff.patch]"),
    output_dir: Optional[str] = typer.Option(None, "--output", "-o", help="Directory for review.md"),
    model: Optional[str] = typer.Option(None, "--model", help="Gemini model name"),
    max_prompt_chars: Optional[int] = typer.Option(None, "--max-prompt-chars", help="Character budget per prompt"),
    raw_fallback: bool = typer.Option(
        False, "--raw-fallback", help="Keep unparseable model output as a RAW_OUTPUT finding"
    ),
    config_file: str = typer.Option(None, "--config", help="Path to config YAML"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Review the diff and write review.md."""
    _setup_logging(verbose)

    overrides: dict = {
        "diff_file": diff,
        "output_dir": output_dir,
        "max_prompt_chars": max_prompt_chars,
        "llm.model": model,
    }
    if raw_fallback:
        overrides["llm.raw_output_fallback"] = True
    cfg = _load(config_file, overrides)

    try:
        api_key = cfg.require_api_key()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(2)

    from diffgate.gemini_client import GeminiClient
    from diffgate.pipeline import ReviewPipeline, read_diff
    from diffgate.render import write_report

    raw_diff = read_diff(cfg.diff_file)

    with GeminiClient(api_key, settings=cfg.llm) as client:
        pipeline = ReviewPipeline(cfg, client)
        with console.status("Reviewing diff with Gemini..."):
            run = pipeline.run(raw_diff)

    report_path = write_report(run.report, output_dir=cfg.output_dir)
    logger.info(run.report)

    table = Table(title="Review Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Files In Diff", str(run.files_total))
    table.add_row("Files Reviewed", str(run.files_reviewed))
    table.add_row("Batches", str(run.batches_total))
    table.add_row("Failed Batches", str(run.batches_failed))
    table.add_row("Findings", str(len(run.findings)))
    console.print(table)

    if run.batches_failed:
        console.print(
            f"[yellow]{run.batches_failed} batch(es) failed; the report does not cover their files.[/yellow]"
        )
    console.print(f"[green]Report written to {report_path}[/green]")


# ---------------------------------------------------------------------------
# plan
# ---------------------------------------------------------------------------

@app.command()
def plan(
    diff: Optional[str] = typer.Option(None, "--diff", help="Path to the diff/patch file [default: diff.patch]"),
    max_prompt_chars: Optional[int] = typer.Option(None, "--max-prompt-chars", help="Character budget per prompt"),
    config_file: str = typer.Option(None, "--config", help="Path to config YAML"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Show how the diff would be filtered and batched, without calling Gemini."""
    _setup_logging(verbose)
    cfg = _load(config_file, {"diff_file": diff, "max_prompt_chars": max_prompt_chars})

    from diffgate.batcher import batch_size
    from diffgate.pipeline import plan_batches, read_diff

    raw_diff = read_diff(cfg.diff_file)
    if not raw_diff.strip():
        console.print("[yellow]No changes detected.[/yellow]")
        return

    files, batches = plan_batches(raw_diff, cfg)
    if not batches:
        console.print(f"[yellow]None of the {len(files)} changed file(s) pass the file filter.[/yellow]")
        return

    table = Table(title=f"Review Plan ({len(batches)} batch(es), limit {cfg.max_prompt_chars} chars)")
    table.add_column("Batch", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Chars", justify="right")
    table.add_column("Paths")
    for i, batch in enumerate(batches, 1):
        size = batch_size(batch)
        chars = f"[red]{size}[/red]" if size > cfg.max_prompt_chars else str(size)
        table.add_row(str(i), str(len(batch)), chars, ", ".join(f.path for f in batch))
    console.print(table)


if __name__ == "__main__":
    app()
