"""
CLI entry point for content-council.

Commands:
    content-council run <workflow> <prompt>      - Run a content workflow
    content-council optimize <prompt> -k <kw>    - Run the quality pipeline
    content-council consult <role> <question>    - Ask one council member
    content-council status                       - Show council membership
    content-council doctor                       - Check provider health
    content-council config                       - Manage configuration
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from content_council.council import Council
    from content_council.protocol.types import PipelineRun, QualityRun

app = typer.Typer(
    name="content-council",
    help="Content Council - Role-based multi-LLM content pipelines",
    no_args_is_help=True,
)
console = Console()

T = TypeVar("T")

_STATUS_STYLES = {
    "completed": "green",
    "degraded": "yellow",
    "failed": "red",
    "running": "blue",
}


def _build_council(quality: bool = False, config_path: Path | None = None) -> Council:
    """Create a council from the environment and optional config file."""
    from content_council.config.settings import load_settings
    from content_council.council import Council
    from content_council.logging import setup_logging

    variant = "quality" if quality else "base"
    settings = load_settings(config_path, variant=variant)
    setup_logging(
        logging.WARNING,
        secrets=[entry.api_key for entry in settings.providers if entry.api_key],
    )
    return Council(settings, quality=quality)


def _with_council(
    quality: bool,
    config_path: Path | None,
    action: Callable[[Council], Awaitable[T]],
) -> T:
    """Run *action* against a started council and always shut it down."""
    council = _build_council(quality, config_path)

    async def runner() -> T:
        async with council:
            return await action(council)

    return asyncio.run(runner())


def _fail(error: Exception, output_json: bool) -> NoReturn:
    if output_json:
        print(json.dumps({"error": str(error)}))
    else:
        console.print(f"[red]Error:[/red] {error}")
    sys.exit(1)


def _print_run(run: PipelineRun | QualityRun, content: str | None, verbose: bool) -> None:
    status = run.status.value
    style = _STATUS_STYLES.get(status, "white")
    console.print(
        Panel(
            content or run.error or "No content produced",
            title=f"[{style}]Council Result: {status.upper()}[/{style}]",
            border_style=style,
        )
    )
    if run.error and content:
        console.print(f"[yellow]Note:[/yellow] {run.error}")

    if verbose and run.steps:
        table = Table(title="Pipeline Steps")
        table.add_column("#", justify="right")
        table.add_column("Role", style="cyan")
        table.add_column("Provider")
        table.add_column("Characters", justify="right")
        for step in run.steps:
            table.add_row(
                str(step.step_index), step.role, step.provider_id, str(len(step.output_content))
            )
        console.print(table)

    if verbose:
        console.print(f"  Duration: {run.metadata.get('execution_time_ms', '-')}ms")


def _config_option() -> Any:
    return typer.Option(None, "--config", "-c", help="Path to a config file")


@app.command()
def run(
    workflow: str = typer.Argument(..., help="Workflow name (full, create, review, optimize)"),
    prompt: str = typer.Argument(..., help="Content request"),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", help="Deadline in seconds for the whole run"
    ),
    config_path: Path | None = _config_option(),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
) -> None:
    """Run a content workflow."""
    if not output_json:
        console.print(f"[bold blue]Council[/bold blue] Running {workflow} workflow...")

    try:
        result = _with_council(
            False, config_path, lambda council: council.run(prompt, workflow, timeout=timeout)
        )
    except Exception as e:
        _fail(e, output_json)

    if output_json:
        print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        _print_run(result, result.final_content, verbose)

    if result.status.value == "failed":
        sys.exit(1)


@app.command()
def optimize(
    prompt: str = typer.Argument(..., help="Content topic or brief"),
    keyword: str = typer.Option(..., "--keyword", "-k", help="Target SEO keyword"),
    content_type: str = typer.Option("article", "--type", help="article or blog"),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", help="Deadline in seconds for the whole run"
    ),
    config_path: Path | None = _config_option(),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
) -> None:
    """Create scored, SEO-structured content with the quality council."""
    if not output_json:
        console.print(f"[bold blue]Council[/bold blue] Optimizing content for '{keyword}'...")

    try:
        result = _with_council(
            True,
            config_path,
            lambda council: council.optimize(prompt, keyword, content_type, timeout=timeout),
        )
    except Exception as e:
        _fail(e, output_json)

    if output_json:
        print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        _print_run(result, result.content.body, verbose)
        if result.score is not None:
            table = Table(title="Quality Score")
            table.add_column("Metric", style="cyan")
            table.add_column("Score", justify="right")
            score = result.score
            for label, value in (
                ("Expertise", score.expertise),
                ("Experience", score.experience),
                ("Authoritativeness", score.authoritativeness),
                ("Trustworthiness", score.trustworthiness),
                ("E-E-A-T overall", score.overall_qualitative),
                ("SEO", score.seo_score),
                ("Combined", score.combined_score),
            ):
                table.add_row(label, str(value))
            console.print(table)
        if verbose and result.seo_analysis and result.seo_analysis.recommendations:
            console.print("\n[bold]Recommendations:[/bold]")
            for recommendation in result.seo_analysis.recommendations:
                console.print(f"  - {recommendation}")

    if result.status.value == "failed":
        sys.exit(1)


@app.command()
def consult(
    role: str = typer.Argument(..., help="Role to ask (creator, reviewer, ...)"),
    question: str = typer.Argument(..., help="Question for the member"),
    config_path: Path | None = _config_option(),
) -> None:
    """Ask the member holding a role directly."""
    try:
        answer = _with_council(False, config_path, lambda council: council.consult(role, question))
    except Exception as e:
        _fail(e, False)
    console.print(Panel(answer, title=f"[cyan]{role}[/cyan]", border_style="cyan"))


@app.command()
def status(
    detailed: bool = typer.Option(False, "--detailed", "-d", help="Include health and errors"),
    quality: bool = typer.Option(False, "--quality", help="Use the quality council"),
    config_path: Path | None = _config_option(),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Initialize the council and show its membership."""

    async def snapshot(council: Council) -> Any:
        return council.detailed_status() if detailed else council.status()

    try:
        result = _with_council(quality, config_path, snapshot)
    except Exception as e:
        _fail(e, output_json)

    if output_json:
        print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    console.print(
        f"[bold blue]Council[/bold blue] {result.state.value} "
        f"({result.total_members} member(s))\n"
    )
    table = Table(title="Council Members")
    table.add_column("Provider", style="cyan")
    table.add_column("Role")
    table.add_column("Title")
    if detailed:
        table.add_column("Health")
    for identifier, member in result.members.items():
        row = [member.display_name or identifier, member.role or "-", member.title or "-"]
        if detailed:
            row.append(result.health.get(identifier, {}).get("status", "-"))
        table.add_row(*row)
    console.print(table)

    if detailed:
        console.print(f"\nOverall health: {result.overall_health}%")
        attempt = result.initialization
        if attempt is not None and attempt.errors:
            console.print("\n[bold]Initialization errors:[/bold]")
            for error in attempt.errors:
                console.print(
                    f"  [red]{error.provider_id}[/red] ({error.error_type}): {error.message}"
                )


@app.command()
def doctor(config_path: Path | None = _config_option()) -> None:
    """Check provider health."""
    console.print("[bold blue]Council Doctor[/bold blue] Checking providers...\n")

    try:
        records = _with_council(False, config_path, lambda council: council.doctor())
    except Exception as e:
        _fail(e, False)

    table = Table(title="Provider Status")
    table.add_column("Provider", style="cyan")
    table.add_column("Status")
    table.add_column("Message")
    table.add_column("Latency")

    for name, record in records.items():
        ok = record.is_healthy()
        table.add_row(
            name,
            "[green]OK[/green]" if ok else "[red]FAIL[/red]",
            record.last_error or "-",
            f"{record.latency_ms:.0f}ms" if record.latency_ms else "-",
        )

    console.print(table)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    init: bool = typer.Option(False, "--init", help="Initialize default configuration"),
) -> None:
    """Manage content-council configuration."""
    from content_council.config.settings import DEFAULT_CONFIG_TEMPLATE, get_config_file

    config_file = get_config_file()

    if show:
        if config_file.exists():
            console.print(config_file.read_text(encoding="utf-8"))
        else:
            console.print("[yellow]No configuration file found.[/yellow]")
            console.print(f"Run 'content-council config --init' to create one at {config_file}")
        return

    if init:
        if config_file.exists():
            console.print(f"[yellow]Configuration already exists at {config_file}[/yellow]")
            return
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
        console.print(f"[green]Created configuration at {config_file}[/green]")
        return

    console.print("Usage: content-council config [--show | --init]")


@app.command()
def version() -> None:
    """Show version information."""
    from content_council import __version__

    console.print(f"content-council v{__version__}")


if __name__ == "__main__":
    app()
