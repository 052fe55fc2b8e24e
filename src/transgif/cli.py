"""transgif CLI entry point.

Renders each requested Marp transition in headless Chromium, records it with
a CDP screencast, and writes one looping GIF per transition into the output
directory. Failed transitions are reported in the summary panel without
stopping the rest of the batch.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn

from transgif.driver import RunReport, VariantResult, run_all
from transgif.errors import TransGifError
from transgif.settings import DEFAULT_TRANSITIONS, RenderSettings, load_settings, make_variants

app = typer.Typer(
    name="transgif",
    help="Render slide transition effects into looping animated GIFs.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=False)],
        force=True,
    )
    logging.getLogger("transgif").setLevel(logging.DEBUG if verbose else logging.INFO)


def _input_error(message: str) -> None:
    err_console.print(Panel(message, title="[red]Input Error[/red]", border_style="red"))
    raise typer.Exit(1)


def _summary_panel(report: RunReport, out_dir: Path) -> Panel:
    lines = [f"  Output dir: [dim]{out_dir}[/dim]", f"  Rendered:   {len(report.succeeded)}/{len(report.results)}"]
    for result in report.failed:
        reason = str(result.error).splitlines()[0]
        lines.append(f"  [red]✗[/red] {result.name}: {reason}")
    if report.ok:
        return Panel(
            "[bold green]All transitions rendered[/bold green]\n\n" + "\n".join(lines),
            title="[green]Done[/green]",
            border_style="green",
        )
    return Panel(
        f"[bold red]{len(report.failed)} transition(s) failed[/bold red]\n\n" + "\n".join(lines),
        title="[red]Finished with errors[/red]",
        border_style="red",
    )


@app.command()
def main(
    variants: Annotated[
        Optional[list[str]],
        typer.Argument(help="Transition names to render (default: all built-in transitions)."),
    ] = None,
    out_dir: Annotated[
        Path,
        typer.Option("--out-dir", "-o", resolve_path=True, help="Directory for the generated GIFs."),
    ] = Path("out"),
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config", "-c",
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
            envvar="TRANSGIF_CONFIG",
            help="JSON file with render settings. Command-line options override it.",
        ),
    ] = None,
    fps: Annotated[
        Optional[int],
        typer.Option("--fps", envvar="TRANSGIF_FPS", help="Output frame rate (default: 25)."),
    ] = None,
    width: Annotated[
        Optional[int],
        typer.Option("--width", envvar="TRANSGIF_WIDTH", help="Output width in pixels (default: 256)."),
    ] = None,
    height: Annotated[
        Optional[int],
        typer.Option("--height", envvar="TRANSGIF_HEIGHT", help="Output height in pixels (default: 144)."),
    ] = None,
    duration: Annotated[
        Optional[float],
        typer.Option("--duration", envvar="TRANSGIF_DURATION", help="Transition duration in seconds (default: 0.5)."),
    ] = None,
    wait: Annotated[
        Optional[float],
        typer.Option("--wait", envvar="TRANSGIF_WAIT", help="Hold time after each transition in seconds (default: 0.75)."),
    ] = None,
    ffmpeg: Annotated[
        Optional[str],
        typer.Option("--ffmpeg", envvar="TRANSGIF_FFMPEG", help="FFmpeg executable (default: ffmpeg)."),
    ] = None,
    list_transitions: Annotated[
        bool,
        typer.Option("--list", help="List built-in transition names and exit."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Show debug logging, including every subprocess command."),
    ] = False,
) -> None:
    """Capture transitions and encode them as GIF animations."""
    if list_transitions:
        for name in DEFAULT_TRANSITIONS:
            console.print(name)
        raise typer.Exit(0)

    _configure_logging(verbose)

    # --- Settings: defaults <- config file <- command line ---
    try:
        base = load_settings(config) if config is not None else RenderSettings()
    except TransGifError as e:
        err_console.print(Panel(str(e), title="[red]Config Error[/red]", border_style="red"))
        raise typer.Exit(1)

    overrides = {
        key: value
        for key, value in {
            "fps": fps,
            "width": width,
            "height": height,
            "duration_seconds": duration,
            "wait_seconds": wait,
            "ffmpeg": ffmpeg,
        }.items()
        if value is not None
    }
    try:
        settings = RenderSettings.model_validate({**base.model_dump(), **overrides})
    except ValidationError as e:
        field_errors = "\n".join(
            f"{' -> '.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        _input_error(f"Invalid settings:\n{field_errors}")

    # --- Variant validation ---
    names = [n.strip().lower() for n in variants] if variants else list(DEFAULT_TRANSITIONS)
    unknown = [n for n in names if n not in DEFAULT_TRANSITIONS]
    if unknown:
        _input_error(
            f"Unknown transition(s): [bold]{', '.join(unknown)}[/bold]\n"
            f"Run with --list to see the valid names."
        )
    selected = make_variants(list(dict.fromkeys(names)), settings)

    console.print(
        f"\n[bold cyan]transgif[/bold cyan] — {len(selected)} transition(s) "
        f"at {settings.fps} fps, {settings.width}x{settings.height}\n"
    )

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Starting browser...", total=len(selected))

            def _on_event(name: str, result: VariantResult | None) -> None:
                if result is None:
                    progress.update(task, description=f"Rendering [bold]{name}[/bold]...")
                    return
                progress.advance(task)
                if result.ok:
                    progress.console.print(f"[green]✓[/green] {name} -> [dim]{result.output_path}[/dim]")
                else:
                    progress.console.print(f"[red]✗[/red] {name}")

            report = run_all(selected, settings, out_dir, on_event=_on_event)
    except TransGifError as e:
        # ResourceError ends the run; never show tracebacks
        err_console.print(Panel(str(e), title="[red]Run Aborted[/red]", border_style="red"))
        raise typer.Exit(1)

    console.print(_summary_panel(report, out_dir))
    if not report.ok:
        raise typer.Exit(1)
