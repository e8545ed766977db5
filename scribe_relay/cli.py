"""Command-line front end: run the relay, submit encounters, render saved results."""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import httpx
import typer
from rich.console import Console
from rich.markup import escape

from scribe_relay.core.config import Settings, get_settings
from scribe_relay.core.errors import ErrorKind, SubmissionError
from scribe_relay.core.logging_config import configure_logging
from scribe_relay.services.input_normalizer import InputNormalizer
from scribe_relay.services.result_renderer import ResultRenderer
from scribe_relay.services.submission_controller import SubmissionController, SubmissionOutcome
from scribe_relay.ui.display import ConsoleDisplay, ERROR_PANEL, RESULTS_PANEL

app = typer.Typer(help="Clinical transcript relay")
console = Console()
err_console = Console(stderr=True)

EXIT_FAILED = 1
EXIT_VALIDATION = 2


@app.callback()
def _cli_entry(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
) -> None:
    configure_logging(log_level or get_settings().LOG_LEVEL)


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default HOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (default PORT)"),
    reload: Optional[bool] = typer.Option(None, "--reload/--no-reload", help="Auto-reload on code changes"),
) -> None:
    """Run the relay server."""
    from scribe_relay.main import run

    run(host=host, port=port, reload=reload)


def _load_input(
    normalizer: InputNormalizer,
    text: Optional[str],
    text_file: Optional[Path],
    audio: Optional[Path],
) -> None:
    chosen = [option for option in (text, text_file, audio) if option is not None]
    if len(chosen) > 1:
        raise typer.BadParameter("Use only one of --text, --text-file or --audio.")
    if text is not None:
        normalizer.enter_text(text)
    elif text_file is not None:
        normalizer.enter_text(text_file.read_text(encoding="utf-8"))
    elif audio is not None:
        normalizer.select_path(audio)


async def _run_submission(
    normalizer: InputNormalizer,
    display: ConsoleDisplay,
    settings: Settings,
) -> SubmissionOutcome:
    async with httpx.AsyncClient(timeout=httpx.Timeout(settings.CLIENT_TIMEOUT_SECONDS)) as client:
        controller = SubmissionController(normalizer, display, client, settings=settings)
        return await controller.submit()


@app.command("submit")
def submit(
    text: Optional[str] = typer.Option(None, "--text", help="Transcript text"),
    text_file: Optional[Path] = typer.Option(None, "--text-file", exists=True, dir_okay=False, help="Transcript file"),
    audio: Optional[Path] = typer.Option(None, "--audio", exists=True, dir_okay=False, help="MP3, WAV or M4A recording"),
    relay_url: Optional[str] = typer.Option(None, "--relay-url", help="Relay base URL (default RELAY_URL)"),
    json_output: bool = typer.Option(False, "--json", help="Print the raw result document"),
    collapse: List[str] = typer.Option([], "--collapse", help="Section to show collapsed; repeatable"),
) -> None:
    """Submit a transcript or audio file through the relay and show the result."""
    settings = get_settings()
    if relay_url:
        settings = settings.model_copy(update={"RELAY_URL": relay_url})

    display = ConsoleDisplay(err_console if json_output else console, collapsed=collapse)
    normalizer = InputNormalizer(max_audio_bytes=settings.MAX_AUDIO_BYTES)
    try:
        _load_input(normalizer, text, text_file, audio)
    except SubmissionError as e:
        display.show_error(e.signal)
        display.scroll_into_view(ERROR_PANEL)
        raise typer.Exit(EXIT_VALIDATION)

    outcome = asyncio.run(_run_submission(normalizer, display, settings))
    if outcome.error is not None and outcome.error.kind is ErrorKind.VALIDATION:
        display.scroll_into_view(ERROR_PANEL)
        raise typer.Exit(EXIT_VALIDATION)
    if json_output and outcome.result is not None:
        typer.echo(json.dumps(outcome.result, indent=2, ensure_ascii=False))
    if not outcome.ok:
        raise typer.Exit(EXIT_FAILED)


@app.command("render")
def render(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Saved result document (JSON)"),
    collapse: List[str] = typer.Option([], "--collapse", help="Section to show collapsed; repeatable"),
) -> None:
    """Render a saved result document without contacting the relay."""
    display = ConsoleDisplay(console, collapsed=collapse)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        err_console.print(f"[red]Could not parse {escape(str(path))}: {escape(str(e))}[/red]")
        raise typer.Exit(EXIT_FAILED)

    sections = ResultRenderer().render(document, display)
    if sections is None:
        display.scroll_into_view(ERROR_PANEL)
        raise typer.Exit(EXIT_FAILED)
    display.scroll_into_view(RESULTS_PANEL)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
