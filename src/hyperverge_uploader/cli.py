"""Command-line interface for the Hyperverge uploader."""

import asyncio
import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from hyperverge_uploader import __version__
from hyperverge_uploader.api_client import ConnectionCheckError, HypervergeAPIClient
from hyperverge_uploader.config import (
    ConfigurationError,
    ExitCode,
    Settings,
    resolve_settings,
    validate_for_upload,
)
from hyperverge_uploader.models import Action, BatchResult
from hyperverge_uploader.sink import OutputWriteError, ResultSink
from hyperverge_uploader.uploader import DocumentUploader
from hyperverge_uploader.utils import DirectoryReadError, mask

app = typer.Typer(
    name="hyperverge-uploader",
    help="Send documents to the Hyperverge API and collect the results as JSON",
    add_completion=False,
)
# Standard output is reserved for the JSON result
console = Console(stderr=True)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging with Rich handler.

    Args:
        verbose: Enable verbose (DEBUG) logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def report_fatal(exit_code: ExitCode, message: str, cause: object = None) -> int:
    """Print the cause and a readable message, and return the exit code."""
    if cause is not None:
        logger.error(f"Exception details: {cause}")
    console.print(f"[red]{message}[/red]")
    return int(exit_code)


def log_settings(settings: Settings) -> None:
    summary = {
        "action": str(settings.action),
        "file": str(settings.file) if settings.file else None,
        "directory": str(settings.directory) if settings.directory else None,
        "output": str(settings.output) if settings.output else None,
        "appKey": mask(settings.app_key),
        "appId": mask(settings.app_id),
        "host": settings.host,
    }
    logger.info(f"Booting using configuration:\n{json.dumps(summary, indent=2)}")


def print_summary(batch: BatchResult) -> None:
    console.print("\n[bold]Upload Summary:[/bold]")
    console.print(f"  Total files: {batch.total}")
    console.print(f"  [green]Successful: {len(batch.results)}[/green]")
    console.print(f"  [red]Failed: {len(batch.errors)}[/red]")

    if batch.errors:
        console.print("\n[bold red]Failed uploads:[/bold red]")
        for outcome in batch.errors:
            console.print(f"  - {outcome.file}: {outcome.err}")


async def async_run(settings: Settings) -> int:
    """Async implementation of a run.

    Args:
        settings: Resolved, validated settings

    Returns:
        Exit code
    """
    action = settings.action

    try:
        async with HypervergeAPIClient(
            settings.host, settings.app_id, settings.app_key
        ) as api_client:
            if action is Action.TEST:
                body = await api_client.check_connection()
                logger.info(f"test: {body}")
                return ExitCode.OK

            uploader = DocumentUploader(api_client, sink=ResultSink(settings.output))

            if settings.file:
                outcome = await uploader.run_single(settings.file, action)
                if not outcome.succeeded:
                    return report_fatal(
                        ExitCode.OPERATION_FAILED, f"{action}: Failed to {action}", outcome.err
                    )
                return ExitCode.OK

            batch = await uploader.run_directory(settings.directory, action)
            print_summary(batch)
            return ExitCode.OK

    except ConnectionCheckError as e:
        return report_fatal(
            ExitCode.OPERATION_FAILED,
            f"test: Failed to connect to Hyperverge on host {settings.host}",
            e,
        )
    except DirectoryReadError as e:
        return report_fatal(
            ExitCode.DIRECTORY_READ_FAILED,
            f"{action}: Failed to read files from directory {settings.directory}",
            e,
        )
    except OutputWriteError as e:
        return report_fatal(
            ExitCode.OUTPUT_WRITE_FAILED,
            f"write: Failed to write result to {settings.output}",
            e,
        )


def version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.command()
def run(
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="JSON config file holding any of: action, directory, file, output, "
        "appKey, appId, host",
    ),
    action: str = typer.Option(
        None,
        "--action",
        "-a",
        help=f"The action to run. One of {[a.value for a in Action]} (default: test)",
    ),
    directory: Path = typer.Option(
        None,
        "--directory",
        "-d",
        help="Folder whose documents are uploaded recursively",
    ),
    file: Path = typer.Option(
        None,
        "--file",
        "-f",
        help="Single document to upload",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="File to append the JSON result to (default: standard output)",
    ),
    app_key: str = typer.Option(
        None,
        "--app-key",
        "-k",
        envvar="HYPERVERGE_APP_KEY",
        help="Hyperverge App Key (or set HYPERVERGE_APP_KEY env var)",
    ),
    app_id: str = typer.Option(
        None,
        "--app-id",
        "-i",
        envvar="HYPERVERGE_APP_ID",
        help="Hyperverge App ID (or set HYPERVERGE_APP_ID env var)",
    ),
    host: str = typer.Option(
        None,
        "--host",
        "-h",
        help="The Hyperverge host to use",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Run a Hyperverge action on a file or on every document in a directory.

    The "test" action only checks that the host answers. Every other action
    needs an App ID, an App Key and exactly one of --file or --directory.
    """
    setup_logging(verbose)

    try:
        settings = resolve_settings(
            {
                "action": action,
                "file": file,
                "directory": directory,
                "output": output,
                "app_id": app_id,
                "app_key": app_key,
                "host": host,
            },
            config,
        )
        log_settings(settings)
        if settings.action is not Action.TEST:
            validate_for_upload(settings)
    except ConfigurationError as e:
        raise typer.Exit(report_fatal(e.exit_code, e.message, e.__cause__))

    exit_code = asyncio.run(async_run(settings))
    raise typer.Exit(int(exit_code))


if __name__ == "__main__":
    app()
