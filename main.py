import signal
import sys
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

import cache_service
import config
import logger_service
import scaffold_service
from retriever_service import Retriever

console = Console()
app = typer.Typer(help="Strike project generator.")


def install_interrupt_handler(store):
    """Empty the cache and exit 0 on SIGINT. A `set` racing the wipe may be lost."""
    def _handle(signum, frame):
        console.print("\n🧹 Cleaning up temporary cache...")
        removed = store.clear()
        logger_service.log_event("cache_wiped", message="Cache emptied on interrupt.", removed=removed)
        console.print("👋 Process terminated gracefully.")
        sys.exit(0)
    signal.signal(signal.SIGINT, _handle)
    return _handle


@app.callback()
def main(
    ctx: typer.Context,
    cache_dir: Path = typer.Option(config.CACHE_DIR, "--cache-dir", help="Directory holding cached snippets.", file_okay=False, dir_okay=True, resolve_path=True),
    log_level: str = typer.Option(config.LOG_LEVEL, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)."),
    log_json: bool = typer.Option(False, "--log-json", help="Emit logs in JSON format to stderr."),
):
    logger_service.init_logger(log_json=log_json, log_level=log_level)
    ctx.obj = cache_service.FileCacheStore(cache_dir)


@app.command()
def generate(
    ctx: typer.Context,
    description: Optional[str] = typer.Option(None, "--description", help="Free-text project description; falls back to STRIKE_DESCRIPTION, then a prompt."),
    framework: str = typer.Option(config.STRIKE_FRAMEWORK, "--framework", help=f"One of: {', '.join(scaffold_service.FRAMEWORKS)}."),
    output_dir: Path = typer.Option(".", "--output-dir", help="Where strike-project/ is created.", file_okay=False, dir_okay=True, resolve_path=True),
    timeout_ms: int = typer.Option(config.FETCH_TIMEOUT_MS, "--timeout-ms", min=1, help="Per-request deadline in milliseconds."),
    no_web: bool = typer.Option(False, "--no-web", help="Skip web snippet retrieval and write stubs."),
    skip_install: bool = typer.Option(False, "--skip-install", help="Write files only; do not run npm/pip."),
):
    """
    Generate a starter project for a framework from a description.
    """
    started = time.monotonic()
    store = ctx.obj
    install_interrupt_handler(store)
    description = description or config.STRIKE_DESCRIPTION
    if not description:
        description = typer.prompt("Describe your project")

    console.print("🚀 Strike Project Generator started...")
    logger_service.log_event("start", framework=framework, message=f"Generating {framework} project")
    if not skip_install and not scaffold_service.verify_environment():
        console.print("[red]❌ Node.js not found.[/red]")
        raise typer.Exit(code=1)

    project_dir = scaffold_service.prepare_project_dir(output_dir / "strike-project")
    structure = scaffold_service.parse_description(description)

    snippet = ""
    if not no_web:
        with console.status("[bold green]🌐 Fetching full code from web editors...[/bold green]"):
            snippet = Retriever(store, timeout_ms=timeout_ms).retrieve(description)
    written = scaffold_service.write_structure(project_dir, structure, snippet)
    logger_service.log_event("structure_written", files=len(written), snippet=bool(snippet))

    if not scaffold_service.setup_framework(framework, project_dir, install=not skip_install):
        console.print(f"[yellow]⚠️ Framework setup for {framework} did not complete.[/yellow]")

    duration = time.monotonic() - started
    console.print(f"✅ Project for {framework} created successfully in {duration:.2f}s!")
    console.print(f"📂 Location: [bold]{project_dir}[/bold]")
    logger_service.log_event("generate_complete", framework=framework, location=str(project_dir))


@app.command()
def snippet(
    ctx: typer.Context,
    description: str = typer.Argument(..., help="Free-text project description."),
    timeout_ms: int = typer.Option(config.FETCH_TIMEOUT_MS, "--timeout-ms", min=1, help="Per-request deadline in milliseconds."),
):
    """
    Print the code snippet retrieved for a description.
    """
    text = Retriever(ctx.obj, timeout_ms=timeout_ms).retrieve(description)
    if not text:
        console.print("[yellow]No usable code found.[/yellow]")
        return
    typer.echo(text)


@app.command("cache-list")
def cache_list(ctx: typer.Context):
    """
    List cached queries.
    """
    keys = ctx.obj.keys()
    if not keys:
        console.print("Cache is empty.")
        return
    for key in keys:
        query = cache_service.decode_key(key)
        typer.echo(query if query is not None else f"<{key}>")


@app.command("cache-clear")
def cache_clear(ctx: typer.Context):
    """
    Remove every cached snippet.
    """
    removed = ctx.obj.clear()
    console.print(f"🧹 Removed {removed} cached snippet(s).")


if __name__ == "__main__":
    app()
