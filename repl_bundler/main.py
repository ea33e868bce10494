"""repl-bundler CLI - resolve registry packages and bundle playground sources."""

import asyncio
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
import httpx
from pydantic import ValidationError
from rich.table import Table

from .console import console
from .errors import BundlerError
from .events import BundlerEvent
from .events import EventBus
from .events import StatusEvent
from .fetch_cache import FetchCache
from .generation import GenerationGuard
from .logging_setup import init_json_logging
from .models import BundleRequest
from .models import BundleResult
from .models import SourceDocument
from .models import SourceKind
from .resolution.manifest import ManifestResolver
from .resolution.packages import PackageResolver
from .resolution.specifiers import parse_package_specifier
from .settings import BundlerSettings
from .settings import load_settings
from .worker import create_worker

logger = logging.getLogger(__name__)

CLI_UID = 1


def create_http_client() -> httpx.AsyncClient:
    """HTTP client used by CLI commands."""
    return httpx.AsyncClient(follow_redirects=True, timeout=30.0)


def load_object(reference: str) -> Any:
    """Import `module:attribute`; instantiate it if it is a class.

    Args:
        reference: e.g. "my_engine:RollupEngine"

    Raises:
        click.BadParameter: Malformed reference or import failure
    """
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise click.BadParameter(f"Expected 'module:attribute', got '{reference}'")

    try:
        target = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"Cannot load '{reference}': {e}") from e

    if isinstance(target, type):
        return target()
    return target


def read_documents(directory: Path) -> list[SourceDocument]:
    """Source documents for every recognised file directly inside `directory`."""
    kinds = {f".{kind.value}": kind for kind in SourceKind}
    documents = []
    for path in sorted(directory.iterdir()):
        if path.is_file() and path.suffix in kinds:
            documents.append(
                SourceDocument(name=path.stem, type=kinds[path.suffix], source=path.read_text(encoding="utf-8"))
            )
    return documents


def _load_settings_or_exit(config: Path | None, **overrides: Any) -> BundlerSettings:
    try:
        settings = load_settings(config, **overrides)
    except ValidationError as e:
        console.print("[red]Invalid settings:[/red]")
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"  [yellow]{field}[/yellow]: {error['msg']}")
        console.print("\n[dim]Set them in .repl-bundler/settings.yaml, REPL_BUNDLER_* variables or options[/dim]")
        sys.exit(2)

    # --log-level on the command line wins over the settings file.
    log_level = click.get_current_context().find_root().params.get("log_level")
    init_json_logging(settings.log_path, log_level or settings.log_level)
    return settings


async def resolve_specifier(settings: BundlerSettings, specifier: str) -> str:
    guard = GenerationGuard()
    guard.begin(CLI_UID)
    async with create_http_client() as client:
        fetch_cache = FetchCache(guard, client=client, debounce=0)
        packages = PackageResolver(fetch_cache, ManifestResolver(fetch_cache), settings.packages_url)
        package_name, subpath = parse_package_specifier(specifier)
        return await packages.resolve(specifier, package_name, subpath, CLI_UID)


async def run_bundle(
    settings: BundlerSettings, engine: Any, compiler: Any, documents: list[SourceDocument], events: EventBus
) -> BundleResult | None:
    async with create_http_client() as client:
        worker = create_worker(settings, engine, compiler, client=client, events=events)
        task = worker.submit(BundleRequest(uid=CLI_UID, components=documents))
        if task is None:
            return None
        return await task


@click.group()
@click.option("--log-level", default=None, help="Log level for the JSONL log (default: INFO)")
def main(log_level: str | None):
    """Resolve and bundle Svelte playground sources."""
    init_json_logging(level=log_level)


@main.command("resolve")
@click.argument("specifier")
@click.option("--config", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Settings YAML file")
@click.option("--packages-url", default=None, help="Package registry base URL")
@click.option("--svelte-url", default=None, help="Svelte runtime base URL")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def resolve_cmd(specifier: str, config: Path | None, packages_url: str | None, svelte_url: str | None, output_json: bool):
    """Resolve a bare package SPECIFIER to a module URL.

    Example:

        repl-bundler resolve svelte-motion/easing --packages-url https://unpkg.com
    """
    settings = _load_settings_or_exit(config, packages_url=packages_url, svelte_url=svelte_url)

    try:
        url = asyncio.run(resolve_specifier(settings, specifier))
    except BundlerError as e:
        if output_json:
            print(json.dumps({"specifier": specifier, "error": e.message, **e.details()}, indent=2))
        else:
            console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    if output_json:
        print(json.dumps({"specifier": specifier, "url": url}, indent=2))
        return

    console.print(f"[cyan]{specifier}[/cyan] -> {url}")


@main.command("bundle")
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--engine", "engine_ref", required=True, help="Bundling engine, as module:attribute")
@click.option("--compiler", "compiler_ref", required=True, help="Component compiler, as module:attribute")
@click.option("--config", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Settings YAML file")
@click.option("--packages-url", default=None, help="Package registry base URL")
@click.option("--svelte-url", default=None, help="Svelte runtime base URL")
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), help="Write the generated code here")
@click.option("--json", "output_json", is_flag=True, help="Output the full result as JSON")
def bundle_cmd(
    directory: Path,
    engine_ref: str,
    compiler_ref: str,
    config: Path | None,
    packages_url: str | None,
    svelte_url: str | None,
    out: Path | None,
    output_json: bool,
):
    """Bundle the playground sources in DIRECTORY (App.svelte is the entry)."""
    settings = _load_settings_or_exit(config, packages_url=packages_url, svelte_url=svelte_url)
    engine = load_object(engine_ref)
    compiler = load_object(compiler_ref)

    documents = read_documents(directory)
    if not documents:
        console.print(f"[yellow]No source documents found in {directory}[/yellow]")
        sys.exit(1)

    events = EventBus()
    if not output_json:

        def show_status(event: BundlerEvent) -> None:
            if isinstance(event, StatusEvent):
                console.print(f"[dim]{event.message}[/dim]")

        events.subscribe(show_status)

    result = asyncio.run(run_bundle(settings, engine, compiler, documents, events))
    if result is None:
        console.print("[red]Bundle was not produced[/red]")
        sys.exit(1)

    if out is not None and result.dom is not None:
        out.write_text(result.dom.code, encoding="utf-8")

    if output_json:
        print(result.model_dump_json(indent=2))
    else:
        _print_result(result, out)

    if result.error is not None:
        sys.exit(1)


def _print_result(result: BundleResult, out: Path | None) -> None:
    if result.error is not None:
        console.print(f"\n[red]Bundle failed:[/red] {result.error.message}")
        for key, value in result.error.details.items():
            console.print(f"  [dim]{key}:[/dim] {value}")
    else:
        size = len(result.dom.code) if result.dom else 0
        target = f" -> {out}" if out else ""
        console.print(f"\n[green]✓[/green] Bundled {size} characters{target}")

    if result.imports:
        table = Table(title="Packages")
        table.add_column("Name", style="cyan")
        for name in result.imports:
            table.add_row(name)
        console.print(table)

    if result.warnings or result.bundler_warnings:
        table = Table(title="Warnings")
        table.add_column("Source", style="yellow")
        table.add_column("Message")
        for warning in result.warnings:
            location = warning.filename or ""
            if warning.start:
                location += f":{warning.start.get('line', '?')}:{warning.start.get('column', '?')}"
            table.add_row(location or "compiler", warning.message)
        for warning in result.bundler_warnings:
            table.add_row("bundler", warning.message)
        console.print(table)


if __name__ == "__main__":
    main()
