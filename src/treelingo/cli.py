"""CLI application with Typer."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from typing_extensions import Annotated

from treelingo import __version__
from treelingo.config import TreeLingoConfig, load_config
from treelingo.config_manager import get_config_items, validate_config
from treelingo.core.collector import FieldCollector
from treelingo.core.fields import merge_array_field_keys, merge_field_keys
from treelingo.core.media import merge_media_field_keys
from treelingo.core.references import ReferenceResolver
from treelingo.core.service import TranslationService
from treelingo.core.translator import DocumentTranslator, TranslationResult
from treelingo.exceptions import TreeLingoException, ValidationError
from treelingo.providers.factory import create_provider
from treelingo.store.base import DocumentStore
from treelingo.store.memory import MemoryStore, dump_tree, load_tree
from treelingo.store.sanity import SanityStore
from treelingo.utils.logger import TreeLingoLogger

app = typer.Typer(
    name="treelingo",
    help="Translate structured content documents while preserving their structure.",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()

T = TypeVar("T")

VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
]
ProviderOption = Annotated[
    Optional[str],
    typer.Option(
        "--provider",
        help="Translation provider (deepl, openai). Uses TREELINGO_PROVIDER if not specified.",
    ),
]
StoreFileOption = Annotated[
    Optional[str],
    typer.Option(
        "--store-file",
        help="JSON/YAML file of documents to use instead of the Sanity store",
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]TreeLingo[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """
    TreeLingo - translate structured content trees.

    Run 'treelingo COMMAND --help' for more information on a command.
    """
    pass


def _setup(verbose: bool) -> tuple[TreeLingoConfig, logging.Logger]:
    """Load configuration and set up logging: verbose flag > config level."""
    config = load_config()
    log_level = "DEBUG" if verbose else config.log_level
    logger = TreeLingoLogger.get_logger(
        level=log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )
    return config, logger


def _run(description: str, coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine behind a spinner."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task(description=description, total=None)
        return asyncio.run(coro)


def _load_document(input_file: str) -> dict[str, Any]:
    input_path = Path(input_file)
    if not input_path.exists():
        console.print(f"[red]✗ Error:[/red] Input file not found: {input_path}")
        sys.exit(2)

    document = load_tree(input_path)
    if not isinstance(document, dict):
        raise ValidationError(f"{input_path} must contain a single document object")
    return document


def _open_store(config: TreeLingoConfig, store_file: Optional[str]) -> DocumentStore:
    if store_file:
        path = Path(store_file)
        if not path.exists():
            console.print(f"[red]✗ Error:[/red] Store file not found: {path}")
            sys.exit(2)
        return MemoryStore.from_file(path)
    return SanityStore(config)


def _build_service(
    config: TreeLingoConfig,
    store: DocumentStore,
    provider: Optional[str] = None,
) -> TranslationService:
    translator = DocumentTranslator.from_config(config, create_provider(config, provider))
    resolver = ReferenceResolver(store, concurrency=config.reference_concurrency)
    media_keys = merge_media_field_keys(config.custom_media_field_keys)
    return TranslationService(store, translator, resolver, media_keys=media_keys)


def _print_summary(result: TranslationResult, title: str) -> None:
    """Print the statistics of a translation run."""
    stats = result.stats
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Fields", str(stats.fields))
    table.add_row("Rich-text blocks", str(stats.blocks))
    table.add_row("Array fields", str(stats.array_fields))
    table.add_row("Provider requests", str(stats.batches))
    table.add_row("Failed requests", str(stats.failed_batches))
    table.add_row("Untranslated", str(stats.untranslated))
    table.add_row("References resolved", str(stats.references_resolved))
    console.print(table)


def _save_store(store: DocumentStore) -> None:
    if isinstance(store, MemoryStore):
        store.save()


@app.command()
def translate(
    input_file: Annotated[
        str,
        typer.Option(
            "--input",
            "-i",
            help="Source document (JSON or YAML)",
        ),
    ],
    output_file: Annotated[
        str,
        typer.Option(
            "--output",
            "-o",
            help="Destination file; format follows the suffix",
        ),
    ],
    lang: Annotated[
        str,
        typer.Option(
            "--lang",
            help="Target language code (e.g., de, fr, pt)",
        ),
    ],
    provider: ProviderOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Translate a document file while preserving its structure.

    Example:
        treelingo translate -i page.json -o page.de.json --lang de
    """
    logger = logging.getLogger("treelingo")
    try:
        config, logger = _setup(verbose)
        document = _load_document(input_file)
        output_path = Path(output_file)

        translator = DocumentTranslator.from_config(config, create_provider(config, provider))
        result = _run(f"Translating to {lang}...", translator.translate(document, lang))

        dump_tree(result.document, output_path)
        _print_summary(result, f"Translation to {lang}")
        console.print(f"[green]✓[/green] Translation saved to: [cyan]{output_path}[/cyan]")

    except TreeLingoException as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        sys.exit(e.exit_code)
    except Exception as e:
        console.print(f"[red]✗ Unexpected error:[/red] {e}")
        logger.exception("Unexpected error during translation")
        sys.exit(1)


@app.command()
def inspect(
    input_file: Annotated[
        str,
        typer.Option(
            "--input",
            "-i",
            help="Document to inspect (JSON or YAML)",
        ),
    ],
    verbose: VerboseOption = False,
) -> None:
    """
    Show what would be translated, without calling a provider.

    Example:
        treelingo inspect -i page.json
    """
    try:
        config, _ = _setup(verbose)
        document = _load_document(input_file)

        collector = FieldCollector(
            merge_field_keys(config.custom_field_keys, config.exclude_field_keys),
            merge_array_field_keys(config.custom_array_field_keys, config.exclude_array_field_keys),
        )
        collected = collector.collect(document)

        table = Table(title="Translatable fields", show_header=True, header_style="bold magenta")
        table.add_column("Path", style="cyan")
        table.add_column("Text", style="green")
        table.add_column("Context", style="dim")
        table.add_column("Markup", style="yellow")
        for item in collected.fields:
            location = collected.blocks.get(item.path)
            path = f"{location.array_path}.{location.block_index}" if location else item.path
            table.add_row(path, item.value, item.context or "", "yes" if item.is_markup else "")
        console.print(table)

        if collected.array_fields:
            arrays = Table(title="Array fields", show_header=True, header_style="bold magenta")
            arrays.add_column("Path", style="cyan")
            arrays.add_column("Values", style="green")
            for array_field in collected.array_fields:
                arrays.add_row(array_field.path, ", ".join(array_field.value))
            console.print(arrays)

        console.print(
            f"{len(collected.fields)} fields ({len(collected.blocks)} rich-text blocks), "
            f"{len(collected.array_fields)} array fields"
        )

    except TreeLingoException as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        sys.exit(e.exit_code)


@app.command("translate-document")
def translate_document(
    doc_id: Annotated[str, typer.Argument(help="Id of the document to translate")],
    store_file: StoreFileOption = None,
    provider: ProviderOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Translate a stored document into its own language and save it.

    Example:
        treelingo translate-document drafts.page-de --store-file docs.json
    """
    logger = logging.getLogger("treelingo")
    try:
        config, logger = _setup(verbose)
        store = _open_store(config, store_file)
        service = _build_service(config, store, provider)

        result = _run(f"Translating {doc_id}...", service.translate_document(doc_id))
        if not result.is_translated:
            console.print(f"[red]✗ Error:[/red] {result.message}")
            sys.exit(2)

        _save_store(store)
        _print_summary(result, f"Translation of {doc_id}")
        console.print(f"[green]✓[/green] {result.message}: [cyan]{doc_id}[/cyan]")

    except TreeLingoException as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        sys.exit(e.exit_code)
    except Exception as e:
        console.print(f"[red]✗ Unexpected error:[/red] {e}")
        logger.exception("Unexpected error during document translation")
        sys.exit(1)


@app.command("fix-references")
def fix_references(
    doc_id: Annotated[str, typer.Argument(help="Id of the document to fix")],
    store_file: StoreFileOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Point a document's references at the versions in its language.

    Example:
        treelingo fix-references page-de --store-file docs.json
    """
    logger = logging.getLogger("treelingo")
    try:
        config, logger = _setup(verbose)
        store = _open_store(config, store_file)
        resolver = ReferenceResolver(store, concurrency=config.reference_concurrency)
        # No provider needed: references only
        service = TranslationService(store, translator=None, resolver=resolver)

        result = _run(f"Fixing references of {doc_id}...", service.fix_references(doc_id))
        if result.document is None:
            console.print(f"[red]✗ Error:[/red] {result.message}")
            sys.exit(2)

        _save_store(store)
        console.print(f"[green]✓[/green] {result.message}: [cyan]{doc_id}[/cyan]")

    except TreeLingoException as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        sys.exit(e.exit_code)
    except Exception as e:
        console.print(f"[red]✗ Unexpected error:[/red] {e}")
        logger.exception("Unexpected error while fixing references")
        sys.exit(1)


@app.command("sync-documents")
def sync_documents(
    doc_id: Annotated[str, typer.Argument(help="Id of the source document")],
    store_file: StoreFileOption = None,
    provider: ProviderOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Translate a source document into all of its other language versions.

    Example:
        treelingo sync-documents page-en --store-file docs.json
    """
    logger = logging.getLogger("treelingo")
    try:
        config, logger = _setup(verbose)
        store = _open_store(config, store_file)
        service = _build_service(config, store, provider)

        results = _run(f"Syncing {doc_id}...", service.sync_documents(doc_id))
        _save_store(store)

        table = Table(title=f"Sync of {doc_id}", show_header=True, header_style="bold magenta")
        table.add_column("Document", style="cyan")
        table.add_column("Status", style="green")
        table.add_column("Untranslated", justify="right")
        for sibling_id, result in results.items():
            status = "[green]synced[/green]" if result.is_translated else f"[red]{result.message}[/red]"
            table.add_row(sibling_id, status, str(result.stats.untranslated))
        console.print(table)

        failed = [sibling_id for sibling_id, result in results.items() if not result.is_translated]
        if failed:
            console.print(f"[yellow]![/yellow] {len(failed)} of {len(results)} documents failed")
            sys.exit(1)
        console.print(f"[green]✓[/green] Synced {len(results)} documents")

    except TreeLingoException as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        sys.exit(e.exit_code)
    except Exception as e:
        console.print(f"[red]✗ Unexpected error:[/red] {e}")
        logger.exception("Unexpected error during sync")
        sys.exit(1)


@app.command("sync-media")
def sync_media(
    doc_id: Annotated[str, typer.Argument(help="Id of the source document")],
    store_file: StoreFileOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Copy a source document's images and icons to its other language versions.

    Example:
        treelingo sync-media page-en --store-file docs.json
    """
    logger = logging.getLogger("treelingo")
    try:
        config, logger = _setup(verbose)
        store = _open_store(config, store_file)
        # No provider needed: media is not translated
        service = TranslationService(
            store,
            translator=None,
            media_keys=merge_media_field_keys(config.custom_media_field_keys),
        )

        results = _run(f"Syncing media of {doc_id}...", service.sync_media(doc_id))
        _save_store(store)

        table = Table(title=f"Media sync of {doc_id}", show_header=True, header_style="bold magenta")
        table.add_column("Document", style="cyan")
        table.add_column("Status", style="green")
        for sibling_id, result in results.items():
            status = result.message if result.document is not None else f"[red]{result.message}[/red]"
            table.add_row(sibling_id, status)
        console.print(table)

        failed = [sibling_id for sibling_id, result in results.items() if result.document is None]
        if failed:
            console.print(f"[yellow]![/yellow] {len(failed)} of {len(results)} documents failed")
            sys.exit(1)
        copied = sum(result.stats.media_copied for result in results.values())
        console.print(f"[green]✓[/green] Copied {copied} media fields to {len(results)} documents")

    except TreeLingoException as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        sys.exit(e.exit_code)
    except Exception as e:
        console.print(f"[red]✗ Unexpected error:[/red] {e}")
        logger.exception("Unexpected error during media sync")
        sys.exit(1)


@app.command()
def config(
    show: Annotated[
        bool,
        typer.Option(
            "--show",
            help="Show current configuration",
        ),
    ] = False,
    validate: Annotated[
        bool,
        typer.Option(
            "--validate",
            help="Validate configuration",
        ),
    ] = False,
) -> None:
    """
    Manage and view TreeLingo configuration.

    Use --show to display all configuration values with sources.
    Use --validate to check if configuration is correct.

    Example:
        treelingo config --show
        treelingo config --validate
    """
    try:
        if validate:
            _validate_config()
        else:
            _show_config()

    except Exception as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        sys.exit(1)


def _show_config() -> None:
    """Display current configuration in a formatted table."""
    items = get_config_items()

    console.print("[bold cyan]TreeLingo Configuration[/bold cyan]\n")

    for category, config_items in items.items():
        table = Table(title=category, show_header=True, header_style="bold magenta")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        table.add_column("Source", style="dim")
        table.add_column("Status", style="yellow")

        for item in config_items:
            status = item.status_display()
            if "[MISSING]" in status:
                status_style = "red"
            elif "[SET]" in status:
                status_style = "green"
            else:
                status_style = "yellow"

            table.add_row(
                item.key,
                item.display_value(),
                item.source_display(),
                f"[{status_style}]{status}[/{status_style}]",
            )

        console.print(table)
        console.print()


def _validate_config() -> None:
    """Validate configuration and show issues."""
    is_valid, warnings, errors = validate_config()

    console.print("[bold cyan]Configuration Validation[/bold cyan]\n")

    if is_valid:
        console.print("[green]✓ Configuration is valid![/green]\n")
    else:
        console.print("[red]✗ Configuration has issues:[/red]\n")

    if errors:
        console.print("[bold red]Errors:[/bold red]")
        for i, error in enumerate(errors, 1):
            console.print(f"  {i}. {error}")
        console.print()

    if warnings:
        console.print("[bold yellow]Warnings:[/bold yellow]")
        for i, warning in enumerate(warnings, 1):
            console.print(f"  {i}. {warning}")
        console.print()

    if not errors and not warnings:
        console.print("No issues found.")

    sys.exit(0 if is_valid else 1)


if __name__ == "__main__":
    app()
