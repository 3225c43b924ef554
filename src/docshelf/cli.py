"""Command line interface for docshelf."""

from __future__ import annotations

import difflib
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from docshelf.config import (
    ConfigError,
    ConfigManager,
    DocshelfConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from docshelf.errors import DocshelfError
from docshelf.logging_setup import configure_logging
from docshelf.scanner import DeviceScanner
from docshelf.search import DocumentQuery
from docshelf.service import UNSET, ArchiveService
from docshelf.state.models import MONTHS, DocumentRecord

console = Console()


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    raise click.ClickException(message) from original


@contextmanager
def _reported_errors(json_output: bool) -> Iterator[None]:
    """Route archive and configuration errors through the CLI error handler."""
    try:
        yield
    except (DocshelfError, ConfigError) as exc:
        _handle_cli_error(
            str(exc),
            code=exc.code,
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


def _emit_message(message: Any, *, quiet: bool) -> None:
    if not quiet:
        console.print(message)


def _config(ctx: click.Context) -> DocshelfConfig:
    """Return the effective configuration, loading it on first use."""
    obj = ctx.ensure_object(dict)
    if obj.get("config") is None:
        root = obj.get("root")
        overrides = {"storage": {"root": str(root)}} if root else None
        obj["config"] = ConfigManager().load(cli_overrides=overrides)
    return obj["config"]


def _service(ctx: click.Context) -> ArchiveService:
    """Return the archive service, wiring logging on first use."""
    obj = ctx.ensure_object(dict)
    if obj.get("service") is None:
        config = _config(ctx)
        service = ArchiveService.from_config(config)
        configure_logging(config.logging, service.log_path)
        obj["service"] = service
    return obj["service"]


def _quiet(ctx: click.Context, quiet: bool) -> bool:
    if ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE:
        return quiet
    return _config(ctx).cli.quiet_default


def _parse_tags(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> list[dict[str, Any]]:
    """Parse repeated ``NAME=PRICE`` options into tag mappings."""
    tags: list[dict[str, Any]] = []
    for raw in values:
        name, separator, price = raw.rpartition("=")
        if not separator or not name.strip():
            raise click.BadParameter(f"Expected NAME=PRICE, got {raw!r}.", ctx=ctx, param=param)
        try:
            tags.append({"name": name, "price": float(price)})
        except ValueError:
            raise click.BadParameter(
                f"Price must be a number, got {price!r}.", ctx=ctx, param=param
            ) from None
    return tags


def _metadata_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the shared year/merchant/month/tag/notes options to a command."""
    options = [
        click.option("--year", type=int, required=True, help="Archive year."),
        click.option("--merchant", "merchant_name", required=True, help="Merchant name."),
        click.option(
            "--month",
            type=click.Choice(MONTHS, case_sensitive=False),
            required=True,
            help="Month name.",
        ),
        click.option(
            "--tag",
            "tags",
            multiple=True,
            callback=_parse_tags,
            metavar="NAME=PRICE",
            help="Priced line item; repeat for several.",
        ),
        click.option("--notes", type=str, help="Free-form notes."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _record_payload(record: DocumentRecord) -> dict[str, Any]:
    return record.model_dump(mode="json")


def _format_tags(record: DocumentRecord) -> str:
    return ", ".join(f"{tag.name} ({tag.price:g})" for tag in record.tags)


def _emit_stored(records: list[DocumentRecord], *, json_output: bool, quiet: bool) -> None:
    if json_output:
        console.print_json(data={"documents": [_record_payload(record) for record in records]})
        return
    for record in records:
        _emit_message(
            f"[green]Stored {escape(record.original_name)} as {record.storage_path}[/green]"
            f" ({record.id})",
            quiet=quiet,
        )


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a nested value within a dictionary for a dotted path.

    Args:
        target: Mapping to mutate in-place.
        path: Sequence of keys representing the nested location.
        value: Value to assign at the nested location.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """

    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="docshelf")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    help="Archive storage root; overrides storage.root.",
)
@click.pass_context
def cli(ctx: click.Context, root: Optional[Path]) -> None:
    """Docshelf files business documents into a year/merchant/month archive."""
    ctx.ensure_object(dict)["root"] = root


@cli.command()
@click.argument(
    "files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@_metadata_options
@click.option("--json", "json_output", is_flag=True, help="Emit created records as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def ingest(
    ctx: click.Context,
    files: tuple[Path, ...],
    year: int,
    merchant_name: str,
    month: str,
    tags: list[dict[str, Any]],
    notes: Optional[str],
    json_output: bool,
    quiet: bool,
) -> None:
    """Store FILES as documents sharing one set of metadata.

    Image files are combined into a single PDF first; other documents are
    stored one record per file.
    """
    with _reported_errors(json_output):
        records = _service(ctx).ingest_paths(
            list(files),
            year=year,
            merchant_name=merchant_name,
            month=month,
            tags=tags,
            notes=notes,
        )
        _emit_stored(records, json_output=json_output, quiet=_quiet(ctx, quiet))


@cli.command()
@_metadata_options
@click.option("--device", type=str, help="Scanner device name.")
@click.option("--mode", type=str, help="Colour mode, e.g. Color or Gray.")
@click.option("--resolution", type=click.IntRange(min=1), help="Resolution in DPI.")
@click.option("--json", "json_output", is_flag=True, help="Emit the created record as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def scan(
    ctx: click.Context,
    year: int,
    merchant_name: str,
    month: str,
    tags: list[dict[str, Any]],
    notes: Optional[str],
    device: Optional[str],
    mode: Optional[str],
    resolution: Optional[int],
    json_output: bool,
    quiet: bool,
) -> None:
    """Scan one page from a scanner and store it as a document."""
    with _reported_errors(json_output):
        service = _service(ctx)
        overrides = {"device": device, "mode": mode, "resolution": resolution}
        settings = _config(ctx).scanner.model_copy(
            update={key: value for key, value in overrides.items() if value is not None}
        )
        upload = DeviceScanner(settings).scan(service.staging_dir)
        records = service.ingest(
            [upload],
            year=year,
            merchant_name=merchant_name,
            month=month,
            tags=tags,
            notes=notes,
        )
        _emit_stored(records, json_output=json_output, quiet=_quiet(ctx, quiet))


@cli.command()
@click.argument("document_id")
@click.option("--year", type=int, help="New archive year.")
@click.option("--merchant", "merchant_name", type=str, help="New merchant name.")
@click.option("--month", type=click.Choice(MONTHS, case_sensitive=False), help="New month.")
@click.option(
    "--tag",
    "tags",
    multiple=True,
    callback=_parse_tags,
    metavar="NAME=PRICE",
    help="Replace tags; repeat for several.",
)
@click.option("--clear-tags", is_flag=True, help="Remove every tag.")
@click.option("--notes", type=str, help="Replace the notes.")
@click.option("--clear-notes", is_flag=True, help="Remove the notes.")
@click.option("--json", "json_output", is_flag=True, help="Emit the updated record as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def update(
    ctx: click.Context,
    document_id: str,
    year: Optional[int],
    merchant_name: Optional[str],
    month: Optional[str],
    tags: list[dict[str, Any]],
    clear_tags: bool,
    notes: Optional[str],
    clear_notes: bool,
    json_output: bool,
    quiet: bool,
) -> None:
    """Edit a document's metadata, moving its file when the hierarchy changes."""
    if tags and clear_tags:
        raise click.UsageError("--tag cannot be combined with --clear-tags.")
    if notes is not None and clear_notes:
        raise click.UsageError("--notes cannot be combined with --clear-notes.")

    with _reported_errors(json_output):
        service = _service(ctx)
        before = service.get(document_id)
        record = service.update(
            document_id,
            notes=None if clear_notes else (UNSET if notes is None else notes),
            tags=[] if clear_tags else (tags or None),
            year=year,
            merchant_name=merchant_name,
            month=month,
        )
        if json_output:
            console.print_json(data=_record_payload(record))
            return
        quiet_enabled = _quiet(ctx, quiet)
        if record.storage_path != before.storage_path:
            _emit_message(
                f"[green]Moved {before.storage_path} -> {record.storage_path}.[/green]",
                quiet=quiet_enabled,
            )
        _emit_message(f"[green]Updated document {record.id}.[/green]", quiet=quiet_enabled)


@cli.command()
@click.argument("document_id")
@click.option("--json", "json_output", is_flag=True, help="Emit the deleted record as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def delete(ctx: click.Context, document_id: str, json_output: bool, quiet: bool) -> None:
    """Delete a document record and its stored file."""
    with _reported_errors(json_output):
        record = _service(ctx).delete(document_id)
        if json_output:
            console.print_json(data={"deleted": _record_payload(record)})
            return
        _emit_message(
            f"[green]Deleted {record.storage_path} ({record.id}).[/green]",
            quiet=_quiet(ctx, quiet),
        )


@cli.command()
@click.argument("document_id")
@click.option("--json", "json_output", is_flag=True, help="Emit the record as JSON.")
@click.pass_context
def show(ctx: click.Context, document_id: str, json_output: bool) -> None:
    """Display one document record."""
    with _reported_errors(json_output):
        record = _service(ctx).get(document_id)
        if json_output:
            console.print_json(data=_record_payload(record))
            return

        table = Table(show_header=False, box=None)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("ID", record.id)
        table.add_row("Original name", record.original_name)
        table.add_row("Stored at", record.storage_path)
        table.add_row("Type", record.mime_type)
        table.add_row("Size", f"{record.size} bytes")
        table.add_row("Year", str(record.year))
        table.add_row("Merchant", record.merchant_name)
        table.add_row("Month", record.month)
        table.add_row("Tags", _format_tags(record) or "-")
        table.add_row("Notes", record.notes or "-")
        table.add_row("Created", record.created_at.isoformat())
        table.add_row("Updated", record.updated_at.isoformat())
        console.print(table)


@cli.command()
@click.argument("document_id")
@click.option("--json", "json_output", is_flag=True, help="Emit the path as JSON.")
@click.pass_context
def path(ctx: click.Context, document_id: str, json_output: bool) -> None:
    """Print the absolute path of a document's stored file."""
    with _reported_errors(json_output):
        file_path = _service(ctx).file_path(document_id)
        if json_output:
            console.print_json(data={"id": document_id, "path": str(file_path)})
            return
        click.echo(str(file_path))


@cli.command()
@click.argument("document_id")
@click.argument("destination", type=click.Path(path_type=Path))
@click.option("--json", "json_output", is_flag=True, help="Emit the exported path as JSON.")
@click.pass_context
def export(ctx: click.Context, document_id: str, destination: Path, json_output: bool) -> None:
    """Copy a document's stored file to DESTINATION."""
    with _reported_errors(json_output):
        target = _service(ctx).export(document_id, destination)
        if json_output:
            console.print_json(data={"id": document_id, "path": str(target)})
            return
        console.print(f"[green]Exported {document_id} to {target}.[/green]")


@cli.command("list")
@click.option("--name", type=str, help="Pattern over file name, tag names and merchant.")
@click.option("--price", type=float, help="Exact tag price.")
@click.option("--year", type=int, help="Exact year.")
@click.option("--merchant", type=str, help="Exact merchant name (case-insensitive).")
@click.option("--month", type=click.Choice(MONTHS, case_sensitive=False), help="Exact month.")
@click.option("--limit", type=click.IntRange(1, 100), help="Maximum number of results.")
@click.option("--skip", type=click.IntRange(min=0), default=0, help="Results to skip.")
@click.option("--json", "json_output", is_flag=True, help="Emit matching records as JSON.")
@click.pass_context
def list_documents(
    ctx: click.Context,
    name: Optional[str],
    price: Optional[float],
    year: Optional[int],
    merchant: Optional[str],
    month: Optional[str],
    limit: Optional[int],
    skip: int,
    json_output: bool,
) -> None:
    """List documents, newest first."""
    with _reported_errors(json_output):
        query = DocumentQuery(
            name=name,
            price=price,
            year=year,
            merchant=merchant,
            month=month,
            limit=limit or _config(ctx).cli.list_limit,
            skip=skip,
        )
        records = _service(ctx).search(query)
        if json_output:
            console.print_json(data={"documents": [_record_payload(record) for record in records]})
            return
        if not records:
            console.print("[yellow]No documents found.[/yellow]")
            return

        table = Table(title="Documents")
        table.add_column("ID", overflow="fold")
        table.add_column("Year")
        table.add_column("Merchant")
        table.add_column("Month")
        table.add_column("File", overflow="fold")
        table.add_column("Tags")
        for record in records:
            table.add_row(
                record.id,
                str(record.year),
                record.merchant_name,
                record.month,
                record.original_name,
                _format_tags(record),
            )
        console.print(table)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit the hierarchy as JSON.")
@click.pass_context
def tree(ctx: click.Context, json_output: bool) -> None:
    """Show documents grouped by year, merchant and month."""
    with _reported_errors(json_output):
        service = _service(ctx)
        years = service.hierarchy()
        if json_output:
            console.print_json(data={"years": [node.model_dump(mode="json") for node in years]})
            return

        view = Tree(f"[bold]{service.root}[/bold]")
        for year_node in years:
            year_branch = view.add(str(year_node.year))
            for merchant_node in year_node.merchants:
                merchant_branch = year_branch.add(merchant_node.name)
                for month_node in merchant_node.months:
                    month_branch = merchant_branch.add(month_node.name)
                    for record in month_node.documents:
                        label = escape(record.original_name)
                        month_branch.add(f"{label} [dim]({record.id})[/dim]")
        console.print(view)


@cli.group()
def config() -> None:
    """Manage docshelf configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.option(
    "--env",
    "as_env",
    is_flag=True,
    help="Print the configuration as DOCSHELF__ environment variable assignments.",
)
def config_view(no_env: bool, as_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.
        as_env: If True, print `KEY=value` lines instead of YAML.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        config = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_env:
        for key, value in flatten_for_env(config).items():
            click.echo(f"{key}={value}")
        return

    yaml_text = yaml.safe_dump(config.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'storage.root'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=DocshelfConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )

    if diff:
        console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    else:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
