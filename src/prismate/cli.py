"""
Prismate CLI.

Commands for inspecting a data-model description and serving it over HTTP.
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from prismate._version import get_version
from prismate.core.errors import PrismateError
from prismate.runtime.logging import setup_logging
from prismate.runtime.schema_extractor import load_data_model
from prismate.runtime.service import PrismateService
from prismate.specs.validation import UpdateMode

app = typer.Typer(
    help="Schema-driven validation and CRUD for model-oriented data clients.",
    no_args_is_help=True,
)

console = Console()

DataModelPath = Annotated[
    Path,
    typer.Argument(exists=True, dir_okay=False, readable=True, help="Data-model JSON file"),
]


def _load_service(path: Path) -> PrismateService:
    try:
        return PrismateService(data_model=load_data_model(path))
    except (OSError, json.JSONDecodeError, PydanticValidationError, PrismateError) as e:
        typer.echo(f"Error loading data model: {e}", err=True)
        raise typer.Exit(code=1)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"prismate {get_version()}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version"),
    ] = False,
) -> None:
    """Prismate command line."""


@app.command("inspect")
def inspect_models(data_model: DataModelPath) -> None:
    """List the models of a data-model description with field and relation counts."""
    service = _load_service(data_model)
    summary = service.get_model_summary()
    if not summary:
        console.print("[yellow]No models found[/yellow]")
        return

    table = Table(title=f"Models in {data_model.name}")
    table.add_column("Model", style="cyan")
    table.add_column("Fields", justify="right")
    table.add_column("Relations", justify="right")
    for name, counts in summary.items():
        table.add_row(name, str(counts.field_count), str(counts.relation_count))
    console.print(table)


@app.command("fields")
def show_fields(
    data_model: DataModelPath,
    model: Annotated[str, typer.Argument(help="Model name")],
) -> None:
    """Show the field metadata of one model."""
    service = _load_service(data_model)
    if not service.has_model(model):
        typer.echo(f"Model '{model}' not found", err=True)
        raise typer.Exit(code=1)

    table = Table(title=model)
    table.add_column("Field", style="cyan")
    table.add_column("Type")
    table.add_column("Kind")
    table.add_column("Required")
    table.add_column("List")
    table.add_column("Notes", style="dim")
    for field in service.get_model_schema(model):
        notes = []
        if field.is_id:
            notes.append("id")
        if field.has_default_value:
            notes.append("default")
        if field.relation_target:
            notes.append(f"-> {field.relation_target}")
        table.add_row(
            field.name,
            field.type,
            field.kind.value,
            "yes" if field.is_required else "",
            "yes" if field.is_list else "",
            ", ".join(notes),
        )
    console.print(table)


@app.command("export")
def export_schema(
    data_model: DataModelPath,
    out: Annotated[
        Path | None, typer.Option("--out", "-o", help="Write to a file instead of stdout")
    ] = None,
) -> None:
    """Export the normalized schema registry as JSON."""
    payload = json.dumps(_load_service(data_model).export_schema(), indent=2)
    if out is None:
        typer.echo(payload)
    else:
        out.write_text(payload + "\n")
        console.print(f"[green]Schema written to {out}[/green]")


@app.command("serve")
def serve(
    data_model: DataModelPath,
    host: Annotated[str | None, typer.Option("--host", help="Host to bind to")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port to bind to")] = None,
    memory: Annotated[
        bool, typer.Option("--memory", help="Back every model with an in-memory store")
    ] = False,
    admin_token: Annotated[
        str | None,
        typer.Option("--admin-token", help="Bearer token (default: PRISMATE_ADMIN_TOKEN)"),
    ] = None,
    update_mode: Annotated[
        UpdateMode | None,
        typer.Option(
            "--update-mode", help="Update validation mode (default: PRISMATE_UPDATE_MODE)"
        ),
    ] = None,
    cache_size: Annotated[
        int | None,
        typer.Option(
            "--cache-size", min=0, help="Cache entries (default: PRISMATE_CACHE_MAX_SIZE)"
        ),
    ] = None,
    log_dir: Annotated[
        Path | None, typer.Option("--log-dir", help="JSONL log dir (default: PRISMATE_LOG_DIR)")
    ] = None,
) -> None:
    """
    Serve a data model over HTTP.

    Settings start from the PRISMATE_* environment; explicit flags win.
    """
    from prismate.runtime.server import ServerConfig, memory_client_for, run_app

    try:
        base = ServerConfig.from_env()
    except ValueError as e:
        typer.echo(f"Invalid PRISMATE_* environment: {e}", err=True)
        raise typer.Exit(code=1)

    overrides: dict[str, Any] = {"data_model_path": data_model}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if admin_token is not None:
        overrides["admin_token"] = admin_token
    if update_mode is not None:
        overrides["update_mode"] = update_mode
    if cache_size is not None:
        overrides["cache"] = base.cache.model_copy(update={"max_size": cache_size})
    if log_dir is not None:
        overrides["log_dir"] = log_dir
    config = replace(base, **overrides)

    setup_logging(log_dir=config.log_dir, level=config.log_level)
    client = memory_client_for(config) if memory else None
    if client is None:
        console.print("[yellow]No data client attached; reads return empty results[/yellow]")
    console.print(f"[bold]Prismate[/bold] serving on http://{config.host}:{config.port}")
    run_app(config, client=client)


if __name__ == "__main__":
    app()
