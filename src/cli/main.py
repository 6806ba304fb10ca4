"""CLI principal (Typer).

Comandos:
- `entities`: Monitored Entities API v2.
- `extensions`: Extensions API v1/v2 (listado, subida, activación, deploy).
- `doctor`: diagnóstico de configuración y conectividad.

Los errores de la API se capturan solo aquí, en el borde: se muestran con Rich y
el proceso sale con código distinto de cero.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer
from rich.console import Console
from rich.table import Table

from adapters.dynatrace_api import Dynatrace
from adapters.json_exporter import export_json, render_json
from cli.doctor import app as doctor_app
from cli.ui_components import (
    build_entities_table,
    build_entity_types_table,
    build_error_panel,
    build_extensions_v1_table,
    build_versions_table,
    print_banner,
)
from core.cancellation import CancelToken
from core.config import AppSettings
from core.domain.errors import ConfigurationError, DynatraceAPIError, RequestCancelledError
from core.log import configure_logging
from core.services.extension_upload import activate_version, upload_and_activate, validate_extension

app = typer.Typer(no_args_is_help=True, help="Dynatrace Extension 2.0 developer toolkit.")
entities_app = typer.Typer(no_args_is_help=True, help="Monitored entities (API v2).")
extensions_app = typer.Typer(no_args_is_help=True, help="Extensions (API v1 and v2).")

app.add_typer(entities_app, name="entities")
app.add_typer(extensions_app, name="extensions")
app.add_typer(doctor_app, name="doctor")

console = Console()


class CliState:
    def __init__(self, settings: AppSettings, timeout: float | None) -> None:
        self.settings = settings
        self.timeout = timeout


def _state(ctx: typer.Context) -> CliState:
    if ctx.obj is None:
        ctx.obj = CliState(AppSettings(), None)
    return ctx.obj


def _call(ctx: typer.Context, action: Callable[[Dynatrace, CancelToken], Awaitable[Any]]) -> Any:
    """Ejecuta `action` contra el tenant configurado y traduce errores a códigos de salida."""

    state = _state(ctx)

    async def _main() -> Any:
        dt = Dynatrace.from_settings(state.settings)
        cancel = CancelToken()
        if state.timeout:
            cancel.cancel_after(state.timeout)
        return await action(dt, cancel)

    try:
        return asyncio.run(_main())
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        console.print("Run `dt-ext-copilot doctor setup` to configure the tenant.")
        raise typer.Exit(code=2) from exc
    except RequestCancelledError as exc:
        console.print(f"[yellow]Timed out:[/yellow] {exc}")
        raise typer.Exit(code=3) from exc
    except DynatraceAPIError as exc:
        console.print(build_error_panel(exc))
        raise typer.Exit(code=1) from exc


def _emit(data: Any, table: Table, as_json: bool, output: Path | None) -> None:
    if output is not None:
        path = export_json(data=data, output_path=output)
        console.print(f"[green]Saved:[/green] {path}")
    elif as_json:
        console.print_json(render_json(data))
    else:
        console.print(table)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every request (DEBUG)."),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        min=0.1,
        help="Cancel the command after this many seconds.",
    ),
    banner: bool = typer.Option(False, "--banner", help="Print the banner before running."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = CliState(settings, timeout)
    if banner:
        print_banner(console)


@entities_app.command("list")
def entities_list(
    ctx: typer.Context,
    selector: str = typer.Option(..., "--selector", "-s", help='Entity selector, e.g. "type(HOST)".'),
    from_: Optional[str] = typer.Option(None, "--from", help="Start of the timeframe (default now-3d)."),
    to: Optional[str] = typer.Option(None, "--to", help="End of the timeframe."),
    fields: Optional[str] = typer.Option(None, "--fields", help="Extra entity properties to include."),
    sort: Optional[str] = typer.Option(None, "--sort", help="Ordering of the entities."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON to this file."),
) -> None:
    """List every entity matching the selector (all pages)."""

    entities = _call(
        ctx,
        lambda dt, cancel: dt.entities_v2.list(selector, from_, to, fields, sort, cancel=cancel),
    )
    _emit(entities, build_entities_table(entities), as_json, output)


@entities_app.command("get")
def entities_get(
    ctx: typer.Context,
    entity_id: str = typer.Argument(..., help="Entity ID, e.g. HOST-0123456789ABCDEF."),
    fields: Optional[str] = typer.Option(None, "--fields"),
) -> None:
    """Show the details of one entity."""

    entity = _call(ctx, lambda dt, cancel: dt.entities_v2.get(entity_id, fields=fields, cancel=cancel))
    console.print_json(render_json(entity))


@entities_app.command("types")
def entities_types(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON to this file."),
) -> None:
    """List all entity types of the environment."""

    types = _call(ctx, lambda dt, cancel: dt.entities_v2.list_types(cancel=cancel))
    _emit(types, build_entity_types_table(types), as_json, output)


@entities_app.command("type")
def entities_type(ctx: typer.Context, name: str = typer.Argument(..., help="Entity type, e.g. HOST.")) -> None:
    """Show the details of one entity type."""

    entity_type = _call(ctx, lambda dt, cancel: dt.entities_v2.get_type(name, cancel=cancel))
    console.print_json(render_json(entity_type))


@extensions_app.command("list")
def extensions_list(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="Filter by extension name."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    """List Extension 2.0 packages on the tenant."""

    extensions = _call(ctx, lambda dt, cancel: dt.extensions_v2.list(name, cancel=cancel))
    _emit(extensions, build_versions_table(extensions), as_json, None)


@extensions_app.command("versions")
def extensions_versions(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Extension name, e.g. custom:my.extension."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    """List the uploaded versions of an extension."""

    versions = _call(ctx, lambda dt, cancel: dt.extensions_v2.list_versions(name, cancel=cancel))
    _emit(versions, build_versions_table(versions, title=f"Versions of {name}"), as_json, None)


@extensions_app.command("upload")
def extensions_upload(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Signed extension .zip"),
    validate_only: bool = typer.Option(False, "--validate-only", help="Only validate the package."),
) -> None:
    """Upload (or validate) a signed extension package."""

    content = file.read_bytes()
    if validate_only:
        outcome = _call(
            ctx, lambda dt, cancel: validate_extension(dt, content, filename=file.name, cancel=cancel)
        )
        if not outcome.valid:
            console.print("[red]Extension validation failed.[/red]")
            console.print(build_error_panel(outcome.error))
            raise typer.Exit(code=1)
        console.print(f"[green]Valid:[/green] {outcome.details.extension_name} {outcome.details.version}")
        return

    details = _call(ctx, lambda dt, cancel: dt.extensions_v2.upload(content, cancel=cancel, filename=file.name))
    console.print(f"[green]Uploaded:[/green] {details.extension_name} {details.version}")


@extensions_app.command("activate")
def extensions_activate(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Extension name."),
    version: str = typer.Argument(..., help="Version to activate."),
) -> None:
    """Activate a version of an extension in the environment."""

    _call(ctx, lambda dt, cancel: activate_version(dt, name, version, cancel=cancel))
    console.print(f"[green]Activated:[/green] {name} {version}")


@extensions_app.command("deploy")
def extensions_deploy(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Signed extension .zip"),
    name: str = typer.Option(..., "--name", help="Extension name."),
    version: str = typer.Option(..., "--version", help="Extension version inside the package."),
    max_attempts: Optional[int] = typer.Option(None, "--max-attempts", min=1, help="Limit upload retries."),
) -> None:
    """Upload and activate in one step, removing an old version if the tenant is full."""

    content = file.read_bytes()
    settings = _state(ctx).settings
    result = _call(
        ctx,
        lambda dt, cancel: upload_and_activate(
            dt,
            name,
            version,
            content,
            poll_interval=settings.upload_poll_interval,
            max_attempts=max_attempts,
            filename=file.name,
            cancel=cancel,
        ),
    )
    if result.deleted_version:
        console.print(f"[yellow]Removed version {result.deleted_version} to make room.[/yellow]")
    console.print(
        f"[green]Deployed:[/green] {result.extension_name} {result.version} "
        f"({result.attempts} upload attempt{'s' if result.attempts != 1 else ''})"
    )


@extensions_app.command("v1-list")
def extensions_v1_list(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    """List Extension 1.0 packages on the tenant."""

    extensions = _call(ctx, lambda dt, cancel: dt.extensions_v1.list_extensions(cancel=cancel))
    _emit(extensions, build_extensions_v1_table(extensions), as_json, None)


@extensions_app.command("v1-download")
def extensions_v1_download(
    ctx: typer.Context,
    extension_id: str = typer.Argument(..., help="Extension 1.0 ID."),
    output: Path = typer.Option(..., "--output", "-o", help="Destination .zip path."),
) -> None:
    """Download the binary of an Extension 1.0 package."""

    content = _call(ctx, lambda dt, cancel: dt.extensions_v1.get_extension_binary(extension_id, cancel=cancel))
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(content)
    console.print(f"[green]Saved:[/green] {output} ({len(content)} bytes)")


def run() -> None:
    app()
