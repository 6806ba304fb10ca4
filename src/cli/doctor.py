"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.dynatrace_api import Dynatrace
from core.config import ENV_PREFIX, AppSettings, write_user_env_vars
from core.domain.errors import DynatraceAPIError
from core.domain.models import EndpointRequest

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_tenant(settings: AppSettings) -> tuple[bool, str]:
    dt = Dynatrace.from_settings(settings)
    try:
        await dt.http_client.execute(EndpointRequest(path="/api/v2/entityTypes", params={"pageSize": 1}))
    except DynatraceAPIError as err:
        return False, f"{err.status_code}: {err.detail.message or err.message}"
    return True, "Token accepted"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="dt-ext-copilot Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row(
        "Tenant URL",
        "OK" if settings.tenant_url else "MISSING",
        settings.tenant_url or f"Set {ENV_PREFIX}TENANT_URL or run `doctor setup`",
    )
    table.add_row(
        "API token",
        "OK" if settings.api_token else "MISSING",
        "Configured" if settings.api_token else f"Set {ENV_PREFIX}API_TOKEN or run `doctor setup`",
    )
    timeout = settings.http_timeout_seconds
    table.add_row("HTTP timeout", "OK", f"{timeout}s" if timeout else "disabled")

    # Connectivity
    if settings.tenant_url and settings.api_token:
        ok, detail = asyncio.run(_check_tenant(settings))
        table.add_row("Tenant connectivity", "OK" if ok else "FAIL", detail)
    else:
        table.add_row("Tenant connectivity", "SKIPPED", "Tenant URL and API token are required")

    _console.print(table)


@app.command(name="setup")
def setup() -> None:
    """Interactive tenant setup (stores config in the user config .env)."""

    settings = AppSettings()
    tenant_url = typer.prompt(
        "Tenant URL",
        default=settings.tenant_url or "",
        show_default=bool(settings.tenant_url),
    ).strip().rstrip("/")
    api_token = typer.prompt("API token", hide_input=True, confirmation_prompt=False).strip()

    if not tenant_url or not api_token:
        raise typer.BadParameter("tenant URL and API token are required")

    env_path = write_user_env_vars(
        {
            f"{ENV_PREFIX}TENANT_URL": tenant_url,
            f"{ENV_PREFIX}API_TOKEN": api_token,
        }
    )

    _console.print(f"[green]Saved tenant config to:[/green] {env_path}")
