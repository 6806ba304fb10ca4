"""Componentes de UI para CLI (Rich).

Tablas y paneles reutilizados por los comandos; aquí no hay llamadas a la API.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.errors import DynatraceAPIError
from core.domain.models import Entity, EntityType, ExtensionV1, ExtensionVersion


def print_banner(console: Console) -> None:
    title = Text("dt-ext-copilot", style="bold cyan")
    subtitle = Text("Dynatrace Extension 2.0 • API client", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_entities_table(entities: list[Entity]) -> Table:
    table = Table(title=f"Entities ({len(entities)})")
    table.add_column("Entity ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Type", style="magenta")
    for entity in entities:
        table.add_row(entity.entity_id, entity.display_name or "", entity.type or "")
    return table


def build_entity_types_table(types: list[EntityType]) -> Table:
    table = Table(title=f"Entity types ({len(types)})")
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Display name", style="white")
    table.add_column("Dimension key", style="dim")
    for entity_type in types:
        table.add_row(entity_type.type, entity_type.display_name or "", entity_type.dimension_key or "")
    return table


def build_versions_table(versions: list[ExtensionVersion], title: str = "Extensions") -> Table:
    table = Table(title=f"{title} ({len(versions)})")
    table.add_column("Extension", style="cyan", no_wrap=True)
    table.add_column("Version", style="green")
    for version in versions:
        table.add_row(version.extension_name, version.version)
    return table


def build_extensions_v1_table(extensions: list[ExtensionV1]) -> Table:
    table = Table(title=f"Extensions 1.0 ({len(extensions)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Type", style="magenta")
    for extension in extensions:
        table.add_row(extension.id, extension.name, extension.type or "")
    return table


def build_error_panel(err: DynatraceAPIError) -> Panel:
    """Panel con el detalle estructurado de un `DynatraceAPIError`."""

    body = Text()
    body.append(err.message.strip() + "\n\n")
    body.append(f"Status: {err.status_code}\n", style="bold")
    if err.detail.message:
        body.append(f"Message: {err.detail.message}\n")
    for violation in err.detail.constraint_violations:
        body.append(f"- {violation.path or '?'}: {violation.message}\n", style="yellow")
    return Panel(body, title=Text("Dynatrace API error", style="bold red"), border_style="red")
