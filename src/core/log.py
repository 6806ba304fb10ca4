"""Logging de la aplicación.

Las librerías (core/adapters) solo emiten registros con `logging.getLogger(__name__)`;
la CLI decide el nivel y el handler (Rich) mediante `configure_logging`.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAMESPACES = ("core", "adapters", "cli")


def configure_logging(level: str | int = "WARNING", console: Console | None = None) -> None:
    """Instala un `RichHandler` en stderr para los loggers del proyecto."""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    for name in LOGGER_NAMESPACES:
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.setLevel(level)
        logger.propagate = False
