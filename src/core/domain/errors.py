"""Errores del dominio.

Todo fallo del cliente HTTP se entrega como `DynatraceAPIError` (mensaje legible
+ `ErrorDetail`). La cancelación es un tipo aparte para que el llamador pueda
distinguir "cancelado" de "rechazado por el servidor".
"""

from __future__ import annotations

from enum import Enum

from core.domain.models import ErrorDetail

VERSION_QUANTITY_LIMIT_PREFIX = "Extension versions quantity limit"


class ErrorReason(str, Enum):
    """Discriminante estable derivado del detalle del error."""

    VERSION_QUANTITY_LIMIT = "version_quantity_limit"
    UNKNOWN = "unknown"

    @classmethod
    def from_detail(cls, detail: ErrorDetail) -> "ErrorReason":
        if detail.message.startswith(VERSION_QUANTITY_LIMIT_PREFIX):
            return cls.VERSION_QUANTITY_LIMIT
        return cls.UNKNOWN


class DynatraceAPIError(Exception):
    """Error normalizado de la API (única forma de error del core)."""

    def __init__(self, message: str, detail: ErrorDetail) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    @property
    def status_code(self) -> int:
        return self.detail.code

    @property
    def reason(self) -> ErrorReason:
        return ErrorReason.from_detail(self.detail)

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "detail": self.detail.model_dump(mode="json", by_alias=True),
        }


class PaginationLimitExceeded(DynatraceAPIError):
    """Se alcanzó el límite de páginas configurado y el servidor sigue paginando."""


class RequestCancelledError(Exception):
    """La llamada se canceló mediante su `CancelToken`."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Request to {url} was cancelled")
        self.url = url


class ConfigurationError(Exception):
    """Falta configuración obligatoria (tenant URL, API token...)."""
