"""Contrato del cliente de API.

Los servicios de recursos y los flujos de subida dependen de este Protocol y no
de `DynatraceHttpClient`, de modo que pueden probarse con dobles en memoria.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.cancellation import CancelToken
from core.domain.models import EndpointRequest


@runtime_checkable
class ApiClient(Protocol):
    """Contrato mínimo: un request simple y un GET paginado."""

    async def execute(self, request: EndpointRequest, response_model: Any = None) -> Any:
        """Ejecuta un único request y devuelve el cuerpo decodificado."""

        ...

    async def paginated_call(
        self,
        path: str,
        item: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        *,
        item_model: Any = None,
        cancel: CancelToken | None = None,
        max_pages: int | None = None,
    ) -> list[Any]:
        """Recorre todas las páginas y devuelve los items acumulados."""

        ...
