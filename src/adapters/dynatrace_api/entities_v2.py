"""Monitored Entities API v2.

Endpoints:
- `/api/v2/entities`
- `/api/v2/entityTypes`
"""

from __future__ import annotations

from core.cancellation import CancelToken
from core.domain.models import EndpointRequest, Entity, EntityType
from core.interfaces.api_client import ApiClient


class EntityServiceV2:
    _endpoint = "/api/v2/entities"
    _types_endpoint = "/api/v2/entityTypes"

    def __init__(self, http_client: ApiClient) -> None:
        self._http_client = http_client

    async def list(
        self,
        entity_selector: str,
        from_: str | None = None,
        to: str | None = None,
        fields: str | None = None,
        sort: str | None = None,
        cancel: CancelToken | None = None,
    ) -> list[Entity]:
        """Lista todas las entidades que cumplen `entity_selector` (todas las páginas).

        `from_`/`to` delimitan el timeframe (por defecto now-3d..now en el servidor);
        `fields` añade propiedades a la respuesta; `sort` define el orden.
        """

        return await self._http_client.paginated_call(
            self._endpoint,
            "entities",
            params={"entitySelector": entity_selector, "from": from_, "to": to, "fields": fields, "sort": sort},
            item_model=Entity,
            cancel=cancel,
        )

    async def get(
        self,
        entity_id: str,
        from_: str | None = None,
        to: str | None = None,
        fields: str | None = None,
        cancel: CancelToken | None = None,
    ) -> Entity:
        return await self._http_client.execute(
            EndpointRequest(
                path=f"{self._endpoint}/{entity_id}",
                params={"from": from_, "to": to, "fields": fields},
                cancel=cancel,
            ),
            response_model=Entity,
        )

    async def list_types(self, cancel: CancelToken | None = None) -> list[EntityType]:
        """Todos los tipos de entidad del entorno."""

        return await self._http_client.paginated_call(
            self._types_endpoint,
            "types",
            params={"pageSize": 500},
            item_model=EntityType,
            cancel=cancel,
        )

    async def get_type(self, type_: str, cancel: CancelToken | None = None) -> EntityType:
        return await self._http_client.execute(
            EndpointRequest(path=f"{self._types_endpoint}/{type_}", cancel=cancel),
            response_model=EntityType,
        )
