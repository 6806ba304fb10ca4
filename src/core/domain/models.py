"""Modelos del dominio (Pydantic v2).

- `EndpointRequest` describe *una* llamada antes de transmitirla.
- `ErrorDetail`/`ErrorEnvelope` reflejan el sobre de error de la API Dynatrace.
- `PaginatedResponse` es una página del protocolo `nextPageKey`.
- El resto son DTOs de recursos (entidades, extensiones) consumidos por los servicios.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
- Los nombres de cable (camelCase) se mantienen mediante `alias`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from core.cancellation import CancelToken


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class ResponseDecoding(str, Enum):
    """Estrategia explícita de decodificación de la respuesta."""

    JSON = "json"
    BINARY = "binary"


class FileAttachment(BaseModel):
    """Fichero adjunto a un request multipart (campo `file`)."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(..., description="Bytes crudos del fichero.")
    name: str = Field(..., min_length=1, description="Nombre de fichero en la parte multipart.")


class EndpointRequest(BaseModel):
    """Descripción inmutable de una llamada HTTP.

    Reglas:
    - `params` siempre viajan como query string (los valores `None` se omiten).
    - `body` solo se transmite en `POST`/`PUT` y únicamente si no hay `file`.
    - Con `file` el content type pasa a `multipart/form-data`.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: str = Field(..., description="Ruta relativa a la base URL del tenant.")
    method: HttpMethod = Field(default=HttpMethod.GET)
    params: dict[str, Any] | None = Field(default=None, description="Query parameters.")
    body: Any = Field(default=None, description="Payload para POST/PUT.")
    file: FileAttachment | None = Field(default=None)
    headers: dict[str, str] = Field(default_factory=dict)
    decoding: ResponseDecoding = Field(default=ResponseDecoding.JSON)
    cancel: CancelToken | None = Field(default=None, exclude=True)

    @property
    def sends_body(self) -> bool:
        return self.file is None and self.method in (HttpMethod.POST, HttpMethod.PUT)

    def query_params(self) -> dict[str, Any] | None:
        if not self.params:
            return None
        return {k: v for k, v in self.params.items() if v is not None}


class ConstraintViolation(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    path: str | None = None
    message: str = ""
    parameter_location: str | None = Field(default=None, alias="parameterLocation")
    location: str | None = None


class ErrorDetail(BaseModel):
    """Detalle estructurado de un error (código 0 = sin respuesta del servidor)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    code: int = Field(default=0, description="Status HTTP, 0 si no hubo respuesta.")
    message: str = Field(default="", description="Mensaje textual del error.")
    constraint_violations: list[ConstraintViolation] = Field(
        default_factory=list,
        alias="constraintViolations",
        description="Violaciones de restricciones reportadas por el servidor.",
    )


class ErrorEnvelope(BaseModel):
    """Sobre `{ "error": {...} }` devuelto por la API en status >= 400."""

    model_config = ConfigDict(extra="ignore")

    error: ErrorDetail


class PaginatedResponse(BaseModel):
    """Una página de una API de listado con cursor `nextPageKey`.

    La colección de items vive en un campo cuyo nombre depende del endpoint
    (`entities`, `types`, `extensions`...), por eso se admiten campos extra.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    next_page_key: str | None = Field(default=None, alias="nextPageKey")
    total_count: int | None = Field(default=None, alias="totalCount")
    page_size: int | None = Field(default=None, alias="pageSize")

    @property
    def has_next_page(self) -> bool:
        return bool(self.next_page_key)

    def items(self, name: str) -> list[Any] | None:
        extra = self.model_extra or {}
        value = extra.get(name)
        if isinstance(value, list):
            return value
        return None


class Entity(BaseModel):
    """Entidad monitorizada (Monitored Entities API v2)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    entity_id: str = Field(..., alias="entityId")
    display_name: str | None = Field(default=None, alias="displayName")
    type: str | None = None
    first_seen_tms: int | None = Field(default=None, alias="firstSeenTms")
    last_seen_tms: int | None = Field(default=None, alias="lastSeenTms")
    properties: dict[str, Any] = Field(default_factory=dict)
    tags: list[dict[str, Any]] = Field(default_factory=list)
    management_zones: list[dict[str, Any]] = Field(default_factory=list, alias="managementZones")
    from_relationships: dict[str, Any] = Field(default_factory=dict, alias="fromRelationships")
    to_relationships: dict[str, Any] = Field(default_factory=dict, alias="toRelationships")


class EntityType(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: str
    display_name: str | None = Field(default=None, alias="displayName")
    dimension_key: str | None = Field(default=None, alias="dimensionKey")
    entity_limit_exceeded: bool | None = Field(default=None, alias="entityLimitExceeded")
    properties: list[dict[str, Any]] = Field(default_factory=list)
    from_relationships: list[dict[str, Any]] = Field(default_factory=list, alias="fromRelationships")
    to_relationships: list[dict[str, Any]] = Field(default_factory=list, alias="toRelationships")


class ExtensionV1(BaseModel):
    """Extensión 1.0 (Configuration API v1)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    type: str | None = None


class ExtensionVersion(BaseModel):
    """Extensión 2.0 en el tenant: nombre + versión (listados v2)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    extension_name: str = Field(..., alias="extensionName")
    version: str


class ExtensionDetails(BaseModel):
    """Respuesta de la subida/validación de un paquete Extension 2.0."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    extension_name: str = Field(..., alias="extensionName")
    version: str
    author: dict[str, Any] | None = None
    data_sources: list[str] = Field(default_factory=list, alias="dataSources")
    feature_sets: list[str] = Field(default_factory=list, alias="featureSets")


class ExtensionEnvironmentConfiguration(BaseModel):
    """Versión activa de una extensión en el entorno."""

    model_config = ConfigDict(extra="ignore")

    version: str
