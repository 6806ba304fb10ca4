"""Cliente HTTP autenticado para las APIs de Dynatrace.

Piezas:
- `execute`: construye y envía un único request (auth, JSON/multipart, query).
- `paginated_call`: recorre el protocolo `nextPageKey` acumulando un campo de items.
- Normalización de errores: todo fallo sale como `DynatraceAPIError`
  (o `RequestCancelledError` si se canceló).

Reglas:
- Sin estado entre llamadas salvo base URL + token (inmutables); cada llamada abre
  su propio `httpx.AsyncClient`.
- No reintenta. Las políticas de reintento viven en los llamadores
  (ver `core.services.extension_upload`).
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from adapters.transport import (
    Cancelled,
    ConnectionFailed,
    HttpStatusError,
    TransportError,
    TransportFailure,
    build_async_client,
    send,
)
from core.cancellation import CancelToken
from core.config import AppSettings
from core.domain.errors import DynatraceAPIError, PaginationLimitExceeded, RequestCancelledError
from core.domain.models import (
    EndpointRequest,
    ErrorDetail,
    ErrorEnvelope,
    HttpMethod,
    PaginatedResponse,
    ResponseDecoding,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"


class DynatraceHttpClient:
    """Sesión autenticada contra un tenant Dynatrace.

    Todas las llamadas llevan `Authorization: Api-Token <token>`.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str,
        *,
        settings: AppSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._api_token = api_token
        self._settings = settings or AppSettings()
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    async def execute(self, request: EndpointRequest, response_model: Any = None) -> Any:
        """Ejecuta `request` y devuelve el cuerpo decodificado.

        - `ResponseDecoding.JSON`: JSON parseado (`None` si el cuerpo está vacío),
          validado contra `response_model` cuando se indica.
        - `ResponseDecoding.BINARY`: `bytes` sin decodificar.

        Raises:
            DynatraceAPIError: status >= 400, sin respuesta, o cualquier fallo inesperado.
            RequestCancelledError: el `CancelToken` del request se disparó.
        """

        url = f"{self._base_url}{request.path}"
        params = request.query_params()
        body = request.body if request.sends_body else None
        self._log_request(request.method, url, params, body)

        try:
            async with build_async_client(self._settings, transport=self._transport) as client:
                http_request = self._build_request(client, request, url, params, body)
                response = await send(client, http_request, request.cancel)
            return _decode(response, request.decoding, response_model)
        except TransportError as exc:
            raise self._from_transport_failure(exc.failure, url) from exc
        except Exception as exc:
            raise self._unexpected(url, exc) from exc

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
        """GET paginado: recorre todas las páginas y devuelve la lista completa de `item`.

        La primera página usa `params`; las siguientes envían solo `nextPageKey`.
        Un fallo en cualquier página aborta la llamada sin resultados parciales.
        """

        limit = max_pages if max_pages is not None else self._settings.max_pages
        items: list[Any] = []
        page_params = params
        pages = 0

        while True:
            page: PaginatedResponse = await self.execute(
                EndpointRequest(
                    path=path,
                    method=HttpMethod.GET,
                    params=page_params,
                    headers=dict(headers or {}),
                    cancel=cancel,
                ),
                response_model=PaginatedResponse,
            )
            pages += 1

            page_items = page.items(item)
            if page_items is not None:
                items.extend(page_items)
            elif item in (page.model_extra or {}):
                logger.warning(
                    "Page from %s%s has a non-list %r field, no items taken from it",
                    self._base_url,
                    path,
                    item,
                )

            if not page.has_next_page:
                break
            if limit is not None and pages >= limit:
                raise self._page_limit_reached(path, limit)
            page_params = {"nextPageKey": page.next_page_key}

        if item_model is None:
            return items
        try:
            return TypeAdapter(list[item_model]).validate_python(items)
        except ValidationError as exc:
            raise self._unexpected(f"{self._base_url}{path}", exc) from exc

    def _build_request(
        self,
        client: httpx.AsyncClient,
        request: EndpointRequest,
        url: str,
        params: dict[str, Any] | None,
        body: Any,
    ) -> httpx.Request:
        headers = httpx.Headers(request.headers)
        if "Content-Type" not in headers:
            headers["Content-Type"] = DEFAULT_CONTENT_TYPE
        headers["Authorization"] = f"Api-Token {self._api_token}"

        if request.file is not None:
            # httpx genera `multipart/form-data; boundary=...`.
            del headers["Content-Type"]
            return client.build_request(
                request.method.value,
                url,
                params=params,
                headers=headers,
                files={"file": (request.file.name, request.file.content)},
            )

        if body is None:
            return client.build_request(request.method.value, url, params=params, headers=headers)
        if isinstance(body, (bytes, str)):
            return client.build_request(
                request.method.value, url, params=params, headers=headers, content=body
            )
        return client.build_request(request.method.value, url, params=params, headers=headers, json=body)

    def _from_transport_failure(self, failure: TransportFailure, url: str) -> Exception:
        if isinstance(failure, HttpStatusError):
            payload, detail = _parse_error_body(failure)
            rendered = json.dumps(payload, indent=2) if payload is not None else detail.message
            message = f"Error making request to {url}: {failure.status}. Response: {rendered}"
            _log_error(message, detail)
            return DynatraceAPIError(message, detail)

        if isinstance(failure, ConnectionFailed):
            message = f"No response from server {self._base_url}"
            detail = ErrorDetail(code=0, message=failure.message, constraint_violations=[])
            _log_error(message, detail)
            return DynatraceAPIError(message, detail)

        if isinstance(failure, Cancelled):
            logger.info("Request to %s cancelled", url)
            return RequestCancelledError(url)

        raise TypeError(f"Unknown transport failure: {failure!r}")

    def _unexpected(self, url: str, exc: Exception) -> DynatraceAPIError:
        message = f"Error making request to {url}: {exc}."
        detail = ErrorDetail(code=0, message=message, constraint_violations=[])
        _log_error(message, detail)
        return DynatraceAPIError(message, detail)

    def _page_limit_reached(self, path: str, limit: int) -> PaginationLimitExceeded:
        message = f"Pagination limit of {limit} pages reached for {self._base_url}{path}"
        detail = ErrorDetail(code=0, message=message, constraint_violations=[])
        _log_error(message, detail)
        return PaginationLimitExceeded(message, detail)

    @staticmethod
    def _log_request(method: HttpMethod, url: str, params: dict[str, Any] | None, body: Any) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        message = f"Making {method.value} request to {url}"
        if params:
            message += f" with params {json.dumps(params, default=str)}"
        if body is not None:
            message += f" and body {json.dumps(body, default=str)}"
        logger.debug(message)


def _decode(response: httpx.Response, decoding: ResponseDecoding, response_model: Any) -> Any:
    if decoding is ResponseDecoding.BINARY:
        return response.content
    data = response.json() if response.content else None
    if response_model is None:
        return data
    return TypeAdapter(response_model).validate_python(data)


def _parse_error_body(failure: HttpStatusError) -> tuple[Any, ErrorDetail]:
    """Extrae el `ErrorDetail` del sobre `{error: {...}}`.

    Si el cuerpo no es un sobre válido se construye un detalle con el status
    y el texto crudo de la respuesta.
    """

    text = failure.body.decode("utf-8", errors="replace").strip()
    try:
        payload = json.loads(text) if text else None
    except ValueError:
        payload = None

    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        try:
            detail = ErrorEnvelope.model_validate(payload).error
        except ValidationError:
            detail = None
        if detail is not None:
            if "code" not in payload["error"]:
                detail = detail.model_copy(update={"code": failure.status})
            return payload, detail

    return payload, ErrorDetail(code=failure.status, message=text or failure.reason_phrase)


def _log_error(message: str, detail: ErrorDetail) -> None:
    logger.error("%s | detail=%s", message, detail.model_dump_json(by_alias=True))
