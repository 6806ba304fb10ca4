"""Frontera de transporte sobre httpx.

- `build_async_client` centraliza timeouts/headers/TLS para todas las llamadas.
- `send` traduce los fallos de httpx a un conjunto cerrado de variantes
  (`ConnectionFailed`, `HttpStatusError`, `Cancelled`), envueltas en
  `TransportError`. El normalizador de errores del cliente trabaja solo con
  estas variantes.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Union

import httpx

from core.cancellation import CancelToken
from core.config import AppSettings

USER_AGENT = "dt-ext-copilot/0.1"


@dataclass(frozen=True)
class ConnectionFailed:
    """El request salió pero no llegó respuesta (conexión rechazada, timeout...)."""

    message: str


@dataclass(frozen=True)
class HttpStatusError:
    """El servidor respondió con status >= 400."""

    status: int
    body: bytes
    reason_phrase: str = ""


@dataclass(frozen=True)
class Cancelled:
    """El `CancelToken` se disparó antes o durante la llamada."""


TransportFailure = Union[ConnectionFailed, HttpStatusError, Cancelled]


class TransportError(Exception):
    def __init__(self, failure: TransportFailure) -> None:
        super().__init__(repr(failure))
        self.failure = failure


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con los defaults del proyecto.

    `transport` permite inyectar un `httpx.MockTransport` en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": USER_AGENT,
        "Accept": "application/json, text/plain, */*",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        verify=settings.verify_ssl,
        headers=headers,
        transport=transport,
    )


async def send(
    client: httpx.AsyncClient,
    request: httpx.Request,
    cancel: CancelToken | None = None,
) -> httpx.Response:
    """Envía `request` y devuelve la respuesta si su status es < 400.

    Raises:
        TransportError: con la variante que describe el fallo.
    """

    if cancel is not None and cancel.cancelled:
        raise TransportError(Cancelled())

    try:
        if cancel is None:
            response = await client.send(request)
        else:
            response = await _send_cancellable(client, request, cancel)
    except (httpx.UnsupportedProtocol, httpx.LocalProtocolError):
        # El request no llegó a salir: no es un fallo de conectividad.
        raise
    except httpx.TransportError as exc:
        raise TransportError(ConnectionFailed(str(exc) or exc.__class__.__name__)) from exc

    if response.status_code >= 400:
        raise TransportError(
            HttpStatusError(
                status=response.status_code,
                body=response.content,
                reason_phrase=response.reason_phrase,
            )
        )
    return response


async def _send_cancellable(
    client: httpx.AsyncClient,
    request: httpx.Request,
    cancel: CancelToken,
) -> httpx.Response:
    send_task = asyncio.ensure_future(client.send(request))
    cancel_task = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait(
            {send_task, cancel_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
    except BaseException:
        # Cancelación externa de la tarea que espera.
        send_task.cancel()
        cancel_task.cancel()
        raise
    cancel_task.cancel()

    if send_task in done:
        return send_task.result()

    send_task.cancel()
    # Recoge la tarea abandonada para que no quede una excepción sin leer.
    await asyncio.gather(send_task, return_exceptions=True)
    raise TransportError(Cancelled())
