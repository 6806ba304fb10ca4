"""Cancelación cooperativa de llamadas HTTP.

Un `CancelToken` se pasa a una o varias llamadas; cuando se dispara, el
transporte abandona el request en curso y la llamada falla con
`RequestCancelledError`. Los timeouts se construyen encima con `cancel_after`.
"""

from __future__ import annotations

import asyncio


class CancelToken:
    """Handle de cancelación (equivalente a una señal de aborto)."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def wait(self) -> None:
        await self._event.wait()

    def cancel_after(self, seconds: float) -> "CancelToken":
        """Programa la cancelación dentro de `seconds`. Requiere un loop activo."""

        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(seconds, self.cancel)
        return self

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"
