"""Shared fixtures: settings isolated from the user's .env and a scripted HTTP transport."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from adapters.dynatrace_api import Dynatrace
from adapters.http_client import DynatraceHttpClient
from core.config import AppSettings

BASE_URL = "https://abc12345.live.dynatrace.com"
TOKEN = "dt0c01.TESTTOKEN"


class ScriptedTransport:
    """Replies to requests in order with the queued responses and records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Callable[[httpx.Request], Any]] = []

    def queue(self, *responses: httpx.Response | Callable[[httpx.Request], Any]) -> "ScriptedTransport":
        self._responses.extend(responses)
        return self

    def queue_json(self, *payloads: Any, status_code: int = 200) -> "ScriptedTransport":
        return self.queue(*(httpx.Response(status_code, json=payload) for payload in payloads))

    def __call__(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self._responses.pop(0)
        if callable(response):
            return response(request)
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(_env_file=None, tenant_url=BASE_URL, api_token=TOKEN)


@pytest.fixture
def scripted() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def http_client(settings: AppSettings, scripted: ScriptedTransport) -> DynatraceHttpClient:
    return DynatraceHttpClient(BASE_URL, TOKEN, settings=settings, transport=scripted.transport)


@pytest.fixture
def dt(settings: AppSettings, scripted: ScriptedTransport) -> Dynatrace:
    return Dynatrace(BASE_URL, TOKEN, settings=settings, transport=scripted.transport)
