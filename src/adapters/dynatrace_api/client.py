"""Cliente Dynatrace: una sesión HTTP + los servicios de recursos."""

from __future__ import annotations

import httpx

from adapters.dynatrace_api.entities_v2 import EntityServiceV2
from adapters.dynatrace_api.extensions_v1 import ExtensionsServiceV1
from adapters.dynatrace_api.extensions_v2 import ExtensionsServiceV2
from adapters.http_client import DynatraceHttpClient
from core.config import AppSettings
from core.domain.errors import ConfigurationError


class Dynatrace:
    """Punto de entrada a las APIs de un tenant.

    Los servicios comparten el mismo `DynatraceHttpClient` (sin estado mutable).
    """

    def __init__(
        self,
        base_url: str,
        api_token: str,
        *,
        settings: AppSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.http_client = DynatraceHttpClient(
            base_url,
            api_token,
            settings=settings,
            transport=transport,
        )
        self.entities_v2 = EntityServiceV2(self.http_client)
        self.extensions_v1 = ExtensionsServiceV1(self.http_client)
        self.extensions_v2 = ExtensionsServiceV2(self.http_client)

    @property
    def base_url(self) -> str:
        return self.http_client.base_url

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "Dynatrace":
        settings = settings or AppSettings()
        if not settings.tenant_url:
            raise ConfigurationError("Tenant URL not configured (set DT_EXT_TENANT_URL).")
        if not settings.api_token:
            raise ConfigurationError("API token not configured (set DT_EXT_API_TOKEN).")
        return cls(settings.tenant_url, settings.api_token, settings=settings, transport=transport)
