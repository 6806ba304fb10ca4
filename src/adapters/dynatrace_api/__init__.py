"""Servicios por recurso de la API Dynatrace.

Cada módulo envuelve un grupo de endpoints sobre `core.interfaces.api_client.ApiClient`.
"""

from adapters.dynatrace_api.client import Dynatrace
from adapters.dynatrace_api.entities_v2 import EntityServiceV2
from adapters.dynatrace_api.extensions_v1 import ExtensionsServiceV1
from adapters.dynatrace_api.extensions_v2 import ExtensionsServiceV2

__all__ = [
	"Dynatrace",
	"EntityServiceV2",
	"ExtensionsServiceV1",
	"ExtensionsServiceV2",
]
