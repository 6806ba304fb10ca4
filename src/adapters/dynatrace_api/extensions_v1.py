"""Extensions API v1 (Configuration API): extensiones 1.0 ya subidas."""

from __future__ import annotations

from core.cancellation import CancelToken
from core.domain.models import EndpointRequest, ExtensionV1, ResponseDecoding
from core.interfaces.api_client import ApiClient


class ExtensionsServiceV1:
    _endpoint = "/api/config/v1/extensions"

    def __init__(self, http_client: ApiClient) -> None:
        self._http_client = http_client

    async def list_extensions(self, cancel: CancelToken | None = None) -> list[ExtensionV1]:
        return await self._http_client.paginated_call(
            self._endpoint,
            "extensions",
            item_model=ExtensionV1,
            cancel=cancel,
        )

    async def get_extension_binary(self, extension_id: str, cancel: CancelToken | None = None) -> bytes:
        """Descarga el .zip de una extensión 1.0."""

        return await self._http_client.execute(
            EndpointRequest(
                path=f"{self._endpoint}/{extension_id}/binary",
                decoding=ResponseDecoding.BINARY,
                cancel=cancel,
            )
        )
