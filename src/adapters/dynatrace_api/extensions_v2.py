"""Extensions API v2: paquetes Extension 2.0.

Endpoints bajo `/api/v2/extensions`:
- listado de extensiones y de versiones de una extensión,
- subida (o solo validación) de un paquete .zip,
- borrado de una versión,
- configuración de entorno (versión activa).
"""

from __future__ import annotations

from core.cancellation import CancelToken
from core.domain.errors import DynatraceAPIError
from core.domain.models import (
    EndpointRequest,
    ExtensionDetails,
    ExtensionEnvironmentConfiguration,
    ExtensionVersion,
    FileAttachment,
    HttpMethod,
)
from core.interfaces.api_client import ApiClient

UPLOAD_FILENAME = "extension.zip"


class ExtensionsServiceV2:
    _endpoint = "/api/v2/extensions"

    def __init__(self, http_client: ApiClient) -> None:
        self._http_client = http_client

    async def list(self, name: str | None = None, cancel: CancelToken | None = None) -> list[ExtensionVersion]:
        """Extensiones 2.0 del entorno (opcionalmente filtradas por nombre)."""

        return await self._http_client.paginated_call(
            self._endpoint,
            "extensions",
            params={"name": name},
            item_model=ExtensionVersion,
            cancel=cancel,
        )

    async def list_versions(self, extension_name: str, cancel: CancelToken | None = None) -> list[ExtensionVersion]:
        """Versiones subidas de `extension_name`, en el orden que devuelve el servidor."""

        return await self._http_client.paginated_call(
            f"{self._endpoint}/{extension_name}",
            "extensions",
            item_model=ExtensionVersion,
            cancel=cancel,
        )

    async def upload(
        self,
        content: bytes,
        validate_only: bool = False,
        cancel: CancelToken | None = None,
        filename: str = UPLOAD_FILENAME,
    ) -> ExtensionDetails:
        """Sube un paquete firmado como `filename`. Con `validate_only` el servidor solo lo valida."""

        return await self._http_client.execute(
            EndpointRequest(
                path=self._endpoint,
                method=HttpMethod.POST,
                params={"validateOnly": validate_only},
                file=FileAttachment(content=content, name=filename),
                cancel=cancel,
            ),
            response_model=ExtensionDetails,
        )

    async def delete_version(self, extension_name: str, version: str, cancel: CancelToken | None = None) -> None:
        await self._http_client.execute(
            EndpointRequest(
                path=f"{self._endpoint}/{extension_name}/{version}",
                method=HttpMethod.DELETE,
                cancel=cancel,
            )
        )

    async def get_environment_configuration(
        self,
        extension_name: str,
        cancel: CancelToken | None = None,
    ) -> ExtensionEnvironmentConfiguration | None:
        """Versión activa en el entorno, o `None` si la extensión no está activada (404)."""

        try:
            return await self._http_client.execute(
                EndpointRequest(
                    path=f"{self._endpoint}/{extension_name}/environmentConfiguration",
                    cancel=cancel,
                ),
                response_model=ExtensionEnvironmentConfiguration,
            )
        except DynatraceAPIError as err:
            if err.status_code == 404:
                return None
            raise

    async def put_environment_configuration(
        self,
        extension_name: str,
        version: str,
        cancel: CancelToken | None = None,
    ) -> None:
        """Activa `version` en el entorno (actualiza la configuración existente)."""

        await self._http_client.execute(
            EndpointRequest(
                path=f"{self._endpoint}/{extension_name}/environmentConfiguration",
                method=HttpMethod.PUT,
                body={"version": version},
                cancel=cancel,
            )
        )

    async def post_environment_configuration(
        self,
        extension_name: str,
        version: str,
        cancel: CancelToken | None = None,
    ) -> None:
        """Activa `version` cuando la extensión aún no tiene configuración de entorno."""

        await self._http_client.execute(
            EndpointRequest(
                path=f"{self._endpoint}/{extension_name}/environmentConfiguration",
                method=HttpMethod.POST,
                body={"version": version},
                cancel=cancel,
            )
        )
