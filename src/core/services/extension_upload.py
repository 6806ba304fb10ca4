"""Extension 2.0 upload workflows.

These helpers sit on top of the Extensions v2 service and hold the retry
policies that the HTTP client deliberately does not have:

- a tenant keeps at most ``MAX_EXTENSION_VERSIONS`` versions per extension, so
  a fast deploy deletes the oldest one (or the newest, if the oldest cannot be
  removed) before uploading;
- version deletion is asynchronous on the tenant, so an upload rejected with
  the "Extension versions quantity limit" message is retried after a short
  wait until the slot is actually free.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from adapters.dynatrace_api import Dynatrace
from adapters.dynatrace_api.extensions_v2 import UPLOAD_FILENAME
from core.cancellation import CancelToken
from core.domain.errors import DynatraceAPIError, ErrorReason, RequestCancelledError
from core.domain.models import ExtensionDetails, ExtensionVersion

logger = logging.getLogger(__name__)

MAX_EXTENSION_VERSIONS = 10


@dataclass
class ValidationOutcome:
    """Result of a validate-only upload."""

    valid: bool
    details: ExtensionDetails | None = None
    error: DynatraceAPIError | None = None


@dataclass
class UploadResult:
    """Output of `upload_and_activate`."""

    extension_name: str
    version: str
    attempts: int
    deleted_version: str | None = None


async def validate_extension(
    dt: Dynatrace,
    content: bytes,
    *,
    filename: str = UPLOAD_FILENAME,
    cancel: CancelToken | None = None,
) -> ValidationOutcome:
    """Ask the tenant to validate a signed package without installing it.

    Cancellation is not a validation result and propagates as
    `RequestCancelledError`.
    """

    try:
        details = await dt.extensions_v2.upload(content, validate_only=True, filename=filename, cancel=cancel)
    except DynatraceAPIError as err:
        return ValidationOutcome(valid=False, error=err)
    return ValidationOutcome(valid=True, details=details)


async def list_versions_or_empty(
    dt: Dynatrace,
    extension_name: str,
    cancel: CancelToken | None = None,
) -> list[ExtensionVersion]:
    """Versions of an extension; an extension unknown to the tenant has none."""

    try:
        return await dt.extensions_v2.list_versions(extension_name, cancel=cancel)
    except DynatraceAPIError as err:
        logger.warning("Could not list versions of %s: %s", extension_name, err.message)
        return []


async def version_exists(
    dt: Dynatrace,
    extension_name: str,
    version: str,
    cancel: CancelToken | None = None,
) -> bool:
    versions = await list_versions_or_empty(dt, extension_name, cancel=cancel)
    return any(v.version == version for v in versions)


async def free_version_slot(
    dt: Dynatrace,
    extension_name: str,
    versions: list[ExtensionVersion],
    cancel: CancelToken | None = None,
) -> str | None:
    """Delete one version when the tenant limit is reached.

    Returns the deleted version, or ``None`` when nothing had to be deleted.
    """

    if len(versions) < MAX_EXTENSION_VERSIONS:
        return None

    oldest = versions[0].version
    try:
        await dt.extensions_v2.delete_version(extension_name, oldest, cancel=cancel)
        return oldest
    except DynatraceAPIError as err:
        logger.warning("Could not delete oldest version %s: %s", oldest, err.message)

    newest = versions[-1].version
    await dt.extensions_v2.delete_version(extension_name, newest, cancel=cancel)
    return newest


async def activate_version(
    dt: Dynatrace,
    extension_name: str,
    version: str,
    cancel: CancelToken | None = None,
) -> None:
    """Make `version` the active one in the environment."""

    current = await dt.extensions_v2.get_environment_configuration(extension_name, cancel=cancel)
    if current is None:
        await dt.extensions_v2.post_environment_configuration(extension_name, version, cancel=cancel)
    else:
        await dt.extensions_v2.put_environment_configuration(extension_name, version, cancel=cancel)


async def upload_and_activate(
    dt: Dynatrace,
    extension_name: str,
    version: str,
    content: bytes,
    *,
    poll_interval: float = 1.0,
    max_attempts: int | None = None,
    filename: str = UPLOAD_FILENAME,
    cancel: CancelToken | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> UploadResult:
    """Upload a package and activate it, making room on the tenant if needed.

    Any error other than the version quantity limit is re-raised unchanged, as
    is the quantity-limit error itself once ``max_attempts`` uploads failed.
    A fired ``cancel`` token also stops the polling between attempts.
    """

    versions = await list_versions_or_empty(dt, extension_name, cancel=cancel)
    deleted = await free_version_slot(dt, extension_name, versions, cancel=cancel)

    attempts = 0
    while True:
        attempts += 1
        try:
            await dt.extensions_v2.upload(content, filename=filename, cancel=cancel)
            break
        except DynatraceAPIError as err:
            if err.reason is not ErrorReason.VERSION_QUANTITY_LIMIT:
                raise
            if max_attempts is not None and attempts >= max_attempts:
                raise
            logger.info(
                "Version limit still reached for %s (attempt %d), retrying in %.1fs",
                extension_name,
                attempts,
                poll_interval,
            )
            await sleep(poll_interval)
            if cancel is not None and cancel.cancelled:
                raise RequestCancelledError(f"{dt.base_url}/api/v2/extensions") from err

    await activate_version(dt, extension_name, version, cancel=cancel)
    return UploadResult(
        extension_name=extension_name,
        version=version,
        attempts=attempts,
        deleted_version=deleted,
    )
