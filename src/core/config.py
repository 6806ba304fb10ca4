"""Configuración del Core.

- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Adaptadores (HTTP/servicios) y comandos leen la misma configuración.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "DT_EXT_"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "dt-ext-copilot"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "dt-ext-copilot"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "dt-ext-copilot"
    return Path.home() / ".config" / "dt-ext-copilot"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None], env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario.

    Las claves con valor `None` se ignoran; el resto sobrescribe lo existente.
    """

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# dt-ext-copilot user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Todas las variables usan el prefijo `DT_EXT_` (p.ej. `DT_EXT_TENANT_URL`).
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    tenant_url: str | None = Field(
        default=None,
        description="Base URL del entorno Dynatrace (p.ej. https://abc123.live.dynatrace.com).",
    )
    api_token: str | None = Field(
        default=None,
        description="API token enviado como `Authorization: Api-Token <token>`.",
    )

    http_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Timeout por request (segundos). `None` desactiva el timeout.",
    )
    verify_ssl: bool = Field(
        default=True,
        description="Verificar certificados TLS del tenant.",
    )
    max_pages: int | None = Field(
        default=None,
        ge=1,
        description="Límite de páginas por llamada paginada. `None` = sin límite.",
    )

    upload_poll_interval: float = Field(
        default=1.0,
        ge=0,
        description="Espera (segundos) entre reintentos de subida por límite de versiones.",
    )

    log_level: str = Field(
        default="WARNING",
        min_length=1,
        description="Nivel de logging para la CLI (DEBUG, INFO, WARNING, ERROR).",
    )

    @field_validator("tenant_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()
