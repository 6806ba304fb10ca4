"""Exportación JSON de resultados de la API.

Los comandos de la CLI usan este módulo para `--output` y para la salida `--json`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel


def to_jsonable(data: Any) -> Any:
    """Convierte modelos (o listas de modelos) a estructuras JSON con nombres de cable."""

    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [to_jsonable(item) for item in data]
    return data


def render_json(data: Any) -> str:
    return json.dumps(to_jsonable(data), ensure_ascii=False, indent=2, sort_keys=True)


def export_json(*, data: Any, output_path: Path) -> Path:
    """Exporta `data` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_json(data) + "\n", encoding="utf-8")
    return output_path
