from __future__ import annotations

from importlib import metadata
from importlib.metadata import PackageNotFoundError


def tool_version() -> str:
    """
    Версия установленного пакета.
    Не зависит от остальных модулей (во избежание циклов).
    """
    try:
        return metadata.version("liquid-edit-core")
    except PackageNotFoundError:
        return "0.0.0"

__all__ = ["tool_version"]
