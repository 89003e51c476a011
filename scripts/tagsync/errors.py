"""
Jerarquía de errores del sincronizador de tags.
"""

from __future__ import annotations


class TagSyncError(Exception):
    """Error base del sincronizador."""


class ConfigError(TagSyncError, ValueError):
    """Configuración inválida (descriptores de API o de locales)."""


class FetchError(TagSyncError):
    """Fallo de red, timeout o JSON inválido al consultar la API remota."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} ({url})")
        self.url = url


class InvalidItemError(TagSyncError, ValueError):
    """Elemento de la respuesta sin los campos mínimos."""


class InvalidIdentifierError(TagSyncError, ValueError):
    """El id derivado no cumple las reglas de nombres del store."""


class PersistenceError(TagSyncError):
    """Fallo al persistir (commit) en el store de tags."""


class PublishError(TagSyncError):
    """Fallo al activar (publicar) una página de la taxonomía."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{message} ({path})")
        self.path = path
