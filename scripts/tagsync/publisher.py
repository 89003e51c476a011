"""
Publicación (activación) de las páginas de la taxonomía.

Tras sincronizar los tags se activan las páginas hijas de la raíz de la
taxonomía para que los consumidores vean los cambios.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import requests

from .errors import PublishError
from .store import TagStore

logger = logging.getLogger(__name__)


class Activator(ABC):
    """Mecanismo de activación de una página."""

    @abstractmethod
    def activate(self, path: str) -> None:
        """
        Activa (publica) un path.

        Raises:
            PublishError: Si la activación falla.
        """
        pass


class HttpActivator(Activator):
    """Activa páginas enviando una petición al endpoint de publicación."""

    def __init__(self, publish_url: str, timeout: float = 120):
        """
        Inicializa el activador.

        Args:
            publish_url: URL del endpoint de publicación.
            timeout: Timeout por request en segundos.
        """
        if not publish_url:
            raise ValueError("TAGSYNC_PUBLISH_URL no configurado")
        self.publish_url = publish_url
        self.timeout = timeout
        self.session = requests.Session()

    def activate(self, path: str) -> None:
        try:
            response = self.session.post(
                self.publish_url,
                json={"path": path, "action": "activate"},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise PublishError(path, f"Error al activar: {exc}")


class Publisher:
    """Publica las páginas hijas de la raíz de la taxonomía."""

    def __init__(self, store: TagStore, activator: Activator):
        self.store = store
        self.activator = activator

    def publish_taxonomy(self, root: str) -> List[str]:
        """
        Activa cada página hija inmediata de root.

        Una raíz inexistente o sin hijas solo se registra. El primer fallo
        de activación aborta la etapa; lo ya persistido no se revierte.

        Args:
            root: Path de la raíz de la taxonomía.

        Returns:
            Paths activados.

        Raises:
            PublishError: Si falla alguna activación.
        """
        children: Optional[List[str]] = self.store.list_children(root)
        if children is None:
            logger.error(f"Carpeta de taxonomía no encontrada: {root}")
            return []
        if not children:
            logger.warning(f"No hay páginas en la carpeta de taxonomía: {root}")
            return []

        published = []
        for path in children:
            self.activator.activate(path)
            logger.info(f"Página activada: {path}")
            published.append(path)

        logger.info(f"Publicación completa: {len(published)} páginas")
        return published
