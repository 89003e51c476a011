"""
Contrato del store de tags.

Define las operaciones que el sincronizador necesita del content store e
incluye una implementación en memoria (dry-run y tests).
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set

from .identifiers import tag_path, validate_tag_id
from .models import TITLE_PROPERTY_PREFIX, TagNode

logger = logging.getLogger(__name__)


class TagStore(ABC):
    """
    Store de tags con semántica transaccional.

    Los cambios hechos con create_tag/set_property quedan pendientes hasta
    commit(); rollback() los descarta.
    """

    @abstractmethod
    def resolve(self, tag_id: str) -> Optional[TagNode]:
        """Obtiene un nodo por id o None si no existe."""
        pass

    @abstractmethod
    def create_tag(self, tag_id: str, title: str, path: str) -> TagNode:
        """
        Crea un nodo. Si el id ya existe devuelve el existente sin cambios.

        Raises:
            InvalidIdentifierError: Si el id no cumple las reglas de nombres.
        """
        pass

    @abstractmethod
    def set_property(self, tag_id: str, name: str, value: str) -> None:
        """Escribe una propiedad en un nodo existente."""
        pass

    @abstractmethod
    def list_children(self, path: str) -> Optional[List[str]]:
        """
        Lista las páginas hijas inmediatas de un path.

        Returns:
            Paths de las hijas, o None si el path no existe.
        """
        pass

    @abstractmethod
    def commit(self) -> None:
        """
        Persiste los cambios pendientes.

        Raises:
            PersistenceError: Si no se pudo persistir.
        """
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Descarta los cambios pendientes."""
        pass

    def close(self) -> None:
        """Libera la sesión con el store."""
        pass

    def set_localized_title(self, tag_id: str, locale: str, title: str) -> None:
        """Guarda el título traducido como propiedad "title.<locale>"."""
        self.set_property(tag_id, f"{TITLE_PROPERTY_PREFIX}{locale}", title)


class InMemoryTagStore(TagStore):
    """Store en memoria con commit/rollback."""

    def __init__(self, pages: Optional[List[str]] = None):
        """
        Inicializa el store.

        Args:
            pages: Paths de páginas de contenido existentes (para publicar).
        """
        self._committed: Dict[str, TagNode] = {}
        self._working: Dict[str, TagNode] = {}
        self.pages: Set[str] = set(pages or [])
        self.commits = 0
        self.closed = False

    @property
    def committed_nodes(self) -> Dict[str, TagNode]:
        """Nodos persistidos (sin los cambios pendientes)."""
        return dict(self._committed)

    def resolve(self, tag_id: str) -> Optional[TagNode]:
        return self._working.get(tag_id)

    def create_tag(self, tag_id: str, title: str, path: str) -> TagNode:
        validate_tag_id(tag_id)
        existing = self._working.get(tag_id)
        if existing:
            return existing
        node = TagNode(id=tag_id, path=path or tag_path(tag_id), title=title)
        self._working[tag_id] = node
        logger.debug(f"Tag creado: {tag_id} ({title})")
        return node

    def set_property(self, tag_id: str, name: str, value: str) -> None:
        node = self._working[tag_id]
        if name.startswith(TITLE_PROPERTY_PREFIX):
            locale = name[len(TITLE_PROPERTY_PREFIX):]
            node.localized_titles[locale] = value
        else:
            raise KeyError(f"Propiedad no soportada: {name}")

    def list_children(self, path: str) -> Optional[List[str]]:
        path = path.rstrip("/")
        if path not in self.pages:
            return None
        prefix = path + "/"
        return sorted(
            page for page in self.pages
            if page.startswith(prefix) and "/" not in page[len(prefix):]
        )

    def commit(self) -> None:
        self._committed = copy.deepcopy(self._working)
        self.commits += 1

    def rollback(self) -> None:
        self._working = copy.deepcopy(self._committed)

    def close(self) -> None:
        self.closed = True


@contextmanager
def store_session(store: TagStore) -> Iterator[TagStore]:
    """
    Sesión de un run: entrega el store y lo libera siempre al salir.

    Si el run falla, los cambios no confirmados se descartan.
    """
    try:
        yield store
    except Exception:
        logger.warning("Run interrumpido: descartando cambios sin commit")
        store.rollback()
        raise
    finally:
        store.close()
