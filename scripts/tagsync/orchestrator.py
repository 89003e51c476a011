"""
Orquestador de la sincronización de tags.

Secuencia de un run: para cada categoría configurada y cada locale (en el
orden configurado) descarga la taxonomía, la despacha al upserter o al
proyector de locales y hace commit por categoría. Al terminar todas las
categorías publica la taxonomía.
"""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional

from .errors import FetchError, InvalidItemError
from .http_client import HttpClient
from .identifiers import build_tag_id
from .locales import LocaleProjector
from .models import (
    ApiEndpointConfig,
    CategoryReport,
    ItemOutcome,
    LocalePair,
    SyncConfig,
    SyncReport,
    TaxonomyItem,
)
from .publisher import Activator, Publisher
from .store import TagStore
from .upserter import TagUpserter

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager]


class SyncState(str, Enum):
    IDLE = "idle"
    FETCHING_CATEGORY = "fetching_category"
    FETCHING_LOCALE = "fetching_locale"
    DISPATCHING = "dispatching"
    COMMITTING_CATEGORY = "committing_category"
    PUBLISHING = "publishing"


class TagSyncOrchestrator:
    """Punto de entrada del job programado."""

    def __init__(
        self,
        config: SyncConfig,
        session_factory: SessionFactory,
        http_client: Optional[HttpClient] = None,
        activator: Optional[Activator] = None,
    ):
        """
        Inicializa el orquestador.

        Args:
            config: Configuración del run.
            session_factory: Devuelve un context manager que entrega el
                TagStore de la sesión y la libera al salir.
            http_client: Cliente de la API de taxonomía.
            activator: Mecanismo de publicación. Sin él no se publica.
        """
        self.config = config
        self.session_factory = session_factory
        self.http = http_client or HttpClient(
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )
        self.activator = activator
        self.state = SyncState.IDLE
        self._warned_missing_features = False

    def run(self, publish: bool = True) -> SyncReport:
        """
        Ejecuta un run completo.

        Args:
            publish: Si False, no ejecuta la etapa de publicación.

        Returns:
            Resumen del run.

        Raises:
            FetchError: Si falla la descarga de una categoría/locale.
            PersistenceError: Si falla el commit de una categoría.
            PublishError: Si falla la activación de una página.
        """
        report = SyncReport()
        self._warned_missing_features = False

        if self.config.locales.pairs and not self.config.locales.pairs[0].is_primary:
            logger.warning(
                "El locale primario no es el primero: las traducciones sin "
                "nodo canónico se descartarán"
            )

        try:
            with self.session_factory() as store:
                upserter = TagUpserter(
                    store,
                    http_client=self.http,
                    locales=self.config.locales,
                    projector=LocaleProjector(store),
                )

                for api in self.config.categories:
                    category = CategoryReport(parent_tag_name=api.parent_tag_name)
                    report.categories.append(category)
                    self._sync_category(api, store, upserter, category)

                if publish and self.activator is not None:
                    self.state = SyncState.PUBLISHING
                    publisher = Publisher(store, self.activator)
                    report.published = publisher.publish_taxonomy(
                        self.config.taxonomy_root
                    )
                elif publish:
                    logger.info("Sin activador configurado: no se publica")
        finally:
            self.state = SyncState.IDLE
            report.finished_at = datetime.now()

        logger.info("Sincronización de tags completada")
        return report

    def _sync_category(
        self,
        api: ApiEndpointConfig,
        store: TagStore,
        upserter: TagUpserter,
        category: CategoryReport,
    ) -> None:
        """Procesa todos los locales de una categoría y hace commit."""
        self.state = SyncState.FETCHING_CATEGORY
        logger.info(f"Tag {api.parent_tag_name}: URL {api.url}: Formato {api.format}")

        for locale in self.config.locales:
            self.state = SyncState.FETCHING_LOCALE
            try:
                data = self.http.get_data(api.url, params={"lang": locale.api_locale})
            except FetchError as e:
                logger.error(
                    f"Error al descargar {api.parent_tag_name} "
                    f"[{locale.api_locale}]: {e}"
                )
                raise

            if data is None:
                continue

            self.state = SyncState.DISPATCHING
            for element in data:
                category.outcomes.extend(
                    self.dispatch_item(api, element, locale, upserter)
                )

        self.state = SyncState.COMMITTING_CATEGORY
        store.commit()
        category.committed = True

        stats = category.stats()
        logger.info(
            f"  -> {api.parent_tag_name}: {stats['created']} creados | "
            f"{stats['localized']} traducidos | {stats['unchanged']} sin cambios | "
            f"{stats['skipped']} omitidos"
        )

    def dispatch_item(
        self,
        api: ApiEndpointConfig,
        element: Any,
        locale: LocalePair,
        upserter: TagUpserter,
    ) -> List[ItemOutcome]:
        """
        Despacha un elemento de la respuesta según la categoría y el locale.

        - Solution: tag de solución (con versiones) y sus features.
        - Formato "no-format": el elemento es un string, tag plano.
        - Resto: en el locale primario se crea el tag; en los demás se
          guarda la traducción en el nodo del nombre en inglés.
        """
        if api.is_flat and not api.is_solution:
            if not isinstance(element, str):
                logger.warning(f"Elemento no es string en {api}: {element!r}")
                return [ItemOutcome.skipped("elemento no es string")]
            return upserter.create_tag(api.parent_tag_name, element)

        try:
            item = TaxonomyItem.from_json(element)
        except InvalidItemError as e:
            logger.warning(f"Elemento descartado en {api.parent_tag_name}: {e}")
            return [ItemOutcome.skipped(str(e))]

        if api.is_solution:
            outcomes = upserter.create_solution_tag(api.parent_tag_name, item)
            feature_endpoint = self.config.feature_endpoint
            if feature_endpoint is not None:
                outcomes.extend(upserter.create_feature_tags(feature_endpoint.url, item))
            elif not self._warned_missing_features:
                logger.warning("No hay endpoint de features configurado")
                self._warned_missing_features = True
            return outcomes

        if locale.is_primary:
            return upserter.create_tag(api.parent_tag_name, item.name)

        if not item.english_name:
            logger.debug(
                f"Traducción de {api.parent_tag_name} sin nombre en inglés: {item.name}"
            )
            return [ItemOutcome.skipped(f"sin nombre en inglés: {item.name}")]

        canonical_id = build_tag_id(api.parent_tag_name, item.english_name)
        return [
            upserter.projector.project_locale(
                canonical_id, item, locale.content_locale
            )
        ]
