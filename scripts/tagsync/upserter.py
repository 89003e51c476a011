"""
Creación idempotente del árbol de tags.

Soporta tres formas:
- Tags planos: exl:<parent>/<id(nombre)>
- Tags de dos niveles: exl:<parent>/<id(jerarquía)>/<id(nombre)>
- Soluciones con versiones y sus features
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from .errors import FetchError, InvalidIdentifierError, InvalidItemError
from .http_client import HttpClient
from .identifiers import build_tag_id, tag_path
from .locales import LocaleProjector
from .models import (
    FEATURE_TAG_NAME,
    ItemOutcome,
    LocaleConfig,
    OutcomeStatus,
    TaxonomyItem,
)
from .store import TagStore

logger = logging.getLogger(__name__)


class TagUpserter:
    """
    Crea tags bajo el namespace "exl:".

    Crear un id que ya existe no hace nada, así que repetir un run no
    duplica nodos.
    """

    def __init__(
        self,
        store: TagStore,
        http_client: Optional[HttpClient] = None,
        locales: Optional[LocaleConfig] = None,
        projector: Optional[LocaleProjector] = None,
    ):
        """
        Inicializa el upserter.

        Args:
            store: Store de tags de la sesión actual.
            http_client: Cliente para la consulta de features.
            locales: Locales en los que se consultan los features.
            projector: Proyector de traducciones (por defecto uno sobre store).
        """
        self.store = store
        self.http = http_client
        self.locales = locales or LocaleConfig.of(("en", "en"))
        self.projector = projector or LocaleProjector(store)
        self._solutions_with_features: Set[str] = set()

    def create_tag(
        self,
        parent_tag_name: str,
        leaf_name: str,
        hierarchy: Optional[str] = None,
    ) -> List[ItemOutcome]:
        """
        Crea un tag, y antes su nodo de jerarquía si se indica.

        El nodo de jerarquía se crea explícitamente para que tenga título;
        si lo creara implícitamente la creación de la hoja quedaría sin él.

        Args:
            parent_tag_name: Categoría (Levels, Solution, feature...).
            leaf_name: Nombre del tag.
            hierarchy: Segmento intermedio opcional (ej: nombre de solución).

        Returns:
            Resultado de la hoja, precedido del de la jerarquía cuando ésta
            se creó o falló en esta llamada (una jerarquía ya existente no
            se cuenta de nuevo por cada hoja).
        """
        if not leaf_name or not leaf_name.strip():
            return [ItemOutcome.skipped("nombre vacío")]

        outcomes: List[ItemOutcome] = []
        if hierarchy and hierarchy.strip():
            hierarchy_id = build_tag_id(parent_tag_name, hierarchy)
            hierarchy_outcome = self._create_node(hierarchy_id, hierarchy)
            if hierarchy_outcome.status != OutcomeStatus.UNCHANGED:
                outcomes.append(hierarchy_outcome)

        tag_id = build_tag_id(parent_tag_name, leaf_name, hierarchy)
        outcomes.append(self._create_node(tag_id, leaf_name))
        return outcomes

    def _create_node(self, tag_id: str, title: str) -> ItemOutcome:
        if self.store.resolve(tag_id) is not None:
            return ItemOutcome(OutcomeStatus.UNCHANGED, tag_id=tag_id)
        try:
            self.store.create_tag(tag_id, title, tag_path(tag_id))
        except InvalidIdentifierError as e:
            logger.error(f"Error al crear el tag {tag_id}: {e}")
            return ItemOutcome.skipped(str(e), tag_id)
        logger.debug(f"Tag creado: {tag_id} ({title})")
        return ItemOutcome(OutcomeStatus.CREATED, tag_id=tag_id)

    def create_solution_tag(
        self,
        parent_tag_name: str,
        item: TaxonomyItem,
    ) -> List[ItemOutcome]:
        """
        Crea el tag de una solución y, si aplica, sus versiones.

        - {"Name": "Experience Manager", "Versions": ["6.4", "6.5"]} crea
          6.4 y 6.5 bajo Experience Manager.
        - {"Name": "Experience Manager 6.4", "Nested": true, ...} no crea
          nada: es una subsolución de otra.
        - Sin clave "Versions" crea un único tag plano con el nombre.
        """
        if not item.name.strip():
            return [ItemOutcome.skipped("solución sin nombre")]

        if item.versions is None:
            return self.create_tag(parent_tag_name, item.name)

        if item.nested:
            logger.debug(f"Solución anidada, sin versiones: {item.name}")
            return []

        outcomes: List[ItemOutcome] = []
        for version in item.versions:
            outcomes.extend(self.create_tag(parent_tag_name, version, item.name))
        return outcomes

    def create_feature_tags(
        self,
        features_url: str,
        solution_item: TaxonomyItem,
    ) -> List[ItemOutcome]:
        """
        Crea los tags de features de una solución.

        Hace un fetch por locale filtrando por la solución. En el locale
        primario crea feature/<solución>/<feature>; en el resto guarda la
        traducción en ese nodo. Los fallos de fetch de un locale se
        registran y no interrumpen la categoría.

        Args:
            features_url: Endpoint de features.
            solution_item: Solución cuyos features se consultan.

        Returns:
            Resultados de cada feature procesado.
        """
        solution_name = solution_item.name.strip()
        if not solution_name or self.http is None:
            return []

        if solution_name in self._solutions_with_features:
            return []
        self._solutions_with_features.add(solution_name)

        outcomes: List[ItemOutcome] = []
        for locale in self.locales:
            params = {"Solution": solution_name, "lang": locale.api_locale}
            try:
                data = self.http.get_data(features_url, params=params)
            except FetchError as e:
                logger.error(
                    f"Error al obtener features de '{solution_name}' "
                    f"[{locale.api_locale}]: {e}"
                )
                continue

            for element in data or []:
                try:
                    feature = TaxonomyItem.from_json(element)
                except InvalidItemError as e:
                    logger.warning(f"Feature descartado: {e}")
                    outcomes.append(ItemOutcome.skipped(str(e)))
                    continue

                if locale.is_primary:
                    outcomes.extend(
                        self.create_tag(FEATURE_TAG_NAME, feature.name, solution_name)
                    )
                elif feature.english_name:
                    canonical_id = build_tag_id(
                        FEATURE_TAG_NAME, feature.english_name, solution_name
                    )
                    outcomes.append(
                        self.projector.project_locale(
                            canonical_id, feature, locale.content_locale
                        )
                    )
                else:
                    outcomes.append(ItemOutcome.skipped(
                        f"feature sin nombre en inglés: {feature.name}"
                    ))

        return outcomes

