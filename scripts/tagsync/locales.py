"""
Proyección de traducciones sobre el nodo canónico.

Los locales no primarios no crean nodos: el nombre traducido se guarda como
propiedad "title.<locale>" del nodo creado por el locale primario.
"""

from __future__ import annotations

import logging

from .models import ItemOutcome, OutcomeStatus, TaxonomyItem
from .store import TagStore

logger = logging.getLogger(__name__)


class LocaleProjector:
    """Escribe títulos traducidos en nodos canónicos existentes."""

    def __init__(self, store: TagStore):
        self.store = store

    def project_locale(
        self,
        canonical_id: str,
        item: TaxonomyItem,
        locale: str,
    ) -> ItemOutcome:
        """
        Guarda item.name como título del locale en el nodo canónico.

        Si el nodo no existe (el item no vino en la respuesta del locale
        primario) la traducción se descarta.
        """
        node = self.store.resolve(canonical_id)
        if node is None:
            logger.debug(
                f"Nodo canónico no encontrado, traducción descartada: "
                f"{canonical_id} [{locale}] {item.name}"
            )
            return ItemOutcome.skipped("nodo canónico inexistente", canonical_id)

        if node.localized_titles.get(locale) == item.name:
            return ItemOutcome(OutcomeStatus.UNCHANGED, tag_id=canonical_id)

        self.store.set_localized_title(canonical_id, locale, item.name)
        return ItemOutcome(OutcomeStatus.LOCALIZED, tag_id=canonical_id)
