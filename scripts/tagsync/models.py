"""
Modelos de datos del sistema de sincronización de tags.

Define el contrato común entre el cliente de la API, el upserter y el store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .errors import ConfigError, InvalidItemError

# Locale que crea los nodos canónicos
PRIMARY_LOCALE = "en"

# Categoría con versiones y features
SOLUTION_TAG_NAME = "Solution"

# Categoría bajo la que se anidan los features de cada solución
FEATURE_TAG_NAME = "feature"

# Formato de respuesta con elementos string planos
FLAT_FORMAT = "no-format"

# Claves del JSON de la API
NAME_KEY = "Name"
ENGLISH_NAME_KEY = "Name_en"
NESTED_KEY = "Nested"
VERSIONS_KEY = "Versions"

# Prefijo de las propiedades con el título traducido
TITLE_PROPERTY_PREFIX = "title."


@dataclass
class TaxonomyItem:
    """
    Elemento devuelto por la API de taxonomía.

    Solo vive durante un ciclo de fetch/dispatch.
    """

    name: str
    english_name: Optional[str] = None
    nested: bool = False
    versions: Optional[List[str]] = None  # None = sin clave "Versions"

    @classmethod
    def from_json(cls, element: Any) -> "TaxonomyItem":
        """
        Construye un item desde un elemento del array "data".

        Raises:
            InvalidItemError: Si no es un objeto, no tiene "Name" o
                "Versions"/"Nested" tienen un tipo inválido.
        """
        if not isinstance(element, dict):
            raise InvalidItemError(f"Elemento no es un objeto: {element!r}")

        name = element.get(NAME_KEY)
        if not isinstance(name, str) or not name.strip():
            raise InvalidItemError(f"Elemento sin '{NAME_KEY}': {element!r}")

        english_name = element.get(ENGLISH_NAME_KEY)
        if not isinstance(english_name, str) or not english_name.strip():
            english_name = None

        # "Versions": null se trata igual que la clave ausente
        versions = None
        raw_versions = element.get(VERSIONS_KEY)
        if raw_versions is not None:
            if not isinstance(raw_versions, list):
                raise InvalidItemError(
                    f"'{VERSIONS_KEY}' no es un array: {element!r}"
                )
            versions = [
                str(v).replace('"', "") for v in raw_versions if v is not None
            ]

        return cls(
            name=name,
            english_name=english_name,
            nested=_parse_nested(element),
            versions=versions,
        )


def _parse_nested(element: Dict[str, Any]) -> bool:
    """Lee "Nested" como booleano JSON o como string "true"/"false"."""
    value = element.get(NESTED_KEY)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise InvalidItemError(f"'{NESTED_KEY}' no es booleano: {element!r}")


@dataclass
class TagNode:
    """Nodo del árbol de tags (siempre el canónico, en el locale primario)."""

    id: str  # "exl:<parent>/[<hierarchyId>/]<leafId>"
    path: str
    title: str
    localized_titles: Dict[str, str] = field(default_factory=dict)

    @property
    def properties(self) -> Dict[str, str]:
        """Títulos traducidos como propiedades "title.<locale>"."""
        return {
            f"{TITLE_PROPERTY_PREFIX}{locale}": title
            for locale, title in self.localized_titles.items()
        }


@dataclass(frozen=True)
class ApiEndpointConfig:
    """
    Endpoint configurado de la API.

    Descriptor: "parentTagName,apiUrl,marker,format". Un marker vacío indica
    una categoría normal; el marker "Solution" identifica el endpoint de
    features que acompaña a la categoría Solution.
    """

    parent_tag_name: str
    url: str
    marker: str = ""
    format: str = "json-format"

    @classmethod
    def parse(cls, descriptor: str) -> "ApiEndpointConfig":
        parts = [p.strip() for p in descriptor.split(",")]
        if len(parts) != 4:
            raise ConfigError(
                f"Descriptor de API inválido (se esperan 4 campos): {descriptor!r}"
            )
        parent_tag_name, url, marker, fmt = parts
        if not parent_tag_name or not url:
            raise ConfigError(f"Descriptor de API sin tag o URL: {descriptor!r}")
        return cls(parent_tag_name=parent_tag_name, url=url, marker=marker, format=fmt)

    @property
    def is_hierarchical(self) -> bool:
        return bool(self.marker)

    @property
    def is_feature_endpoint(self) -> bool:
        return self.marker == SOLUTION_TAG_NAME

    @property
    def is_solution(self) -> bool:
        return self.parent_tag_name == SOLUTION_TAG_NAME

    @property
    def is_flat(self) -> bool:
        return self.format == FLAT_FORMAT

    def __str__(self) -> str:
        return f"{self.parent_tag_name} ({self.url})"


@dataclass(frozen=True)
class LocalePair:
    """Par (locale de la API, locale del contenido)."""

    api_locale: str
    content_locale: str

    @property
    def is_primary(self) -> bool:
        return self.content_locale.lower() == PRIMARY_LOCALE


@dataclass
class LocaleConfig:
    """Lista ordenada de locales; el primario debe ir primero."""

    pairs: List[LocalePair] = field(default_factory=list)

    @classmethod
    def parse(cls, descriptors: List[str]) -> "LocaleConfig":
        pairs = []
        for descriptor in descriptors:
            parts = [p.strip() for p in descriptor.split(",")]
            if len(parts) != 2 or not all(parts):
                raise ConfigError(f"Descriptor de locale inválido: {descriptor!r}")
            pairs.append(LocalePair(api_locale=parts[0], content_locale=parts[1]))
        return cls(pairs=pairs)

    @classmethod
    def of(cls, *pairs: tuple) -> "LocaleConfig":
        """Atajo: LocaleConfig.of(("en", "en"), ("fr", "fr"))."""
        return cls(pairs=[LocalePair(api, content) for api, content in pairs])

    def validate(self) -> None:
        """
        Verifica que el locale primario exista y vaya primero.

        Raises:
            ConfigError: Si la lista está vacía o el orden es incorrecto.
        """
        if not self.pairs:
            raise ConfigError("No hay locales configurados")
        if not self.pairs[0].is_primary:
            raise ConfigError(
                f"El locale primario '{PRIMARY_LOCALE}' debe ir primero, "
                f"encontrado '{self.pairs[0].content_locale}'"
            )

    def __iter__(self) -> Iterator[LocalePair]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)


@dataclass
class SyncConfig:
    """Configuración completa de un run."""

    apis: List[ApiEndpointConfig]
    locales: LocaleConfig
    enabled: bool = True
    concurrent: bool = False
    run_on_leader: bool = True
    is_leader: bool = True
    cron_expression: str = "0 0/5 * 1/1 * ? *"
    taxonomy_root: str = "/content/exlm/taxonomy"
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    publish_url: str = ""

    @property
    def categories(self) -> List[ApiEndpointConfig]:
        """Endpoints que se procesan como categorías (sin marker)."""
        return [api for api in self.apis if not api.is_hierarchical]

    @property
    def feature_endpoint(self) -> Optional[ApiEndpointConfig]:
        for api in self.apis:
            if api.is_feature_endpoint:
                return api
        return None


class OutcomeStatus(str, Enum):
    CREATED = "created"
    UNCHANGED = "unchanged"
    LOCALIZED = "localized"
    SKIPPED = "skipped"


@dataclass
class ItemOutcome:
    """Resultado del procesamiento de un tag o traducción."""

    status: OutcomeStatus
    tag_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def skipped(cls, reason: str, tag_id: Optional[str] = None) -> "ItemOutcome":
        return cls(OutcomeStatus.SKIPPED, tag_id=tag_id, reason=reason)


@dataclass
class CategoryReport:
    """Resultados de una categoría (todos sus locales)."""

    parent_tag_name: str
    outcomes: List[ItemOutcome] = field(default_factory=list)
    committed: bool = False

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def stats(self) -> Dict[str, int]:
        return {status.value: self.count(status) for status in OutcomeStatus}


@dataclass
class SyncReport:
    """Resumen de un run completo."""

    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    categories: List[CategoryReport] = field(default_factory=list)
    published: List[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def outcomes(self) -> List[ItemOutcome]:
        return [o for category in self.categories for o in category.outcomes]

    def stats(self) -> Dict[str, int]:
        stats = {status.value: 0 for status in OutcomeStatus}
        for outcome in self.outcomes:
            stats[outcome.status.value] += 1
        return stats
