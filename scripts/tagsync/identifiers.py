"""
Derivación determinista de ids de tags.

El id de cada nodo se obtiene codificando en Base64 (variante URL-safe) los
bytes UTF-8 del nombre, de modo que cada run apunte siempre al mismo nodo sin
necesidad de una tabla nombre -> id.
"""

from __future__ import annotations

import base64
import re
from typing import Optional

from .errors import InvalidIdentifierError

TAG_NAMESPACE = "exl:"

# Caracteres no permitidos en un segmento del id
_INVALID_SEGMENT_CHARS = re.compile(r"[\[\]\*\|:\"']")
_NAMESPACE_PATTERN = re.compile(r"^[a-z0-9_\-]+:")


def derive_tag_id(name: str) -> str:
    """Codifica un nombre como id de nodo (mismo nombre => mismo id)."""
    return base64.urlsafe_b64encode(name.encode("utf-8")).decode("ascii")


def decode_tag_id(tag_id: str) -> str:
    """Inversa de derive_tag_id, útil para depurar."""
    return base64.urlsafe_b64decode(tag_id.encode("ascii")).decode("utf-8")


def build_tag_id(
    parent_tag_name: str,
    leaf_name: str,
    hierarchy: Optional[str] = None,
) -> str:
    """
    Construye el id completo de un tag.

    Formato: "exl:<lower(parent)>/[<id(hierarchy)>/]<id(leaf)>".
    """
    segments = [parent_tag_name.lower()]
    if hierarchy and hierarchy.strip():
        segments.append(derive_tag_id(hierarchy))
    segments.append(derive_tag_id(leaf_name))
    return TAG_NAMESPACE + "/".join(segments)


def tag_path(tag_id: str) -> str:
    """Path del nodo relativo al namespace (id sin prefijo)."""
    _, _, path = tag_id.partition(":")
    return path


def validate_tag_id(tag_id: str) -> None:
    """
    Verifica que el id cumpla las reglas de nombres del store.

    Raises:
        InvalidIdentifierError: Si el namespace o algún segmento es inválido.
    """
    if not _NAMESPACE_PATTERN.match(tag_id):
        raise InvalidIdentifierError(f"Namespace inválido en '{tag_id}'")

    path = tag_path(tag_id)
    for segment in path.split("/"):
        if not segment:
            raise InvalidIdentifierError(f"Segmento vacío en '{tag_id}'")
        if segment != segment.strip():
            raise InvalidIdentifierError(
                f"Segmento con espacios en los extremos en '{tag_id}'"
            )
        if _INVALID_SEGMENT_CHARS.search(segment):
            raise InvalidIdentifierError(
                f"Caracteres no permitidos en '{segment}' ({tag_id})"
            )
