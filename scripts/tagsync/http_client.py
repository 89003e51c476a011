"""
Cliente HTTP para la API de taxonomía, con retry y backoff.

Proporciona una capa de abstracción sobre requests con:
- Timeouts de conexión y de lectura separados
- Reintentos con backoff exponencial
- Manejo de rate limiting (429)
- Lectura del envoltorio JSON {"data": [...]}
- Logging estructurado
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .errors import FetchError

logger = logging.getLogger(__name__)

# Status que se consideran respuesta válida
OK_STATUSES = (200, 204)


class HttpClient:
    """Cliente HTTP con retry y backoff."""

    DEFAULT_HEADERS = {
        "User-Agent": "tagsync/1.0",
        "Accept": "application/json",
    }

    def __init__(
        self,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
        max_retries: int = 3,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Inicializa el cliente HTTP.

        Args:
            connect_timeout: Timeout de conexión en segundos.
            read_timeout: Timeout de lectura (socket) en segundos.
            max_retries: Número máximo de intentos.
            headers: Headers adicionales para las peticiones.
        """
        self.timeout = (connect_timeout, read_timeout)
        self.max_retries = max_retries
        self.session = requests.Session()
        self.session.headers.update(self.DEFAULT_HEADERS)
        if headers:
            self.session.headers.update(headers)

    def get_data(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Optional[List[Any]]:
        """
        Realiza un GET y devuelve el array "data" de la respuesta.

        Args:
            url: URL base del endpoint (puede traer query string).
            params: Parámetros adicionales (lang, Solution...).

        Returns:
            Lista de elementos, lista vacía para 204, o None si la API
            respondió con un status no válido (4xx).

        Raises:
            FetchError: Si falla la red, se agotan los reintentos o el
                JSON es inválido.
        """
        last_error = "sin respuesta"

        for attempt in range(self.max_retries):
            try:
                logger.debug(
                    f"GET {url} {params or ''} (intento {attempt + 1}/{self.max_retries})"
                )
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.Timeout:
                last_error = "timeout"
                logger.warning(f"Timeout en {url} (intento {attempt + 1})")
                self._backoff(attempt)
                continue
            except requests.RequestException as e:
                last_error = str(e)
                logger.error(f"Error en GET {url}: {e}")
                self._backoff(attempt)
                continue

            logger.info(f"Status de '{response.url}': {response.status_code}")

            # Rate limiting
            if response.status_code == 429:
                last_error = "rate limited (429)"
                wait_time = 2 ** (attempt + 1)
                logger.warning(f"Rate limited (429). Esperando {wait_time}s...")
                if attempt < self.max_retries - 1:
                    time.sleep(wait_time)
                continue

            # Errores de servidor
            if response.status_code >= 500:
                last_error = f"error de servidor ({response.status_code})"
                logger.warning(
                    f"Error de servidor ({response.status_code}). Reintentando..."
                )
                self._backoff(attempt)
                continue

            if response.status_code not in OK_STATUSES:
                logger.warning(
                    f"Status no válido {response.status_code} en {url}, se ignora"
                )
                return None

            return self._parse_data(url, response)

        logger.error(f"Falló después de {self.max_retries} intentos: {url}")
        raise FetchError(url, last_error)

    def _parse_data(self, url: str, response: requests.Response) -> List[Any]:
        """Extrae el array "data" del JSON."""
        if response.status_code == 204 or not response.content:
            return []
        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(url, f"JSON inválido: {e}")

        if not isinstance(payload, dict):
            raise FetchError(url, "La respuesta no es un objeto JSON")

        data = payload.get("data") or []
        if not isinstance(data, list):
            raise FetchError(url, "El campo 'data' no es un array")
        return data

    def _backoff(self, attempt: int) -> None:
        if attempt < self.max_retries - 1:
            time.sleep(2 ** attempt)

    def close(self) -> None:
        self.session.close()
