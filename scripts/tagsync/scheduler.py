"""
Guardas de ejecución del job programado.

El cron lo dispara un planificador externo; aquí solo se decide si el run
puede ejecutarse en esta instancia (habilitado, líder, sin solaparse).
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .models import SyncConfig, SyncReport
from .orchestrator import TagSyncOrchestrator

logger = logging.getLogger(__name__)


class SyncJob:
    """Envuelve al orquestador con las guardas de la configuración."""

    def __init__(self, orchestrator: TagSyncOrchestrator, config: SyncConfig):
        self.orchestrator = orchestrator
        self.config = config
        self._lock = threading.Lock()

    def should_run(self) -> bool:
        """True si la configuración permite ejecutar en esta instancia."""
        if not self.config.enabled:
            logger.error("Job de sincronización deshabilitado, no se ejecuta")
            return False
        if self.config.run_on_leader and not self.config.is_leader:
            logger.info("Esta instancia no es líder, no se ejecuta")
            return False
        return True

    def run(self, publish: bool = True) -> Optional[SyncReport]:
        """
        Ejecuta un run si las guardas lo permiten.

        Returns:
            Resumen del run, o None si no se ejecutó.
        """
        if not self.should_run():
            return None

        if self.config.concurrent:
            return self.orchestrator.run(publish=publish)

        if not self._lock.acquire(blocking=False):
            logger.warning("Ya hay un run en curso, se omite este disparo")
            return None
        try:
            logger.info(f"Ejecutando job (cron: {self.config.cron_expression})")
            return self.orchestrator.run(publish=publish)
        finally:
            self._lock.release()
