#!/usr/bin/env python3
"""
CLI del sincronizador de tags de la taxonomía.

Uso:
    python main.py sync run                   # Run completo (sync + publicación)
    python main.py sync run --dry-run         # Sin base de datos ni publicación
    python main.py sync run --no-publish      # Solo sincroniza tags
    python main.py sync derive-id "Experienced" --parent Levels

    python main.py tags show "exl:levels/RXhwZXJpZW5jZWQ="
    python main.py publish                    # Solo la etapa de publicación
    python main.py db init                    # Crear tablas
"""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import contextmanager
from typing import Optional

from config import get_sync_config
from tagsync import (
    InMemoryTagStore,
    SyncReport,
    TagSyncOrchestrator,
    build_tag_id,
    derive_tag_id,
    store_session,
)
from tagsync.http_client import HttpClient
from tagsync.publisher import HttpActivator, Publisher
from tagsync.scheduler import SyncJob

# Configuración de logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def run_sync(
    dry_run: bool = False,
    publish: bool = True,
    verbose: bool = False,
) -> Optional[SyncReport]:
    """
    Ejecuta un run de sincronización.

    Args:
        dry_run: Si True, usa un store en memoria y no publica.
        publish: Si False, no ejecuta la etapa de publicación.
        verbose: Si True, muestra más información.

    Returns:
        Resumen del run o None si las guardas impidieron ejecutarlo.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = get_sync_config()
    http_client = HttpClient(
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
    )

    if dry_run:
        logger.info("Modo dry-run: store en memoria, sin publicación")
        dry_store = InMemoryTagStore()

        @contextmanager
        def session_factory():
            with store_session(dry_store) as store:
                yield store

        activator = None
        publish = False
    else:
        from database import tag_store_session

        session_factory = tag_store_session
        activator = HttpActivator(config.publish_url) if config.publish_url else None

    orchestrator = TagSyncOrchestrator(
        config,
        session_factory,
        http_client=http_client,
        activator=activator,
    )
    job = SyncJob(orchestrator, config)

    try:
        report = job.run(publish=publish)
    finally:
        http_client.close()

    if report is not None:
        log_summary(report)
    return report


def log_summary(report: SyncReport) -> None:
    """Muestra el resumen de un run."""
    stats = report.stats()
    committed = [c.parent_tag_name for c in report.categories if c.committed]

    logger.info("")
    logger.info("=" * 50)
    logger.info("RESUMEN")
    logger.info("=" * 50)
    logger.info(f"Categorías confirmadas: {len(committed)} ({', '.join(committed)})")
    logger.info(f"Tags creados: {stats['created']}")
    logger.info(f"Traducciones guardadas: {stats['localized']}")
    logger.info(f"Sin cambios: {stats['unchanged']}")
    logger.info(f"Omitidos: {stats['skipped']}")
    logger.info(f"Páginas publicadas: {len(report.published)}")
    if report.duration_seconds is not None:
        logger.info(f"Duración: {report.duration_seconds:.1f}s")
    logger.info("=" * 50)


def cmd_sync_run(args):
    """Comando: sync run"""
    run_sync(
        dry_run=args.dry_run,
        publish=not args.no_publish,
        verbose=args.verbose,
    )


def cmd_sync_derive_id(args):
    """Comando: sync derive-id"""
    if args.parent:
        print(build_tag_id(args.parent, args.name, args.hierarchy))
    else:
        print(derive_tag_id(args.name))


def cmd_tags_show(args):
    """Comando: tags show"""
    from database import tag_store_session

    with tag_store_session() as store:
        node = store.resolve(args.tag_id)

    if not node:
        print(f"Tag no encontrado: {args.tag_id}")
        return

    print(f"\nID:     {node.id}")
    print(f"Path:   {node.path}")
    print(f"Título: {node.title}")
    for name, value in sorted(node.properties.items()):
        print(f"  {name}: {value}")


def cmd_publish(args):
    """Comando: publish"""
    from database import tag_store_session

    config = get_sync_config()
    if not config.publish_url:
        print("Error: TAGSYNC_PUBLISH_URL no configurado")
        sys.exit(1)

    with tag_store_session() as store:
        published = Publisher(store, HttpActivator(config.publish_url)).publish_taxonomy(
            config.taxonomy_root
        )
    print(f"Páginas publicadas: {len(published)}")


def cmd_db_init(args):
    """Comando: db init"""
    from database import get_connection, init_database

    conn = get_connection()
    try:
        init_database(conn)
    finally:
        conn.close()


def main():
    """Punto de entrada del CLI."""
    parser = argparse.ArgumentParser(
        description="Sincronizador de tags de la taxonomía",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Comandos disponibles")

    # Comando: sync
    sync_parser = subparsers.add_parser("sync", help="Sincronización de tags")
    sync_subparsers = sync_parser.add_subparsers(dest="sync_command")

    # sync run
    run_parser = sync_subparsers.add_parser("run", help="Ejecutar un run")
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Store en memoria, sin base de datos ni publicación",
    )
    run_parser.add_argument(
        "--no-publish",
        action="store_true",
        help="No ejecutar la etapa de publicación",
    )
    run_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Mostrar información detallada",
    )
    run_parser.set_defaults(func=cmd_sync_run)

    # sync derive-id
    derive_parser = sync_subparsers.add_parser(
        "derive-id", help="Mostrar el id derivado de un nombre"
    )
    derive_parser.add_argument("name", help="Nombre del tag")
    derive_parser.add_argument("--parent", help="Categoría padre (Levels, Solution...)")
    derive_parser.add_argument("--hierarchy", help="Segmento de jerarquía")
    derive_parser.set_defaults(func=cmd_sync_derive_id)

    # Comando: tags
    tags_parser = subparsers.add_parser("tags", help="Consulta de tags")
    tags_subparsers = tags_parser.add_subparsers(dest="tags_command")

    show_parser = tags_subparsers.add_parser("show", help="Mostrar un tag")
    show_parser.add_argument("tag_id", help="Id del tag (exl:...)")
    show_parser.set_defaults(func=cmd_tags_show)

    # Comando: publish
    publish_parser = subparsers.add_parser(
        "publish", help="Publicar las páginas de la taxonomía"
    )
    publish_parser.set_defaults(func=cmd_publish)

    # Comando: db
    db_parser = subparsers.add_parser("db", help="Gestión de la base de datos")
    db_subparsers = db_parser.add_subparsers(dest="db_command")
    init_parser = db_subparsers.add_parser("init", help="Crear tablas")
    init_parser.set_defaults(func=cmd_db_init)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    subcommand_parsers = {
        "sync": (sync_parser, "sync_command"),
        "tags": (tags_parser, "tags_command"),
        "db": (db_parser, "db_command"),
    }
    if args.command in subcommand_parsers:
        sub_parser, dest = subcommand_parsers[args.command]
        if not getattr(args, dest):
            sub_parser.print_help()
            sys.exit(1)

    try:
        args.func(args)
    except KeyboardInterrupt:
        logger.warning("Proceso interrumpido por el usuario")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
