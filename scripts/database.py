"""
Módulo para manejar el store de tags en PostgreSQL.
"""
import logging
import os
from contextlib import contextmanager

import psycopg2
from psycopg2.extras import RealDictCursor

from config import get_db_config
import tagsync
from tagsync.errors import PersistenceError
from tagsync.identifiers import validate_tag_id
from tagsync.models import TITLE_PROPERTY_PREFIX, TagNode
from tagsync.store import TagStore, store_session

logger = logging.getLogger(__name__)

# El esquema viaja como package data de tagsync
SCHEMA_PATH = os.path.join(os.path.dirname(tagsync.__file__), 'database_schema.sql')


def get_connection():
    """
    Abre una conexión nueva a la base de datos PostgreSQL.

    Returns:
        psycopg2.connection: Conexión a la base de datos

    Raises:
        psycopg2.OperationalError: Si no se puede conectar a la base de datos
    """
    config = get_db_config()
    try:
        connection = psycopg2.connect(**config)
        logger.info("Conexión a la base de datos establecida")
        return connection
    except psycopg2.OperationalError as e:
        logger.error(f"Error al conectar a la base de datos: {e}")
        logger.error(
            "Verifica que PostgreSQL esté ejecutándose, que la base de datos "
            "exista y que las credenciales en .env sean correctas"
        )
        raise


def init_database(conn):
    """
    Inicializa la base de datos ejecutando el script de esquema.
    Lee el archivo database_schema.sql y ejecuta las sentencias SQL.
    """
    with open(SCHEMA_PATH, 'r', encoding='utf-8') as f:
        schema_sql = f.read()

    try:
        with conn.cursor() as cursor:
            cursor.execute(schema_sql)
        conn.commit()
        logger.info("Base de datos inicializada correctamente")
    except psycopg2.Error as e:
        conn.rollback()
        raise PersistenceError(f"Error al inicializar la base de datos: {e}")


class PostgresTagStore(TagStore):
    """
    Store de tags sobre PostgreSQL.

    Todas las escrituras van en la transacción abierta de la conexión; solo
    commit() las hace visibles.
    """

    def __init__(self, conn):
        self.conn = conn

    def resolve(self, tag_id):
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    "SELECT id, path, title FROM tags WHERE id = %s",
                    (tag_id,),
                )
                row = cursor.fetchone()
                if not row:
                    return None

                cursor.execute(
                    "SELECT name, value FROM tag_properties WHERE tag_id = %s",
                    (tag_id,),
                )
                properties = cursor.fetchall()
        except psycopg2.Error as e:
            raise PersistenceError(f"Error al leer el tag {tag_id}: {e}")

        localized_titles = {
            prop['name'][len(TITLE_PROPERTY_PREFIX):]: prop['value']
            for prop in properties
            if prop['name'].startswith(TITLE_PROPERTY_PREFIX)
        }
        return TagNode(
            id=row['id'],
            path=row['path'],
            title=row['title'],
            localized_titles=localized_titles,
        )

    def create_tag(self, tag_id, title, path):
        validate_tag_id(tag_id)
        parent_id = tag_id.rsplit('/', 1)[0] if '/' in tag_id else None

        # Crear un id existente no modifica el nodo
        query = """
            INSERT INTO tags (id, path, title, parent_id)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (id) DO NOTHING
        """
        try:
            with self.conn.cursor() as cursor:
                cursor.execute(query, (tag_id, path, title, parent_id))
        except psycopg2.Error as e:
            raise PersistenceError(f"Error al crear el tag {tag_id}: {e}")

        return self.resolve(tag_id)

    def set_property(self, tag_id, name, value):
        query = """
            INSERT INTO tag_properties (tag_id, name, value)
            VALUES (%s, %s, %s)
            ON CONFLICT (tag_id, name)
            DO UPDATE SET
                value = EXCLUDED.value,
                updated_at = NOW()
        """
        try:
            with self.conn.cursor() as cursor:
                cursor.execute(query, (tag_id, name, value))
        except psycopg2.Error as e:
            raise PersistenceError(f"Error al guardar {name} en {tag_id}: {e}")

    def list_children(self, path):
        path = path.rstrip('/')
        try:
            with self.conn.cursor() as cursor:
                cursor.execute("SELECT 1 FROM pages WHERE path = %s", (path,))
                if cursor.fetchone() is None:
                    return None
                cursor.execute(
                    "SELECT path FROM pages WHERE parent_path = %s ORDER BY path",
                    (path,),
                )
                return [row[0] for row in cursor.fetchall()]
        except psycopg2.Error as e:
            raise PersistenceError(f"Error al listar páginas de {path}: {e}")

    def commit(self):
        try:
            self.conn.commit()
        except psycopg2.Error as e:
            raise PersistenceError(f"Error al hacer commit: {e}")

    def rollback(self):
        if not self.conn.closed:
            self.conn.rollback()

    def close(self):
        if not self.conn.closed:
            self.conn.close()
            logger.info("Conexión a la base de datos cerrada")


@contextmanager
def tag_store_session():
    """
    Abre la conexión de un run y la cierra siempre al terminar.

    Yields:
        PostgresTagStore: Store ligado a la conexión del run.
    """
    with store_session(PostgresTagStore(get_connection())) as store:
        yield store
