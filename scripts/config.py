"""
Configuración del sincronizador de tags usando variables de entorno.
"""
import os
from dotenv import load_dotenv

from tagsync.errors import ConfigError
from tagsync.models import ApiEndpointConfig, LocaleConfig, SyncConfig

# Cargar variables de entorno desde .env
load_dotenv()

# Separador entre descriptores dentro de una misma variable
LIST_SEPARATOR = ";"


def get_db_config():
    """
    Obtiene la configuración de la base de datos desde variables de entorno.

    Returns:
        dict: Diccionario con los parámetros de conexión a PostgreSQL
    """
    return {
        'host': os.getenv('DB_HOST', 'localhost'),
        'port': os.getenv('DB_PORT', '5432'),
        'database': os.getenv('DB_NAME', 'tagsync'),
        'user': os.getenv('DB_USER', 'postgres'),
        'password': os.getenv('DB_PASSWORD', '')
    }


def get_sync_config():
    """
    Obtiene la configuración del job de sincronización.

    Los descriptores de APIs tienen la forma
    "parentTagName,apiUrl,marker,format" y los de locales
    "apiLocale,contentLocale"; varios descriptores se separan con ';'.
    El locale primario ("en") debe ir primero.

    Returns:
        SyncConfig: Configuración validada.

    Raises:
        ConfigError: Si algún descriptor es inválido.
    """
    apis = [
        ApiEndpointConfig.parse(descriptor)
        for descriptor in _split_list(os.getenv('TAGSYNC_APIS', ''))
    ]
    locales = LocaleConfig.parse(
        _split_list(os.getenv('TAGSYNC_LOCALES', 'en,en'))
    )
    locales.validate()

    if not apis:
        raise ConfigError("TAGSYNC_APIS no configurado")

    return SyncConfig(
        apis=apis,
        locales=locales,
        enabled=_get_bool('TAGSYNC_ENABLED', True),
        concurrent=_get_bool('TAGSYNC_CONCURRENT', False),
        run_on_leader=_get_bool('TAGSYNC_RUN_ON_LEADER', True),
        is_leader=_get_bool('TAGSYNC_IS_LEADER', True),
        cron_expression=os.getenv('TAGSYNC_CRON', '0 0/5 * 1/1 * ? *'),
        taxonomy_root=os.getenv('TAGSYNC_TAXONOMY_ROOT', '/content/exlm/taxonomy'),
        connect_timeout=_get_float('TAGSYNC_CONNECT_TIMEOUT', 10.0),
        read_timeout=_get_float('TAGSYNC_READ_TIMEOUT', 30.0),
        publish_url=os.getenv('TAGSYNC_PUBLISH_URL', ''),
    )


def _split_list(value):
    """Divide una variable en descriptores, ignorando los vacíos."""
    parts = value.replace("\n", LIST_SEPARATOR).split(LIST_SEPARATOR)
    return [p.strip() for p in parts if p.strip()]


def _get_bool(name, default):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _get_float(name, default):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} debe ser numérico: {value!r}")
