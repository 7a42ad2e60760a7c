# vehicles/cache.py
"""
Caché de consultas del CRM.

Resultados de consultas caros (listado, estadísticas) detrás de una
abstracción explícita:

    - clave = nombre de la consulta + parámetros (hash estable)
    - get / set / invalidate / get_or_set
    - reloj inyectable: la caducidad se decide con `clock()`, de modo que los
      tests controlan el tiempo sin depender del reloj de pared
    - almacenamiento delegado en el framework de caché de Django
      (LocMem en desarrollo, Redis si se configura CACHE_URL)

La invalidación usa contadores de generación por nombre: invalidar una
consulta sube su generación y las claves antiguas dejan de ser alcanzables.
"""
import hashlib
import json
import logging
import time

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)

_MISSING = object()
_ALL = "*"


def make_cache_key(name, params=None) -> str:
    """Hash estable de los parámetros de una consulta."""
    raw = json.dumps(params if params is not None else {}, sort_keys=True, default=str)
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


class QueryCache:
    def __init__(self, backend=None, clock=time.time, default_ttl=None, namespace="crm"):
        self._backend = backend
        self.clock = clock
        self._default_ttl = default_ttl
        self.namespace = namespace

    @property
    def backend(self):
        if self._backend is not None:
            return self._backend
        return caches["default"]

    @property
    def default_ttl(self):
        if self._default_ttl is not None:
            return self._default_ttl
        return getattr(settings, "CRM_QUERY_CACHE_TTL", 300)

    # -----------------------------
    # Generaciones
    # -----------------------------
    def _generation_key(self, name):
        return f"{self.namespace}:gen:{name}"

    def _generation(self, name):
        return self.backend.get(self._generation_key(name), 0)

    def _bump(self, name):
        key = self._generation_key(name)
        self.backend.add(key, 0, None)
        try:
            self.backend.incr(key)
        except ValueError:
            # la clave desapareció entre add() e incr()
            self.backend.set(key, 1, None)

    def _entry_key(self, name, params):
        return (
            f"{self.namespace}:{self._generation(_ALL)}:{name}:"
            f"{self._generation(name)}:{make_cache_key(name, params)}"
        )

    def _read(self, key, default):
        entry = self.backend.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if self.clock() >= expires_at:
            self.backend.delete(key)
            return default
        return value

    def _write(self, key, value, ttl):
        ttl = self.default_ttl if ttl is None else ttl
        expires_at = self.clock() + ttl
        # el timeout del backend solo es un límite de limpieza; la caducidad
        # real la decide el reloj inyectado
        self.backend.set(key, (expires_at, value), max(int(ttl), 1))

    # -----------------------------
    # API pública
    # -----------------------------
    def get(self, name, params=None, default=None):
        return self._read(self._entry_key(name, params), default)

    def set(self, name, value, params=None, ttl=None):
        self._write(self._entry_key(name, params), value, ttl)

    def invalidate(self, name=None):
        """Invalida una consulta concreta o, sin nombre, toda la caché."""
        self._bump(name or _ALL)
        logger.debug("Caché de consultas invalidada: %s", name or "todas")

    def get_or_set(self, name, loader, params=None, ttl=None):
        """
        Devuelve el valor cacheado o lo calcula con `loader()` y lo guarda.

        La clave se fija antes de llamar a `loader()`: si una escritura
        invalida la consulta mientras se calcula, el resultado queda bajo la
        generación anterior y la siguiente lectura vuelve a calcularlo.
        """
        key = self._entry_key(name, params)
        value = self._read(key, _MISSING)
        if value is not _MISSING:
            logger.debug("Cache HIT %s %s", name, params)
            return value

        logger.debug("Cache MISS %s %s", name, params)
        value = loader()
        self._write(key, value, ttl)
        return value


# Nombres de las consultas cacheadas
VEHICLE_LIST = "vehiculos:list"
VEHICLE_STATS = "vehiculos:stats"

# Instancia compartida por toda la aplicación
query_cache = QueryCache()
