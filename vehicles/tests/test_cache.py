from django.core.cache.backends.locmem import LocMemCache
from django.test import SimpleTestCase, TestCase

from vehicles.cache import VEHICLE_LIST, VEHICLE_STATS, QueryCache, make_cache_key, query_cache
from vehicles.models import Vehicle


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class QueryCacheTests(SimpleTestCase):
    """
    Caché de consultas con reloj inyectado: la caducidad no depende del
    reloj de pared.
    """

    def setUp(self):
        self.clock = FakeClock()
        self.cache = QueryCache(
            backend=LocMemCache("test-query-cache", {}),
            clock=self.clock,
            default_ttl=60,
            namespace="test",
        )
        self.cache.backend.clear()

    def test_miss_returns_default(self):
        self.assertIsNone(self.cache.get("x"))
        self.assertEqual(self.cache.get("x", default=0), 0)

    def test_set_and_get_with_params(self):
        self.cache.set("listado", [1, 2], params={"marca": "Seat"})
        self.assertEqual(self.cache.get("listado", params={"marca": "Seat"}), [1, 2])
        self.assertIsNone(self.cache.get("listado", params={"marca": "Kia"}))

    def test_entry_expires_with_clock(self):
        self.cache.set("stats", {"total": 3}, ttl=10)
        self.clock.advance(9)
        self.assertEqual(self.cache.get("stats"), {"total": 3})
        self.clock.advance(1)
        self.assertIsNone(self.cache.get("stats"))

    def test_invalidate_by_name(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2)
        self.cache.invalidate("a")
        self.assertIsNone(self.cache.get("a"))
        self.assertEqual(self.cache.get("b"), 2)

    def test_invalidate_all(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2, params={"p": 1})
        self.cache.invalidate()
        self.assertIsNone(self.cache.get("a"))
        self.assertIsNone(self.cache.get("b", params={"p": 1}))

    def test_get_or_set_calls_loader_once(self):
        calls = []

        def loader():
            calls.append(1)
            return "valor"

        self.assertEqual(self.cache.get_or_set("q", loader), "valor")
        self.assertEqual(self.cache.get_or_set("q", loader), "valor")
        self.assertEqual(len(calls), 1)

        self.clock.advance(61)
        self.cache.get_or_set("q", loader)
        self.assertEqual(len(calls), 2)

    def test_write_during_load_is_not_cached_as_fresh(self):
        """
        Si la consulta se invalida mientras el loader calcula, el resultado
        calculado no se sirve después de la invalidación.
        """
        def loader():
            self.cache.invalidate("listado")
            return ["antiguo"]

        self.assertEqual(self.cache.get_or_set("listado", loader), ["antiguo"])
        self.assertIsNone(self.cache.get("listado"))
        self.assertEqual(self.cache.get_or_set("listado", lambda: ["nuevo"]), ["nuevo"])

    def test_cache_key_is_order_independent(self):
        self.assertEqual(
            make_cache_key("q", {"a": 1, "b": 2}),
            make_cache_key("q", {"b": 2, "a": 1}),
        )


class CacheInvalidationSignalTests(TestCase):
    def test_vehicle_write_invalidates_list_and_stats(self):
        query_cache.set(VEHICLE_LIST, ["viejo"])
        query_cache.set(VEHICLE_STATS, {"total_activos": 0})

        Vehicle.objects.create(referencia="1", marca="Seat", modelo="León")

        self.assertIsNone(query_cache.get(VEHICLE_LIST))
        self.assertIsNone(query_cache.get(VEHICLE_STATS))
