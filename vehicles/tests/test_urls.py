from django.test import SimpleTestCase
from django.urls import resolve, reverse

from vehicles import views


class VehiclesURLsTests(SimpleTestCase):
    """
    Enrutado de la API de vehículos.

    Observación:
    - Solo se prueba el enrutado (sin BD), por eso SimpleTestCase.
    """

    def test_named_urls_resolve_to_views(self):
        cases = [
            ("vehicle_list", {}, "/api/vehiculos/", views.vehicle_list_view),
            ("vehicle_kanban", {}, "/api/vehiculos/kanban/", views.kanban_view),
            ("vehicle_stats", {}, "/api/vehiculos/stats/", views.vehicle_stats_view),
            ("vehicle_detail", {"vehicle_id": 7}, "/api/vehiculos/7/", views.vehicle_detail_view),
            ("vehicle_status", {"vehicle_id": 7}, "/api/vehiculos/7/estado/", views.vehicle_status_view),
            ("vehicle_move", {"vehicle_id": 7}, "/api/vehiculos/7/mover/", views.vehicle_move_view),
            ("sales_by_month", {}, "/api/ventas/", views.sales_by_month_view),
            ("vehicle_notes", {"vehicle_id": 7}, "/api/vehiculos/7/notas/", views.vehicle_notes_view),
            ("investor_list", {}, "/api/inversores/", views.investor_list_view),
            ("investor_detail", {"investor_id": 3}, "/api/inversores/3/", views.investor_detail_view),
            ("investor_vehicles", {"investor_id": 3}, "/api/inversores/3/vehiculos/", views.investor_vehicles_view),
            ("investor_metrics", {"investor_id": 3}, "/api/inversores/3/metrics/", views.investor_metrics_view),
            ("dashboard_reminders", {}, "/api/dashboard/recordatorios/", views.dashboard_reminders_view),
            ("clear_cache", {}, "/api/clear-cache/", views.clear_cache_view),
        ]
        for name, kwargs, path, view in cases:
            with self.subTest(name=name):
                url = reverse(name, kwargs=kwargs)
                self.assertEqual(url, path)
                self.assertEqual(resolve(url).func, view)

    def test_kanban_is_not_taken_as_reference_or_id(self):
        self.assertEqual(resolve("/api/vehiculos/kanban/").url_name, "vehicle_kanban")
        self.assertEqual(
            resolve("/api/vehiculos/by-referencia/I-9/").kwargs, {"referencia": "I-9"}
        )
