from django.urls import path
from . import views

urlpatterns = [
    path("vehiculos/", views.vehicle_list_view, name="vehicle_list"),
    path("vehiculos/kanban/", views.kanban_view, name="vehicle_kanban"),
    path("vehiculos/stats/", views.vehicle_stats_view, name="vehicle_stats"),
    path("vehiculos/by-referencia/<str:referencia>/", views.vehicle_by_reference_view, name="vehicle_by_reference"),
    path("vehiculos/<int:vehicle_id>/", views.vehicle_detail_view, name="vehicle_detail"),
    path("vehiculos/<int:vehicle_id>/estado/", views.vehicle_status_view, name="vehicle_status"),
    path("vehiculos/<int:vehicle_id>/mover/", views.vehicle_move_view, name="vehicle_move"),
    path("vehiculos/<int:vehicle_id>/notas/", views.vehicle_notes_view, name="vehicle_notes"),
    path(
        "vehiculos/<int:vehicle_id>/notas/<int:note_id>/",
        views.vehicle_note_detail_view,
        name="vehicle_note_detail",
    ),
    path("ventas/", views.sales_by_month_view, name="sales_by_month"),
    path("inversores/", views.investor_list_view, name="investor_list"),
    path("inversores/<int:investor_id>/", views.investor_detail_view, name="investor_detail"),
    path("inversores/<int:investor_id>/vehiculos/", views.investor_vehicles_view, name="investor_vehicles"),
    path("inversores/<int:investor_id>/metrics/", views.investor_metrics_view, name="investor_metrics"),
    path("dashboard/recordatorios/", views.dashboard_reminders_view, name="dashboard_reminders"),
    path("clear-cache/", views.clear_cache_view, name="clear_cache"),
]
