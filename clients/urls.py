from django.urls import path
from . import views

urlpatterns = [
    path("clientes/", views.client_list_view, name="client_list"),
    path("clientes/buscar/", views.client_search_by_vehicle_view, name="client_search_by_vehicle"),
    path("clientes/<int:client_id>/", views.client_detail_view, name="client_detail"),
    path("clientes/<int:client_id>/notas/", views.client_notes_view, name="client_notes"),
    path("clientes/<int:client_id>/notas/<int:note_id>/", views.client_note_detail_view, name="client_note_detail"),
    path("clientes/<int:client_id>/recordatorios/", views.client_reminders_view, name="client_reminders"),
    path(
        "clientes/<int:client_id>/recordatorios/<int:reminder_id>/",
        views.client_reminder_detail_view,
        name="client_reminder_detail",
    ),
    path("deals/", views.deal_list_view, name="deal_list"),
    path("deals/<int:deal_id>/", views.deal_detail_view, name="deal_detail"),
    path("deals/<int:deal_id>/notas/", views.deal_notes_view, name="deal_notes"),
    path("deals/<int:deal_id>/notas/<int:note_id>/", views.deal_note_detail_view, name="deal_note_detail"),
    path("depositos/", views.deposit_list_view, name="deposit_list"),
    path("depositos/stats/", views.deposit_stats_view, name="deposit_stats"),
    path("depositos/<int:deposit_id>/", views.deposit_detail_view, name="deposit_detail"),
    path("depositos/<int:deposit_id>/notas/", views.deposit_notes_view, name="deposit_notes"),
    path(
        "depositos/<int:deposit_id>/notas/<int:note_id>/",
        views.deposit_note_detail_view,
        name="deposit_note_detail",
    ),
]
