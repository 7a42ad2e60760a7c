# vehicles/views.py
import logging
from typing import Dict

from django.conf import settings
from django.views.decorators.http import require_http_methods

from . import kanban, storage
from .notes import note_detail_response, notes_response
from .cache import VEHICLE_LIST, VEHICLE_STATS, query_cache
from .filters import parse_filters
from .http import api_view, err, json_body, ok
from .models import Investor, Vehicle
from .reminders import get_dashboard_reminders

logger = logging.getLogger(__name__)

###############################################################################
#                               VISIÓN GENERAL                                #
###############################################################################
# API JSON del CRM de vehículos.
#
# 1) Listado/alta/edición de vehículos y sus notas. El listado se sirve desde
#    la caché de consultas (vehicles.cache); cualquier escritura la invalida
#    por señales.
#
# 2) Tablero Kanban: lectura agrupada por columna y actualización de
#    (estado, orden), individual o por lotes tras un arrastre.
#
# 3) Inversores: alta, edición, baja y sus vehículos.
#
# 4) Dashboard: estadísticas, ventas por mes y recordatorios automáticos.
#
# Los errores de la capa de datos se traducen a JSON en `api_view`.
###############################################################################


def _money(value):
    return float(value) if value is not None else None


def vehicle_to_dict(v: Vehicle) -> Dict:
    """
    Serializa un vehículo para el front.
    """
    return {
        "id": v.pk,
        "referencia": v.referencia,
        "referencia_formateada": v.referencia_formateada,
        "referencia_corta": v.referencia_corta,
        "slug": v.slug,
        "tipo": v.tipo,
        "tipo_display": v.get_tipo_display(),
        "marca": v.marca,
        "modelo": v.modelo,
        "matricula": v.matricula,
        "bastidor": v.bastidor,
        "kms": v.kms,
        "color": v.color,
        "anio": v.anio,
        "estado": v.estado,
        "orden": v.orden,
        "itv": v.itv,
        "fecha_itv": v.fecha_itv.isoformat() if v.fecha_itv else None,
        "documentacion": v.documentacion,
        "inversor": (
            {"id": v.inversor.pk, "nombre": str(v.inversor)} if v.inversor_id else None
        ),
        "precio_compra": _money(v.precio_compra),
        "gastos": {f: _money(getattr(v, f)) for f in Vehicle.COST_FIELDS if f != "precio_compra"},
        "coste_total": float(v.coste_total),
        "precio_publicacion": _money(v.precio_publicacion),
        "precio_venta": _money(v.precio_venta),
        "beneficio_neto": _money(v.beneficio_neto),
        "created_at": v.created_at.isoformat() if v.created_at else None,
        "updated_at": v.updated_at.isoformat() if v.updated_at else None,
    }


def investor_to_dict(i: Investor) -> Dict:
    data = {
        "id": i.pk,
        "nombre": i.nombre,
        "apellidos": i.apellidos,
        "email": i.email,
        "telefono": i.telefono,
        "capital_aportado": float(i.capital_aportado),
        "fecha_aporte": i.fecha_aporte.isoformat() if i.fecha_aporte else None,
        "notas_internas": i.notas_internas,
        "created_at": i.created_at.isoformat(),
    }
    if hasattr(i, "total_vehiculos"):
        data["total_vehiculos"] = i.total_vehiculos
    return data


# -----------------------------
# Vehículos
# -----------------------------
@require_http_methods(["GET", "POST"])
@api_view
def vehicle_list_view(request):
    if request.method == "POST":
        vehicle = storage.create_vehicle(json_body(request))
        return ok(vehicle_to_dict(vehicle), status=201)

    filters = parse_filters(request.GET)
    items = query_cache.get_or_set(
        VEHICLE_LIST,
        lambda: [vehicle_to_dict(v) for v in storage.get_vehicles(filters)],
        params=filters,
    )
    return ok({"items": items, "total": len(items), "filters_applied": filters})


@require_http_methods(["GET", "PUT", "DELETE"])
@api_view
def vehicle_detail_view(request, vehicle_id):
    if request.method == "GET":
        return ok(vehicle_to_dict(storage.get_vehicle(vehicle_id)))

    if request.method == "PUT":
        vehicle = storage.update_vehicle(vehicle_id, json_body(request))
        return ok(vehicle_to_dict(vehicle))

    storage.delete_vehicle(vehicle_id)
    return ok({"id": vehicle_id, "message": "Vehículo eliminado correctamente"})


@require_http_methods(["GET"])
@api_view
def vehicle_by_reference_view(request, referencia):
    return ok(vehicle_to_dict(storage.find_vehicle_by_reference(referencia)))


@require_http_methods(["GET", "POST"])
@api_view
def vehicle_notes_view(request, vehicle_id):
    return notes_response(request, storage.get_vehicle(vehicle_id))


@require_http_methods(["PUT", "DELETE"])
@api_view
def vehicle_note_detail_view(request, vehicle_id, note_id):
    return note_detail_response(request, storage.get_vehicle(vehicle_id), note_id)


# -----------------------------
# Kanban
# -----------------------------
@require_http_methods(["PUT"])
@api_view
def vehicle_status_view(request, vehicle_id):
    data = json_body(request)
    if "estado" not in data or not isinstance(data.get("orden"), int) or isinstance(data.get("orden"), bool):
        return err("estado y orden (entero) son obligatorios")

    vehicle = kanban.update_vehicle_status(vehicle_id, data["estado"], data["orden"])
    return ok(vehicle_to_dict(vehicle))


@require_http_methods(["PUT"])
@api_view
def vehicle_move_view(request, vehicle_id):
    data = json_body(request)
    position = data.get("posicion", 0)
    if "estado" not in data or not isinstance(position, int) or isinstance(position, bool):
        return err("estado y posicion (entero) son obligatorios")

    updated = kanban.move_vehicle(vehicle_id, data["estado"], position)
    return ok([vehicle_to_dict(v) for v in updated])


@require_http_methods(["GET", "PUT"])
@api_view
def kanban_view(request):
    if request.method == "GET":
        columns = kanban.build_board(storage.get_vehicles())
        return ok([
            {**col, "vehiculos": [vehicle_to_dict(v) for v in col["vehiculos"]]}
            for col in columns
        ])

    updates = kanban.parse_kanban_updates(json_body(request))
    updated = kanban.update_vehicles_order(updates)
    return ok([vehicle_to_dict(v) for v in updated])


# -----------------------------
# Inversores
# -----------------------------
@require_http_methods(["GET", "POST"])
@api_view
def investor_list_view(request):
    if request.method == "POST":
        investor = storage.create_investor(json_body(request))
        return ok(investor_to_dict(investor), status=201)
    return ok([investor_to_dict(i) for i in storage.get_investors()])


@require_http_methods(["GET", "PUT", "DELETE"])
@api_view
def investor_detail_view(request, investor_id):
    if request.method == "GET":
        return ok(investor_to_dict(storage.get_investor(investor_id)))

    if request.method == "PUT":
        return ok(investor_to_dict(storage.update_investor(investor_id, json_body(request))))

    storage.delete_investor(investor_id)
    return ok({"id": investor_id, "message": "Inversor eliminado correctamente"})


@require_http_methods(["GET"])
@api_view
def investor_vehicles_view(request, investor_id):
    return ok([vehicle_to_dict(v) for v in storage.get_investor_vehicles(investor_id)])


# -----------------------------
# Dashboard
# -----------------------------
@require_http_methods(["GET"])
@api_view
def vehicle_stats_view(request):
    stats = query_cache.get_or_set(
        VEHICLE_STATS, storage.get_vehicle_stats, ttl=settings.CRM_STATS_CACHE_TTL
    )
    return ok(stats)


@require_http_methods(["GET"])
@api_view
def sales_by_month_view(request):
    periodo = request.GET.get("periodo") or "anio"
    return ok(storage.get_sales_by_month(periodo))


@require_http_methods(["GET"])
@api_view
def investor_metrics_view(request, investor_id):
    return ok(storage.get_investor_metrics(investor_id))


@require_http_methods(["GET"])
@api_view
def dashboard_reminders_view(request):
    return ok([r.to_dict() for r in get_dashboard_reminders()])


@require_http_methods(["POST"])
@api_view
def clear_cache_view(request):
    query_cache.invalidate()
    logger.info("Caché de consultas vaciada manualmente")
    return ok({"message": "Caché vaciada"})
