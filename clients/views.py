# clients/views.py
from typing import Dict

from django.views.decorators.http import require_http_methods

from vehicles.http import api_view, json_body, ok
from vehicles.notes import note_detail_response, notes_response
from vehicles.references import format_vehicle_reference

from . import services
from .models import Client, ClientReminder, Deal, DealStatus, Deposit, DepositStatus


def client_to_dict(c: Client) -> Dict:
    return {
        "id": c.pk,
        "nombre": c.nombre,
        "apellidos": c.apellidos,
        "nombre_completo": c.nombre_completo,
        "email": c.email,
        "telefono": c.telefono,
        "dni": c.dni,
        "vehiculos_interes": c.vehiculos_interes,
        "created_at": c.created_at.isoformat(),
    }


def reminder_to_dict(r: ClientReminder) -> Dict:
    return {
        "id": r.pk,
        "cliente_id": r.cliente_id,
        "deal_id": r.deal_id,
        "titulo": r.titulo,
        "descripcion": r.descripcion,
        "tipo": r.tipo,
        "prioridad": r.prioridad,
        "fecha_recordatorio": r.fecha_recordatorio.isoformat(),
        "completado": r.completado,
    }


def deal_to_dict(d: Deal) -> Dict:
    return {
        "id": d.pk,
        "numero": d.numero,
        "estado": d.estado,
        "cliente": {"id": d.cliente_id, "nombre": d.cliente.nombre_completo},
        "vehiculo": {
            "id": d.vehiculo_id,
            "referencia": format_vehicle_reference(d.vehiculo.referencia, d.vehiculo.tipo),
            "marca": d.vehiculo.marca,
            "modelo": d.vehiculo.modelo,
            "estado": d.vehiculo.estado,
        },
        "importe_total": float(d.importe_total) if d.importe_total is not None else None,
        "importe_sena": float(d.importe_sena) if d.importe_sena is not None else None,
        "forma_pago_sena": d.forma_pago_sena,
        "observaciones": d.observaciones,
        "responsable_comercial": d.responsable_comercial,
        "fecha_facturada": d.fecha_facturada.isoformat() if d.fecha_facturada else None,
        "cambio_nombre_solicitado": d.cambio_nombre_solicitado,
        "created_at": d.created_at.isoformat(),
    }


def _money(value):
    return float(value) if value is not None else None


def _vehicle_summary(v) -> Dict:
    return {
        "id": v.pk,
        "referencia": format_vehicle_reference(v.referencia, v.tipo),
        "marca": v.marca,
        "modelo": v.modelo,
        "matricula": v.matricula,
        "estado": v.estado,
    }


def deposit_to_dict(d: Deposit) -> Dict:
    return {
        "id": d.pk,
        "estado": d.estado,
        "cliente": {"id": d.cliente_id, "nombre": d.cliente.nombre_completo, "telefono": d.cliente.telefono},
        "vehiculo": _vehicle_summary(d.vehiculo),
        "fecha_inicio": d.fecha_inicio.isoformat(),
        "dias_gestion": d.dias_gestion,
        "fecha_fin": d.fecha_fin.isoformat() if d.fecha_fin else None,
        "precio_venta": _money(d.precio_venta),
        "comision_porcentaje": float(d.comision_porcentaje),
        "comision_estimada": float(d.comision_estimada),
        "monto_recibir": _money(d.monto_recibir),
        "multa_retiro_anticipado": _money(d.multa_retiro_anticipado),
        "numero_cuenta": d.numero_cuenta,
        "notas": d.notas,
        "created_at": d.created_at.isoformat(),
    }


# -----------------------------
# Clientes
# -----------------------------
@require_http_methods(["GET", "POST"])
@api_view
def client_list_view(request):
    if request.method == "POST":
        client = services.create_client(json_body(request))
        return ok(client_to_dict(client), status=201)

    clients = services.search_clients(request.GET.get("q", ""))
    return ok([client_to_dict(c) for c in clients])


@require_http_methods(["GET", "PUT", "DELETE"])
@api_view
def client_detail_view(request, client_id):
    if request.method == "GET":
        return ok(client_to_dict(Client.objects.get(pk=client_id)))

    if request.method == "PUT":
        return ok(client_to_dict(services.update_client(client_id, json_body(request))))

    Client.objects.get(pk=client_id).delete()
    return ok({"id": client_id, "message": "Cliente eliminado correctamente"})


@require_http_methods(["GET"])
@api_view
def client_search_by_vehicle_view(request):
    clients = services.search_clients_by_vehicle(request.GET.get("vehiculo", ""))
    return ok([client_to_dict(c) for c in clients])


@require_http_methods(["GET", "POST"])
@api_view
def client_notes_view(request, client_id):
    return notes_response(request, Client.objects.get(pk=client_id))


@require_http_methods(["PUT", "DELETE"])
@api_view
def client_note_detail_view(request, client_id, note_id):
    return note_detail_response(request, Client.objects.get(pk=client_id), note_id)


@require_http_methods(["GET", "POST"])
@api_view
def client_reminders_view(request, client_id):
    if request.method == "POST":
        reminder = services.create_client_reminder(client_id, json_body(request))
        return ok(reminder_to_dict(reminder), status=201)

    client = Client.objects.get(pk=client_id)
    return ok([reminder_to_dict(r) for r in client.recordatorios.all()])


@require_http_methods(["PUT", "DELETE"])
@api_view
def client_reminder_detail_view(request, client_id, reminder_id):
    if request.method == "PUT":
        data = json_body(request)
        if "completado" not in data:
            raise ValueError("completado es obligatorio")
        reminder = services.set_reminder_completed(client_id, reminder_id, data["completado"])
        return ok(reminder_to_dict(reminder))

    ClientReminder.objects.get(pk=reminder_id, cliente_id=client_id).delete()
    return ok({"id": reminder_id, "message": "Recordatorio eliminado"})


# -----------------------------
# Deals
# -----------------------------
@require_http_methods(["GET", "POST"])
@api_view
def deal_list_view(request):
    if request.method == "POST":
        deal = services.create_deal(json_body(request))
        return ok(deal_to_dict(deal), status=201)

    deals = Deal.objects.select_related("cliente", "vehiculo")
    estado = request.GET.get("estado")
    if estado:
        if estado not in DealStatus.values:
            raise ValueError(f"estado inválido: {estado!r}")
        deals = deals.filter(estado=estado)
    return ok([deal_to_dict(d) for d in deals])


@require_http_methods(["GET", "PUT", "DELETE"])
@api_view
def deal_detail_view(request, deal_id):
    if request.method == "PUT":
        return ok(deal_to_dict(services.update_deal(deal_id, json_body(request))))

    if request.method == "DELETE":
        services.delete_deal(deal_id)
        return ok({"id": deal_id, "message": "Deal eliminado correctamente"})

    deal = Deal.objects.select_related("cliente", "vehiculo").get(pk=deal_id)
    return ok(deal_to_dict(deal))


@require_http_methods(["GET", "POST"])
@api_view
def deal_notes_view(request, deal_id):
    return notes_response(request, Deal.objects.get(pk=deal_id))


@require_http_methods(["PUT", "DELETE"])
@api_view
def deal_note_detail_view(request, deal_id, note_id):
    return note_detail_response(request, Deal.objects.get(pk=deal_id), note_id)


# -----------------------------
# Depósitos
# -----------------------------
@require_http_methods(["GET", "POST"])
@api_view
def deposit_list_view(request):
    if request.method == "POST":
        deposit = services.create_deposit(json_body(request))
        return ok(deposit_to_dict(deposit), status=201)

    deposits = services.get_deposits()
    estado = request.GET.get("estado")
    if estado:
        if estado not in DepositStatus.values:
            raise ValueError(f"estado inválido: {estado!r}")
        deposits = deposits.filter(estado=estado)
    return ok([deposit_to_dict(d) for d in deposits])


@require_http_methods(["GET", "PUT", "DELETE"])
@api_view
def deposit_detail_view(request, deposit_id):
    if request.method == "GET":
        return ok(deposit_to_dict(services.get_deposit(deposit_id)))

    if request.method == "PUT":
        return ok(deposit_to_dict(services.update_deposit(deposit_id, json_body(request))))

    services.delete_deposit(deposit_id)
    return ok({"id": deposit_id, "message": "Depósito eliminado correctamente"})


@require_http_methods(["GET"])
@api_view
def deposit_stats_view(request):
    return ok(services.get_deposit_stats())


@require_http_methods(["GET", "POST"])
@api_view
def deposit_notes_view(request, deposit_id):
    return notes_response(request, Deposit.objects.get(pk=deposit_id))


@require_http_methods(["PUT", "DELETE"])
@api_view
def deposit_note_detail_view(request, deposit_id, note_id):
    return note_detail_response(request, Deposit.objects.get(pk=deposit_id), note_id)
