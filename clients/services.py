# clients/services.py
"""
Lógica de clientes, deals, depósitos y recordatorios de cliente.

Convenciones de error iguales a vehicles.storage: DoesNotExist para ids
inexistentes y ValueError para datos de entrada inválidos.
"""
import logging
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping

from django.db.models import Count, Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from vehicles.choices import VehicleStatus
from vehicles.kanban import next_position, update_vehicle_status
from vehicles.models import Vehicle
from vehicles.references import strip_reference_prefix
from vehicles.storage import check_field_constraints

from .models import Client, ClientReminder, Deal, DealStatus, Deposit, DepositStatus

logger = logging.getLogger(__name__)

CLIENT_FIELDS = ("nombre", "apellidos", "email", "telefono", "dni", "vehiculos_interes")
DEAL_TEXT_FIELDS = ("forma_pago_sena", "observaciones", "responsable_comercial")
DEAL_DECIMAL_FIELDS = ("importe_total", "importe_sena")

# Estado que toma el vehículo cuando el deal avanza
DEAL_VEHICLE_STATUS = {
    DealStatus.RESERVADO: VehicleStatus.RESERVADO,
    DealStatus.VENDIDO: VehicleStatus.VENDIDO,
    DealStatus.FACTURADO: VehicleStatus.VENDIDO,
}


def _choice(choices, value, field):
    if value not in choices.values:
        raise ValueError(f"{field} inválido: {value!r} (válidos: {', '.join(choices.values)})")
    return value


def _decimal(field, value):
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{field} debe ser un importe numérico")


def _datetime(field, value):
    if value in (None, ""):
        raise ValueError(f"{field} es obligatorio")
    text = str(value)
    dt = parse_datetime(text)
    if dt is None:
        d = parse_date(text)
        if d is None:
            raise ValueError(f"{field} debe ser una fecha ISO (AAAA-MM-DD[THH:MM])")
        dt = datetime.combine(d, time(9, 0))
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt)
    return dt


def _date(field, value):
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValueError(f"{field} debe tener formato AAAA-MM-DD")
    return parsed


def _json_bool(field, value) -> bool:
    # "false" o 0 no son booleanos JSON
    if not isinstance(value, bool):
        raise ValueError(f"{field} debe ser true o false")
    return value


# -----------------------------
# Clientes
# -----------------------------
def clean_client_data(data: Mapping) -> Dict:
    cleaned = {}
    for field, value in data.items():
        if field not in CLIENT_FIELDS:
            raise ValueError(f"Campo desconocido: {field}")
        cleaned[field] = "" if value is None else str(value).strip()
    check_field_constraints(Client, cleaned)
    return cleaned


def search_clients(q: str = ""):
    qs = Client.objects.all()
    q = (q or "").strip()
    if q:
        qs = qs.filter(
            Q(nombre__icontains=q) | Q(apellidos__icontains=q) | Q(dni__iexact=q)
            | Q(email__icontains=q) | Q(telefono__icontains=q) | Q(vehiculos_interes__icontains=q)
        )
    return qs


def search_clients_by_vehicle(texto: str):
    """Clientes interesados en un vehículo ("León", "Seat Ibiza"...)."""
    texto = (texto or "").strip()
    if not texto:
        return Client.objects.none()
    return Client.objects.filter(vehiculos_interes__icontains=texto).order_by("id")


def create_client(data: Mapping) -> Client:
    cleaned = clean_client_data(data)
    if not cleaned.get("nombre"):
        raise ValueError("nombre es obligatorio")
    client = Client.objects.create(**cleaned)
    logger.info("Cliente creado %s (id=%s)", client, client.pk)
    return client


def update_client(client_id, data: Mapping) -> Client:
    client = Client.objects.get(pk=client_id)
    cleaned = clean_client_data(data)
    if "nombre" in cleaned and not cleaned["nombre"]:
        raise ValueError("nombre no puede estar vacío")
    for field, value in cleaned.items():
        setattr(client, field, value)
    client.save()
    return client


# -----------------------------
# Recordatorios de cliente
# -----------------------------
def create_client_reminder(client_id, data: Mapping) -> ClientReminder:
    client = Client.objects.get(pk=client_id)
    titulo = str(data.get("titulo") or "").strip()
    if not titulo:
        raise ValueError("titulo es obligatorio")

    deal = None
    if data.get("deal_id"):
        deal = Deal.objects.get(pk=data["deal_id"], cliente=client)

    reminder = ClientReminder.objects.create(
        cliente=client,
        deal=deal,
        titulo=titulo,
        descripcion=str(data.get("descripcion") or ""),
        tipo=_choice(ClientReminder.Tipo, data.get("tipo") or ClientReminder.Tipo.SEGUIMIENTO, "tipo"),
        prioridad=_choice(ClientReminder.Prioridad, data.get("prioridad") or ClientReminder.Prioridad.MEDIA, "prioridad"),
        fecha_recordatorio=_datetime("fecha_recordatorio", data.get("fecha_recordatorio")),
    )
    logger.info("Recordatorio %s creado para el cliente %s", reminder.pk, client.pk)
    return reminder


def set_reminder_completed(client_id, reminder_id, completado: bool) -> ClientReminder:
    reminder = ClientReminder.objects.get(pk=reminder_id, cliente_id=client_id)
    reminder.completado = _json_bool("completado", completado)
    reminder.save(update_fields=["completado", "updated_at"])
    return reminder


# -----------------------------
# Deals
# -----------------------------
def deal_number(vehicle: Vehicle, year=None) -> str:
    """RES-<año>-<id de la referencia>, ej: RES-2025-1037."""
    year = year or timezone.localdate().year
    return f"RES-{year}-{strip_reference_prefix(vehicle.referencia, vehicle.tipo) or vehicle.pk}"


def _move_vehicle_to(vehicle: Vehicle, target):
    # al final de la columna destino
    update_vehicle_status(vehicle.pk, target, next_position(target))


def _sync_vehicle_status(deal: Deal):
    vehicle = deal.vehiculo
    target = DEAL_VEHICLE_STATUS.get(deal.estado)
    if target is None and deal.estado == DealStatus.CANCELADO and vehicle.estado == VehicleStatus.RESERVADO:
        target = VehicleStatus.DISPONIBLE
    if target is None or vehicle.estado == target:
        return
    _move_vehicle_to(vehicle, target)


def create_deal(data: Mapping) -> Deal:
    try:
        client = Client.objects.get(pk=int(data.get("cliente_id")))
        vehicle = Vehicle.objects.get(pk=int(data.get("vehiculo_id")))
    except (TypeError, ValueError):
        raise ValueError("cliente_id y vehiculo_id son obligatorios")

    fields = {
        "importe_total": _decimal("importe_total", data.get("importe_total")),
        "importe_sena": _decimal("importe_sena", data.get("importe_sena")),
        **{f: str(data.get(f) or "") for f in DEAL_TEXT_FIELDS},
    }
    check_field_constraints(Deal, fields)

    deal = Deal.objects.create(
        numero=deal_number(vehicle),
        cliente=client,
        vehiculo=vehicle,
        estado=DealStatus.NUEVO,
        **fields,
    )
    logger.info("Deal %s creado (cliente=%s, vehículo=%s)", deal.numero, client.pk, vehicle.pk)
    return deal


def update_deal(deal_id, data: Mapping) -> Deal:
    """
    Edición parcial de un deal. Al cambiar de estado se mueve el vehículo
    en el tablero (reservado / vendido) y se fecha la factura.
    """
    deal = Deal.objects.select_related("vehiculo", "cliente").get(pk=deal_id)
    old_estado = deal.estado

    changes = {}
    for field, value in data.items():
        if field == "estado":
            changes["estado"] = _choice(DealStatus, value, "estado")
        elif field == "cambio_nombre_solicitado":
            changes[field] = _json_bool(field, value)
        elif field in DEAL_DECIMAL_FIELDS:
            changes[field] = _decimal(field, value)
        elif field in DEAL_TEXT_FIELDS:
            changes[field] = "" if value is None else str(value)
        else:
            raise ValueError(f"Campo desconocido: {field}")
    check_field_constraints(Deal, changes)

    for field, value in changes.items():
        setattr(deal, field, value)
    if deal.estado == DealStatus.FACTURADO and deal.fecha_facturada is None:
        deal.fecha_facturada = timezone.now()
    deal.save()

    if deal.estado != old_estado:
        logger.info("Deal %s: %s -> %s", deal.numero, old_estado, deal.estado)
        _sync_vehicle_status(deal)
    return deal


def delete_deal(deal_id) -> None:
    """
    Borra un deal. Si el vehículo estaba reservado o vendido por él, vuelve a
    quedar disponible; en cualquier otra columna del tablero no se mueve.
    """
    deal = Deal.objects.select_related("vehiculo").get(pk=deal_id)
    vehicle = deal.vehiculo
    deal.delete()
    logger.info("Deal %s eliminado", deal.numero)

    if vehicle.estado in (VehicleStatus.RESERVADO, VehicleStatus.VENDIDO):
        _move_vehicle_to(vehicle, VehicleStatus.DISPONIBLE)


# -----------------------------
# Depósitos de venta
# -----------------------------
DEPOSIT_TEXT_FIELDS = ("numero_cuenta", "notas")
DEPOSIT_DECIMAL_FIELDS = ("precio_venta", "comision_porcentaje", "monto_recibir", "multa_retiro_anticipado")
DEPOSIT_DATE_FIELDS = ("fecha_inicio", "fecha_fin")


def clean_deposit_data(data: Mapping) -> Dict:
    cleaned = {}
    for field, value in data.items():
        if field in ("cliente_id", "vehiculo_id"):
            try:
                model = Client if field == "cliente_id" else Vehicle
                cleaned[field[:-3]] = model.objects.get(pk=int(value))
            except (TypeError, ValueError):
                raise ValueError(f"{field} debe ser un id numérico")
        elif field == "estado":
            cleaned["estado"] = _choice(DepositStatus, value, "estado")
        elif field == "dias_gestion":
            if value in (None, ""):
                cleaned[field] = None
            elif isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError("dias_gestion debe ser un entero positivo")
            else:
                cleaned[field] = value
        elif field in DEPOSIT_DECIMAL_FIELDS:
            cleaned[field] = _decimal(field, value)
        elif field in DEPOSIT_DATE_FIELDS:
            cleaned[field] = _date(field, value)
        elif field in DEPOSIT_TEXT_FIELDS:
            cleaned[field] = "" if value is None else str(value).strip()
        else:
            raise ValueError(f"Campo desconocido: {field}")

    if "comision_porcentaje" in cleaned and cleaned["comision_porcentaje"] is None:
        raise ValueError("comision_porcentaje no puede estar vacío")
    if "fecha_inicio" in cleaned and cleaned["fecha_inicio"] is None:
        raise ValueError("fecha_inicio no puede estar vacía")
    check_field_constraints(Deposit, cleaned)
    return cleaned


def _check_single_active(deposit: Deposit):
    if deposit.estado != DepositStatus.ACTIVO:
        return
    others = Deposit.objects.filter(vehiculo=deposit.vehiculo, estado=DepositStatus.ACTIVO)
    if deposit.pk is not None:
        others = others.exclude(pk=deposit.pk)
    if others.exists():
        raise ValueError("Ya existe un depósito activo para este vehículo")


def get_deposits():
    return Deposit.objects.select_related("cliente", "vehiculo")


def get_deposit(deposit_id) -> Deposit:
    return get_deposits().get(pk=deposit_id)


def create_deposit(data: Mapping) -> Deposit:
    if not data.get("cliente_id") or not data.get("vehiculo_id"):
        raise ValueError("cliente_id y vehiculo_id son obligatorios")

    deposit = Deposit(**clean_deposit_data(data))
    deposit.fecha_fin = deposit.compute_fecha_fin()
    _check_single_active(deposit)
    deposit.save()
    logger.info("Depósito %s creado (cliente=%s, vehículo=%s)", deposit.pk, deposit.cliente_id, deposit.vehiculo_id)
    return deposit


def update_deposit(deposit_id, data: Mapping) -> Deposit:
    """
    Edición parcial. Cambiar los días de gestión o la fecha de inicio
    recalcula la fecha de fin.
    """
    deposit = get_deposit(deposit_id)
    cleaned = clean_deposit_data(data)
    for field, value in cleaned.items():
        setattr(deposit, field, value)
    if {"dias_gestion", "fecha_inicio"} & cleaned.keys():
        deposit.fecha_fin = deposit.compute_fecha_fin()
    _check_single_active(deposit)
    deposit.save()
    logger.info("Depósito %s actualizado: %s", deposit.pk, sorted(cleaned))
    return deposit


def delete_deposit(deposit_id) -> None:
    Deposit.objects.get(pk=deposit_id).delete()
    logger.info("Depósito %s eliminado", deposit_id)


def get_deposit_stats() -> Dict:
    counts = dict(Deposit.objects.order_by().values_list("estado").annotate(n=Count("id")))
    activos = Deposit.objects.filter(estado=DepositStatus.ACTIVO)
    return {
        "total": sum(counts.values()),
        "por_estado": {status.value: counts.get(status.value, 0) for status in DepositStatus},
        "comision_estimada": float(sum((d.comision_estimada for d in activos), Decimal("0"))),
    }
