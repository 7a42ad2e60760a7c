# vehicles/storage.py
"""
Primitivas de persistencia de vehículos.

Las vistas y la lógica del tablero solo hablan con la base de datos a través
de estas funciones. Convenciones de error:

    - id inexistente         -> Vehicle.DoesNotExist / Investor.DoesNotExist
    - datos de entrada malos -> ValueError
    - referencia/matrícula/bastidor repetidos -> DuplicateVehicleError
"""
import calendar
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Mapping, Optional

from django.core.exceptions import ValidationError
from django.db.models import Count, Q
from django.db.models.functions import TruncMonth
from django.utils import timezone
from django.utils.dateparse import parse_date

from .choices import PUBLISHED_STATUSES, VehicleStatus, VehicleType
from .filters import query_from_filters
from .kanban import next_position
from .models import Investor, Vehicle
from .references import (
    format_vehicle_reference,
    parse_vehicle_type,
    reference_lookup_candidates,
    reference_type_hint,
)

logger = logging.getLogger(__name__)


class DuplicateVehicleError(Exception):
    pass


TEXT_FIELDS = ("referencia", "marca", "modelo", "matricula", "bastidor", "color", "itv", "documentacion")
INT_FIELDS = ("kms", "anio", "orden")
NON_NEGATIVE_FIELDS = ("kms", "anio")
DECIMAL_FIELDS = Vehicle.COST_FIELDS + ("precio_publicacion", "precio_venta", "beneficio_neto")
DATE_FIELDS = ("fecha_itv",)
REQUIRED_FIELDS = ("referencia", "marca", "modelo")

SALES_PERIODS = ("mes_actual", "mes_anterior", "ultimos_3_meses", "ultimos_6_meses", "anio")


# -----------------------------
# Validación de datos de entrada
# -----------------------------
def _to_int(field, value):
    if value in (None, ""):
        return None if field == "anio" else 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} debe ser un número entero")
    if field in NON_NEGATIVE_FIELDS and number < 0:
        raise ValueError(f"{field} no puede ser negativo")
    return number


def _to_decimal(field, value):
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{field} debe ser un importe numérico")


def _to_date(field, value):
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


def check_field_constraints(model, cleaned: Mapping) -> None:
    """
    Pasa los valores ya convertidos por los validadores de los campos del
    modelo: longitud máxima de los textos, rango de los enteros, dígitos de
    los importes y formato del email.

    Raises:
        ValueError: algún valor no cabe en su columna.
    """
    for field_name, value in cleaned.items():
        field = model._meta.get_field(field_name)
        if value is None or field.is_relation:
            continue
        try:
            field.run_validators(value)
        except ValidationError as e:
            raise ValueError(f"{field_name}: {' '.join(e.messages)}")


def clean_vehicle_data(data: Mapping) -> Dict:
    """
    Valida y normaliza un dict de campos de vehículo (alta o edición parcial).

    Los enumerados (tipo, estado) se convierten a su código canónico.
    Campos desconocidos o valores que no caben en la columna -> ValueError.
    """
    cleaned = {}
    for field, value in data.items():
        if field in TEXT_FIELDS:
            cleaned[field] = "" if value is None else str(value).strip()
        elif field in INT_FIELDS:
            cleaned[field] = _to_int(field, value)
        elif field in DECIMAL_FIELDS:
            cleaned[field] = _to_decimal(field, value)
        elif field in DATE_FIELDS:
            cleaned[field] = _to_date(field, value)
        elif field == "tipo":
            cleaned["tipo"] = parse_vehicle_type(value, strict=True).value
        elif field == "estado":
            cleaned["estado"] = VehicleStatus.parse(value).value
        elif field in ("inversor", "inversor_id"):
            if value in (None, ""):
                cleaned["inversor"] = None
            else:
                try:
                    cleaned["inversor"] = Investor.objects.get(pk=int(value))
                except (TypeError, ValueError, Investor.DoesNotExist):
                    raise ValueError(f"Inversor no encontrado: {value!r}")
        else:
            raise ValueError(f"Campo desconocido: {field}")
    check_field_constraints(Vehicle, cleaned)
    return cleaned


def check_unique_fields(referencia, tipo, matricula="", bastidor="", exclude_id=None):
    """
    Comprueba que no exista otro vehículo con la misma referencia
    (comparando la forma canónica), matrícula o bastidor.
    """
    others = Vehicle.objects.all()
    if exclude_id is not None:
        others = others.exclude(pk=exclude_id)

    if referencia:
        canonical = format_vehicle_reference(referencia, tipo)
        cond = Q()
        for candidate in reference_lookup_candidates(referencia, tipo):
            cond |= Q(referencia__iexact=candidate)
        for other in others.filter(cond):
            if other.referencia_formateada == canonical:
                raise DuplicateVehicleError(f"Ya existe un vehículo con la referencia {canonical}")

    if matricula and others.filter(matricula__iexact=matricula).exists():
        raise DuplicateVehicleError(f"Ya existe un vehículo con la matrícula {matricula}")

    if bastidor and others.filter(bastidor__iexact=bastidor).exists():
        raise DuplicateVehicleError(f"Ya existe un vehículo con el bastidor {bastidor}")


# -----------------------------
# CRUD
# -----------------------------
def get_vehicles(filters: Optional[Dict] = None) -> List[Vehicle]:
    return list(query_from_filters(filters or {}))


def get_vehicle(vehicle_id) -> Vehicle:
    return Vehicle.objects.select_related("inversor").get(pk=vehicle_id)


def create_vehicle(data: Mapping) -> Vehicle:
    missing = [f for f in REQUIRED_FIELDS if not str(data.get(f) or "").strip()]
    if missing:
        raise ValueError(f"Campos obligatorios: {', '.join(missing)}")

    cleaned = clean_vehicle_data(data)
    cleaned.setdefault("tipo", VehicleType.COMPRA.value)
    cleaned.setdefault("estado", VehicleStatus.INICIAL.value)
    check_unique_fields(
        cleaned["referencia"], cleaned["tipo"],
        cleaned.get("matricula", ""), cleaned.get("bastidor", ""),
    )

    # al final de su columna si no se indica posición
    if "orden" not in data:
        cleaned["orden"] = next_position(cleaned["estado"])

    vehicle = Vehicle.objects.create(**cleaned)
    logger.info("Vehículo creado %s (id=%s)", vehicle.referencia_formateada, vehicle.pk)
    return vehicle


def update_vehicle(vehicle_id, patch: Mapping) -> Vehicle:
    """
    Aplica una edición parcial. Lanza Vehicle.DoesNotExist si el id no existe.
    """
    vehicle = get_vehicle(vehicle_id)
    cleaned = clean_vehicle_data(patch)

    if {"referencia", "tipo", "matricula", "bastidor"} & cleaned.keys():
        check_unique_fields(
            cleaned.get("referencia", vehicle.referencia),
            cleaned.get("tipo", vehicle.tipo),
            cleaned.get("matricula", ""),
            cleaned.get("bastidor", ""),
            exclude_id=vehicle.pk,
        )

    for field, value in cleaned.items():
        setattr(vehicle, field, value)
    vehicle.save()

    logger.info("Vehículo %s actualizado: %s", vehicle.pk, sorted(cleaned))
    return vehicle


def delete_vehicle(vehicle_id) -> None:
    vehicle = get_vehicle(vehicle_id)
    vehicle.delete()
    logger.info("Vehículo %s eliminado", vehicle_id)


def find_vehicle_by_reference(referencia) -> Vehicle:
    """
    Busca por cualquiera de las formas de la referencia ("1037", "#1037", "I-9", "I9"...).

    Si la referencia trae prefijo de tipo se prefiere el vehículo cuya forma
    canónica coincide; si no, el más antiguo de los que comparten número.
    """
    hint = reference_type_hint(referencia)
    candidates = reference_lookup_candidates(referencia, hint)
    if not candidates:
        raise Vehicle.DoesNotExist(f"Referencia vacía: {referencia!r}")

    cond = Q()
    for candidate in candidates:
        cond |= Q(referencia__iexact=candidate)
    matches = list(Vehicle.objects.select_related("inversor").filter(cond).order_by("id"))
    if not matches:
        raise Vehicle.DoesNotExist(f"Vehículo no encontrado: {referencia!r}")

    if hint is not None:
        canonical = format_vehicle_reference(referencia, hint)
        for vehicle in matches:
            if vehicle.referencia_formateada == canonical:
                return vehicle
    return matches[0]


# -----------------------------
# Inversores
# -----------------------------
INVESTOR_TEXT_FIELDS = ("nombre", "apellidos", "email", "telefono", "notas_internas")


def clean_investor_data(data: Mapping) -> Dict:
    cleaned = {}
    for field, value in data.items():
        if field in INVESTOR_TEXT_FIELDS:
            cleaned[field] = "" if value is None else str(value).strip()
        elif field == "capital_aportado":
            cleaned[field] = _to_decimal(field, value) or Decimal("0")
        elif field == "fecha_aporte":
            cleaned[field] = _to_date(field, value)
        else:
            raise ValueError(f"Campo desconocido: {field}")
    check_field_constraints(Investor, cleaned)
    return cleaned


def get_investors() -> List[Investor]:
    return list(Investor.objects.annotate(total_vehiculos=Count("vehiculos")))


def get_investor(investor_id) -> Investor:
    return Investor.objects.annotate(total_vehiculos=Count("vehiculos")).get(pk=investor_id)


def create_investor(data: Mapping) -> Investor:
    cleaned = clean_investor_data(data)
    if not cleaned.get("nombre"):
        raise ValueError("nombre es obligatorio")
    investor = Investor.objects.create(**cleaned)
    logger.info("Inversor creado %s (id=%s)", investor, investor.pk)
    return get_investor(investor.pk)


def update_investor(investor_id, data: Mapping) -> Investor:
    investor = Investor.objects.get(pk=investor_id)
    cleaned = clean_investor_data(data)
    if "nombre" in cleaned and not cleaned["nombre"]:
        raise ValueError("nombre no puede estar vacío")
    for field, value in cleaned.items():
        setattr(investor, field, value)
    investor.save()
    return get_investor(investor.pk)


def delete_investor(investor_id) -> None:
    """Sus vehículos se conservan sin inversor asignado."""
    investor = Investor.objects.get(pk=investor_id)
    investor.delete()
    logger.info("Inversor %s eliminado", investor_id)


def get_investor_vehicles(investor_id) -> List[Vehicle]:
    investor = Investor.objects.get(pk=investor_id)
    return list(investor.vehiculos.select_related("inversor").order_by("estado", "orden", "id"))


# -----------------------------
# Estadísticas
# -----------------------------
def get_vehicle_stats() -> Dict:
    active = Vehicle.objects.exclude(estado=VehicleStatus.VENDIDO)
    publicados = active.filter(estado__in=PUBLISHED_STATUSES).count()
    total_activos = active.count()
    return {
        "total_activos": total_activos,
        "publicados": publicados,
        "en_proceso": total_activos - publicados,
        "vendidos": Vehicle.objects.filter(estado=VehicleStatus.VENDIDO).count(),
    }


def _months_ago(dt: datetime, months: int) -> datetime:
    month_index = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(month_index, 12)
    day = min(dt.day, calendar.monthrange(year, month + 1)[1])
    return dt.replace(year=year, month=month + 1, day=day)


def _period_bounds(periodo: str, now: datetime):
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    if periodo == "mes_actual":
        return month_start, None
    if periodo == "mes_anterior":
        return _months_ago(month_start, 1), month_start
    if periodo == "ultimos_3_meses":
        return _months_ago(now, 3), None
    if periodo == "ultimos_6_meses":
        return _months_ago(now, 6), None
    if periodo == "anio":
        return month_start.replace(month=1), None
    raise ValueError(f"Periodo inválido: {periodo!r} (válidos: {', '.join(SALES_PERIODS)})")


def get_sales_by_month(periodo: str = "anio", now: Optional[datetime] = None) -> List[Dict]:
    """
    Vehículos vendidos agrupados por mes (fecha de la última modificación).
    """
    now = timezone.localtime(now or timezone.now())
    start, end = _period_bounds(periodo, now)

    qs = Vehicle.objects.filter(estado=VehicleStatus.VENDIDO, updated_at__gte=start)
    if end is not None:
        qs = qs.filter(updated_at__lt=end)

    rows = (
        qs.annotate(mes=TruncMonth("updated_at"))
        .values("mes")
        .annotate(cantidad=Count("id"))
        .order_by("-mes")
    )
    return [
        {"mes": r["mes"].strftime("%Y-%m"), "anio": r["mes"].year, "cantidad": r["cantidad"]}
        for r in rows
    ]


def get_investor_metrics(investor_id) -> Dict:
    """
    Capital, beneficio y ROI de un inversor a partir de sus vehículos.

    Lanza Investor.DoesNotExist si el id no existe.
    """
    investor = Investor.objects.get(pk=investor_id)
    vehicles = list(investor.vehiculos.all())

    vendidos = [v for v in vehicles if v.estado == VehicleStatus.VENDIDO]
    capital_invertido = sum((v.coste_total for v in vehicles), Decimal("0"))
    beneficio = sum((v.beneficio_neto or Decimal("0") for v in vehicles), Decimal("0"))
    roi = (beneficio / capital_invertido * 100) if capital_invertido > 0 else Decimal("0")

    return {
        "inversor": investor.pk,
        "capital_aportado": float(investor.capital_aportado),
        "capital_invertido": float(capital_invertido),
        # puede ser negativo
        "capital_disponible": float(investor.capital_aportado - capital_invertido),
        "beneficio_acumulado": float(beneficio),
        "roi": round(float(roi), 2),
        "total_vendidos": len(vendidos),
        "total_en_stock": len(vehicles) - len(vendidos),
    }
