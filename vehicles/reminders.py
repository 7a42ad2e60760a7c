# vehicles/reminders.py
"""
Recordatorios automáticos del dashboard.

Se calculan al vuelo filtrando vehículos y deals:
    - ITV vencida
    - documentación pendiente
    - cambio de nombre pendiente (deals facturados sin cambio solicitado)
"""
import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from django.utils import timezone

from clients.models import Deal, DealStatus

from .choices import VehicleStatus, normalize_label
from .models import Vehicle
from .references import format_vehicle_reference

logger = logging.getLogger(__name__)

_NEGATIVE = ("", "no")


@dataclass
class DashboardReminder:
    id: str
    type: str
    title: str
    description: str
    count: int
    priority: str
    items: List[dict] = field(default_factory=list)

    def to_dict(self):
        return asdict(self)


def _vehiculos(n: int) -> str:
    return f"{n} vehículo{'' if n == 1 else 's'}"


def _vehicle_item(v: Vehicle, **extra) -> dict:
    item = {
        "id": v.pk,
        "referencia": format_vehicle_reference(v.referencia, v.tipo),
        "marca": v.marca,
        "modelo": v.modelo,
        "matricula": v.matricula,
    }
    item.update(extra)
    return item


def is_itv_expired(vehicle: Vehicle, today: date) -> bool:
    itv = normalize_label(vehicle.itv)
    if itv in _NEGATIVE:
        return True
    if vehicle.fecha_itv:
        return vehicle.fecha_itv < today
    return "vencid" in itv


def is_documentation_pending(vehicle: Vehicle) -> bool:
    return normalize_label(vehicle.documentacion) in _NEGATIVE


def itv_expired_reminder(vehicles: Iterable[Vehicle], today: date) -> DashboardReminder:
    expired = [v for v in vehicles if is_itv_expired(v, today)]
    n = len(expired)
    return DashboardReminder(
        id="itv-vencida",
        type="itv_vencida",
        title="ITV Vencida",
        description=f"{_vehiculos(n)} {'tiene' if n == 1 else 'tienen'} la ITV vencida",
        count=n,
        priority="high" if n else "low",
        items=[
            _vehicle_item(v, itv=v.itv, fecha_itv=v.fecha_itv.isoformat() if v.fecha_itv else None)
            for v in expired
        ],
    )


def documentation_pending_reminder(vehicles: Iterable[Vehicle]) -> DashboardReminder:
    pending = [v for v in vehicles if is_documentation_pending(v)]
    n = len(pending)
    return DashboardReminder(
        id="documentacion-pendiente",
        type="documentacion_pendiente",
        title="Documentación Pendiente",
        description=f"{_vehiculos(n)} {'necesita' if n == 1 else 'necesitan'} documentación",
        count=n,
        priority="medium" if n else "low",
        items=[_vehicle_item(v, documentacion=v.documentacion) for v in pending],
    )


def name_change_pending_reminder(deals: Iterable[Deal]) -> DashboardReminder:
    pending = [
        d for d in deals
        if d.estado == DealStatus.FACTURADO and not d.cambio_nombre_solicitado
    ]
    n = len(pending)
    return DashboardReminder(
        id="cambio-nombre-pendiente",
        type="cambio_nombre_pendiente",
        title="Cambio de Nombre Pendiente",
        description=f"{_vehiculos(n)} {'necesita' if n == 1 else 'necesitan'} cambio de nombre",
        count=n,
        priority="high" if n else "low",
        items=[
            _vehicle_item(
                d.vehiculo,
                deal_id=d.pk,
                deal_numero=d.numero,
                cliente=d.cliente.nombre_completo,
                fecha_facturada=d.fecha_facturada.isoformat() if d.fecha_facturada else None,
            )
            for d in pending
        ],
    )


def get_dashboard_reminders(today: Optional[date] = None) -> List[DashboardReminder]:
    """
    Recordatorios con al menos un elemento. Los vehículos vendidos no
    generan avisos de ITV ni de documentación.
    """
    today = today or timezone.localdate()
    vehicles = list(Vehicle.objects.exclude(estado=VehicleStatus.VENDIDO))
    deals = Deal.objects.filter(estado=DealStatus.FACTURADO).select_related("vehiculo", "cliente")

    reminders = [
        itv_expired_reminder(vehicles, today),
        documentation_pending_reminder(vehicles),
        name_change_pending_reminder(deals),
    ]
    logger.debug("Recordatorios del dashboard: %s", {r.id: r.count for r in reminders})
    return [r for r in reminders if r.count > 0]
