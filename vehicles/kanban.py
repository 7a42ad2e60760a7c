# vehicles/kanban.py
"""
Tablero Kanban de vehículos.

Cada vehículo guarda un par (estado, orden): la columna del tablero y su
posición dentro de ella. El tablero ordena por `orden` ascendente al leer,
así que los huecos en la numeración no importan, solo el orden relativo.

Las transiciones entre estados no están restringidas: cualquier estado puede
pasar a cualquier otro.

Importante: `update_vehicles_order` escribe registro a registro en modo
autocommit, SIN transacción común. Los ids que ya no existen (borrados desde
otra pestaña, por ejemplo) se saltan y no cuentan en el resultado. Si falla
la escritura de una actualización, la llamada entera lanza la excepción pero
las escrituras anteriores del mismo lote ya están confirmadas y no se
deshacen.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Union

from django.db.models import Max

from .choices import KANBAN_COLUMNS, VehicleStatus
from .models import Vehicle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KanbanUpdate:
    id: int
    estado: str
    orden: int


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def parse_kanban_updates(payload) -> List[KanbanUpdate]:
    """
    Valida el cuerpo {"updates": [{"id", "estado", "orden"}, ...]}.

    Raises:
        ValueError: lista ausente o algún elemento incompleto.
    """
    updates = payload.get("updates") if isinstance(payload, Mapping) else None
    if not isinstance(updates, list):
        raise ValueError("Se requiere la lista 'updates'")

    parsed = []
    for item in updates:
        if not isinstance(item, Mapping) or "estado" not in item:
            raise ValueError("Cada update debe tener id, estado y orden")
        if not _is_int(item.get("id")) or not _is_int(item.get("orden")):
            raise ValueError("Cada update debe tener id, estado y orden")
        status = VehicleStatus.parse(item["estado"])
        parsed.append(KanbanUpdate(id=item["id"], estado=status.value, orden=item["orden"]))
    return parsed


def update_vehicle_status(vehicle_id, estado, orden) -> Vehicle:
    """
    Cambia la columna y la posición de un vehículo.

    Raises:
        Vehicle.DoesNotExist: el id no existe.
        ValueError: estado desconocido.
    """
    status = VehicleStatus.parse(estado)
    vehicle = Vehicle.objects.get(pk=vehicle_id)
    vehicle.estado = status.value
    vehicle.orden = int(orden)
    vehicle.save(update_fields=["estado", "orden", "updated_at"])

    logger.info("Vehículo %s -> %s (orden %s)", vehicle.pk, vehicle.estado, vehicle.orden)
    return vehicle


def update_vehicles_order(updates: Iterable[Union[KanbanUpdate, Mapping]]) -> List[Vehicle]:
    """
    Aplica un lote de cambios (id, estado, orden), uno a uno, y devuelve
    solo los vehículos que se llegaron a escribir.

    No es atómico: ver la nota del módulo.
    """
    results = []
    for update in updates:
        if isinstance(update, Mapping):
            update = KanbanUpdate(id=update["id"], estado=update["estado"], orden=update["orden"])
        try:
            results.append(update_vehicle_status(update.id, update.estado, update.orden))
        except Vehicle.DoesNotExist:
            logger.warning("Vehículo %s no encontrado, se omite del lote", update.id)

    logger.info("Orden del tablero actualizado (%s vehículos)", len(results))
    return results


def next_position(estado) -> int:
    """
    Primera posición libre al final de una columna: el mayor `orden` + 1,
    o 0 si la columna está vacía.
    """
    status = VehicleStatus.parse(estado)
    last = Vehicle.objects.filter(estado=status.value).aggregate(last=Max("orden"))["last"]
    return 0 if last is None else last + 1


def board_column_for(vehicle: Vehicle):
    """
    Columna en la que se pinta un vehículo, o None si no va en el tablero.

    Los vendidos salen del tablero; cualquier otro estado fuera de las
    columnas (disponible, reservado...) se pinta en la columna inicial.
    """
    if vehicle.estado == VehicleStatus.VENDIDO:
        return None
    if vehicle.estado in KANBAN_COLUMNS:
        return VehicleStatus(vehicle.estado)
    return VehicleStatus.INICIAL


def build_board(vehicles: Iterable[Vehicle]) -> List[Dict]:
    """
    Agrupa los vehículos por columna, cada columna ordenada por `orden`.
    """
    columns = {status: [] for status in KANBAN_COLUMNS}
    for vehicle in vehicles:
        column = board_column_for(vehicle)
        if column is not None:
            columns[column].append(vehicle)

    return [
        {
            "estado": status.value,
            "titulo": status.label,
            "vehiculos": sorted(columns[status], key=lambda v: (v.orden, v.pk)),
        }
        for status in KANBAN_COLUMNS
    ]


def move_vehicle(vehicle_id, estado, position: int) -> List[Vehicle]:
    """
    Mueve un vehículo a la posición `position` de la columna `estado`
    (arrastrar y soltar) y renumera esa columna 0..n-1.

    Solo se escriben los vehículos cuyo (estado, orden) cambia; el movido
    siempre se escribe. Devuelve los vehículos actualizados.
    """
    target = VehicleStatus.parse(estado)
    vehicle = Vehicle.objects.get(pk=vehicle_id)

    column = list(
        Vehicle.objects.filter(estado=target.value).exclude(pk=vehicle.pk).order_by("orden", "id")
    )
    position = max(0, min(int(position), len(column)))
    column.insert(position, vehicle)

    updates = [
        KanbanUpdate(id=v.pk, estado=target.value, orden=index)
        for index, v in enumerate(column)
        if v.pk == vehicle.pk or v.orden != index
    ]
    return update_vehicles_order(updates)
