# vehicles/filters.py
from typing import Dict, Mapping, Optional

from django.db.models import Q, QuerySet

from .choices import VehicleStatus
from .models import Vehicle
from .references import parse_vehicle_type, reference_lookup_candidates


# -----------------------------
# Parsing de filtros (query string)
# -----------------------------
def parse_filters(params: Mapping) -> Dict:
    """
    Extrae y valida los filtros del listado de vehículos.

    Retorna dict:
        {
            "q": Optional[str],          # texto libre (referencia, marca, modelo, matrícula, bastidor)
            "marca": Optional[str],
            "tipo": Optional[str],       # código VehicleType
            "estado": Optional[str],     # código VehicleStatus
            "inversor": Optional[int],
        }

    Raises:
        ValueError: tipo, estado o inversor no válidos.
    """
    f = {
        "q": None,
        "marca": None,
        "tipo": None,
        "estado": None,
        "inversor": None,
    }

    q = (params.get("q") or "").strip()
    if q:
        f["q"] = q

    marca = (params.get("marca") or "").strip()
    if marca:
        f["marca"] = marca

    tipo = (params.get("tipo") or "").strip()
    if tipo:
        f["tipo"] = parse_vehicle_type(tipo, strict=True).value

    estado = (params.get("estado") or "").strip()
    if estado:
        f["estado"] = VehicleStatus.parse(estado).value

    inversor = (params.get("inversor") or "").strip()
    if inversor:
        try:
            f["inversor"] = int(inversor)
        except ValueError:
            raise ValueError(f"Inversor inválido: {inversor!r}")

    return f


def query_from_filters(f: Dict, qs: Optional[QuerySet] = None) -> QuerySet:
    """
    Construye la QuerySet a partir de los filtros.
    """
    if qs is None:
        qs = Vehicle.objects.select_related("inversor")

    if f.get("q"):
        text = f["q"]
        cond = (
            Q(marca__icontains=text)
            | Q(modelo__icontains=text)
            | Q(matricula__icontains=text)
            | Q(bastidor__icontains=text)
        )
        for candidate in reference_lookup_candidates(text):
            cond |= Q(referencia__iexact=candidate)
        qs = qs.filter(cond)

    if f.get("marca"):
        qs = qs.filter(marca__iexact=f["marca"])

    if f.get("tipo"):
        qs = qs.filter(tipo=f["tipo"])

    if f.get("estado"):
        qs = qs.filter(estado=f["estado"])

    if f.get("inversor"):
        qs = qs.filter(inversor_id=f["inversor"])

    return qs
