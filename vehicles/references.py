# vehicles/references.py
"""
Formato de las referencias internas de los vehículos.

La referencia se guarda tal cual la teclea el usuario; la forma canónica se
calcula siempre al mostrarla:

    Compra   -> #1010
    Inversor -> I-9
    Depósito -> D-5
    Renting  -> R-3

Ninguna función de este módulo lanza excepciones con la entrada del usuario
(salvo `parse_vehicle_type` en modo estricto): todo degrada a la mejor
salida posible.
"""
import re

from .choices import VehicleType, normalize_label

_INVALID_CHARS_RE = re.compile(r"[^A-Za-z0-9-]")
# "I-9" o "I9" (letra pegada a un número)
_LETTER_PREFIX_RE = re.compile(r"^([IDR])(?:-|(?=[0-9]))")
_SLUG_CHARS_RE = re.compile(r"[^a-z0-9]")

REFERENCE_PREFIXES = {
    VehicleType.COMPRA: "#",
    VehicleType.INVERSOR: "I-",
    VehicleType.DEPOSITO: "D-",
    VehicleType.RENTING: "R-",
}


def parse_vehicle_type(tipo, strict: bool = False) -> VehicleType:
    """
    Clasifica un tipo (código o texto libre) en uno de los cuatro grupos.

    - Inversor: "I", "Inversor"
    - Depósito: "D", "Deposito", "Depósito venta", ...
    - Renting:  "R", "Renting", "Coche R" (cualquier texto acabado en " R")
    - Compra:   "C", "Compra", vacío

    Con strict=False cualquier otro texto cae en Compra; con strict=True se
    rechaza con ValueError (validación de la API).
    """
    norm = normalize_label(tipo)

    if norm == "i" or norm.startswith("inversor"):
        return VehicleType.INVERSOR
    if norm == "d" or norm.startswith("deposito"):
        return VehicleType.DEPOSITO
    if norm in ("r", "renting") or norm.endswith(" r"):
        return VehicleType.RENTING
    if not strict or norm in ("", "c", "compra"):
        return VehicleType.COMPRA
    raise ValueError(f"Tipo de vehículo desconocido: {tipo!r}")


def _clean_reference(referencia: str) -> str:
    return _INVALID_CHARS_RE.sub("", referencia.strip()).upper()


def format_vehicle_reference(referencia, tipo=None) -> str:
    """
    Devuelve la referencia en su forma canónica según el tipo.

    Es idempotente: formatear una referencia ya formateada la deja igual.
    Referencia vacía -> "" (sin prefijo), sea cual sea el tipo.
    """
    if not referencia or not referencia.strip():
        return ""

    clean = _clean_reference(referencia)
    vtype = parse_vehicle_type(tipo)
    prefix = REFERENCE_PREFIXES[vtype]

    if vtype == VehicleType.COMPRA:
        # '#' ya se ha eliminado al limpiar, nunca se duplica
        return f"{prefix}{clean}"

    if clean.startswith(prefix):
        return clean
    # "I9" -> "I-9"
    if clean.startswith(prefix[0]):
        return f"{prefix}{clean[1:]}"
    return f"{prefix}{clean}"


def format_vehicle_reference_short(referencia, tipo=None) -> str:
    """
    Versión compacta para el dashboard y tarjetas pequeñas.

    Compras: '#' + últimos 2 dígitos. Resto: prefijo + último dígito.
    Una referencia sin ningún dígito se devuelve completa.
    """
    full = format_vehicle_reference(referencia, tipo)
    if not full:
        return ""

    vtype = parse_vehicle_type(tipo)
    prefix = REFERENCE_PREFIXES[vtype]
    digits = re.sub(r"[^0-9]", "", full[len(prefix):])
    if not digits:
        return full

    if vtype == VehicleType.COMPRA:
        return f"{prefix}{digits[-2:]}"
    return f"{prefix}{digits[-1:]}"


def strip_reference_prefix(referencia, tipo=None) -> str:
    """
    Identificador desnudo de una referencia: "#1234" -> "1234", "I-9" -> "9",
    "I9" -> "9".

    Con `tipo` se parte de la forma canónica de ese tipo, así que el
    resultado es el mismo para todas las formas de una referencia.
    """
    if not referencia or not referencia.strip():
        return ""
    if tipo is not None:
        full = format_vehicle_reference(referencia, tipo)
        return full[len(REFERENCE_PREFIXES[parse_vehicle_type(tipo)]):]
    return _LETTER_PREFIX_RE.sub("", _clean_reference(referencia))


def reference_type_hint(referencia):
    """
    Tipo que indica el propio prefijo de la referencia ("#12" -> compra,
    "I-9"/"I9" -> inversor), o None si viene desnuda.
    """
    if not referencia or not referencia.strip():
        return None
    if referencia.strip().startswith("#"):
        return VehicleType.COMPRA
    match = _LETTER_PREFIX_RE.match(_clean_reference(referencia))
    return VehicleType(match.group(1)) if match else None


def reference_lookup_candidates(referencia, tipo=None) -> list:
    """
    Todas las formas en que una referencia puede estar guardada en BD.
    """
    bare = strip_reference_prefix(referencia, tipo)
    if not bare:
        return []
    candidates = [bare] + [f"{prefix}{bare}" for prefix in REFERENCE_PREFIXES.values()]
    # variantes sin guión tecleadas a mano ("I9")
    candidates += [f"{prefix[0]}{bare}" for prefix in REFERENCE_PREFIXES.values() if prefix != "#"]
    return candidates


def _slug_part(txt) -> str:
    return _SLUG_CHARS_RE.sub("", normalize_label(txt))


def generate_vehicle_slug(referencia, marca, modelo, tipo=None) -> str:
    """
    Slug para URLs: "<id>-<marca>-<modelo>".

    >>> generate_vehicle_slug("#1234", "BMW", "X5")
    '1234-bmw-x5'
    >>> generate_vehicle_slug("I9", "BMW", "X5", tipo="I")
    '9-bmw-x5'
    """
    parts = [
        _slug_part(strip_reference_prefix(referencia, tipo)),
        _slug_part(marca),
        _slug_part(modelo),
    ]
    return "-".join(p for p in parts if p)
