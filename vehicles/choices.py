# vehicles/choices.py
"""
Enumerados cerrados del dominio (tipo de vehículo y estado en el tablero).

Antes eran textos libres que cada pantalla escribía a su manera
("Compra", "C", "Coche R", "MECAUTO", "mecánica"...). Aquí se valida la
entrada en el borde y se guarda siempre el código canónico.
"""
import unicodedata

from django.db import models


def normalize_label(txt) -> str:
    """
    Quita acentos, espacios sobrantes y pasa a minúsculas.
    """
    if txt is None:
        return ""
    txt = unicodedata.normalize("NFKD", str(txt)).encode("ascii", "ignore").decode("ascii")
    return " ".join(txt.lower().split())


class VehicleType(models.TextChoices):
    COMPRA = "C", "Compra"
    INVERSOR = "I", "Inversor"
    DEPOSITO = "D", "Depósito venta"
    RENTING = "R", "Coche R"


class VehicleStatus(models.TextChoices):
    INICIAL = "inicial", "Inicial"
    REVISION_INICIAL = "revision_inicial", "Revisión inicial"
    MECANICA = "mecanica", "Mecánica"
    REVISION_PINTURA = "revision_pintura", "Revisión pintura"
    PINTURA = "pintura", "Pintura"
    LIMPIEZA = "limpieza", "Limpieza"
    FOTOS = "fotos", "Fotos"
    PUBLICADO = "publicado", "Publicado"
    DISPONIBLE = "disponible", "Disponible"
    RESERVADO = "reservado", "Reservado"
    VENDIDO = "vendido", "Vendido"

    @classmethod
    def parse(cls, value):
        """
        Convierte cualquier variante conocida al estado canónico.

        Acepta el valor canónico, la etiqueta ("Mecánica"), mayúsculas y los
        identificadores antiguos de columna (SIN_ESTADO, REVI_INIC, MECAUTO...).
        Vacío o None equivale a la columna inicial.

        Raises:
            ValueError: si el texto no corresponde a ningún estado.
        """
        norm = normalize_label(value).replace(" ", "_")
        if not norm:
            return cls.INICIAL
        if norm in _STATUS_ALIASES:
            return _STATUS_ALIASES[norm]
        for status in cls:
            if norm == status.value or norm == normalize_label(status.label).replace(" ", "_"):
                return status
        raise ValueError(f"Estado desconocido: {value!r}")


# Identificadores del tablero anterior
_STATUS_ALIASES = {
    "sin_estado": VehicleStatus.INICIAL,
    "revi_inic": VehicleStatus.REVISION_INICIAL,
    "mecauto": VehicleStatus.MECANICA,
    "revi_pintura": VehicleStatus.REVISION_PINTURA,
}

# Columnas del tablero Kanban, en orden de izquierda a derecha
KANBAN_COLUMNS = [
    VehicleStatus.INICIAL,
    VehicleStatus.REVISION_INICIAL,
    VehicleStatus.MECANICA,
    VehicleStatus.REVISION_PINTURA,
    VehicleStatus.PINTURA,
    VehicleStatus.LIMPIEZA,
    VehicleStatus.FOTOS,
    VehicleStatus.PUBLICADO,
]

# Estados que cuentan como "publicado" en las estadísticas
PUBLISHED_STATUSES = [VehicleStatus.PUBLICADO, VehicleStatus.DISPONIBLE]
