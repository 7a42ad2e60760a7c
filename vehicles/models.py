# vehicles/models.py
from decimal import Decimal

from django.db import models

from .choices import VehicleStatus, VehicleType
from .references import (
    format_vehicle_reference,
    format_vehicle_reference_short,
    generate_vehicle_slug,
)


class Investor(models.Model):
    nombre = models.CharField("Nombre", max_length=100)
    apellidos = models.CharField("Apellidos", max_length=150, blank=True)
    email = models.EmailField("Email", blank=True)
    telefono = models.CharField("Teléfono", max_length=30, blank=True)
    capital_aportado = models.DecimalField("Capital aportado", max_digits=12, decimal_places=2, default=Decimal("0"))
    fecha_aporte = models.DateField("Fecha de aporte", null=True, blank=True)
    notas_internas = models.TextField("Notas internas", blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        verbose_name = "Inversor"
        verbose_name_plural = "Inversores"

    def __str__(self):
        return f"{self.nombre} {self.apellidos}".strip()


class Vehicle(models.Model):
    referencia = models.CharField("Referencia", max_length=30, db_index=True)   # tal cual se tecleó
    tipo = models.CharField("Tipo", max_length=1, choices=VehicleType.choices, default=VehicleType.COMPRA)
    marca = models.CharField("Marca", max_length=50)
    modelo = models.CharField("Modelo", max_length=80)
    matricula = models.CharField("Matrícula", max_length=20, blank=True)
    bastidor = models.CharField("Bastidor", max_length=32, blank=True)
    kms = models.PositiveIntegerField("Kilómetros", default=0)
    color = models.CharField("Color", max_length=30, blank=True)
    anio = models.PositiveIntegerField("Año", null=True, blank=True)

    # Tablero Kanban: columna + posición dentro de la columna
    estado = models.CharField("Estado", max_length=20, choices=VehicleStatus.choices,
                              default=VehicleStatus.INICIAL, db_index=True)
    orden = models.IntegerField("Orden", default=0)

    itv = models.CharField("ITV", max_length=30, blank=True)                    # ex: Sí / No / Vencida
    fecha_itv = models.DateField("Fecha ITV", null=True, blank=True)
    documentacion = models.CharField("Documentación", max_length=30, blank=True)  # ex: Sí / No

    inversor = models.ForeignKey(Investor, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name="vehiculos")
    precio_compra = models.DecimalField("Precio compra", max_digits=12, decimal_places=2, null=True, blank=True)
    gastos_transporte = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    gastos_tasas = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    gastos_mecanica = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    gastos_pintura = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    gastos_limpieza = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    gastos_otros = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    precio_publicacion = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    precio_venta = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    beneficio_neto = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    COST_FIELDS = (
        "precio_compra", "gastos_transporte", "gastos_tasas", "gastos_mecanica",
        "gastos_pintura", "gastos_limpieza", "gastos_otros",
    )

    class Meta:
        ordering = ["estado", "orden", "-created_at"]
        verbose_name = "Vehículo"
        verbose_name_plural = "Vehículos"

    def __str__(self):
        return f"{self.referencia_formateada} {self.marca} {self.modelo}"

    @property
    def referencia_formateada(self):
        return format_vehicle_reference(self.referencia, self.tipo)

    @property
    def referencia_corta(self):
        return format_vehicle_reference_short(self.referencia, self.tipo)

    @property
    def slug(self):
        return generate_vehicle_slug(self.referencia, self.marca, self.modelo, self.tipo)

    @property
    def coste_total(self) -> Decimal:
        return sum((getattr(self, f) or Decimal("0") for f in self.COST_FIELDS), Decimal("0"))


class NoteBase(models.Model):
    """
    Nota libre del equipo comercial. Cada modelo concreto añade la clave
    foránea a su propietario con related_name="notas".
    """

    class Tipo(models.TextChoices):
        GENERAL = "general", "General"
        LLAMADA = "llamada", "Llamada"
        VISITA = "visita", "Visita"
        EMAIL = "email", "Email"
        INCIDENCIA = "incidencia", "Incidencia"
        OTRO = "otro", "Otro"

    tipo = models.CharField("Tipo", max_length=20, choices=Tipo.choices, default=Tipo.GENERAL)
    titulo = models.CharField("Título", max_length=200, blank=True)
    contenido = models.TextField("Contenido")
    usuario = models.CharField("Usuario", max_length=100, default="Admin")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.titulo or self.contenido[:40]


class VehicleNote(NoteBase):
    vehiculo = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name="notas")

    class Meta(NoteBase.Meta):
        verbose_name = "Nota de vehículo"
        verbose_name_plural = "Notas de vehículos"
