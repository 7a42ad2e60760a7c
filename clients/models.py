# clients/models.py
from datetime import timedelta
from decimal import Decimal

from django.db import models
from django.utils import timezone

from vehicles.models import NoteBase, Vehicle


class Client(models.Model):
    nombre = models.CharField("Nombre", max_length=100)
    apellidos = models.CharField("Apellidos", max_length=150, blank=True)
    email = models.EmailField("Email", blank=True)
    telefono = models.CharField("Teléfono", max_length=30, blank=True)
    dni = models.CharField("DNI", max_length=20, blank=True, db_index=True)
    vehiculos_interes = models.CharField("Vehículos de interés", max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Cliente"
        verbose_name_plural = "Clientes"

    def __str__(self):
        return self.nombre_completo

    @property
    def nombre_completo(self):
        return f"{self.nombre} {self.apellidos}".strip()


class DealStatus(models.TextChoices):
    NUEVO = "nuevo", "Nuevo"
    RESERVADO = "reservado", "Reservado"
    VENDIDO = "vendido", "Vendido"
    FACTURADO = "facturado", "Facturado"
    CANCELADO = "cancelado", "Cancelado"


class Deal(models.Model):
    """Operación de venta: cliente + vehículo, de la reserva a la factura."""

    numero = models.CharField("Número", max_length=40, db_index=True)
    cliente = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="deals")
    vehiculo = models.ForeignKey(Vehicle, on_delete=models.PROTECT, related_name="deals")
    estado = models.CharField("Estado", max_length=20, choices=DealStatus.choices, default=DealStatus.NUEVO)
    importe_total = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    importe_sena = models.DecimalField("Importe señal", max_digits=12, decimal_places=2, null=True, blank=True)
    forma_pago_sena = models.CharField(max_length=30, blank=True)
    observaciones = models.TextField(blank=True)
    responsable_comercial = models.CharField(max_length=100, blank=True)
    fecha_facturada = models.DateTimeField(null=True, blank=True)
    cambio_nombre_solicitado = models.BooleanField("Cambio de nombre solicitado", default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.numero


class ClientReminder(models.Model):
    class Tipo(models.TextChoices):
        LLAMADA = "llamada", "Llamada"
        VISITA = "visita", "Visita"
        EMAIL = "email", "Email"
        SEGUIMIENTO = "seguimiento", "Seguimiento"
        OTRO = "otro", "Otro"

    class Prioridad(models.TextChoices):
        ALTA = "alta", "Alta"
        MEDIA = "media", "Media"
        BAJA = "baja", "Baja"

    cliente = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="recordatorios")
    deal = models.ForeignKey(Deal, on_delete=models.SET_NULL, null=True, blank=True, related_name="recordatorios")
    titulo = models.CharField("Título", max_length=200)
    descripcion = models.TextField(blank=True)
    tipo = models.CharField(max_length=20, choices=Tipo.choices, default=Tipo.SEGUIMIENTO)
    prioridad = models.CharField(max_length=10, choices=Prioridad.choices, default=Prioridad.MEDIA)
    fecha_recordatorio = models.DateTimeField()
    completado = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["fecha_recordatorio", "-created_at"]

    def __str__(self):
        return self.titulo


class DepositStatus(models.TextChoices):
    BORRADOR = "borrador", "Borrador"
    ACTIVO = "activo", "Activo"
    VENDIDO = "vendido", "Vendido"
    FINALIZADO = "finalizado", "Finalizado"


class Deposit(models.Model):
    """
    Depósito de venta: el cliente deja su vehículo en la exposición y el
    concesionario lo vende a cambio de una comisión.
    """

    cliente = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="depositos")
    vehiculo = models.ForeignKey(Vehicle, on_delete=models.PROTECT, related_name="depositos")
    estado = models.CharField("Estado", max_length=20, choices=DepositStatus.choices, default=DepositStatus.BORRADOR)
    fecha_inicio = models.DateField("Fecha de inicio", default=timezone.localdate)
    dias_gestion = models.PositiveIntegerField("Días de gestión", null=True, blank=True)
    fecha_fin = models.DateField("Fecha de fin", null=True, blank=True)
    precio_venta = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    comision_porcentaje = models.DecimalField("Comisión (%)", max_digits=5, decimal_places=2, default=Decimal("5.00"))
    monto_recibir = models.DecimalField("Importe a recibir", max_digits=12, decimal_places=2, null=True, blank=True)
    multa_retiro_anticipado = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    numero_cuenta = models.CharField("Número de cuenta", max_length=34, blank=True)   # IBAN
    notas = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Depósito"
        verbose_name_plural = "Depósitos"

    def __str__(self):
        return f"Depósito {self.pk} ({self.vehiculo.referencia_formateada})"

    def compute_fecha_fin(self):
        if self.dias_gestion is None or self.fecha_inicio is None:
            return self.fecha_fin
        return self.fecha_inicio + timedelta(days=self.dias_gestion)

    @property
    def comision_estimada(self) -> Decimal:
        if self.precio_venta is None:
            return Decimal("0")
        return (self.precio_venta * self.comision_porcentaje / 100).quantize(Decimal("0.01"))


class ClientNote(NoteBase):
    cliente = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="notas")

    class Meta(NoteBase.Meta):
        verbose_name = "Nota de cliente"
        verbose_name_plural = "Notas de clientes"


class DealNote(NoteBase):
    deal = models.ForeignKey(Deal, on_delete=models.CASCADE, related_name="notas")

    class Meta(NoteBase.Meta):
        verbose_name = "Nota de deal"
        verbose_name_plural = "Notas de deals"


class DepositNote(NoteBase):
    deposito = models.ForeignKey(Deposit, on_delete=models.CASCADE, related_name="notas")

    class Meta(NoteBase.Meta):
        verbose_name = "Nota de depósito"
        verbose_name_plural = "Notas de depósitos"
