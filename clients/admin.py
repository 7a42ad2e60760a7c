from django.contrib import admin
from .models import Client, ClientNote, ClientReminder, Deal, DealNote, Deposit, DepositNote

@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("nombre", "apellidos", "dni", "telefono", "email")
    search_fields = ("nombre", "apellidos", "dni", "email", "telefono", "vehiculos_interes")

@admin.register(Deal)
class DealAdmin(admin.ModelAdmin):
    list_display = ("numero", "cliente", "vehiculo", "estado", "importe_total", "cambio_nombre_solicitado")
    search_fields = ("numero", "cliente__nombre", "cliente__apellidos", "vehiculo__referencia")
    list_filter = ("estado", "cambio_nombre_solicitado")

@admin.register(Deposit)
class DepositAdmin(admin.ModelAdmin):
    list_display = ("id", "cliente", "vehiculo", "estado", "fecha_inicio", "fecha_fin", "precio_venta")
    search_fields = ("cliente__nombre", "cliente__apellidos", "vehiculo__referencia", "vehiculo__matricula")
    list_filter = ("estado",)

@admin.register(ClientReminder)
class ClientReminderAdmin(admin.ModelAdmin):
    list_display = ("titulo", "cliente", "tipo", "prioridad", "fecha_recordatorio", "completado")
    list_filter = ("tipo", "prioridad", "completado")

@admin.register(ClientNote, DealNote, DepositNote)
class NoteAdmin(admin.ModelAdmin):
    list_display = ("__str__", "tipo", "usuario", "created_at")
    list_filter = ("tipo",)
    search_fields = ("titulo", "contenido")
