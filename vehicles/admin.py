from django.contrib import admin
from .models import Investor, Vehicle, VehicleNote

@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("referencia_formateada", "tipo", "marca", "modelo", "matricula", "estado", "orden", "kms")
    search_fields = ("referencia", "marca", "modelo", "matricula", "bastidor")
    list_filter = ("tipo", "estado", "marca", "inversor")
    ordering = ("estado", "orden")

    @admin.display(description="Referencia", ordering="referencia")
    def referencia_formateada(self, obj):
        return obj.referencia_formateada

@admin.register(Investor)
class InvestorAdmin(admin.ModelAdmin):
    list_display = ("nombre", "apellidos", "email", "capital_aportado", "fecha_aporte")
    search_fields = ("nombre", "apellidos", "email")

@admin.register(VehicleNote)
class VehicleNoteAdmin(admin.ModelAdmin):
    list_display = ("__str__", "vehiculo", "tipo", "usuario", "created_at")
    list_filter = ("tipo",)
    search_fields = ("titulo", "contenido", "vehiculo__referencia")
