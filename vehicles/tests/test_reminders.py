from datetime import date, timedelta

from django.test import TestCase
from django.utils import timezone

from clients.models import Client, Deal, DealStatus
from vehicles.choices import VehicleStatus
from vehicles.models import Vehicle
from vehicles.reminders import get_dashboard_reminders, is_itv_expired


class DashboardRemindersTests(TestCase):
    """
    Recordatorios automáticos: ITV vencida, documentación pendiente y
    cambio de nombre pendiente.
    """

    today = date(2025, 6, 15)

    def _vehicle(self, ref, **extra):
        data = {"itv": "Sí", "documentacion": "Sí"}
        data.update(extra)
        return Vehicle.objects.create(referencia=ref, marca="Seat", modelo="León", **data)

    def _by_id(self):
        return {r.id: r for r in get_dashboard_reminders(today=self.today)}

    def test_nothing_pending(self):
        self._vehicle("1")
        self.assertEqual(get_dashboard_reminders(today=self.today), [])

    def test_itv_expired(self):
        self._vehicle("1", itv="No")
        self._vehicle("2", fecha_itv=self.today - timedelta(days=1))
        self._vehicle("3", fecha_itv=self.today + timedelta(days=30))
        self._vehicle("4", itv="Vencida")
        # los vendidos no cuentan
        self._vehicle("5", itv="No", estado=VehicleStatus.VENDIDO)

        reminder = self._by_id()["itv-vencida"]
        self.assertEqual(reminder.count, 3)
        self.assertEqual(reminder.priority, "high")
        self.assertEqual(reminder.description, "3 vehículos tienen la ITV vencida")
        self.assertEqual(sorted(i["referencia"] for i in reminder.items), ["#1", "#2", "#4"])

    def test_documentation_pending(self):
        self._vehicle("1", documentacion="")
        reminder = self._by_id()["documentacion-pendiente"]
        self.assertEqual(reminder.count, 1)
        self.assertEqual(reminder.priority, "medium")
        self.assertEqual(reminder.description, "1 vehículo necesita documentación")

    def test_name_change_pending(self):
        vehicle = self._vehicle("1037", estado=VehicleStatus.VENDIDO)
        client = Client.objects.create(nombre="Lucía", apellidos="Martín")
        Deal.objects.create(
            numero="RES-2025-1037", cliente=client, vehiculo=vehicle,
            estado=DealStatus.FACTURADO, fecha_facturada=timezone.now(),
        )
        Deal.objects.create(
            numero="RES-2025-1037", cliente=client, vehiculo=vehicle,
            estado=DealStatus.FACTURADO, cambio_nombre_solicitado=True,
        )

        reminder = self._by_id()["cambio-nombre-pendiente"]
        self.assertEqual(reminder.count, 1)
        item = reminder.items[0]
        self.assertEqual(item["deal_numero"], "RES-2025-1037")
        self.assertEqual(item["cliente"], "Lucía Martín")
        self.assertEqual(item["referencia"], "#1037")

    def test_itv_date_wins_over_text(self):
        v = Vehicle(referencia="1", marca="Seat", modelo="León", itv="Vencida",
                    fecha_itv=self.today + timedelta(days=1))
        self.assertFalse(is_itv_expired(v, self.today))
