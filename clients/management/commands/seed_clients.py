# clients/management/commands/seed_clients.py
import random
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from faker import Faker

from clients.models import Client, ClientReminder, Deal, DealStatus, Deposit, DepositStatus
from clients.services import deal_number
from vehicles.choices import VehicleStatus, VehicleType
from vehicles.models import Vehicle


class Command(BaseCommand):
    help = (
        "Crea clientes de prueba, con deals sobre los vehículos reservados y vendidos "
        "y depósitos sobre los vehículos de tipo depósito."
    )

    def add_arguments(self, parser):
        parser.add_argument("--n", dest="n", type=int, default=30,
                            help="Cantidad de clientes a crear")

    @transaction.atomic
    def handle(self, *args, **options):
        fake = Faker("es_ES")
        now = timezone.now()
        models_in_stock = Vehicle.objects.order_by("marca", "modelo").values_list("marca", "modelo").distinct()
        interests = [f"{marca} {modelo}" for marca, modelo in models_in_stock]

        clients = [
            Client.objects.create(
                nombre=fake.first_name(),
                apellidos=f"{fake.last_name()} {fake.last_name()}",
                email=fake.email(),
                telefono=fake.phone_number(),
                dni=fake.nif(),
                vehiculos_interes=random.choice(interests) if interests else "",
            )
            for _ in range(options["n"])
        ]
        if not clients:
            self.stdout.write(self.style.WARNING("No se ha creado ningún cliente."))
            return

        deals = 0
        vehicles = Vehicle.objects.filter(
            estado__in=[VehicleStatus.RESERVADO, VehicleStatus.VENDIDO]
        ).exclude(deals__isnull=False)
        for vehicle in vehicles:
            if vehicle.estado == VehicleStatus.VENDIDO:
                estado = random.choice([DealStatus.VENDIDO, DealStatus.FACTURADO])
            else:
                estado = DealStatus.RESERVADO
            total = vehicle.precio_venta or vehicle.precio_publicacion or Decimal("0")
            Deal.objects.create(
                numero=deal_number(vehicle),
                cliente=random.choice(clients),
                vehiculo=vehicle,
                estado=estado,
                importe_total=total,
                importe_sena=Decimal("500.00"),
                forma_pago_sena=random.choice(["transferencia", "tarjeta", "efectivo"]),
                responsable_comercial=fake.first_name(),
                fecha_facturada=now - timedelta(days=random.randint(1, 60)) if estado == DealStatus.FACTURADO else None,
                cambio_nombre_solicitado=random.random() < 0.5,
            )
            deals += 1

        deposits = 0
        vehicles = Vehicle.objects.filter(tipo=VehicleType.DEPOSITO).exclude(depositos__isnull=False)
        for vehicle in vehicles:
            vendido = vehicle.estado == VehicleStatus.VENDIDO
            deposit = Deposit(
                cliente=random.choice(clients),
                vehiculo=vehicle,
                estado=DepositStatus.VENDIDO if vendido else DepositStatus.ACTIVO,
                fecha_inicio=(now - timedelta(days=random.randint(0, 120))).date(),
                dias_gestion=random.choice([60, 90, 120]),
                precio_venta=vehicle.precio_publicacion,
                numero_cuenta=fake.iban(),
            )
            deposit.fecha_fin = deposit.compute_fecha_fin()
            deposit.save()
            deposits += 1

        for client in random.sample(clients, k=max(1, len(clients) // 3)):
            ClientReminder.objects.create(
                cliente=client,
                titulo=f"Llamar a {client.nombre}",
                tipo=random.choice(ClientReminder.Tipo.values),
                prioridad=random.choice(ClientReminder.Prioridad.values),
                fecha_recordatorio=now + timedelta(days=random.randint(-5, 20)),
            )

        self.stdout.write(self.style.SUCCESS(
            f"Clientes creados: {len(clients)} (deals: {deals}, depósitos: {deposits})"
        ))
