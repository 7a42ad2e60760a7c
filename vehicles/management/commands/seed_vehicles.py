# vehicles/management/commands/seed_vehicles.py
import random
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from faker import Faker

from vehicles.choices import VehicleStatus, VehicleType
from vehicles.kanban import next_position
from vehicles.models import Investor, Vehicle
from vehicles.references import parse_vehicle_type, strip_reference_prefix
from vehicles.storage import check_unique_fields

BRANDS = [
    ("Seat", ["Ibiza", "León", "Arona", "Ateca"]),
    ("Volkswagen", ["Polo", "Golf", "T-Roc", "Tiguan"]),
    ("Renault", ["Clio", "Captur", "Mégane", "Austral"]),
    ("Peugeot", ["208", "2008", "308", "3008"]),
    ("Toyota", ["Yaris", "Corolla", "C-HR", "RAV4"]),
    ("Ford", ["Fiesta", "Focus", "Puma", "Kuga"]),
    ("BMW", ["Serie 1", "Serie 3", "X1", "X5"]),
]

COLORS = ["negro", "blanco", "gris", "plata", "azul", "rojo"]

# Reparto aproximado del stock por tipo
TIPO_WEIGHTS = [
    (VehicleType.COMPRA, 70),
    (VehicleType.INVERSOR, 15),
    (VehicleType.DEPOSITO, 10),
    (VehicleType.RENTING, 5),
]

# El bastidor real no usa I, O, Q.
_VIN_CHARS = "ABCDEFGHJKLMNPRSTUVWXYZ0123456789"


def unique_vin():
    return "".join(random.choices(_VIN_CHARS, k=17))


def spanish_plate():
    return f"{random.randint(0, 9999):04d} {''.join(random.choices('BCDFGHJKLMNPRSTVWXYZ', k=3))}"


def next_reference_numbers():
    """
    Siguiente número libre por tipo (cada tipo numera por separado), a partir
    del mayor ya usado para no repetir referencias tras borrados.
    """
    highest = {t: 0 for t in VehicleType}
    for referencia, tipo in Vehicle.objects.values_list("referencia", "tipo"):
        vtype = parse_vehicle_type(tipo)
        bare = strip_reference_prefix(referencia, vtype)
        if bare.isdigit():
            highest[vtype] = max(highest[vtype], int(bare))
    numbers = {t: n + 1 for t, n in highest.items()}
    # las compras empiezan en 1001
    numbers[VehicleType.COMPRA] = max(numbers[VehicleType.COMPRA], 1001)
    return numbers


class Command(BaseCommand):
    help = "Llena la base de datos con vehículos de prueba repartidos por el tablero."

    def add_arguments(self, parser):
        parser.add_argument("--min", "--n", dest="n", type=int, default=100,
                            help="Cantidad de vehículos a crear (alias: --min, --n)")
        parser.add_argument("--inversores", type=int, default=3,
                            help="Inversores a crear para los vehículos de tipo I")

    @transaction.atomic
    def handle(self, *args, **options):
        fake = Faker("es_ES")
        target = options["n"]

        investors = [
            Investor.objects.create(
                nombre=fake.first_name(),
                apellidos=fake.last_name(),
                email=fake.email(),
                capital_aportado=Decimal(random.randrange(50_000, 300_000, 5_000)),
                fecha_aporte=fake.date_between(start_date="-3y", end_date="today"),
            )
            for _ in range(options["inversores"])
        ]

        tipos, weights = zip(*TIPO_WEIGHTS)
        next_ref = next_reference_numbers()
        orden = {s: next_position(s) for s in VehicleStatus}
        vins_lote = set()
        created = 0

        for _ in range(target):
            tipo = random.choices(tipos, weights=weights)[0]
            estado = random.choice(list(VehicleStatus))
            brand, models = random.choice(BRANDS)
            precio_compra = Decimal(f"{random.uniform(4_000, 45_000):.2f}")

            vin = unique_vin()
            # Evita colisión tanto en la BD como en el lote actual
            while vin in vins_lote or Vehicle.objects.filter(bastidor=vin).exists():
                vin = unique_vin()
            vins_lote.add(vin)

            vendido = estado == VehicleStatus.VENDIDO
            precio_venta = (precio_compra * Decimal("1.18")).quantize(Decimal("0.01")) if vendido else None

            referencia = str(next_ref[tipo])
            check_unique_fields(referencia, tipo)

            Vehicle.objects.create(
                referencia=referencia,
                tipo=tipo,
                marca=brand,
                modelo=random.choice(models),
                matricula=spanish_plate(),
                bastidor=vin,
                kms=random.randint(0, 220_000),
                color=random.choice(COLORS),
                anio=random.randint(2008, 2025),
                estado=estado,
                orden=orden[estado],
                itv=random.choice(["Sí", "Sí", "No", "Vencida"]),
                fecha_itv=fake.date_between(start_date="-1y", end_date="+2y"),
                documentacion=random.choice(["Sí", "Sí", "No"]),
                inversor=random.choice(investors) if tipo == VehicleType.INVERSOR and investors else None,
                precio_compra=precio_compra,
                gastos_transporte=Decimal(random.randrange(0, 600)),
                gastos_mecanica=Decimal(random.randrange(0, 1_500)),
                precio_publicacion=(precio_compra * Decimal("1.25")).quantize(Decimal("0.01")),
                precio_venta=precio_venta,
                beneficio_neto=(precio_venta - precio_compra) if vendido else None,
            )
            next_ref[tipo] += 1
            orden[estado] += 1
            created += 1

        self.stdout.write(self.style.SUCCESS(
            f"Vehículos creados: {created} (inversores: {len(investors)})"
        ))
