from decimal import Decimal

from django.test import TestCase

from vehicles.choices import VehicleStatus, VehicleType
from vehicles.models import Investor, Vehicle
from vehicles.storage import (
    DuplicateVehicleError,
    create_vehicle,
    find_vehicle_by_reference,
    get_investor_metrics,
    get_vehicle_stats,
    update_vehicle,
)


class VehicleModelTests(TestCase):
    """
    Pruebas del modelo Vehicle.

    Objetivo:
    - La referencia se guarda tal cual y se muestra siempre en forma canónica.
    - Valores por defecto (tipo compra, columna inicial) y ordenación del tablero.
    """

    def setUp(self):
        self.v1 = Vehicle.objects.create(
            referencia="1037",
            tipo=VehicleType.COMPRA,
            marca="Ford",
            modelo="Puma",
            matricula="1234 KLM",
            precio_compra=Decimal("12000.00"),
            gastos_transporte=Decimal("300.00"),
            gastos_mecanica=Decimal("450.50"),
        )

    def test_str_representation(self):
        """
        __str__ -> "<referencia canónica> <marca> <modelo>"
        Ejemplo: "#1037 Ford Puma"
        """
        self.assertEqual(str(self.v1), "#1037 Ford Puma")

    def test_defaults(self):
        v = Vehicle.objects.create(referencia="9", marca="Seat", modelo="Ibiza")
        self.assertEqual(v.tipo, VehicleType.COMPRA)
        self.assertEqual(v.estado, VehicleStatus.INICIAL)
        self.assertEqual(v.orden, 0)

    def test_reference_properties(self):
        v = Vehicle.objects.create(referencia="I9", tipo=VehicleType.INVERSOR, marca="BMW", modelo="X5")
        self.assertEqual(v.referencia, "I9")  # sin tocar en BD
        self.assertEqual(v.referencia_formateada, "I-9")
        self.assertEqual(v.referencia_corta, "I-9")
        self.assertEqual(v.slug, "9-bmw-x5")

    def test_coste_total_ignores_empty_costs(self):
        self.assertEqual(self.v1.coste_total, Decimal("12750.50"))

    def test_ordering_by_column_then_position(self):
        """
        Meta.ordering = ["estado", "orden", "-created_at"]: dentro de una
        columna manda `orden`.
        """
        Vehicle.objects.filter(pk=self.v1.pk).update(orden=5)
        v2 = Vehicle.objects.create(referencia="1038", marca="Kia", modelo="Ceed", orden=1)

        ids = list(Vehicle.objects.filter(estado=VehicleStatus.INICIAL).values_list("id", flat=True))
        self.assertEqual(ids, [v2.id, self.v1.id])


class VehicleStorageTests(TestCase):
    """
    Alta, edición y búsqueda a través de vehicles.storage.
    """

    def test_create_vehicle_appends_to_column(self):
        first = create_vehicle({"referencia": "1", "marca": "Seat", "modelo": "León"})
        second = create_vehicle({"referencia": "2", "marca": "Seat", "modelo": "Arona"})
        self.assertEqual((first.orden, second.orden), (0, 1))

    def test_create_vehicle_goes_after_last_in_gapped_column(self):
        Vehicle.objects.create(referencia="1", marca="Seat", modelo="León", estado=VehicleStatus.FOTOS, orden=0)
        Vehicle.objects.create(referencia="2", marca="Seat", modelo="León", estado=VehicleStatus.FOTOS, orden=5)
        v = create_vehicle({"referencia": "3", "marca": "Kia", "modelo": "Rio", "estado": "fotos"})
        self.assertEqual(v.orden, 6)

    def test_create_vehicle_rejects_values_that_do_not_fit(self):
        base = {"referencia": "1", "marca": "Seat", "modelo": "León"}
        for extra in ({"kms": -5}, {"referencia": "R" * 31}, {"gastos_otros": "123456789.999"}):
            with self.subTest(extra=extra):
                with self.assertRaises(ValueError):
                    create_vehicle({**base, **extra})

    def test_create_vehicle_normalizes_enums(self):
        v = create_vehicle({
            "referencia": "5", "marca": "Kia", "modelo": "Rio",
            "tipo": "Depósito venta", "estado": "MECAUTO",
        })
        self.assertEqual(v.tipo, VehicleType.DEPOSITO)
        self.assertEqual(v.estado, VehicleStatus.MECANICA)
        self.assertEqual(v.referencia_formateada, "D-5")

    def test_create_vehicle_requires_fields(self):
        with self.assertRaises(ValueError):
            create_vehicle({"referencia": "1", "marca": "Seat"})

    def test_create_vehicle_rejects_unknown_fields(self):
        with self.assertRaises(ValueError):
            create_vehicle({"referencia": "1", "marca": "Seat", "modelo": "León", "puertas": 5})

    def test_duplicate_reference_by_canonical_form(self):
        """'#1010' y '1010' son la misma referencia de compra."""
        create_vehicle({"referencia": "1010", "marca": "Seat", "modelo": "León"})
        with self.assertRaises(DuplicateVehicleError):
            create_vehicle({"referencia": "#1010", "marca": "Seat", "modelo": "Ibiza"})

    def test_duplicate_reference_with_letter_prefix(self):
        """'I9' e 'I-9' son la misma referencia de inversor que '9'."""
        create_vehicle({"referencia": "9", "tipo": "I", "marca": "BMW", "modelo": "X5"})
        for ref in ("I9", "I-9"):
            with self.subTest(ref=ref):
                with self.assertRaises(DuplicateVehicleError):
                    create_vehicle({"referencia": ref, "tipo": "I", "marca": "BMW", "modelo": "X1"})

    def test_same_number_different_type_is_allowed(self):
        create_vehicle({"referencia": "9", "marca": "Seat", "modelo": "León"})
        v = create_vehicle({"referencia": "9", "tipo": "I", "marca": "BMW", "modelo": "X1"})
        self.assertEqual(v.referencia_formateada, "I-9")

    def test_duplicate_plate(self):
        create_vehicle({"referencia": "1", "marca": "Seat", "modelo": "León", "matricula": "1111 BBB"})
        with self.assertRaises(DuplicateVehicleError):
            create_vehicle({"referencia": "2", "marca": "Seat", "modelo": "León", "matricula": "1111 bbb"})

    def test_update_vehicle(self):
        v = create_vehicle({"referencia": "1", "marca": "Seat", "modelo": "León"})
        updated = update_vehicle(v.pk, {"kms": "45000", "precio_compra": "9500.50"})
        self.assertEqual(updated.kms, 45000)
        self.assertEqual(updated.precio_compra, Decimal("9500.50"))

    def test_update_missing_vehicle(self):
        with self.assertRaises(Vehicle.DoesNotExist):
            update_vehicle(999, {"kms": 1})

    def test_find_by_any_reference_form(self):
        v = Vehicle.objects.create(referencia="I9", tipo=VehicleType.INVERSOR, marca="BMW", modelo="X5")
        for ref in ("I-9", "i9", "9"):
            with self.subTest(ref=ref):
                self.assertEqual(find_vehicle_by_reference(ref).pk, v.pk)
        with self.assertRaises(Vehicle.DoesNotExist):
            find_vehicle_by_reference("404")

    def test_find_bare_stored_reference_by_prefixed_form(self):
        v = Vehicle.objects.create(referencia="9", tipo=VehicleType.INVERSOR, marca="BMW", modelo="X5")
        for ref in ("I9", "I-9", "i-9"):
            with self.subTest(ref=ref):
                self.assertEqual(find_vehicle_by_reference(ref).pk, v.pk)


class StatsAndInvestorTests(TestCase):
    def setUp(self):
        self.investor = Investor.objects.create(nombre="Ana", capital_aportado=Decimal("50000"))
        Vehicle.objects.create(
            referencia="1", tipo=VehicleType.INVERSOR, marca="Seat", modelo="León",
            estado=VehicleStatus.VENDIDO, inversor=self.investor,
            precio_compra=Decimal("10000"), beneficio_neto=Decimal("2000"),
        )
        Vehicle.objects.create(
            referencia="2", tipo=VehicleType.INVERSOR, marca="Seat", modelo="Ibiza",
            estado=VehicleStatus.PUBLICADO, inversor=self.investor,
            precio_compra=Decimal("8000"), gastos_pintura=Decimal("2000"),
        )
        Vehicle.objects.create(referencia="3", marca="Kia", modelo="Rio", estado=VehicleStatus.MECANICA)

    def test_vehicle_stats(self):
        self.assertEqual(get_vehicle_stats(), {
            "total_activos": 2,
            "publicados": 1,
            "en_proceso": 1,
            "vendidos": 1,
        })

    def test_investor_metrics(self):
        m = get_investor_metrics(self.investor.pk)
        self.assertEqual(m["capital_invertido"], 20000.0)
        self.assertEqual(m["capital_disponible"], 30000.0)
        self.assertEqual(m["beneficio_acumulado"], 2000.0)
        self.assertEqual(m["roi"], 10.0)
        self.assertEqual((m["total_vendidos"], m["total_en_stock"]), (1, 1))

    def test_investor_metrics_missing(self):
        with self.assertRaises(Investor.DoesNotExist):
            get_investor_metrics(999)
