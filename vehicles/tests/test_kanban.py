from unittest.mock import patch

from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase

from vehicles import kanban
from vehicles.choices import KANBAN_COLUMNS, VehicleStatus
from vehicles.models import Vehicle


def make_vehicle(ref, estado=VehicleStatus.INICIAL, orden=0, **extra):
    return Vehicle.objects.create(
        referencia=ref, marca="Seat", modelo="León", estado=estado, orden=orden, **extra
    )


class UpdateVehicleStatusTests(TestCase):
    """
    Cambio de columna/posición de un vehículo y lotes tras un arrastre.
    """

    def setUp(self):
        self.a = make_vehicle("1", orden=0)
        self.b = make_vehicle("2", orden=1)
        self.c = make_vehicle("3", estado=VehicleStatus.MECANICA, orden=0)

    def test_single_update_touches_only_that_vehicle(self):
        kanban.update_vehicle_status(self.a.pk, "fotos", 2)

        self.a.refresh_from_db()
        self.assertEqual((self.a.estado, self.a.orden), ("fotos", 2))

        # el resto no cambia
        self.b.refresh_from_db()
        self.c.refresh_from_db()
        self.assertEqual((self.b.estado, self.b.orden), ("inicial", 1))
        self.assertEqual((self.c.estado, self.c.orden), ("mecanica", 0))

    def test_any_transition_is_allowed(self):
        kanban.update_vehicle_status(self.c.pk, VehicleStatus.VENDIDO, 0)
        kanban.update_vehicle_status(self.c.pk, VehicleStatus.INICIAL, 0)
        self.c.refresh_from_db()
        self.assertEqual(self.c.estado, VehicleStatus.INICIAL)

    def test_legacy_status_id_is_normalized(self):
        v = kanban.update_vehicle_status(self.a.pk, "REVI_PINTURA", 0)
        self.assertEqual(v.estado, "revision_pintura")

    def test_unknown_status(self):
        with self.assertRaises(ValueError):
            kanban.update_vehicle_status(self.a.pk, "taller", 0)

    def test_missing_vehicle(self):
        with self.assertRaises(Vehicle.DoesNotExist):
            kanban.update_vehicle_status(999, "fotos", 0)

    def test_batch_update(self):
        kanban.update_vehicles_order([
            {"id": self.a.pk, "estado": "mecanica", "orden": 1},
            kanban.KanbanUpdate(id=self.b.pk, estado="inicial", orden=0),
        ])
        self.a.refresh_from_db()
        self.b.refresh_from_db()
        self.assertEqual((self.a.estado, self.a.orden), ("mecanica", 1))
        self.assertEqual((self.b.estado, self.b.orden), ("inicial", 0))

    def test_batch_skips_missing_ids(self):
        updated = kanban.update_vehicles_order([
            {"id": self.a.pk, "estado": "pintura", "orden": 0},
            {"id": 999, "estado": "pintura", "orden": 1},
            {"id": self.b.pk, "estado": "pintura", "orden": 2},
        ])
        self.assertEqual([v.pk for v in updated], [self.a.pk, self.b.pk])
        self.assertEqual(Vehicle.objects.filter(estado="pintura").count(), 2)

    def test_empty_batch(self):
        self.assertEqual(kanban.update_vehicles_order([]), [])

    def test_batch_failure_keeps_earlier_writes(self):
        """
        El lote no es atómico: si falla la segunda escritura, la primera se
        queda confirmada y la tercera no llega a aplicarse.
        """
        original_save = Vehicle.save
        calls = []

        def failing_save(instance, *args, **kwargs):
            calls.append(instance.pk)
            if len(calls) == 2:
                raise DatabaseError("conexión perdida")
            return original_save(instance, *args, **kwargs)

        with patch.object(Vehicle, "save", failing_save):
            with self.assertRaises(DatabaseError):
                kanban.update_vehicles_order([
                    {"id": self.a.pk, "estado": "pintura", "orden": 0},
                    {"id": self.b.pk, "estado": "pintura", "orden": 1},
                    {"id": self.c.pk, "estado": "pintura", "orden": 2},
                ])

        self.a.refresh_from_db()
        self.b.refresh_from_db()
        self.c.refresh_from_db()
        self.assertEqual(self.a.estado, "pintura")
        self.assertEqual(self.b.estado, "inicial")
        self.assertEqual(self.c.estado, "mecanica")


class NextPositionTests(TestCase):
    def test_empty_column_starts_at_zero(self):
        self.assertEqual(kanban.next_position("fotos"), 0)

    def test_after_highest_orden_even_with_gaps(self):
        make_vehicle("1", estado=VehicleStatus.FOTOS, orden=0)
        make_vehicle("2", estado=VehicleStatus.FOTOS, orden=5)
        make_vehicle("3", estado=VehicleStatus.MECANICA, orden=9)
        self.assertEqual(kanban.next_position("FOTOS"), 6)


class MoveVehicleTests(TestCase):
    def setUp(self):
        self.col = [make_vehicle(str(i), estado=VehicleStatus.FOTOS, orden=i) for i in range(3)]
        self.other = make_vehicle("10", estado=VehicleStatus.LIMPIEZA, orden=0)

    def _column(self):
        return list(
            Vehicle.objects.filter(estado=VehicleStatus.FOTOS)
            .order_by("orden")
            .values_list("referencia", "orden")
        )

    def test_move_into_column_renumbers(self):
        kanban.move_vehicle(self.other.pk, "fotos", 1)
        self.assertEqual(self._column(), [("0", 0), ("10", 1), ("1", 2), ("2", 3)])

    def test_position_is_clamped(self):
        kanban.move_vehicle(self.other.pk, "fotos", 99)
        self.assertEqual(self._column()[-1], ("10", 3))

    def test_reorder_within_column_writes_only_changes(self):
        updated = kanban.move_vehicle(self.col[2].pk, "fotos", 0)
        self.assertEqual(self._column(), [("2", 0), ("0", 1), ("1", 2)])
        self.assertEqual(len(updated), 3)

        # mover a su propia posición solo escribe el vehículo movido
        updated = kanban.move_vehicle(self.col[2].pk, "fotos", 0)
        self.assertEqual([v.pk for v in updated], [self.col[2].pk])


class ParseKanbanUpdatesTests(SimpleTestCase):
    def test_valid_payload(self):
        parsed = kanban.parse_kanban_updates({"updates": [{"id": 1, "estado": "MECAUTO", "orden": 0}]})
        self.assertEqual(parsed, [kanban.KanbanUpdate(id=1, estado="mecanica", orden=0)])
        self.assertEqual(kanban.parse_kanban_updates({"updates": []}), [])

    def test_invalid_payloads(self):
        bad = [
            {},
            {"updates": "x"},
            {"updates": [{"id": 1, "orden": 0}]},
            {"updates": [{"id": "1", "estado": "fotos", "orden": 0}]},
            {"updates": [{"id": 1, "estado": "fotos", "orden": True}]},
            {"updates": [{"id": 1, "estado": "nada", "orden": 0}]},
        ]
        for payload in bad:
            with self.subTest(payload=payload):
                with self.assertRaises(ValueError):
                    kanban.parse_kanban_updates(payload)


class BuildBoardTests(SimpleTestCase):
    """
    Agrupación en columnas sin tocar la BD (instancias sin guardar).
    """

    def _v(self, pk, estado, orden):
        return Vehicle(pk=pk, referencia=str(pk), marca="Seat", modelo="León", estado=estado, orden=orden)

    def test_columns_in_order_and_sorted_by_orden(self):
        board = kanban.build_board([
            self._v(1, "fotos", 2),
            self._v(2, "fotos", 0),
            self._v(3, "mecanica", 0),
        ])
        self.assertEqual([c["estado"] for c in board], [s.value for s in KANBAN_COLUMNS])

        fotos = next(c for c in board if c["estado"] == "fotos")
        self.assertEqual([v.pk for v in fotos["vehiculos"]], [2, 1])
        self.assertEqual(fotos["titulo"], "Fotos")

    def test_sold_is_hidden_and_off_board_states_go_to_initial(self):
        board = kanban.build_board([
            self._v(1, "vendido", 0),
            self._v(2, "reservado", 0),
            self._v(3, "disponible", 1),
        ])
        inicial = board[0]
        self.assertEqual(inicial["estado"], "inicial")
        self.assertEqual([v.pk for v in inicial["vehiculos"]], [2, 3])
        self.assertEqual(sum(len(c["vehiculos"]) for c in board), 2)
