#!/usr/bin/env python3
"""
Slot registry, id generation and ticketing unit tests
"""

import threading
import unittest

from tests import FakeClock, make_floors, standard_floors

from multilevel_parking.domain.aggregates import SlotRegistry, elapsed_minutes
from multilevel_parking.domain.exceptions import LayoutError
from multilevel_parking.domain.models import SlotType, Vehicle, VehicleType
from multilevel_parking.domain.ticketing import IdGenerator, TicketingService


class TestSlotRegistry(unittest.TestCase):

    def setUp(self):
        self.registry = SlotRegistry(standard_floors())

    def test_finds_first_free_in_floor_then_slot_order(self):
        self.assertEqual(self.registry.find_free_slot(SlotType.FOUR_WHEELER).id, "F1-S3")

        self.registry.occupy(self.registry.find_slot("F1-S3"))
        self.assertEqual(self.registry.find_free_slot(SlotType.FOUR_WHEELER).id, "F1-S4")

        self.registry.occupy(self.registry.find_slot("F1-S4"))
        self.assertEqual(self.registry.find_free_slot(SlotType.FOUR_WHEELER).id, "F2-S1")

    def test_exhausted_category_returns_none(self):
        self.registry.occupy(self.registry.find_slot("F1-S5"))
        self.assertIsNone(self.registry.find_free_slot(SlotType.HEAVY))

    def test_free_makes_slot_available_again(self):
        slot = self.registry.find_slot("F1-S1")
        self.registry.occupy(slot)
        self.assertTrue(slot.is_occupied)
        self.registry.free(slot)
        self.assertTrue(slot.is_free)
        self.assertIs(self.registry.find_free_slot(SlotType.TWO_WHEELER), slot)

    def test_find_slot_unknown(self):
        self.assertIsNone(self.registry.find_slot("F9-S9"))

    def test_occupancy_counts(self):
        self.registry.occupy(self.registry.find_slot("F1-S1"))
        self.registry.occupy(self.registry.find_slot("F2-S1"))

        self.assertEqual(tuple(self.registry.occupancy()), (4, 2, 6))

        by_category = self.registry.occupancy_by_category()
        self.assertEqual(tuple(by_category[SlotType.TWO_WHEELER]), (1, 1, 2))
        self.assertEqual(tuple(by_category[SlotType.FOUR_WHEELER]), (2, 1, 3))
        self.assertEqual(tuple(by_category[SlotType.HEAVY]), (1, 0, 1))

    def test_duplicate_slot_ids_rejected(self):
        floors = make_floors(
            (1, [("A", SlotType.HEAVY)]),
            (2, [("A", SlotType.TWO_WHEELER)]),
        )
        with self.assertRaises(LayoutError):
            SlotRegistry(floors)

    def test_empty_registry(self):
        registry = SlotRegistry()
        self.assertEqual(len(registry), 0)
        self.assertIsNone(registry.find_free_slot(SlotType.HEAVY))
        self.assertEqual(tuple(registry.occupancy()), (0, 0, 0))


class TestElapsedMinutes(unittest.TestCase):

    def test_truncates_to_whole_minutes_and_clamps(self):
        clock = FakeClock()
        start = clock()
        clock.advance(minutes=95, seconds=59)
        self.assertEqual(elapsed_minutes(start, clock()), 95)

        clock.rewind(200)
        self.assertEqual(elapsed_minutes(start, clock()), 0)


class TestIdGenerator(unittest.TestCase):

    def test_strictly_increasing_and_reset(self):
        ids = IdGenerator()
        self.assertEqual([ids.next_id() for _ in range(3)], [1, 2, 3])
        self.assertEqual(ids.peek(), 4)
        ids.reset()
        self.assertEqual(ids.next_id(), 1)

    def test_unique_across_threads(self):
        ids = IdGenerator()
        seen = []
        lock = threading.Lock()

        def worker():
            local = [ids.next_id() for _ in range(500)]
            with lock:
                seen.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(seen), 4000)
        self.assertEqual(sorted(seen), list(range(1, 4001)))


class TestTicketingService(unittest.TestCase):

    def test_open_ticket_populates_fields(self):
        clock = FakeClock()
        ticketing = TicketingService(clock)
        registry = SlotRegistry(standard_floors())
        slot = registry.find_slot("F1-S1")

        ticket = ticketing.open_ticket("E1", slot, Vehicle("UP80 HM 8086", VehicleType.BIKE))

        self.assertEqual(ticket.id, 1)
        self.assertEqual(ticket.entry_gate, "E1")
        self.assertEqual(ticket.entry_time, clock())
        self.assertEqual(ticket.slot_id, "F1-S1")
        self.assertEqual(ticket.vehicle_registration, "UP80 HM 8086")
        self.assertEqual(ticket.vehicle_type, VehicleType.BIKE)
        self.assertEqual(ticket.slot_type, SlotType.TWO_WHEELER)

        # Ticketing never touches the slot itself
        self.assertTrue(slot.is_free)

    def test_ids_increase_and_reset(self):
        ticketing = TicketingService(FakeClock())
        slot = SlotRegistry(standard_floors()).find_slot("F1-S3")
        car = Vehicle("DL8CAF1234", VehicleType.CAR)

        first = ticketing.open_ticket("E1", slot, car)
        second = ticketing.open_ticket("E1", slot, car)
        self.assertLess(first.id, second.id)

        ticketing.reset()
        self.assertEqual(ticketing.open_ticket("E1", slot, car).id, 1)


if __name__ == "__main__":
    unittest.main()
