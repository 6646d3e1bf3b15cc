#!/usr/bin/env python3
"""
Concurrency integration tests

Many gates drive the same facility from separate threads; the facility must
never hand out a slot twice, lose a ticket or double-charge a bill.
"""

import threading
import unittest
from concurrent.futures import ThreadPoolExecutor

from tests import FakeClock, make_floors, standard_floors

from multilevel_parking.domain.aggregates import Facility
from multilevel_parking.domain.exceptions import CapacityError, TicketNotFoundError
from multilevel_parking.domain.models import (
    BillStatus, PaymentMethod, PaymentRequest, SlotType, Vehicle, VehicleType
)


class TestConcurrentEntries(unittest.TestCase):

    def test_last_slot_goes_to_exactly_one_gate(self):
        for _ in range(50):
            facility = Facility(floors=make_floors((1, [("ONLY", SlotType.FOUR_WHEELER)])))
            barrier = threading.Barrier(2)
            outcomes = []
            lock = threading.Lock()

            def gate(name):
                barrier.wait()
                try:
                    outcome = facility.enter_vehicle(name, Vehicle(f"KA-{name}", VehicleType.CAR))
                except CapacityError:
                    outcome = None
                with lock:
                    outcomes.append(outcome)

            threads = [threading.Thread(target=gate, args=(name,)) for name in ("E1", "E2")]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

            self.assertEqual(sum(1 for o in outcomes if o is not None), 1)
            self.assertEqual(tuple(facility.occupancy()), (0, 1, 1))
            facility.check_invariants()

    def test_parallel_entries_never_share_a_slot(self):
        floors = make_floors(
            (1, [(f"F1-S{i}", SlotType.FOUR_WHEELER) for i in range(20)]),
            (2, [(f"F2-S{i}", SlotType.FOUR_WHEELER) for i in range(20)]),
        )
        facility = Facility(floors=floors)

        def enter(n):
            try:
                return facility.enter_vehicle(f"E{n % 4}", Vehicle(f"CAR-{n}", VehicleType.CAR))
            except CapacityError:
                return None

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(enter, range(60)))

        ticket_ids = [r for r in results if r is not None]
        self.assertEqual(len(ticket_ids), 40)
        self.assertEqual(len(set(ticket_ids)), 40)

        slots = [facility.get_ticket(t).slot_id for t in ticket_ids]
        self.assertEqual(len(set(slots)), 40)
        self.assertEqual(tuple(facility.occupancy()), (0, 40, 40))
        facility.check_invariants()


class TestConcurrentLifecycle(unittest.TestCase):

    def test_enter_exit_pay_from_many_threads(self):
        clock = FakeClock()
        facility = Facility(clock=clock, floors=standard_floors())
        errors = []

        def cycle(n):
            vehicle_type = (VehicleType.BIKE, VehicleType.CAR)[n % 2]
            vehicle = Vehicle(f"REG-{n}", vehicle_type)
            while True:
                try:
                    ticket_id = facility.enter_vehicle("E1", vehicle)
                    break
                except CapacityError:
                    continue
            facility.adjust_entry_time(ticket_id, 61)
            bill = facility.exit_vehicle(ticket_id, "X1")
            receipt = facility.pay_bill(PaymentRequest(bill.id, bill.amount, PaymentMethod.CASH))
            if receipt.amount != bill.amount:
                errors.append(f"receipt mismatch for bill {bill.id}")
            return bill.id

        with ThreadPoolExecutor(max_workers=8) as pool:
            bill_ids = list(pool.map(cycle, range(80)))

        self.assertEqual(errors, [])
        self.assertEqual(len(set(bill_ids)), 80)
        self.assertEqual(facility.active_ticket_count(), 0)
        self.assertEqual(tuple(facility.occupancy()), (6, 0, 6))
        self.assertEqual(len(facility.bills(BillStatus.PAID)), 80)
        facility.check_invariants()

    def test_concurrent_payments_of_one_bill_charge_once(self):
        facility = Facility(floors=standard_floors())
        ticket_id = facility.enter_vehicle("E1", Vehicle("DL8CAF1234", VehicleType.CAR))
        facility.adjust_entry_time(ticket_id, 95)
        bill = facility.exit_vehicle(ticket_id, "X1")

        def pay(_):
            return facility.pay_bill(PaymentRequest(bill.id, bill.amount, PaymentMethod.CASH))

        with ThreadPoolExecutor(max_workers=8) as pool:
            receipts = list(pool.map(pay, range(16)))

        methods = [r.method for r in receipts]
        self.assertEqual(methods.count("Cash"), 1)
        self.assertEqual(methods.count("ALREADY_PAID"), 15)
        self.assertTrue(all(r.amount == bill.amount for r in receipts))

    def test_concurrent_double_exit(self):
        facility = Facility(floors=standard_floors())
        ticket_id = facility.enter_vehicle("E1", Vehicle("DL8CAF1234", VehicleType.CAR))
        barrier = threading.Barrier(4)
        bills = []
        lock = threading.Lock()

        def exit_gate():
            barrier.wait()
            try:
                bill = facility.exit_vehicle(ticket_id, "X1")
            except TicketNotFoundError:
                return
            with lock:
                bills.append(bill)

        threads = [threading.Thread(target=exit_gate) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(bills), 1)
        self.assertEqual(len(facility.bills()), 1)
        self.assertEqual(tuple(facility.occupancy()), (6, 0, 6))


if __name__ == "__main__":
    unittest.main()
