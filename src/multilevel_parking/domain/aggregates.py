# File: src/multilevel_parking/domain/aggregates.py
"""
Aggregate Roots for the Parking Facility

Aggregates:
1. SlotRegistry - floors and slots; passive, performs no locking itself
2. Facility - root aggregate owning the registry, ticketing, the active
   ticket table and billing; the only place slot occupancy changes

Locking:
- The facility lock guards the registry and the active ticket table and is
  held for the whole of enter_vehicle / exit_vehicle and for snapshots.
- Billing guards its ledger with its own lock.
- The two are never nested: exit_vehicle finishes its facility-lock work
  before handing the fee breakdown to Billing.
"""

from datetime import datetime, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import logging
import threading

from .billing import BillingService
from .exceptions import (
    CapacityError, InvariantViolationError, LayoutError,
    SlotMissingError, TicketNotFoundError
)
from .models import (
    Bill, BillStatus, FacilitySettings, FeeBreakdown, Floor,
    OccupancySnapshot, ParkingSlot, PaymentRequest, Receipt,
    SlotType, Ticket, Vehicle
)
from .strategies import FeePolicyTable, PaymentProcessorRegistry
from .ticketing import Clock, TicketingService


# ============================================================================
# SLOT REGISTRY
# ============================================================================

class SlotRegistry:
    """
    In-memory layout of floors and slots

    Not thread-safe on its own: every call must be made while holding the
    facility lock.
    """

    def __init__(self, floors: Iterable[Floor] = ()):
        self._floors: List[Floor] = list(floors)
        self._slots_by_id: Dict[str, ParkingSlot] = {}

        for floor in self._floors:
            for slot in floor.slots:
                if slot.id in self._slots_by_id:
                    raise LayoutError(f"Duplicate slot id in layout: {slot.id}")
                self._slots_by_id[slot.id] = slot

    @property
    def floors(self) -> Tuple[Floor, ...]:
        return tuple(self._floors)

    def slots(self) -> Iterator[ParkingSlot]:
        """All slots in floor order, then slot order"""
        for floor in self._floors:
            yield from floor.slots

    def find_free_slot(self, slot_type: SlotType) -> Optional[ParkingSlot]:
        """First free slot of the category, or None when exhausted"""
        for floor in self._floors:
            slot = floor.find_free_slot(slot_type)
            if slot is not None:
                return slot
        return None

    def find_slot(self, slot_id: str) -> Optional[ParkingSlot]:
        return self._slots_by_id.get(slot_id)

    def occupy(self, slot: ParkingSlot) -> None:
        slot.is_free = False

    def free(self, slot: ParkingSlot) -> None:
        slot.is_free = True

    def occupancy(self) -> OccupancySnapshot:
        total = len(self._slots_by_id)
        free = sum(1 for slot in self.slots() if slot.is_free)
        return OccupancySnapshot(free=free, used=total - free, total=total)

    def occupancy_by_category(self) -> Dict[SlotType, OccupancySnapshot]:
        counts = {slot_type: [0, 0] for slot_type in SlotType}  # [free, used]
        for slot in self.slots():
            counts[slot.slot_type][0 if slot.is_free else 1] += 1
        return {
            slot_type: OccupancySnapshot(free=free, used=used, total=free + used)
            for slot_type, (free, used) in counts.items()
        }

    def __len__(self) -> int:
        return len(self._slots_by_id)


def _fresh_floors(floors: Iterable[Floor]) -> List[Floor]:
    """Validated copies of the given floors with every slot free"""
    result = []
    for floor in floors:
        if not floor.slots:
            raise LayoutError(f"Floor {floor.floor_no} has no slots")
        result.append(Floor(
            floor_no=floor.floor_no,
            slots=[ParkingSlot(slot.id, slot.slot_type) for slot in floor.slots]
        ))
    if not result:
        raise LayoutError("Layout has zero floors")
    return result


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants; negative spans count as zero"""
    minutes = int((end - start).total_seconds() // 60)
    return max(0, minutes)


# ============================================================================
# FACILITY AGGREGATE
# ============================================================================

class Facility:
    """
    Aggregate Root: a multi-floor parking facility

    Constructed explicitly and passed to its callers; configure() is its
    only reset entry point.
    """

    def __init__(
        self,
        settings: Optional[FacilitySettings] = None,
        processors: Optional[PaymentProcessorRegistry] = None,
        clock: Optional[Clock] = None,
        floors: Optional[Iterable[Floor]] = None
    ):
        self.settings = settings or FacilitySettings()
        self._clock = clock or datetime.now
        self._fees = FeePolicyTable.from_settings(self.settings)

        self._registry = SlotRegistry()
        self._active: Dict[int, Ticket] = {}
        self._ticketing = TicketingService(self._clock)
        self._billing = BillingService(
            processors or PaymentProcessorRegistry.create_default(self.settings),
            self._clock
        )

        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

        if floors is not None:
            self.configure(floors)

    @property
    def billing(self) -> BillingService:
        return self._billing

    @property
    def fees(self) -> FeePolicyTable:
        return self._fees

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def configure(self, floors: Iterable[Floor]) -> None:
        """
        Install a new layout and reset all state
        Active tickets, ticket ids, bills and bill ids all start over.
        The ledger is reset under the facility lock; facility then billing
        is the only nested lock order.
        """
        registry = SlotRegistry(_fresh_floors(floors))

        with self._lock:
            self._registry = registry
            self._active.clear()
            self._ticketing.reset()
            self._billing.reset()

        self._logger.info(
            f"Configured facility: {len(registry.floors)} floor(s), {len(registry)} slot(s)"
        )

    # ========================================================================
    # ENTRY / EXIT
    # ========================================================================

    def enter_vehicle(self, gate: str, vehicle: Vehicle) -> int:
        """
        Allocate a slot and open a ticket
        Returns: ticket id
        Raises: CapacityError when no slot of the vehicle's category is free
        """
        slot_type = vehicle.slot_type

        with self._lock:
            slot = self._registry.find_free_slot(slot_type)
            if slot is None:
                self._logger.warning(f"No free {slot_type} slot for {vehicle.registration}")
                raise CapacityError(slot_type)

            self._registry.occupy(slot)
            ticket = self._ticketing.open_ticket(gate, slot, vehicle)
            self._active[ticket.id] = ticket

        self._logger.info(
            f"Vehicle {vehicle.registration} entered at {gate}: "
            f"slot {ticket.slot_id} (Ticket: {ticket.id})"
        )
        return ticket.id

    def exit_vehicle(self, ticket_id: int, gate: str, lost_ticket: bool = False) -> Bill:
        """
        Close a ticket, free its slot and create a Pending bill
        Raises:
            TicketNotFoundError: unknown or already-closed ticket
            SlotMissingError: the ticket's slot is absent (internal corruption)
            InvalidStateTransitionError: configure() replaced the layout
                before the bill was recorded
        """
        with self._lock:
            ticket = self._active.get(ticket_id)
            if ticket is None:
                raise TicketNotFoundError(ticket_id)

            slot = self._registry.find_slot(ticket.slot_id)
            if slot is None:
                self._logger.critical(
                    f"Ticket {ticket_id} references missing slot {ticket.slot_id}"
                )
                raise SlotMissingError(ticket.slot_id, ticket_id)

            del self._active[ticket_id]
            self._registry.free(slot)

            exit_time = self._clock()
            minutes = elapsed_minutes(ticket.entry_time, exit_time)
            breakdown = self._fees.compute(ticket.slot_type, minutes)
            generation = self._billing.generation

        penalty = None
        if lost_ticket:
            penalty = self.settings.penalty
            breakdown = breakdown.with_surcharge(penalty)
            self._logger.info(f"Lost ticket {ticket_id}: penalty {penalty.format()} applied")

        self._logger.info(
            f"Vehicle {ticket.vehicle_registration} left slot {ticket.slot_id} at {gate} "
            f"after {minutes} min"
        )
        return self._billing.create_bill(
            ticket, gate, breakdown,
            exit_time=exit_time,
            lost_ticket=lost_ticket,
            penalty=penalty,
            generation=generation
        )

    def adjust_entry_time(self, ticket_id: int, minutes_back: int) -> Ticket:
        """Move an active ticket's entry time into the past (simulation aid)"""
        with self._lock:
            ticket = self._active.get(ticket_id)
            if ticket is None:
                raise TicketNotFoundError(ticket_id)
            ticket.entry_time -= timedelta(minutes=minutes_back)
            return ticket.copy()

    # ========================================================================
    # BILLING
    # ========================================================================

    def pay_bill(self, request: PaymentRequest) -> Receipt:
        # Billing locks its own ledger; no facility lock needed.
        return self._billing.pay(request)

    def cancel_bill(self, bill_id: int) -> Bill:
        return self._billing.cancel(bill_id)

    def get_bill(self, bill_id: int) -> Optional[Bill]:
        return self._billing.get_bill(bill_id)

    def bills(self, status: Optional[BillStatus] = None) -> List[Bill]:
        return self._billing.bills(status)

    def quote(self, slot_type: SlotType, parked_minutes: int) -> FeeBreakdown:
        """Fee a stay of the given length would cost, without a ticket"""
        return self._fees.compute(slot_type, parked_minutes)

    # ========================================================================
    # QUERY METHODS (Read-only)
    # ========================================================================

    def occupancy(self) -> OccupancySnapshot:
        with self._lock:
            return self._registry.occupancy()

    def occupancy_by_category(self) -> Dict[SlotType, OccupancySnapshot]:
        with self._lock:
            return self._registry.occupancy_by_category()

    def active_ticket_count(self) -> int:
        with self._lock:
            return len(self._active)

    def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        with self._lock:
            ticket = self._active.get(ticket_id)
            return ticket.copy() if ticket else None

    def active_tickets(self) -> List[Ticket]:
        with self._lock:
            return [ticket.copy() for _, ticket in sorted(self._active.items())]

    def floor_numbers(self) -> List[int]:
        with self._lock:
            return [floor.floor_no for floor in self._registry.floors]

    def check_invariants(self) -> None:
        """
        Verify slot/ticket consistency
        Raises: InvariantViolationError describing the first mismatch
        """
        with self._lock:
            ticket_slots = {}
            for ticket in self._active.values():
                slot = self._registry.find_slot(ticket.slot_id)
                if slot is None:
                    raise SlotMissingError(ticket.slot_id, ticket.id)
                if slot.is_free:
                    raise InvariantViolationError(
                        f"Ticket {ticket.id} holds slot {slot.id} which is marked free"
                    )
                if slot.id in ticket_slots:
                    raise InvariantViolationError(
                        f"Slot {slot.id} held by tickets {ticket_slots[slot.id]} and {ticket.id}"
                    )
                ticket_slots[slot.id] = ticket.id

            for slot in self._registry.slots():
                if slot.is_occupied and slot.id not in ticket_slots:
                    raise InvariantViolationError(f"Slot {slot.id} occupied without a ticket")

        self._logger.debug("All facility invariants satisfied")

    def __str__(self) -> str:
        snapshot = self.occupancy()
        return f"Facility({snapshot.used}/{snapshot.total} occupied)"
