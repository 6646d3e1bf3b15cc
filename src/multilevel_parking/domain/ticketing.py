# File: src/multilevel_parking/domain/ticketing.py
"""
Identifier generation and ticket issuing
"""

from datetime import datetime
from typing import Callable, Optional
import logging
import threading

from .models import ParkingSlot, Ticket, Vehicle


Clock = Callable[[], datetime]


class IdGenerator:
    """
    Strictly increasing id sequence starting at one

    Guarded by its own leaf lock, so it is safe to call with or without the
    facility or billing lock held.
    """

    def __init__(self, start: int = 1):
        self._start = start
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def peek(self) -> int:
        """Id the next call will return"""
        with self._lock:
            return self._next

    def reset(self) -> None:
        with self._lock:
            self._next = self._start


class TicketingService:
    """
    Opens tickets for vehicles entering the facility

    Touches nothing but its own counter: occupying the slot and recording the
    ticket as active belong to the Facility.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._ids = IdGenerator()
        self._clock = clock or datetime.now
        self._logger = logging.getLogger(self.__class__.__name__)

    def open_ticket(self, gate: str, slot: ParkingSlot, vehicle: Vehicle) -> Ticket:
        ticket = Ticket(
            id=self._ids.next_id(),
            entry_gate=gate,
            entry_time=self._clock(),
            slot_id=slot.id,
            vehicle_registration=vehicle.registration,
            vehicle_type=vehicle.vehicle_type,
            slot_type=slot.slot_type
        )
        self._logger.debug(f"Opened ticket {ticket.id} for {vehicle.registration} at {gate}")
        return ticket

    def reset(self) -> None:
        self._ids.reset()
