"""
Test package for the parking facility

Shared helpers:
- FakeClock: controllable clock injected into Facility/Billing
- make_floors: compact layout builder
"""

import sys
import threading
from datetime import datetime, timedelta
from pathlib import Path

# Add the src directory to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from multilevel_parking.domain.models import Floor, ParkingSlot, SlotType  # noqa: E402


class FakeClock:
    """Clock whose time only moves when a test advances it"""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 9, 0, 0)):
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, minutes: float = 0, seconds: float = 0) -> None:
        with self._lock:
            self._now += timedelta(minutes=minutes, seconds=seconds)

    def rewind(self, minutes: float) -> None:
        with self._lock:
            self._now -= timedelta(minutes=minutes)


def make_floors(*floors):
    """
    Build floors from (floor_no, [(slot_id, SlotType), ...]) tuples

    make_floors((1, [("F1-S1", SlotType.TWO_WHEELER)]))
    """
    return [
        Floor(floor_no, [ParkingSlot(slot_id, slot_type) for slot_id, slot_type in slots])
        for floor_no, slots in floors
    ]


def standard_floors():
    """Two floors: 2 two-wheeler, 2 four-wheeler, 1 heavy on floor 1; 1 four-wheeler on floor 2"""
    return make_floors(
        (1, [
            ("F1-S1", SlotType.TWO_WHEELER),
            ("F1-S2", SlotType.TWO_WHEELER),
            ("F1-S3", SlotType.FOUR_WHEELER),
            ("F1-S4", SlotType.FOUR_WHEELER),
            ("F1-S5", SlotType.HEAVY),
        ]),
        (2, [
            ("F2-S1", SlotType.FOUR_WHEELER),
        ]),
    )
