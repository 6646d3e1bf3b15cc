"""
Multi-level parking facility: concurrent slot allocation, ticketing,
billing and payment settlement.
"""

from .domain.aggregates import Facility, SlotRegistry
from .domain.exceptions import (
    BillNotFoundError, CapacityError, ErrorKind, InvalidStateTransitionError,
    InvariantViolationError, LayoutError, NotFoundError, ParkingError,
    PaymentDeclinedError, ProcessorNotFoundError, SlotMissingError,
    TicketNotFoundError
)
from .domain.models import (
    Bill, BillStatus, FacilitySettings, Floor, Money, ParkingSlot,
    PaymentMethod, PaymentRequest, Receipt, SlotType, Ticket, Vehicle,
    VehicleType
)

__version__ = "1.0.0"
