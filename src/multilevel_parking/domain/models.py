# File: src/multilevel_parking/domain/models.py
"""
Domain Models for the Multi-Level Parking Facility

This module contains:
1. Enums: closed vocabularies (vehicle types, slot categories, bill status,
   payment methods)
2. Value Objects: immutable values (Money, Vehicle, FeeBreakdown, Receipt,
   PaymentRequest, OccupancySnapshot, FacilitySettings)
3. Entities: records with identity (ParkingSlot, Floor, Ticket, Bill)

Vehicle kinds are data on a single Vehicle record and are matched to slot
categories through a mapping table, not through subclasses.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class SlotType(Enum):
    """
    Enumeration of slot categories
    Categories decide which vehicles fit and which hourly rate applies
    """
    TWO_WHEELER = "two_wheeler"
    FOUR_WHEELER = "four_wheeler"
    HEAVY = "heavy"

    @classmethod
    def parse(cls, name: str) -> 'SlotType':
        """
        Parse a slot category from layout files
        Accepts both 'TwoWheeler' and 'two_wheeler' spellings
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise ValueError(f"Invalid SlotType: {name!r}")

        aliases = {
            "TwoWheeler": cls.TWO_WHEELER,
            "FourWheeler": cls.FOUR_WHEELER,
            "Heavy": cls.HEAVY,
        }
        if name in aliases:
            return aliases[name]
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Invalid SlotType: {name}") from None

    @property
    def config_name(self) -> str:
        """Name used in layout files"""
        names = {
            SlotType.TWO_WHEELER: "TwoWheeler",
            SlotType.FOUR_WHEELER: "FourWheeler",
            SlotType.HEAVY: "Heavy",
        }
        return names[self]

    def __str__(self) -> str:
        return self.value.replace('_', '-')


class VehicleType(Enum):
    """Enumeration of vehicle types"""
    BIKE = "bike"
    CAR = "car"
    TRUCK = "truck"

    @property
    def slot_type(self) -> SlotType:
        """Slot category this vehicle type parks in"""
        return _SLOT_FOR_VEHICLE[self]

    def __str__(self) -> str:
        return self.value.title()


_SLOT_FOR_VEHICLE = {
    VehicleType.BIKE: SlotType.TWO_WHEELER,
    VehicleType.CAR: SlotType.FOUR_WHEELER,
    VehicleType.TRUCK: SlotType.HEAVY,
}


class BillStatus(Enum):
    """
    Bill lifecycle states

    Pending -> Paid | Failed | Cancelled
    Failed  -> Paid | Failed | Cancelled   (a declined charge may be retried)
    Paid and Cancelled are terminal.
    """
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_payable(self) -> bool:
        return self in (BillStatus.PENDING, BillStatus.FAILED)

    @property
    def is_terminal(self) -> bool:
        return self in (BillStatus.PAID, BillStatus.CANCELLED)

    def __str__(self) -> str:
        return self.value.title()


class PaymentMethod(Enum):
    """Supported payment methods"""
    CASH = "cash"
    CARD = "card"
    UPI = "upi"

    @classmethod
    def parse(cls, name: str) -> 'PaymentMethod':
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown payment method: {name}") from None


# ============================================================================
# VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)
class Money:
    """
    Value Object: Monetary amount in the facility currency
    Amounts are exact decimals and never negative
    """
    amount: Decimal
    currency: str = "INR"

    def __post_init__(self):
        try:
            amount = Decimal(str(self.amount))
        except InvalidOperation:
            raise ValueError(f"Invalid money amount: {self.amount!r}") from None
        object.__setattr__(self, 'amount', amount)

        if amount < Decimal('0'):
            raise ValueError("Money amount cannot be negative")

        if len(self.currency) != 3:
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

    @classmethod
    def zero(cls, currency: str = "INR") -> 'Money':
        return cls(Decimal('0'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money amounts (same currency only)"""
        if self.currency != other.currency:
            raise ValueError(f"Cannot add {self.currency} to {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, multiplier: int) -> 'Money':
        """Multiply money by a non-negative count"""
        if multiplier < 0:
            raise ValueError("Multiplier cannot be negative")
        return Money(self.amount * multiplier, self.currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    def format(self) -> str:
        """Format money for display"""
        return f"{self.currency} {self.amount}"

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True)
class Vehicle:
    """
    Value Object: A vehicle presenting itself at an entry gate
    """
    registration: str
    vehicle_type: VehicleType

    def __post_init__(self):
        if not self.registration or not self.registration.strip():
            raise ValueError("Vehicle registration cannot be empty")
        object.__setattr__(self, 'registration', self.registration.strip())

        if not isinstance(self.vehicle_type, VehicleType):
            object.__setattr__(self, 'vehicle_type', VehicleType(self.vehicle_type))

    @property
    def slot_type(self) -> SlotType:
        return self.vehicle_type.slot_type

    def __str__(self) -> str:
        return f"{self.vehicle_type} {self.registration}"


@dataclass(frozen=True)
class FeeBreakdown:
    """Value Object: Result of a fee computation"""
    amount: Money
    billed_hours: int
    parked_minutes: int

    def with_surcharge(self, surcharge: Money) -> 'FeeBreakdown':
        """Copy of this breakdown with a surcharge added to the amount"""
        return replace(self, amount=self.amount + surcharge)


@dataclass(frozen=True)
class PaymentRequest:
    """
    Value Object: Caller-supplied payment for a bill
    The amount is informational; receipts always carry the billed amount.
    """
    bill_id: int
    amount: Money
    method: PaymentMethod
    card_number: str = ""
    upi_vpa: str = ""

    def __post_init__(self):
        if not isinstance(self.method, PaymentMethod):
            object.__setattr__(self, 'method', PaymentMethod.parse(self.method))
        if not isinstance(self.amount, Money):
            object.__setattr__(self, 'amount', Money(self.amount))


@dataclass(frozen=True)
class Receipt:
    """Value Object: Confirmation of a successful (or replayed) payment"""
    bill_id: int
    ticket_id: int
    amount: Money
    method: str
    paid_at: datetime


@dataclass(frozen=True)
class OccupancySnapshot:
    """Value Object: Free, used and total slot counts"""
    free: int
    used: int
    total: int

    @property
    def occupancy_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.used / self.total

    def __iter__(self):
        return iter((self.free, self.used, self.total))


# ============================================================================
# FACILITY POLICIES
# ============================================================================

def _default_hourly_rates() -> Dict[SlotType, Decimal]:
    return {
        SlotType.TWO_WHEELER: Decimal('10'),
        SlotType.FOUR_WHEELER: Decimal('20'),
        SlotType.HEAVY: Decimal('50'),
    }


@dataclass
class FacilitySettings:
    """
    Value Object: Facility business settings
    Grace window, hourly rates per slot category, lost-ticket penalty and
    the minimal card-number length accepted by the card processor.
    """
    grace_minutes: int = 10
    hourly_rates: Dict[SlotType, Decimal] = field(default_factory=_default_hourly_rates)
    lost_ticket_penalty: Decimal = Decimal('200')
    min_card_length: int = 8
    currency: str = "INR"

    def __post_init__(self):
        """Validate settings values"""
        if self.grace_minutes < 0:
            raise ValueError("Grace minutes cannot be negative")

        rates = {SlotType.parse(k): Decimal(str(v)) for k, v in self.hourly_rates.items()}
        missing = [s for s in SlotType if s not in rates]
        if missing:
            raise ValueError(f"Missing hourly rate for: {', '.join(str(s) for s in missing)}")
        if any(rate <= 0 for rate in rates.values()):
            raise ValueError("Hourly rates must be positive")
        self.hourly_rates = rates

        self.lost_ticket_penalty = Decimal(str(self.lost_ticket_penalty))
        if self.lost_ticket_penalty < 0:
            raise ValueError("Lost ticket penalty cannot be negative")

        if self.min_card_length <= 0:
            raise ValueError("Minimum card length must be positive")

        if len(self.currency) != 3:
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'FacilitySettings':
        """Build settings from a layout 'settings' section; absent keys keep defaults"""
        if not data:
            return cls()

        rates = _default_hourly_rates()
        for name, rate in (data.get("hourly_rates") or {}).items():
            rates[SlotType.parse(name)] = rate

        defaults = cls()
        return cls(
            grace_minutes=int(data.get("grace_minutes", defaults.grace_minutes)),
            hourly_rates=rates,
            lost_ticket_penalty=data.get("lost_ticket_penalty", defaults.lost_ticket_penalty),
            min_card_length=int(data.get("min_card_length", defaults.min_card_length)),
            currency=data.get("currency", defaults.currency)
        )

    def rate_for(self, slot_type: SlotType) -> Money:
        return Money(self.hourly_rates[slot_type], self.currency)

    @property
    def penalty(self) -> Money:
        return Money(self.lost_ticket_penalty, self.currency)


# ============================================================================
# DOMAIN ENTITIES
# ============================================================================

@dataclass
class ParkingSlot:
    """
    Entity: A single parking slot
    Occupancy is mutated only through the SlotRegistry under the facility lock
    """
    id: str
    slot_type: SlotType
    is_free: bool = True

    def __post_init__(self):
        if not self.id:
            raise ValueError("Slot id cannot be empty")
        self.slot_type = SlotType.parse(self.slot_type)

    @property
    def is_occupied(self) -> bool:
        return not self.is_free


@dataclass
class Floor:
    """Entity: An ordered, non-empty sequence of slots on one level"""
    floor_no: int
    slots: List[ParkingSlot] = field(default_factory=list)

    def find_free_slot(self, slot_type: SlotType) -> Optional[ParkingSlot]:
        """First free slot of the category, in slot order"""
        for slot in self.slots:
            if slot.slot_type == slot_type and slot.is_free:
                return slot
        return None


@dataclass
class Ticket:
    """Entity: An active parking session"""
    id: int
    entry_gate: str
    entry_time: datetime
    slot_id: str
    vehicle_registration: str
    vehicle_type: VehicleType
    slot_type: SlotType

    def copy(self) -> 'Ticket':
        return replace(self)


@dataclass
class Bill:
    """
    Entity: Charge for a closed parking session
    Status transitions are the only mutations after creation
    """
    id: int
    ticket_id: int
    vehicle_registration: str
    slot_id: str
    entry_gate: str
    exit_gate: str
    in_time: datetime
    out_time: datetime
    parked_minutes: int
    billed_hours: int
    amount: Money
    status: BillStatus = BillStatus.PENDING
    lost_ticket: bool = False
    penalty: Optional[Money] = None
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None

    def copy(self) -> 'Bill':
        return replace(self)
