# File: src/multilevel_parking/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Parking Facility

This module defines the DTOs exchanged between the application service and
its callers (CLI driver, command handler, tests):
1. Input DTOs - entry, exit and payment requests
2. Output DTOs - results carrying success, an error kind and a message
3. Value DTOs - money, bills, receipts and occupancy

DTO Principles:
- Validation at creation (pydantic)
- No business logic, only data
- Built from domain objects through from_* constructors
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
import json

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.models import Bill, Money, OccupancySnapshot, Receipt, SlotType


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to a JSON-compatible dictionary"""
        return self.model_dump(mode="json", exclude_none=exclude_none, **kwargs)

    def to_json(self, **kwargs) -> str:
        return self.model_dump_json(**kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseDTO':
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> 'BaseDTO':
        return cls(**json.loads(json_str))


class ResultDTO(BaseDTO):
    """Base DTO for operation results"""
    success: bool
    message: Optional[str] = None
    error_kind: Optional[str] = Field(default=None, description="ErrorKind value when success is False")


# ============================================================================
# ENUM DTOs
# ============================================================================

class VehicleTypeDTO(str, Enum):
    """Vehicle type DTO"""
    BIKE = "bike"
    CAR = "car"
    TRUCK = "truck"


class PaymentMethodDTO(str, Enum):
    """Payment method DTO"""
    CASH = "cash"
    CARD = "card"
    UPI = "upi"


class BillStatusDTO(str, Enum):
    """Bill status DTO"""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


# ============================================================================
# VALUE DTOs
# ============================================================================

class MoneyDTO(BaseDTO):
    """Money value object DTO"""
    amount: Decimal = Field(ge=0, description="Amount")
    currency: str = Field(default="INR", min_length=3, max_length=3, description="Currency code")

    @classmethod
    def from_money(cls, money: Money) -> 'MoneyDTO':
        return cls(amount=money.amount, currency=money.currency)


class BillDTO(BaseDTO):
    """Bill DTO"""
    id: int
    ticket_id: int
    vehicle_registration: str
    slot_id: str
    entry_gate: str
    exit_gate: str
    in_time: datetime
    out_time: datetime
    parked_minutes: int = Field(ge=0)
    billed_hours: int = Field(ge=0)
    amount: MoneyDTO
    status: BillStatusDTO
    lost_ticket: bool = False
    penalty: Optional[MoneyDTO] = None
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None

    @classmethod
    def from_bill(cls, bill: Bill) -> 'BillDTO':
        return cls(
            id=bill.id,
            ticket_id=bill.ticket_id,
            vehicle_registration=bill.vehicle_registration,
            slot_id=bill.slot_id,
            entry_gate=bill.entry_gate,
            exit_gate=bill.exit_gate,
            in_time=bill.in_time,
            out_time=bill.out_time,
            parked_minutes=bill.parked_minutes,
            billed_hours=bill.billed_hours,
            amount=MoneyDTO.from_money(bill.amount),
            status=bill.status.value,
            lost_ticket=bill.lost_ticket,
            penalty=MoneyDTO.from_money(bill.penalty) if bill.penalty else None,
            payment_method=bill.payment_method,
            paid_at=bill.paid_at
        )


class ReceiptDTO(BaseDTO):
    """Receipt DTO"""
    bill_id: int
    ticket_id: int
    amount: MoneyDTO
    method: str
    paid_at: datetime
    replayed: bool = Field(default=False, description="True when the bill had already been paid")

    @classmethod
    def from_receipt(cls, receipt: Receipt, replayed: bool = False) -> 'ReceiptDTO':
        return cls(
            bill_id=receipt.bill_id,
            ticket_id=receipt.ticket_id,
            amount=MoneyDTO.from_money(receipt.amount),
            method=receipt.method,
            paid_at=receipt.paid_at,
            replayed=replayed
        )


class CategoryOccupancyDTO(BaseDTO):
    """Occupancy counts for a single slot category"""
    free: int = Field(ge=0)
    used: int = Field(ge=0)
    total: int = Field(ge=0)


class OccupancyDTO(BaseDTO):
    """Facility occupancy DTO"""
    free: int = Field(ge=0)
    used: int = Field(ge=0)
    total: int = Field(ge=0)
    occupancy_rate: float = Field(ge=0.0, le=1.0)
    active_tickets: int = Field(ge=0)
    by_category: Dict[str, CategoryOccupancyDTO] = Field(default_factory=dict)

    @classmethod
    def from_snapshots(
        cls,
        snapshot: OccupancySnapshot,
        by_category: Dict[SlotType, OccupancySnapshot],
        active_tickets: int
    ) -> 'OccupancyDTO':
        return cls(
            free=snapshot.free,
            used=snapshot.used,
            total=snapshot.total,
            occupancy_rate=snapshot.occupancy_rate,
            active_tickets=active_tickets,
            by_category={
                slot_type.value: CategoryOccupancyDTO(free=s.free, used=s.used, total=s.total)
                for slot_type, s in by_category.items()
            }
        )


# ============================================================================
# REQUEST DTOs
# ============================================================================

class EntryRequestDTO(BaseDTO):
    """Vehicle entry request"""
    gate: str = Field(min_length=1, description="Entry gate id")
    registration: str = Field(min_length=1, max_length=20, description="Vehicle registration")
    vehicle_type: VehicleTypeDTO

    @field_validator('registration', 'gate')
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v


class ExitRequestDTO(BaseDTO):
    """Vehicle exit request"""
    ticket_id: int = Field(ge=1)
    gate: str = Field(min_length=1, description="Exit gate id")
    lost_ticket: bool = False


class PaymentRequestDTO(BaseDTO):
    """Bill payment request; amount defaults to the billed amount"""
    bill_id: int = Field(ge=1)
    method: PaymentMethodDTO
    amount: Optional[Decimal] = Field(default=None, ge=0)
    card_number: str = ""
    upi_vpa: str = ""


# ============================================================================
# RESULT DTOs
# ============================================================================

class EntryResultDTO(ResultDTO):
    """Vehicle entry result"""
    ticket_id: Optional[int] = None
    slot_id: Optional[str] = None
    slot_type: Optional[str] = None
    entry_time: Optional[datetime] = None


class ExitResultDTO(ResultDTO):
    """Vehicle exit result"""
    bill: Optional[BillDTO] = None
    payment_required: bool = False


class PaymentResultDTO(ResultDTO):
    """Bill payment result"""
    receipt: Optional[ReceiptDTO] = None
    bill_status: Optional[BillStatusDTO] = None


class OperationResultDTO(ResultDTO):
    """Generic result for bill operations such as cancellation"""
    bill: Optional[BillDTO] = None
