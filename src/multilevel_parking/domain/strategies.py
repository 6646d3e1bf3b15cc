# File: src/multilevel_parking/domain/strategies.py
"""
Strategy Pattern Implementation for Fees and Payments

This module encapsulates the two pluggable policies of the facility:

1. Fee Policies - per slot category, turn parked minutes into an amount and
   a billed-hour count
2. Payment Processors - per payment method, accept or decline a charge

Both are selected through lookup tables keyed by a closed enumeration
(SlotType, PaymentMethod), so Billing never branches on the variant and a
processor can be swapped without touching it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional
import logging

from .exceptions import ProcessorNotFoundError
from .models import (
    FacilitySettings, FeeBreakdown, Money,
    PaymentMethod, PaymentRequest, SlotType
)


# ============================================================================
# FEE POLICIES
# ============================================================================

def ceil_hours(minutes: int) -> int:
    """Whole hours covering the given minutes; partial hours round up"""
    if minutes <= 0:
        return 0
    return (minutes + 59) // 60


class FeePolicy(ABC):
    """
    Abstract base class for fee policies
    A policy is a pure function of the parked minutes
    """

    @abstractmethod
    def compute(self, parked_minutes: int) -> FeeBreakdown:
        """
        Compute the fee for a stay
        Returns: FeeBreakdown(amount, billed_hours, parked_minutes)
        """
        pass


class HourlyFeePolicy(FeePolicy):
    """
    Strategy: Grace window, then whole hours at a flat hourly rate
    - Stays within the grace window are free
    - Otherwise billed hours = ceil(minutes / 60), amount = hours x rate
    """

    def __init__(self, hourly_rate: Money, grace_minutes: int = 10):
        if grace_minutes < 0:
            raise ValueError("Grace minutes cannot be negative")
        self.hourly_rate = hourly_rate
        self.grace_minutes = grace_minutes

    def compute(self, parked_minutes: int) -> FeeBreakdown:
        minutes = max(0, int(parked_minutes))

        if minutes <= self.grace_minutes:
            return FeeBreakdown(
                amount=Money.zero(self.hourly_rate.currency),
                billed_hours=0,
                parked_minutes=minutes
            )

        hours = ceil_hours(minutes)
        return FeeBreakdown(
            amount=self.hourly_rate * hours,
            billed_hours=hours,
            parked_minutes=minutes
        )

    def __repr__(self) -> str:
        return (
            f"HourlyFeePolicy(rate={self.hourly_rate.format()}, "
            f"grace={self.grace_minutes}m)"
        )


class FeePolicyTable:
    """
    Lookup of the fee policy for each slot category
    """

    def __init__(self, policies: Dict[SlotType, FeePolicy]):
        missing = [s for s in SlotType if s not in policies]
        if missing:
            raise ValueError(f"No fee policy for: {', '.join(str(s) for s in missing)}")
        self._policies = dict(policies)

    @classmethod
    def from_settings(cls, settings: FacilitySettings) -> 'FeePolicyTable':
        return cls({
            slot_type: HourlyFeePolicy(settings.rate_for(slot_type), settings.grace_minutes)
            for slot_type in SlotType
        })

    def compute(self, slot_type: SlotType, parked_minutes: int) -> FeeBreakdown:
        return self._policies[slot_type].compute(parked_minutes)


# ============================================================================
# PAYMENT PROCESSORS
# ============================================================================

@dataclass(frozen=True)
class ChargeResult:
    """Outcome of a charge attempt"""
    success: bool
    reason: str = ""

    @classmethod
    def approved(cls) -> 'ChargeResult':
        return cls(True)

    @classmethod
    def declined(cls, reason: str) -> 'ChargeResult':
        return cls(False, reason)


class PaymentProcessor(ABC):
    """
    Abstract base class for payment processors
    Stand-ins for a real gateway; each one validates its own credentials
    """

    label: str = "Unknown"

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def charge(self, request: PaymentRequest) -> ChargeResult:
        """
        Charge the payment request
        Returns: ChargeResult with the decline reason on failure
        """
        pass

    def __str__(self) -> str:
        return f"{self.label} Processor"


class CashProcessor(PaymentProcessor):
    """Cash is always accepted"""

    label = "Cash"

    def charge(self, request: PaymentRequest) -> ChargeResult:
        return ChargeResult.approved()


class CardProcessor(PaymentProcessor):
    """Accepts card numbers of at least a minimal length"""

    label = "Card"

    def __init__(self, min_length: int = 8):
        super().__init__()
        self.min_length = min_length

    def charge(self, request: PaymentRequest) -> ChargeResult:
        if len(request.card_number or "") < self.min_length:
            self.logger.debug(f"Rejected card for bill {request.bill_id}")
            return ChargeResult.declined("Card declined (invalid number)")
        return ChargeResult.approved()


class UPIProcessor(PaymentProcessor):
    """Accepts UPI handles of the form user@bank"""

    label = "UPI"

    def charge(self, request: PaymentRequest) -> ChargeResult:
        if "@" not in (request.upi_vpa or ""):
            self.logger.debug(f"Rejected UPI handle for bill {request.bill_id}")
            return ChargeResult.declined("UPI failed (invalid VPA)")
        return ChargeResult.approved()


class PaymentProcessorRegistry:
    """
    Registry of payment processors keyed by method
    Processors can be replaced at runtime (e.g. with a test double)
    """

    def __init__(self, processors: Optional[Dict[PaymentMethod, PaymentProcessor]] = None):
        self._processors: Dict[PaymentMethod, PaymentProcessor] = dict(processors or {})

    @classmethod
    def create_default(cls, settings: Optional[FacilitySettings] = None) -> 'PaymentProcessorRegistry':
        settings = settings or FacilitySettings()
        return cls({
            PaymentMethod.CASH: CashProcessor(),
            PaymentMethod.CARD: CardProcessor(settings.min_card_length),
            PaymentMethod.UPI: UPIProcessor(),
        })

    def register(self, method: PaymentMethod, processor: PaymentProcessor) -> None:
        self._processors[method] = processor

    def get(self, method: PaymentMethod) -> PaymentProcessor:
        try:
            return self._processors[method]
        except KeyError:
            raise ProcessorNotFoundError(method) from None

    def __contains__(self, method: PaymentMethod) -> bool:
        return method in self._processors
