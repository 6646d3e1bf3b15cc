# File: src/multilevel_parking/domain/billing.py
"""
Billing: bill ledger and payment state machine

Bills are created Pending when a vehicle exits and then move through

    Pending -> Paid | Failed | Cancelled
    Failed  -> Paid | Failed | Cancelled

Paid and Cancelled are terminal. Paying an already Paid bill replays a
receipt without charging again; this is the only guard against double
charging, so it must happen under the ledger lock together with the charge.

The ledger has its own lock, independent of the facility lock, and is
append-only apart from reset() at reconfiguration.
"""

from datetime import datetime
from typing import Dict, List, Optional
import logging
import threading

from .exceptions import (
    BillNotFoundError, InvalidStateTransitionError, PaymentDeclinedError
)
from .models import (
    Bill, BillStatus, FeeBreakdown, Money, PaymentRequest, Receipt, Ticket
)
from .strategies import PaymentProcessorRegistry
from .ticketing import Clock, IdGenerator


ALREADY_PAID = "ALREADY_PAID"


class BillingService:
    """
    Owner of the bill table
    All four operations (create, get, pay, cancel) run under the billing lock
    """

    def __init__(
        self,
        processors: Optional[PaymentProcessorRegistry] = None,
        clock: Optional[Clock] = None
    ):
        self.processors = processors or PaymentProcessorRegistry.create_default()
        self._clock = clock or datetime.now
        self._bills: Dict[int, Bill] = {}
        self._ids = IdGenerator()
        self._generation = 0
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def create_bill(
        self,
        ticket: Ticket,
        exit_gate: str,
        breakdown: FeeBreakdown,
        exit_time: Optional[datetime] = None,
        lost_ticket: bool = False,
        penalty: Optional[Money] = None,
        generation: Optional[int] = None
    ) -> Bill:
        """
        Record a Pending bill for a closed ticket and return a copy

        generation, when given, is the ledger generation observed when the
        ticket was closed. A reset since then means the ticket belongs to a
        replaced layout, and the bill is refused.

        Raises: InvalidStateTransitionError for a stale generation
        """
        out_time = exit_time or self._clock()

        with self._lock:
            if generation is not None and generation != self._generation:
                raise InvalidStateTransitionError(
                    f"Ticket {ticket.id} was closed on a layout that has since been replaced"
                )
            bill = Bill(
                id=self._ids.next_id(),
                ticket_id=ticket.id,
                vehicle_registration=ticket.vehicle_registration,
                slot_id=ticket.slot_id,
                entry_gate=ticket.entry_gate,
                exit_gate=exit_gate,
                in_time=ticket.entry_time,
                out_time=out_time,
                parked_minutes=breakdown.parked_minutes,
                billed_hours=breakdown.billed_hours,
                amount=breakdown.amount,
                status=BillStatus.PENDING,
                lost_ticket=lost_ticket,
                penalty=penalty
            )
            self._bills[bill.id] = bill
            result = bill.copy()

        self._logger.info(
            f"Created bill {bill.id} for ticket {ticket.id}: "
            f"{bill.amount.format()} ({bill.billed_hours}h)"
        )
        return result

    def get_bill(self, bill_id: int) -> Optional[Bill]:
        with self._lock:
            bill = self._bills.get(bill_id)
            return bill.copy() if bill else None

    def bills(self, status: Optional[BillStatus] = None) -> List[Bill]:
        """Copies of all bills in id order, optionally filtered by status"""
        with self._lock:
            return [
                bill.copy() for _, bill in sorted(self._bills.items())
                if status is None or bill.status == status
            ]

    def pay(self, request: PaymentRequest) -> Receipt:
        """
        Settle a bill

        Raises:
            BillNotFoundError: unknown bill id
            InvalidStateTransitionError: the bill was cancelled
            PaymentDeclinedError: the processor declined; the bill is now Failed
        """
        with self._lock:
            bill = self._bills.get(request.bill_id)
            if bill is None:
                raise BillNotFoundError(request.bill_id)

            if bill.status == BillStatus.PAID:
                self._logger.info(f"Bill {bill.id} already paid; replaying receipt")
                return Receipt(bill.id, bill.ticket_id, bill.amount, ALREADY_PAID, self._clock())

            if not bill.status.is_payable:
                raise InvalidStateTransitionError(
                    f"Bill {bill.id} is not payable (status: {bill.status})",
                    bill_id=bill.id,
                    status=bill.status
                )

            processor = self.processors.get(request.method)
            result = processor.charge(request)

            if not result.success:
                bill.status = BillStatus.FAILED
                self._logger.warning(f"Payment for bill {bill.id} declined: {result.reason}")
                raise PaymentDeclinedError(bill.id, result.reason)

            paid_at = self._clock()
            bill.status = BillStatus.PAID
            bill.payment_method = processor.label
            bill.paid_at = paid_at

        self._logger.info(f"Bill {bill.id} paid via {processor.label}: {bill.amount.format()}")
        return Receipt(bill.id, bill.ticket_id, bill.amount, processor.label, paid_at)

    def cancel(self, bill_id: int) -> Bill:
        """Cancel any bill that is not Paid; returns a copy of the cancelled bill"""
        with self._lock:
            bill = self._bills.get(bill_id)
            if bill is None:
                raise BillNotFoundError(bill_id)

            if bill.status == BillStatus.PAID:
                raise InvalidStateTransitionError(
                    "Cannot cancel a paid bill",
                    bill_id=bill_id,
                    status=bill.status
                )

            bill.status = BillStatus.CANCELLED
            result = bill.copy()

        self._logger.info(f"Cancelled bill {bill_id}")
        return result

    @property
    def generation(self) -> int:
        """Ledger generation; changes only in reset()"""
        return self._generation

    def reset(self) -> None:
        """Drop every bill and restart ids at one (reconfiguration only)"""
        with self._lock:
            self._bills.clear()
            self._ids.reset()
            self._generation += 1
        self._logger.info("Bill ledger reset")

    def __len__(self) -> int:
        with self._lock:
            return len(self._bills)
