# File: src/multilevel_parking/application/parking_service.py
"""
Parking Facility Application Service

This module implements the application service layer. It orchestrates the
Facility aggregate for each use case and converts domain failures into
explicit result DTOs, so callers never need try/except for expected outcomes
such as a full facility or a declined card.

Use cases:
1. Vehicle entry
2. Vehicle exit and billing
3. Bill payment and cancellation
4. Occupancy reporting

Invariant violations are the exception to the rule: they indicate corrupted
state and are logged and re-raised rather than returned.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

from pydantic import ValidationError

from ..domain.aggregates import Facility
from ..domain.billing import ALREADY_PAID
from ..domain.exceptions import InvariantViolationError, ParkingError
from ..domain.models import (
    Money, PaymentMethod, PaymentRequest, Vehicle, VehicleType
)
from ..domain.strategies import PaymentProcessorRegistry
from ..domain.ticketing import Clock
from ..infrastructure.layout_loader import (
    FacilityLayout, default_layout, load_layout, parse_layout
)
from .dtos import (
    BillDTO, EntryRequestDTO, EntryResultDTO, ExitRequestDTO, ExitResultDTO,
    OccupancyDTO, OperationResultDTO, PaymentRequestDTO, PaymentResultDTO,
    ReceiptDTO
)


# ============================================================================
# MAIN PARKING SERVICE
# ============================================================================

class ParkingService:
    """
    Main application service for the parking facility

    Wraps a Facility and exposes each use case as a DTO-in / DTO-out method.
    """

    def __init__(self, facility: Facility):
        self.facility = facility
        self.logger = logging.getLogger(self.__class__.__name__)

    def _failure(self, result_cls, error: ParkingError, **fields):
        """Build a failed result, re-raising invariant violations"""
        if isinstance(error, InvariantViolationError):
            self.logger.critical(f"Invariant violation: {error}", exc_info=True)
            raise error
        self.logger.error(f"{result_cls.__name__} failed ({error.kind.value}): {error}")
        return result_cls(
            success=False,
            message=str(error),
            error_kind=error.kind.value,
            **fields
        )

    def enter_vehicle(self, request: EntryRequestDTO) -> EntryResultDTO:
        """
        Use Case: Vehicle Entry
        1. Build the vehicle from the request
        2. Allocate a slot and open a ticket
        3. Return the ticket details
        """
        self.logger.info(f"Processing entry for {request.registration} at {request.gate}")
        vehicle = Vehicle(request.registration, VehicleType(request.vehicle_type))

        try:
            ticket_id = self.facility.enter_vehicle(request.gate, vehicle)
        except ParkingError as e:
            return self._failure(EntryResultDTO, e)

        ticket = self.facility.get_ticket(ticket_id)
        return EntryResultDTO(
            success=True,
            ticket_id=ticket_id,
            slot_id=ticket.slot_id if ticket else None,
            slot_type=ticket.slot_type.value if ticket else None,
            entry_time=ticket.entry_time if ticket else None,
            message="Vehicle parked successfully"
        )

    def exit_vehicle(self, request: ExitRequestDTO) -> ExitResultDTO:
        """
        Use Case: Vehicle Exit
        1. Close the ticket and free its slot
        2. Compute the fee (plus lost-ticket penalty)
        3. Return the Pending bill
        """
        self.logger.info(f"Processing exit for ticket {request.ticket_id} at {request.gate}")

        try:
            bill = self.facility.exit_vehicle(request.ticket_id, request.gate, request.lost_ticket)
        except ParkingError as e:
            return self._failure(ExitResultDTO, e)

        return ExitResultDTO(
            success=True,
            bill=BillDTO.from_bill(bill),
            payment_required=not bill.amount.is_zero,
            message=f"Bill {bill.id} created: {bill.amount.format()}"
        )

    def pay_bill(self, request: PaymentRequestDTO) -> PaymentResultDTO:
        """
        Use Case: Payment Processing
        1. Resolve the amount (defaults to the billed amount)
        2. Charge through the processor for the method
        3. Return the receipt; a repeat payment returns a replayed receipt
        """
        self.logger.info(f"Processing payment for bill {request.bill_id} via {request.method}")

        amount = request.amount
        if amount is None:
            bill = self.facility.get_bill(request.bill_id)
            amount = bill.amount.amount if bill else 0

        payment = PaymentRequest(
            bill_id=request.bill_id,
            amount=Money(amount, self.facility.settings.currency),
            method=PaymentMethod.parse(request.method),
            card_number=request.card_number,
            upi_vpa=request.upi_vpa
        )

        try:
            receipt = self.facility.pay_bill(payment)
        except ParkingError as e:
            bill = self.facility.get_bill(request.bill_id)
            return self._failure(
                PaymentResultDTO, e,
                bill_status=bill.status.value if bill else None
            )

        replayed = receipt.method == ALREADY_PAID
        return PaymentResultDTO(
            success=True,
            receipt=ReceiptDTO.from_receipt(receipt, replayed=replayed),
            bill_status="paid",
            message="Bill already paid" if replayed else "Payment processed successfully"
        )

    def cancel_bill(self, bill_id: int) -> OperationResultDTO:
        """Use Case: Bill Cancellation"""
        self.logger.info(f"Cancelling bill {bill_id}")

        try:
            bill = self.facility.cancel_bill(bill_id)
        except ParkingError as e:
            return self._failure(OperationResultDTO, e)

        return OperationResultDTO(
            success=True,
            bill=BillDTO.from_bill(bill),
            message=f"Bill {bill_id} cancelled"
        )

    def get_bill(self, bill_id: int) -> Optional[BillDTO]:
        bill = self.facility.get_bill(bill_id)
        return BillDTO.from_bill(bill) if bill else None

    def get_occupancy(self) -> OccupancyDTO:
        """Use Case: Occupancy Report"""
        return OccupancyDTO.from_snapshots(
            self.facility.occupancy(),
            self.facility.occupancy_by_category(),
            self.facility.active_ticket_count()
        )


# ============================================================================
# SERVICE FACTORY
# ============================================================================

class ParkingServiceFactory:
    """Factory for creating parking service instances"""

    @staticmethod
    def create_from_layout(
        layout: FacilityLayout,
        processors: Optional[PaymentProcessorRegistry] = None,
        clock: Optional[Clock] = None
    ) -> ParkingService:
        facility = Facility(
            settings=layout.settings,
            processors=processors,
            clock=clock,
            floors=layout.floors
        )
        return ParkingService(facility)

    @staticmethod
    def create_default_service(clock: Optional[Clock] = None) -> ParkingService:
        """Service over the built-in demo layout"""
        return ParkingServiceFactory.create_from_layout(default_layout(), clock=clock)

    @staticmethod
    def create_service_with_config(config: Dict[str, Any], clock: Optional[Clock] = None) -> ParkingService:
        """Service over a layout given as a mapping"""
        return ParkingServiceFactory.create_from_layout(parse_layout(config), clock=clock)

    @staticmethod
    def create_service_from_file(path: Union[str, Path], clock: Optional[Clock] = None) -> ParkingService:
        """Service over a JSON or YAML layout file"""
        return ParkingServiceFactory.create_from_layout(load_layout(path), clock=clock)


# ============================================================================
# COMMAND HANDLER
# ============================================================================

class ParkingCommandHandler:
    """
    Handler for dictionary commands

    A command is {"type": <name>, "data": {...}}; the reply is
    {"success": bool, "data": {...}} or {"success": False, "error": str}.
    """

    def __init__(self, service: ParkingService):
        self.service = service
        self.logger = logging.getLogger(self.__class__.__name__)

    def handle(self, command: Dict[str, Any]) -> Dict[str, Any]:
        """Handle a parking command"""
        command_type = command.get("type")
        data = command.get("data") or {}

        try:
            if command_type == "enter_vehicle":
                result = self.service.enter_vehicle(EntryRequestDTO(**data))
            elif command_type == "exit_vehicle":
                result = self.service.exit_vehicle(ExitRequestDTO(**data))
            elif command_type == "pay_bill":
                result = self.service.pay_bill(PaymentRequestDTO(**data))
            elif command_type == "cancel_bill":
                result = self.service.cancel_bill(int(data["bill_id"]))
            elif command_type == "occupancy":
                return {"success": True, "data": self.service.get_occupancy().to_dict()}
            else:
                return {
                    "success": False,
                    "error": f"Unknown command type: {command_type}"
                }
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            self.logger.error(f"Invalid command {command_type}: {e}")
            return {
                "success": False,
                "error": f"Invalid command data: {e}"
            }

        return {"success": result.success, "data": result.to_dict()}
