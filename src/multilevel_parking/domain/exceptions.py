# File: src/multilevel_parking/domain/exceptions.py
"""
Domain Exceptions for the Parking Facility

Every failure raised by the domain layer derives from ParkingError and
carries an ErrorKind, so callers (the application service in particular)
can translate an exception into an explicit result without inspecting
message text.

Error kinds:
1. CAPACITY - no free slot of the needed category (recoverable)
2. NOT_FOUND - unknown ticket or bill id, or unsupported payment method
3. INVARIANT_VIOLATION - internal corruption, must surface loudly
4. PAYMENT_DECLINED - processor rejected the charge (recoverable)
5. INVALID_STATE_TRANSITION - operation not allowed in the bill's status
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Classification of domain failures"""
    CAPACITY = "capacity"
    NOT_FOUND = "not_found"
    INVARIANT_VIOLATION = "invariant_violation"
    PAYMENT_DECLINED = "payment_declined"
    INVALID_STATE_TRANSITION = "invalid_state_transition"


class ParkingError(Exception):
    """Base exception for all parking facility errors"""
    kind: ErrorKind = ErrorKind.INVARIANT_VIOLATION


class CapacityError(ParkingError):
    """Raised when no free slot of the required category exists"""
    kind = ErrorKind.CAPACITY

    def __init__(self, slot_type):
        super().__init__(f"No free slot available for {slot_type}")
        self.slot_type = slot_type


class NotFoundError(ParkingError):
    """Base for unknown identifiers"""
    kind = ErrorKind.NOT_FOUND


class TicketNotFoundError(NotFoundError):
    """Raised for an unknown or already-closed ticket"""

    def __init__(self, ticket_id: int):
        super().__init__(f"Invalid or already-closed ticket: {ticket_id}")
        self.ticket_id = ticket_id


class BillNotFoundError(NotFoundError):
    """Raised when a bill id is not in the ledger"""

    def __init__(self, bill_id: int):
        super().__init__(f"Bill not found: {bill_id}")
        self.bill_id = bill_id


class ProcessorNotFoundError(NotFoundError):
    """Raised when no payment processor is registered for a method"""

    def __init__(self, method):
        super().__init__(f"No payment processor registered for {method.value}")
        self.method = method


class InvariantViolationError(ParkingError):
    """Internal state is inconsistent; never expected during normal operation"""
    kind = ErrorKind.INVARIANT_VIOLATION


class SlotMissingError(InvariantViolationError):
    """An active ticket references a slot that is absent from the registry"""

    def __init__(self, slot_id: str, ticket_id: Optional[int] = None):
        super().__init__(f"Slot referenced by ticket not found: {slot_id}")
        self.slot_id = slot_id
        self.ticket_id = ticket_id


class PaymentDeclinedError(ParkingError):
    """Raised when a payment processor rejects a charge"""
    kind = ErrorKind.PAYMENT_DECLINED

    def __init__(self, bill_id: int, reason: str):
        super().__init__(f"Payment failed: {reason}")
        self.bill_id = bill_id
        self.reason = reason


class LayoutError(ValueError):
    """Raised when a facility layout or its settings are malformed"""
    pass


class InvalidStateTransitionError(ParkingError):
    """Raised when a bill operation is not allowed in its current status"""
    kind = ErrorKind.INVALID_STATE_TRANSITION

    def __init__(self, message: str, bill_id: Optional[int] = None, status=None):
        super().__init__(message)
        self.bill_id = bill_id
        self.status = status
