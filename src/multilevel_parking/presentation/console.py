# File: src/multilevel_parking/presentation/console.py
"""
Console rendering of bills, receipts and occupancy
"""

from datetime import datetime
from typing import Dict, Optional

from ..domain.models import Bill, OccupancySnapshot, Receipt, SlotType


TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _fmt_time(value: Optional[datetime]) -> str:
    return value.strftime(TIME_FORMAT) if value else "-"


def format_bill(bill: Bill) -> str:
    lines = [
        "------ BILL ------",
        f"Bill: {bill.id} | Ticket: {bill.ticket_id}",
        f"Vehicle: {bill.vehicle_registration} | Slot: {bill.slot_id}",
        f"Entry: {bill.entry_gate} | Exit: {bill.exit_gate}",
        f"In : {_fmt_time(bill.in_time)}",
        f"Out: {_fmt_time(bill.out_time)}",
        f"Parked: {bill.parked_minutes} mins, Billed: {bill.billed_hours} hour(s)",
    ]
    if bill.lost_ticket and bill.penalty:
        lines.append(f"Lost ticket penalty: {bill.penalty.format()}")
    lines.append(f"Amount: {bill.amount.format()} | Status: {bill.status}")
    lines.append("------------------")
    return "\n".join(lines)


def format_receipt(receipt: Receipt) -> str:
    return "\n".join([
        "==== RECEIPT ====",
        f"Bill: {receipt.bill_id} | Ticket: {receipt.ticket_id}",
        f"Amount: {receipt.amount.format()} | Method: {receipt.method}",
        f"PaidAt: {_fmt_time(receipt.paid_at)}",
        "=================",
    ])


def format_occupancy(
    label: str,
    snapshot: OccupancySnapshot,
    active_tickets: int,
    by_category: Optional[Dict[SlotType, OccupancySnapshot]] = None
) -> str:
    lines = [
        f"{label} -> Active: {active_tickets} | free/used/total: "
        f"{snapshot.free}/{snapshot.used}/{snapshot.total}"
    ]
    for slot_type, counts in (by_category or {}).items():
        lines.append(f"  {str(slot_type):<13} {counts.free}/{counts.used}/{counts.total}")
    return "\n".join(lines)
