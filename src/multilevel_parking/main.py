# File: src/multilevel_parking/main.py
"""
Command-line demo for the parking facility

Loads a layout (JSON/YAML file or the built-in one) and walks through the
reference scenario: two entries, simulated stays, exits, payments and a
lost-ticket exit paid by UPI.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .domain.aggregates import Facility
from .domain.exceptions import LayoutError, ParkingError
from .domain.models import Money, PaymentMethod, PaymentRequest, Vehicle, VehicleType
from .infrastructure.layout_loader import default_layout, load_layout
from .presentation.console import format_bill, format_occupancy, format_receipt


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> logging.Logger:
    """Setup application logging configuration"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
    return logging.getLogger(__name__)


def print_occupancy(facility: Facility, label: str) -> None:
    print(format_occupancy(
        label,
        facility.occupancy(),
        facility.active_ticket_count(),
        facility.occupancy_by_category()
    ))


def run_demo(facility: Facility) -> None:
    """Reference scenario; raises ParkingError if any step fails"""
    bike = Vehicle("UP80 HM 8086", VehicleType.BIKE)
    car = Vehicle("DL8CAF1234", VehicleType.CAR)

    bike_ticket = facility.enter_vehicle("E1", bike)
    car_ticket = facility.enter_vehicle("E2", car)

    # 1h35m -> 2 billed hours; 7m -> inside the grace window
    facility.adjust_entry_time(bike_ticket, 95)
    facility.adjust_entry_time(car_ticket, 7)

    print_occupancy(facility, "Before exit")

    bike_bill = facility.exit_vehicle(bike_ticket, "X1")
    car_bill = facility.exit_vehicle(car_ticket, "X2")
    print(format_bill(bike_bill))
    print(format_bill(car_bill))

    print(format_receipt(facility.pay_bill(PaymentRequest(
        bike_bill.id, bike_bill.amount, PaymentMethod.CARD, card_number="42424242"
    ))))
    # Zero-amount bills are still settled to close the books
    print(format_receipt(facility.pay_bill(PaymentRequest(
        car_bill.id, car_bill.amount, PaymentMethod.CASH
    ))))

    print_occupancy(facility, "After exit ")

    lost_ticket = facility.enter_vehicle("E3", car)
    facility.adjust_entry_time(lost_ticket, 30)
    lost_bill = facility.exit_vehicle(lost_ticket, "X3", lost_ticket=True)
    print(format_bill(lost_bill))
    print(format_receipt(facility.pay_bill(PaymentRequest(
        lost_bill.id, lost_bill.amount, PaymentMethod.UPI, upi_vpa="anil@upi"
    ))))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multilevel-parking",
        description="Run the parking facility demo scenario"
    )
    parser.add_argument("--config", help="Layout file (.json, .yaml or .yml)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(args.log_level, args.log_file)

    try:
        layout = load_layout(args.config) if args.config else default_layout()
        facility = Facility(settings=layout.settings, floors=layout.floors)
        run_demo(facility)
    except (LayoutError, ParkingError) as e:
        logger.error(f"Demo failed: {e}")
        print(f"[FATAL] {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
