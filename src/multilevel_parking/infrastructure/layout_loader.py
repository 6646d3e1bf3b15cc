# File: src/multilevel_parking/infrastructure/layout_loader.py
"""
Facility Layout Loader

Reads the structured description of a facility (floors, slots and optional
settings) from a mapping, a JSON file or a YAML file and turns it into domain
objects. Validation failures raise LayoutError naming the offending field.

Expected shape (JSON shown, YAML is equivalent):

    {
      "floors": [
        {"floorNo": 1, "slots": [{"id": "F1-S1", "type": "TwoWheeler"}]}
      ],
      "settings": {"grace_minutes": 10, "lost_ticket_penalty": 200}
    }
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union
import json
import logging

import yaml

from ..domain.exceptions import LayoutError
from ..domain.models import FacilitySettings, Floor, ParkingSlot, SlotType


logger = logging.getLogger(__name__)


@dataclass
class FacilityLayout:
    """Parsed layout: floors in configured order plus facility settings"""
    floors: List[Floor]
    settings: FacilitySettings = field(default_factory=FacilitySettings)

    @property
    def total_slots(self) -> int:
        return sum(len(floor.slots) for floor in self.floors)


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, dict):
        raise LayoutError(f"{where} must be a mapping")
    if key not in data:
        raise LayoutError(f"Config missing key: {key} ({where})")
    return data[key]


def parse_slot(data: Dict[str, Any], floor_no: int) -> ParkingSlot:
    where = f"slot on floor {floor_no}"
    slot_id = _require(data, "id", where)
    if not isinstance(slot_id, str) or not slot_id.strip():
        raise LayoutError(f"Slot id must be a non-empty string ({where})")

    try:
        slot_type = SlotType.parse(_require(data, "type", f"slot {slot_id}"))
    except ValueError as e:
        raise LayoutError(f"{e} (slot {slot_id})") from e

    return ParkingSlot(slot_id.strip(), slot_type)


def parse_floor(data: Dict[str, Any]) -> Floor:
    floor_no = _require(data, "floorNo", "floor")
    if isinstance(floor_no, bool) or not isinstance(floor_no, int):
        raise LayoutError(f"floorNo must be an integer, got {floor_no!r}")

    slots = _require(data, "slots", f"floor {floor_no}")
    if not isinstance(slots, list):
        raise LayoutError(f"Config 'slots' must be an array for floor {floor_no}")

    floor = Floor(floor_no, [parse_slot(slot, floor_no) for slot in slots])
    if not floor.slots:
        raise LayoutError(f"Floor {floor_no} has no slots in config")
    return floor


def parse_layout(data: Dict[str, Any]) -> FacilityLayout:
    """
    Build a FacilityLayout from a plain mapping
    Raises: LayoutError on missing fields, empty floors/layout, bad types
    or duplicate slot ids
    """
    floors_data = _require(data, "floors", "layout")
    if not isinstance(floors_data, list):
        raise LayoutError("Config 'floors' must be an array")

    floors = [parse_floor(floor) for floor in floors_data]
    if not floors:
        raise LayoutError("Config has zero floors")

    seen = set()
    for floor in floors:
        for slot in floor.slots:
            if slot.id in seen:
                raise LayoutError(f"Duplicate slot id in config: {slot.id}")
            seen.add(slot.id)

    settings_data = data.get("settings")
    if settings_data is not None and not isinstance(settings_data, dict):
        raise LayoutError("Config 'settings' must be a mapping")

    try:
        settings = FacilitySettings.from_dict(settings_data)
    except (TypeError, ValueError, ArithmeticError) as e:
        raise LayoutError(f"Invalid settings: {e}") from e

    return FacilityLayout(floors=floors, settings=settings)


def load_layout(path: Union[str, Path]) -> FacilityLayout:
    """
    Load a layout file; '.yaml'/'.yml' files are read with PyYAML,
    everything else as JSON
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LayoutError(f"Could not open config file: {path}") from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise LayoutError(f"Could not parse config file {path}: {e}") from e

    layout = parse_layout(data)
    logger.info(f"Loaded layout from {path}: {len(layout.floors)} floor(s), {layout.total_slots} slot(s)")
    return layout


def default_layout() -> FacilityLayout:
    """Built-in two-floor layout used when no config file is given"""
    return parse_layout({
        "floors": [
            {
                "floorNo": 1,
                "slots": [
                    {"id": "F1-S1", "type": "TwoWheeler"},
                    {"id": "F1-S2", "type": "TwoWheeler"},
                    {"id": "F1-S3", "type": "FourWheeler"},
                    {"id": "F1-S4", "type": "FourWheeler"},
                    {"id": "F1-S5", "type": "Heavy"},
                ]
            },
            {
                "floorNo": 2,
                "slots": [
                    {"id": "F2-S1", "type": "TwoWheeler"},
                    {"id": "F2-S2", "type": "FourWheeler"},
                    {"id": "F2-S3", "type": "FourWheeler"},
                ]
            }
        ]
    })
