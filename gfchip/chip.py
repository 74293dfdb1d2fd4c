"""Chip records, chip shape configurations and puzzle solutions."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field, replace
from enum import IntEnum
from pathlib import Path
from typing import Any, Iterable, Mapping

# Attribute coefficients per block.
_ARG_DAMAGE = 4.4
_ARG_DEFBREAK = 12.7
_ARG_HIT = 7.1
_ARG_RELOAD = 5.7

# Density coefficients per chip class.
_DENSITY = {5061: 1.0, 5051: 0.92, 5052: 1.0}
_DEFAULT_DENSITY = 1.0

# Level multipliers for levels 0..20.
_ARG_LEVEL = (
    1.0, 1.08, 1.16, 1.24, 1.32, 1.4, 1.48, 1.56, 1.64, 1.72, 1.8,
    1.87, 1.94, 2.01, 2.08, 2.15, 2.22, 2.29, 2.36, 2.43, 2.5,
)

_SQUAD_NAMES = {1: "BGM", 2: "AGS", 3: "2B", 4: "M2", 5: "AT4", 6: "QLZ"}

_INT_RE = re.compile(r"\s*([+-]?\d+)\s*")


def _parse_int(text: str) -> int:
    """Parse a decimal integer string; anything unparsable gives 0."""
    match = _INT_RE.fullmatch(text)
    return int(match.group(1)) if match else 0


def _string_field(obj: Mapping[str, Any], key: str, default: str = "") -> str:
    value = obj.get(key, default)
    return value if isinstance(value, str) else default


def _int_field(obj: Mapping[str, Any], key: str, default: str = "") -> int:
    return _parse_int(_string_field(obj, key, default))


def _number_field(obj: Mapping[str, Any], key: str) -> int:
    value = obj.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


class ChipClass(IntEnum):
    """Chip class identifiers used by the game."""

    CLASS_56 = 5061
    CLASS_551 = 5051
    CLASS_552 = 5052


class ChipColor(IntEnum):
    ORANGE = 1
    BLUE = 2


@dataclass(frozen=True)
class Point:
    x: int = 0
    y: int = 0


def squad_string(index: int) -> str:
    """Name of a heavy-ordnance squad by its 1-based index, or '' if unknown."""
    return _SQUAD_NAMES.get(index, "")


@dataclass
class Chip:
    """A chip as held in the player's inventory."""

    id: int = 0
    no: int = 0
    chip_class: int = 0
    exp: int = 0
    level: int = 0
    color: int = ChipColor.ORANGE
    grid_id: int = 0
    squad: int = 0
    position: Point = field(default_factory=Point)
    rotate: int = 0
    damage_block: int = 0
    reload_block: int = 0
    hit_block: int = 0
    defbreak_block: int = 0
    damage_value: int = 0
    reload_value: int = 0
    hit_value: int = 0
    defbreak_value: int = 0
    locked: bool = False

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> "Chip":
        """Build a chip from the game's JSON record and compute its values."""
        position = _string_field(obj, "position", "0,0").split(",")
        x = _parse_int(position[0])
        y = _parse_int(position[1]) if len(position) > 1 else 0
        chip = cls(
            id=_int_field(obj, "id", "0"),
            exp=_int_field(obj, "chip_exp", "0"),
            level=_int_field(obj, "chip_level"),
            color=_int_field(obj, "color_id"),
            grid_id=_int_field(obj, "grid_id"),
            chip_class=_int_field(obj, "chip_id"),
            squad=_int_field(obj, "squad_with_user_id"),
            position=Point(x, y),
            rotate=_parse_int(_string_field(obj, "shape_info", "0,0").split(",")[0]),
            damage_block=_int_field(obj, "assist_damage", "0"),
            reload_block=_int_field(obj, "assist_reload", "0"),
            hit_block=_int_field(obj, "assist_hit", "0"),
            defbreak_block=_int_field(obj, "assist_def_break", "0"),
            locked=bool(_int_field(obj, "is_locked", "0")),
            no=0,
        )
        chip.calc_value()
        return chip

    def to_json(self) -> dict[str, str]:
        """Serialise to the game's JSON record, every field as a string."""
        return {
            "id": str(self.id),
            "chip_exp": str(self.exp),
            "chip_level": str(self.level),
            "color_id": str(self.color),
            "grid_id": str(self.grid_id),
            "chip_id": str(self.chip_class),
            "squad_with_user_id": str(self.squad),
            "position": f"{self.position.x},{self.position.y}",
            "shape_info": f"{self.rotate},0",
            "assist_damage": str(self.damage_block),
            "assist_reload": str(self.reload_block),
            "assist_hit": str(self.hit_block),
            "assist_def_break": str(self.defbreak_block),
            "is_locked": str(int(self.locked)),
        }

    def calc_value(self) -> None:
        """Recompute attribute values from block counts, class and level."""
        if not 0 <= self.level < len(_ARG_LEVEL):
            raise ValueError(f"chip level out of range: {self.level}")
        density = _DENSITY.get(self.chip_class, _DEFAULT_DENSITY)
        level_arg = _ARG_LEVEL[self.level]

        def value(blocks: int, arg: float) -> int:
            return math.ceil(math.ceil(blocks * arg * density) * level_arg)

        self.damage_value = value(self.damage_block, _ARG_DAMAGE)
        self.defbreak_value = value(self.defbreak_block, _ARG_DEFBREAK)
        self.hit_value = value(self.hit_block, _ARG_HIT)
        self.reload_value = value(self.reload_block, _ARG_RELOAD)

    def name(self, registry: "ChipConfigRegistry") -> str:
        """Shape name of this chip taken from the configuration registry."""
        return registry.get(self.grid_id).name

    def squad_name(self) -> str:
        return squad_string(self.squad)

    def _combine(self, other: "Chip", sign: int) -> "Chip":
        return replace(
            self,
            defbreak_block=self.defbreak_block + sign * other.defbreak_block,
            reload_block=self.reload_block + sign * other.reload_block,
            damage_block=self.damage_block + sign * other.damage_block,
            hit_block=self.hit_block + sign * other.hit_block,
            defbreak_value=self.defbreak_value + sign * other.defbreak_value,
            reload_value=self.reload_value + sign * other.reload_value,
            damage_value=self.damage_value + sign * other.damage_value,
            hit_value=self.hit_value + sign * other.hit_value,
        )

    def __add__(self, other: "Chip") -> "Chip":
        """Copy of self with the other chip's blocks and values added."""
        if not isinstance(other, Chip):
            return NotImplemented
        return self._combine(other, 1)

    def __sub__(self, other: "Chip") -> "Chip":
        """Copy of self with the other chip's blocks and values subtracted."""
        if not isinstance(other, Chip):
            return NotImplemented
        return self._combine(other, -1)


@dataclass(frozen=True)
class ChipConfig:
    """Static description of a chip shape."""

    grid_id: int = 0
    chip_class: int = 0
    width: int = 0
    height: int = 0
    blocks: int = 0
    direction: int = 0
    name: str = ""
    map: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> "ChipConfig":
        rows = obj.get("map", [])
        return cls(
            grid_id=_number_field(obj, "ID"),
            chip_class=_number_field(obj, "class"),
            width=_number_field(obj, "width"),
            height=_number_field(obj, "height"),
            blocks=_number_field(obj, "blocks"),
            direction=_number_field(obj, "direction"),
            name=obj.get("name", "") if isinstance(obj.get("name"), str) else "",
            map=tuple(row if isinstance(row, str) else "" for row in rows),
        )

    def rotate90(self, n: int = 1) -> "ChipConfig":
        """Return the shape rotated clockwise by 90 degrees n times."""
        config = self
        for _ in range(n):
            rotated = tuple(
                "".join(row[i] for row in reversed(config.map))
                for i in range(len(config.map[0]))
            )
            config = replace(
                config, map=rotated, width=config.height, height=config.width
            )
        return config


class ChipConfigRegistry:
    """Lookup of chip shape configurations by grid id."""

    def __init__(self, configs: Iterable[ChipConfig]) -> None:
        self._configs = {config.grid_id: config for config in configs}

    @classmethod
    def from_json(cls, array: Iterable[Mapping[str, Any]]) -> "ChipConfigRegistry":
        return cls(ChipConfig.from_json(item) for item in array)

    @classmethod
    def load(cls, path: str | Path) -> "ChipConfigRegistry":
        """Load a registry from a JSON file holding an array of configs."""
        with open(path, encoding="utf-8") as handle:
            return cls.from_json(json.load(handle))

    def get(self, grid_id: int) -> ChipConfig:
        try:
            return self._configs[grid_id]
        except KeyError:
            raise KeyError(f"unknown chip grid id: {grid_id}") from None

    def __contains__(self, grid_id: object) -> bool:
        return grid_id in self._configs

    def __len__(self) -> int:
        return len(self._configs)


@dataclass
class PuzzleOption:
    """Placement of one chip in a puzzle solution."""

    x: int = 0
    y: int = 0
    rotate: int = 0
    no: int = 0

    def __post_init__(self) -> None:
        # Placement coordinates and rotation are stored as unsigned bytes.
        self.x &= 0xFF
        self.y &= 0xFF
        self.rotate &= 0xFF

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> "PuzzleOption":
        return cls(
            x=_number_field(obj, "x"),
            y=_number_field(obj, "y"),
            rotate=_number_field(obj, "rotate"),
            no=_number_field(obj, "ID"),
        )

    def to_json(self) -> dict[str, int]:
        return {"ID": self.no, "x": self.x, "y": self.y, "rotate": self.rotate}


@dataclass
class ChipViewInfo:
    """Board layout: 0 is empty, >0 a chip number, <0 unusable."""

    width: int = 0
    height: int = 0
    map: list[list[int]] = field(default_factory=list)


@dataclass
class Solution:
    """One feasible arrangement of chips for a squad.

    In ``total_value`` the ``level`` is the total level, ``id`` the total
    deviation from the squad maximum and ``no`` the number of rotations.
    """

    chips: list[PuzzleOption] = field(default_factory=list)
    total_value: Chip = field(default_factory=Chip)
    squad: str = ""

    def __lt__(self, other: "Solution") -> bool:
        return self.total_value.id > other.total_value.id

    def to_json(self) -> dict[str, Any]:
        return {
            "totalValue": self.total_value.to_json(),
            "squad": self.squad,
            "chips": [chip.to_json() for chip in self.chips],
        }

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> "Solution":
        total = obj.get("totalValue", {})
        squad = obj.get("squad", "")
        return cls(
            chips=[PuzzleOption.from_json(item) for item in obj.get("chips", [])],
            total_value=Chip.from_json(total if isinstance(total, Mapping) else {}),
            squad=squad if isinstance(squad, str) else "",
        )


_USABLE_CLASSES = frozenset(ChipClass)


def get_chips(obj: Mapping[str, Any], registry: ChipConfigRegistry) -> list[Chip]:
    """Parse the usable chips of an inventory, sorted by id and numbered from 1."""
    chips = []
    for record in obj.values():
        chip = Chip.from_json(record)
        if chip.chip_class in _USABLE_CLASSES and chip.grid_id > 11:
            chip.rotate %= registry.get(chip.grid_id).direction
            chips.append(chip)
    chips.sort(key=lambda c: c.id)
    for number, chip in enumerate(chips, start=1):
        chip.no = number
    return chips