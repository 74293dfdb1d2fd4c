"""Player chip inventory, imported chip data and saved alternative solutions."""

from __future__ import annotations

import base64
import binascii
import json
import re
import zlib
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Iterator, Mapping

from gfchip.chip import Chip, ChipConfigRegistry, Solution, get_chips

_MAX_LEVEL = 20
_INT_RE = re.compile(r"\s*([+-]?\d+)\s*")
# Accept both gzip and zlib framed streams.
_GZIP_OR_ZLIB = 32 + zlib.MAX_WBITS


def _to_int(value: Any) -> int:
    if not isinstance(value, str):
        return 0
    match = _INT_RE.fullmatch(value)
    return int(match.group(1)) if match else 0


def decode_chip_data(data: bytes | str) -> dict[str, Any]:
    """Decode exported chip data: '#' followed by base64 of compressed JSON.

    Raises ValueError when the data is not in that form or does not hold
    a JSON object.
    """
    if isinstance(data, str):
        data = data.encode("latin-1")
    if not data or data[:1] != b"#":
        raise ValueError("chip data must start with '#'")
    try:
        compressed = base64.b64decode(data[1:])
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64 chip data: {exc}") from exc
    try:
        raw = zlib.decompress(compressed, _GZIP_OR_ZLIB)
    except zlib.error as exc:
        raise ValueError(f"chip data decompression failed: {exc}") from exc
    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"chip data is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise ValueError("chip data must hold a JSON object")
    return document


def _at_max_level(chip: Chip) -> Chip:
    maxed = replace(chip, level=_MAX_LEVEL)
    maxed.calc_value()
    return maxed


@dataclass
class SquadSummary:
    """Attribute totals of the chips equipped on one squad.

    ``total`` sums the chips as they are, ``maxed`` as if every chip were
    at +20, and ``deviation`` holds, per attribute, how far the maxed value
    falls short of the squad maximum (never positive).
    """

    chips: list[Chip] = field(default_factory=list)
    total: Chip = field(default_factory=Chip)
    maxed: Chip = field(default_factory=Chip)
    deviation: dict[str, int] = field(default_factory=dict)


class Inventory:
    """The player's chips, grouped by shape and by equipped squad."""

    def __init__(self, registry: ChipConfigRegistry) -> None:
        self.registry = registry
        self.chips: list[Chip] = []
        # color -> grid id -> chips forced to +20; their ``no`` is the index in ``chips``.
        self.grid_chips: dict[int, dict[int, list[Chip]]] = {}
        # squad number -> equipped chips.
        self.squad_chips: dict[int, list[Chip]] = {}

    def load(self, obj: Mapping[str, Any]) -> None:
        """Replace the inventory with the chips of a decoded data object."""
        squads = obj.get("squad_with_user_info", {})
        squad_ids: dict[int, int] = {}
        if isinstance(squads, Mapping):
            for record in squads.values():
                if isinstance(record, Mapping):
                    squad_ids[_to_int(record.get("id"))] = _to_int(record.get("squad_id"))

        records = obj.get("chip_with_user_info", {})
        self.chips = get_chips(records if isinstance(records, Mapping) else {}, self.registry)
        self.grid_chips = {}
        self.squad_chips = {}
        for index, chip in enumerate(self.chips):
            chip.no = index + 1
            if chip.squad > 0:
                chip.squad = squad_ids.get(chip.squad, 0)
                self.squad_chips.setdefault(chip.squad, []).append(replace(chip))
            maxed = _at_max_level(replace(chip, no=index))
            self.grid_chips.setdefault(maxed.color, {}).setdefault(maxed.grid_id, []).append(maxed)

    def squad_summary(self, squad: int, max_value: Chip) -> SquadSummary:
        """Summarise the chips equipped on a squad against its maximum values."""
        chips = list(self.squad_chips.get(squad, []))
        total = Chip()
        maxed = Chip()
        for chip in chips:
            total = total + chip
            maxed = maxed + _at_max_level(chip)
        deviation = {
            "damage": min(0, maxed.damage_value - max_value.damage_value),
            "defbreak": min(0, maxed.defbreak_value - max_value.defbreak_value),
            "hit": min(0, maxed.hit_value - max_value.hit_value),
            "reload": min(0, maxed.reload_value - max_value.reload_value),
        }
        return SquadSummary(chips=chips, total=total, maxed=maxed, deviation=deviation)


class AltSolutions:
    """Solutions kept aside, with a count of how often each chip is used."""

    def __init__(self) -> None:
        self._solutions: list[Solution] = []
        self._chip_count: dict[int, int] = {}

    def add(self, solution: Solution) -> None:
        for option in solution.chips:
            self._chip_count[option.no] = self._chip_count.get(option.no, 0) + 1
        self._solutions.append(solution)

    def clear(self) -> None:
        self._solutions.clear()
        self._chip_count.clear()

    def remove(self, index: int) -> Solution:
        """Remove and return the solution at ``index``."""
        if not 0 <= index < len(self._solutions):
            raise IndexError(f"no alternative solution at index {index}")
        solution = self._solutions.pop(index)
        for option in solution.chips:
            self._chip_count[option.no] = self._chip_count.get(option.no, 0) - 1
        return solution

    def chip_used(self, no: int) -> bool:
        return self._chip_count.get(no, 0) > 0

    def to_json(self) -> list[dict[str, Any]]:
        return [solution.to_json() for solution in self._solutions]

    @classmethod
    def from_json(cls, array: Iterable[Mapping[str, Any]]) -> "AltSolutions":
        alternatives = cls()
        for item in array:
            alternatives.add(Solution.from_json(item))
        return alternatives

    def __len__(self) -> int:
        return len(self._solutions)

    def __iter__(self) -> Iterator[Solution]:
        return iter(self._solutions)

    def __getitem__(self, index: int) -> Solution:
        return self._solutions[index]