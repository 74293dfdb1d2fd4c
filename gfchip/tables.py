"""Tabular views of chips and of puzzle solutions."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from gfchip.chip import Chip, ChipColor, ChipConfigRegistry, Solution

_CHIP_HEADERS = (
    "编号",
    "形状",
    "名称",
    "强化",
    "精度",
    "装填",
    "伤害",
    "破防",
    "锁定",
    "装备",
)

_SOLUTION_HEADERS = (
    "编号",
    "杀伤",
    "破防",
    "精度",
    "装填",
    "总偏差",
    "总强化",
    "校准券",
    "重装",
)

_SORT_KEYS: dict[int, Callable[[Solution], int]] = {
    1: lambda s: s.total_value.damage_value,
    2: lambda s: s.total_value.defbreak_value,
    3: lambda s: s.total_value.hit_value,
    4: lambda s: s.total_value.reload_value,
    5: lambda s: s.total_value.id,
    6: lambda s: s.total_value.exp,
    7: lambda s: s.total_value.no,
}

# Each rotation of a chip costs this many calibration tickets.
_TICKETS_PER_ROTATION = 50


def _icon_name(chip: Chip) -> str:
    prefix = "b" if chip.color == ChipColor.BLUE else "o"
    return f"{prefix}{chip.grid_id}"


class ChipTable:
    """Rows describing a list of chips, one row per chip."""

    def __init__(
        self,
        chips: Iterable[Chip],
        registry: ChipConfigRegistry,
        show_blocks: bool = False,
        show_status: bool = True,
    ) -> None:
        self.chips = list(chips)
        self.registry = registry
        self.show_blocks = show_blocks
        self.show_status = show_status

    def column_count(self) -> int:
        return 10 if self.show_status else 8

    def headers(self) -> list[str]:
        return list(_CHIP_HEADERS[: self.column_count()])

    def rows(self) -> list[list[str]]:
        return [self._row(chip) for chip in self.chips]

    def _name(self, chip: Chip) -> str:
        return chip.name(self.registry) if chip.grid_id in self.registry else ""

    def _row(self, chip: Chip) -> list[str]:
        if self.show_blocks:
            hit, reload, damage, defbreak = (
                chip.hit_block,
                chip.reload_block,
                chip.damage_block,
                chip.defbreak_block,
            )
        else:
            hit, reload, damage, defbreak = (
                chip.hit_value,
                chip.reload_value,
                chip.damage_value,
                chip.defbreak_value,
            )
        row = [
            str(chip.no),
            _icon_name(chip),
            self._name(chip),
            f"+{chip.level}",
            str(hit),
            str(reload),
            str(damage),
            str(defbreak),
        ]
        if self.show_status:
            row.append("√" if chip.locked else "")
            row.append(chip.squad_name())
        return row


class SolutionTable:
    """Rows describing solutions, optionally with their deviation from the maximum."""

    def __init__(
        self,
        solutions: list[Solution],
        max_value: Chip | None = None,
        show_error: bool = True,
    ) -> None:
        self.solutions = solutions if isinstance(solutions, list) else list(solutions)
        self.max_value = max_value if max_value is not None else Chip()
        self.show_error = show_error

    def headers(self) -> list[str]:
        return list(_SOLUTION_HEADERS)

    def _attribute(self, value: int, maximum: int) -> Any:
        if self.show_error:
            return f"{value} ({min(0, value - maximum)})"
        return value

    def rows(self) -> list[list[Any]]:
        best = self.max_value
        rows = []
        for number, solution in enumerate(self.solutions, start=1):
            total = solution.total_value
            rows.append(
                [
                    number,
                    self._attribute(total.damage_value, best.damage_value),
                    self._attribute(total.defbreak_value, best.defbreak_value),
                    self._attribute(total.hit_value, best.hit_value),
                    self._attribute(total.reload_value, best.reload_value),
                    total.id,
                    total.exp,
                    total.no * _TICKETS_PER_ROTATION,
                    solution.squad,
                ]
            )
        return rows

    def sort(self, column: int, descending: bool = False) -> None:
        """Sort the solutions in place by a column; columns without a key are left alone."""
        key = _SORT_KEYS.get(column)
        if key is None:
            return
        self.solutions.sort(key=key, reverse=descending)